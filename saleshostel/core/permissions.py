from rest_framework.permissions import BasePermission


class IsAdminRole(BasePermission):
    """Admin role users and superusers"""
    message = 'Admin access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin_role)


class IsStaffRole(BasePermission):
    """Staff members; admins can act as staff"""
    message = 'Staff access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_staff_role)


class IsSupplierRole(BasePermission):
    message = 'Supplier access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_supplier_role)


class IsCustomerRole(BasePermission):
    message = 'Customer access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_customer_role)
