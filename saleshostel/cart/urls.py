from django.urls import path
from .views import (
    cart_detail, cart_add_item, cart_item_detail, cart_save_for_later, cart_move_to_cart,
    cart_saved_item_delete, cart_validate, abandoned_carts
)

urlpatterns = [
    path('cart/', cart_detail, name='cart-detail'),
    path('cart/items/', cart_add_item, name='cart-add-item'),
    path('cart/items/<int:item_id>/', cart_item_detail, name='cart-item-detail'),
    path('cart/items/<int:item_id>/save-for-later/', cart_save_for_later, name='cart-save-for-later'),
    path('cart/saved/<int:saved_item_id>/', cart_saved_item_delete, name='cart-saved-item-delete'),
    path('cart/saved/<int:saved_item_id>/move-to-cart/', cart_move_to_cart, name='cart-move-to-cart'),
    path('cart/validate/', cart_validate, name='cart-validate'),
    path('admin/carts/abandoned/', abandoned_carts, name='abandoned-carts'),
]
