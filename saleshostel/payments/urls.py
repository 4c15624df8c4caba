from django.urls import path
from .views import (
    payment_initialize, payment_verify, payment_fees, paystack_webhook, flutterwave_webhook, admin_payment_list
)

urlpatterns = [
    path('payments/initialize/', payment_initialize, name='payment-initialize'),
    path('payments/verify/', payment_verify, name='payment-verify'),
    path('payments/fees/', payment_fees, name='payment-fees'),
    path('payments/webhooks/paystack/', paystack_webhook, name='paystack-webhook'),
    path('payments/webhooks/flutterwave/', flutterwave_webhook, name='flutterwave-webhook'),
    path('admin/payments/', admin_payment_list, name='admin-payment-list'),
]
