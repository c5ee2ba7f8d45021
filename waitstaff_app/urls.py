
from django.urls import path
from .views import OrderDetailView, OrderListCreateView


urlpatterns = [
    path('orders', OrderListCreateView.as_view(), name='order-list'),
    path('orders/<int:order_id>', OrderDetailView.as_view(), name='order-detail'),
]
