
from django.conf import settings
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status

from .apps import get_order_service
from .exceptions import Conflict, NotFound, OrderServiceError, ValidationError
from .serializers import OrderCreateSerializer, OrderFilterSerializer, OrderSerializer

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    Conflict: status.HTTP_409_CONFLICT,
}


def error_response(exc: OrderServiceError):
    for kind, http_status in ERROR_STATUS.items():
        if isinstance(exc, kind):
            break
    else:
        http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    return Response({"code": exc.code, "message": exc.message}, status=http_status)


class OrderListCreateView(APIView):
    """
    GET  /orders   open orders, ascending id, optional ?table_number= and ?dish_id=
    POST /orders   create, deduplicated on request_token
    """

    def get(self, request):
        filters = OrderFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        orders = get_order_service().list_orders(**filters.validated_data)
        return Response(OrderSerializer(orders, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        ser = OrderCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            order = get_order_service().create_order(
                data["request_token"],
                data["table_number"],
                [dict(item) for item in data["items"]],
                timeout=settings.ORDERS_DEDUP_WAIT_SECONDS,
            )
        except OrderServiceError as exc:
            return error_response(exc)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class OrderDetailView(APIView):
    """
    GET    /orders/{id}
    DELETE /orders/{id}   404 once already deleted
    """

    def get(self, request, order_id):
        try:
            order = get_order_service().get_order(order_id)
        except OrderServiceError as exc:
            return error_response(exc)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)

    def delete(self, request, order_id):
        try:
            get_order_service().delete_order(order_id)
        except OrderServiceError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)
