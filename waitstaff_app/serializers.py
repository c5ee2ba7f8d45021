from rest_framework import serializers


class LineItemSerializer(serializers.Serializer):
    dish_id = serializers.CharField()
    quantity = serializers.IntegerField()


class OrderCreateSerializer(serializers.Serializer):
    # value checks (positive quantities, non-empty items) belong to the order store
    request_token = serializers.CharField()
    table_number = serializers.IntegerField()
    items = LineItemSerializer(many=True)


class OrderSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    table_number = serializers.IntegerField(read_only=True)
    items = LineItemSerializer(many=True, read_only=True)
    cooking_time = serializers.IntegerField(read_only=True)
    status = serializers.CharField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)


class OrderFilterSerializer(serializers.Serializer):
    table_number = serializers.IntegerField(required=False, min_value=1)
    dish_id = serializers.CharField(required=False)
