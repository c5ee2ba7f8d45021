"""
Errors raised by the order core.

Every error is recoverable per request. ``code`` is the machine-readable
identifier the HTTP layer puts in its ``{"code", "message"}`` error bodies.
"""


class OrderServiceError(Exception):
    code = "order_error"
    default_message = "order service error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(OrderServiceError):
    code = "invalid_order"
    default_message = "invalid order"


class NotFound(OrderServiceError):
    code = "not_found"
    default_message = "order not found"

    def __init__(self, order_id=None, message=None):
        self.order_id = order_id
        if message is None and order_id is not None:
            message = f"order {order_id} not found"
        super().__init__(message)


class Conflict(OrderServiceError):
    code = "conflict"
    default_message = "request token resolved to an order that no longer exists"


class ReservationPending(Conflict):
    code = "reservation_pending"
    default_message = "a request with the same token is still being processed"
