# coding: utf8


class BaseError(Exception):
    """Error rendered by the api error handler.

    ``code`` is the business code of the response envelope, ``status`` the
    HTTP status."""

    status = 500
    code = 500
    message = "Internal Server Error"

    def __init__(self, message=None, code=None, status=None, data=None):
        super().__init__(message or self.message)
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status
        self.payload = data or {}

    def to_dict(self):
        return {"code": self.code, "message": self.message, "data": self.payload}


class BadRequest(BaseError):
    status = 400
    code = 400
    message = "Bad Request"


class Unauthorized(BaseError):
    status = 401
    code = 401
    message = "Unauthorized"


class Forbidden(BaseError):
    status = 403
    code = 403
    message = "Forbidden"


class NotFound(BaseError):
    status = 404
    code = 404
    message = "Not Found"


class InsufficientPoints(BaseError):
    status = 409
    code = 4091
    message = "Insufficient loyalty points"

    def __init__(self, balance=0, requested=0, message=None):
        super().__init__(
            message=message
            or f"Insufficient loyalty points: balance {balance}, requested {requested}",
            data={"balance": balance, "requested": requested},
        )
        self.balance = balance
        self.requested = requested


class InvalidTransition(BaseError):
    status = 409
    code = 4092
    message = "Invalid order status transition"

    def __init__(self, current, target, message=None):
        current = getattr(current, "value", current)
        target = getattr(target, "value", target)
        super().__init__(
            message=message or f"Cannot move order from '{current}' to '{target}'",
            data={"current": current, "target": target},
        )
        self.current = current
        self.target = target


class PaymentGatewayError(BaseError):
    """Gateway failure; ``message`` is the gateway's own message."""

    status = 502
    code = 502
    message = "Payment gateway error"
