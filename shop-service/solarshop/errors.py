# solarshop/errors.py
"""Domain errors raised by the service layer.

Each carries the HTTP status the API answers with; ``serve.py`` renders
them as ``{"detail": message}``, the same body shape as ``HTTPException``.
"""


class ShopError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(ShopError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(ShopError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ShopError):
    status_code = 403
    default_message = "Access denied"


class NotFound(ShopError):
    status_code = 404
    default_message = "Not found"


class Conflict(ShopError):
    status_code = 409
    default_message = "Already exists"


class Internal(ShopError):
    pass
