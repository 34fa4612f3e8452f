"""Domain errors raised by the services.

Routers don't translate these one by one: the handlers registered in
``app.main`` turn any ``AppError`` into a JSON response with the error's
``status_code``.
"""
from typing import Optional


class AppError(Exception):
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class InvalidLineItem(ValidationError):
    def __init__(self, index: int, reason: str):
        super().__init__(f"Invalid product or quantity at line {index}: {reason}")
        self.index = index
        self.reason = reason


class DuplicateEmail(ValidationError):
    def __init__(self, email: str):
        super().__init__("Email already registered")
        self.email = email


class NotFound(AppError):
    status_code = 404


class ProductNotFound(NotFound):
    def __init__(self, product_id):
        super().__init__(f"Product ID {product_id} not found")
        self.product_id = product_id


class UserNotFound(NotFound):
    def __init__(self, user_id=None):
        super().__init__("User not found")
        self.user_id = user_id


class NoOrdersFound(AppError):
    # the storefront has always answered 400 here, not 404
    status_code = 400

    def __init__(self, user_id=None):
        super().__init__("There are no orders on your account.")
        self.user_id = user_id


class Unauthorized(AppError):
    status_code = 401


class InvalidCredentials(Unauthorized):
    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class NotResourceOwner(Unauthorized):
    def __init__(self):
        super().__init__("Action not allowed.")


class Conflict(AppError):
    status_code = 409
    retryable = True


class InsufficientStock(Conflict):
    status_code = 400

    def __init__(self, product_id, product_name: Optional[str] = None):
        super().__init__(f"Insufficient stock for {product_name or f'product {product_id}'}")
        self.product_id = product_id
        self.product_name = product_name


class InternalError(AppError):
    status_code = 500


class StoreBusy(AppError):
    status_code = 503
    retryable = True

    def __init__(self, message: str = "The store is busy, please retry"):
        super().__init__(message)


class OrderTimeout(StoreBusy):
    def __init__(self):
        super().__init__("Order could not be completed in time, please retry")
