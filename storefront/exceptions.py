"""Domain errors raised by the service layer.

Routers translate these into HTTP responses; jobs log them. Each error
carries an optional ``field`` so validation failures can be reported
field-by-field.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for business-rule failures"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationFailed(StorefrontError):
    """Malformed or missing input"""

    status_code = 422


class DuplicateFieldError(ValidationFailed):
    """A unique field (SKU, e-mail, category code) is already taken"""


class UnderageError(ValidationFailed):
    """Customer does not meet the minimum age"""

    def __init__(self, minimum_age: int):
        super().__init__(f"You must be at least {minimum_age} years old.", field="customer_dob")


class NotFoundError(StorefrontError):
    """Unknown entity or confirmation code"""

    status_code = 404


class EmptyCartError(StorefrontError):
    """Checkout attempted with nothing in the cart"""

    status_code = 409

    def __init__(self, message: str = "Your cart is empty."):
        super().__init__(message)


class StockShortageError(StorefrontError):
    """Requested quantity exceeds available stock"""

    status_code = 409

    def __init__(self, product_name: Optional[str] = None):
        if product_name:
            message = f"Not enough stock for {product_name}"
        else:
            message = "Not enough stock available."
        super().__init__(message)
        self.product_name = product_name


class InvalidStatusError(ValidationFailed):
    """Status value is not one that can be assigned"""

    def __init__(self, status: str):
        super().__init__(f"Unknown reservation status: {status}", field="status")


class IllegalTransitionError(StorefrontError):
    """Status change not permitted from the current status"""

    status_code = 409

    def __init__(self, old_status: str, new_status: str):
        super().__init__(f"Cannot change reservation from {old_status} to {new_status}", field="status")


class RateLimitExceeded(StorefrontError):
    """Too many checkouts from one client"""

    status_code = 429

    def __init__(self):
        super().__init__("Too many orders. Please try again later.")


class HoneypotTriggered(StorefrontError):
    """Bot-only form field was filled in"""

    def __init__(self):
        super().__init__("Something went wrong. Please try again.")


class ForbiddenError(StorefrontError):
    """Resource belongs to someone else"""

    status_code = 403


class ConflictError(StorefrontError):
    """Operation refused because of related records"""

    status_code = 409
