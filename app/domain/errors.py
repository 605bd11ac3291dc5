"""
Error taxonomy for the storefront.

The core raises these; only the HTTP layer looks at ``status_code``.
"""


class LeafyError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class ValidationError(LeafyError):
    """Bad or missing input."""
    status_code = 400


class Unauthenticated(LeafyError):
    status_code = 401


class PermissionDenied(LeafyError):
    status_code = 403


class NotFound(LeafyError):
    status_code = 404


class BatchNotFound(NotFound):
    def __init__(self, batch_id):
        super().__init__(f"Batch {batch_id} not found")
        self.batch_id = batch_id


class OrderNotFound(NotFound):
    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class Conflict(LeafyError):
    """A business rule refused the change."""
    status_code = 409


class InsufficientStock(Conflict):
    def __init__(self, batch_id, requested, available=None):
        detail = f"Insufficient stock for batch {batch_id}: requested {requested}"
        if available is not None:
            detail += f", available {available}"
        super().__init__(detail)
        self.batch_id = batch_id
        self.requested = requested
        self.available = available


class InvalidStatusTransition(Conflict):
    def __init__(self, current, requested):
        super().__init__(f"Cannot move order from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class UsernameTaken(Conflict):
    def __init__(self, username):
        super().__init__(f"Username '{username}' is already taken")
        self.username = username


class DuplicateOrderId(Conflict):
    """Raised by a repository when an order id already exists."""


class DependencyUnavailable(LeafyError):
    """Persistence or notifier backend unreachable."""
    status_code = 503
