# backend/utils/errors.py
# Error taxonomy of the storefront services. Routes let these propagate,
# main.py maps them to HTTP responses shaped like HTTPException bodies.


class StoreError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


# Malformed or inconsistent input, rejected before any write
class InvalidRequestError(StoreError):
    status_code = 400


class UnauthorizedError(StoreError):
    status_code = 401


class ForbiddenError(StoreError):
    status_code = 403


class NotFoundError(StoreError):
    status_code = 404


# Unique key already taken (order number, SKU, wishlist entry, ...)
class ConflictError(StoreError):
    status_code = 409


class InvalidTransitionError(ConflictError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change order status from {current} to {requested}")
        self.current = current
        self.requested = requested


class InsufficientStockError(ConflictError):
    def __init__(self, product_id: int, requested: int):
        super().__init__(f"Insufficient stock for product {product_id}")
        self.product_id = product_id
        self.requested = requested


# Unexpected failure inside the order transaction, already rolled back
class OrderCreationError(StoreError):
    status_code = 500
