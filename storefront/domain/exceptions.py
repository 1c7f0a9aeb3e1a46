class DomainException(Exception):
    pass


class InvalidArgumentError(DomainException):
    pass


class InvalidIdentityError(InvalidArgumentError):
    def __init__(self, message: str = "Either an authenticated user or a sessionId is required"):
        super().__init__(message)


class NotFoundError(DomainException):
    pass


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__("Product not found")


class CategoryNotFoundError(NotFoundError):
    def __init__(self, category_id: str):
        self.category_id = category_id
        super().__init__("Category not found")


class CartItemNotFoundError(NotFoundError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__("Item not found in cart")


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__("Order not found")


class InsufficientStockError(DomainException):
    def __init__(self, product_name: str, available: int, required: int):
        self.product_name = product_name
        self.available = available
        self.required = required
        super().__init__(f"Not enough stock for {product_name}. Available: {available}")


class EmptyCartError(DomainException):
    def __init__(self):
        super().__init__("Cart is empty")


class InvalidOrderStateError(DomainException):
    pass


class UnauthenticatedError(DomainException):
    pass


class ForbiddenError(DomainException):
    pass
