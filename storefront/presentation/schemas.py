from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from storefront.domain.models import OrderStatus, Price, Weight

# Decimal внутри, число в JSON-ответе (totalAmount: 30.0)
JsonDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """JSON наружу и внутрь в camelCase (productId, sessionId, ...)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Requests

class AddToCartRequest(CamelModel):
    product_id: str
    quantity: int = 1
    session_id: Optional[str] = None


class CartItemRequest(CamelModel):
    product_id: str
    session_id: Optional[str] = None


class MergeCartRequest(CamelModel):
    session_id: str


class CheckoutRequest(CamelModel):
    user_id: str


class UpdateOrderStatusRequest(CamelModel):
    status: str


class CreateProductRequest(CamelModel):
    name: str = Field(min_length=1)
    price: Price
    category: str
    stock: int = Field(default=0, ge=0)
    old_price: Optional[Price] = None
    weight: Optional[Weight] = None
    is_exclusive: bool = False
    image_url: Optional[str] = None
    description: Optional[str] = None


class UpdateProductRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[Price] = None
    category: Optional[str] = None
    stock: Optional[int] = Field(default=None, ge=0)
    old_price: Optional[Price] = None
    weight: Optional[Weight] = None
    is_exclusive: Optional[bool] = None
    image_url: Optional[str] = None
    description: Optional[str] = None


class CreateCategoryRequest(CamelModel):
    name: str = Field(min_length=1)
    is_exclusive: bool = False


# Responses

class CartItemResponse(CamelModel):
    product_id: str
    quantity: int


class CartResponse(CamelModel):
    id: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    items: List[CartItemResponse]
    total_quantity: int

    @classmethod
    def from_domain(cls, cart):
        return cls(
            id=cart.id,
            user_id=cart.user_id,
            session_id=cart.session_id,
            items=[CartItemResponse(product_id=i.product_id, quantity=i.quantity) for i in cart.items],
            total_quantity=cart.total_quantity()
        )


class CartEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    cart: CartResponse
    session_id: Optional[str] = None


class OrderLineResponse(CamelModel):
    product_id: str
    product_name: str
    quantity: int
    price: JsonDecimal


class OrderResponse(CamelModel):
    id: str
    user_id: str
    items: List[OrderLineResponse]
    total_amount: JsonDecimal
    status: OrderStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, order):
        return cls(
            id=order.id,
            user_id=order.user_id,
            items=[
                OrderLineResponse(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    price=line.price
                )
                for line in order.items
            ],
            total_amount=order.total_amount,
            status=order.status,
            created_at=order.created_at,
            updated_at=order.updated_at
        )


class OrderEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    order: OrderResponse


class OrdersEnvelope(CamelModel):
    success: bool = True
    count: int
    orders: List[OrderResponse]


class ProductResponse(CamelModel):
    id: str
    name: str
    price: JsonDecimal
    old_price: Optional[JsonDecimal] = None
    stock: int
    category: str
    weight: Optional[JsonDecimal] = None
    is_exclusive: bool
    image_url: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_domain(cls, product):
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            old_price=product.old_price,
            stock=product.stock,
            category=product.category_id,
            weight=product.weight,
            is_exclusive=product.is_exclusive,
            image_url=product.image_url,
            description=product.description
        )


class ProductEnvelope(CamelModel):
    success: bool = True
    product: ProductResponse


class ProductsPageEnvelope(CamelModel):
    success: bool = True
    page: int
    total_pages: int
    total_products: int
    count: int
    products: List[ProductResponse]


class CategoryResponse(CamelModel):
    id: str
    name: str
    is_exclusive: bool


class CategoryEnvelope(CamelModel):
    success: bool = True
    category: CategoryResponse


class CategoriesPageEnvelope(CamelModel):
    success: bool = True
    page: int
    total_pages: int
    total_categories: int
    categories: List[CategoryResponse]


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class ErrorResponse(CamelModel):
    success: bool = False
    message: str
