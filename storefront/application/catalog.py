import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from storefront.domain.models import Category, Price, Product, Weight
from storefront.domain.exceptions import (
    CategoryNotFoundError,
    InvalidArgumentError,
    ProductNotFoundError,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

NULLABLE_PRODUCT_FIELDS = {"old_price", "weight", "image_url", "description"}


class Page(BaseModel, Generic[T]):
    items: List[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0


class ProductQuery(BaseModel):
    page: int = 1
    limit: int = 10
    category_id: Optional[str] = None
    is_exclusive: Optional[bool] = None


class CreateProductDTO(BaseModel):
    name: str
    price: Price
    category_id: str
    stock: int = Field(default=0, ge=0)
    old_price: Optional[Price] = None
    weight: Optional[Weight] = None
    is_exclusive: bool = False
    image_url: Optional[str] = None
    description: Optional[str] = None


class UpdateProductDTO(BaseModel):
    name: Optional[str] = None
    price: Optional[Price] = None
    category_id: Optional[str] = None
    stock: Optional[int] = Field(default=None, ge=0)
    old_price: Optional[Price] = None
    weight: Optional[Weight] = None
    is_exclusive: Optional[bool] = None
    image_url: Optional[str] = None
    description: Optional[str] = None


class CreateCategoryDTO(BaseModel):
    name: str
    is_exclusive: bool = False


def _check_paging(page: int, limit: int, max_limit: int) -> int:
    if page < 1:
        raise InvalidArgumentError("Page must be a positive integer")
    if limit < 1 or limit > max_limit:
        raise InvalidArgumentError(f"Limit must be between 1 and {max_limit}")
    return (page - 1) * limit


class ListProductsUseCase:
    def __init__(self, unit_of_work, max_page_size: int = 100):
        self._uow = unit_of_work
        self._max_page_size = max_page_size

    async def __call__(self, query: ProductQuery) -> Page[Product]:
        offset = _check_paging(query.page, query.limit, self._max_page_size)
        async with self._uow() as uow:
            products = await uow.products.list(
                offset, query.limit, category_id=query.category_id, is_exclusive=query.is_exclusive
            )
            total = await uow.products.count(category_id=query.category_id, is_exclusive=query.is_exclusive)
        return Page[Product](items=products, page=query.page, limit=query.limit, total=total)


class GetProductUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, product_id: str) -> Product:
        async with self._uow() as uow:
            product = await uow.products.get_by_id(product_id)
            if not product:
                raise ProductNotFoundError(product_id)
            return product


class CreateProductUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: CreateProductDTO) -> Product:
        async with self._uow() as uow:
            if not await uow.categories.get_by_id(dto.category_id):
                raise CategoryNotFoundError(dto.category_id)

            now = datetime.now(timezone.utc)
            product = Product(id=str(uuid.uuid4()), created_at=now, updated_at=now, **dto.model_dump())
            await uow.products.create(product)
            await uow.commit()
            logger.info(f"Товар создан: {product.id} ({product.name})")
            return product


class UpdateProductUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, product_id: str, dto: UpdateProductDTO) -> Product:
        changes = {
            field: value
            for field, value in dto.model_dump(exclude_unset=True).items()
            if value is not None or field in NULLABLE_PRODUCT_FIELDS
        }
        if not changes:
            raise InvalidArgumentError("Nothing to update")

        async with self._uow() as uow:
            if "category_id" in changes and not await uow.categories.get_by_id(changes["category_id"]):
                raise CategoryNotFoundError(changes["category_id"])

            product = await uow.products.update(product_id, changes)
            if not product:
                raise ProductNotFoundError(product_id)
            await uow.commit()
            logger.info(f"Товар {product_id} обновлен: {sorted(changes)}")
            return product


class DeleteProductUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, product_id: str) -> None:
        async with self._uow() as uow:
            if not await uow.products.delete(product_id):
                raise ProductNotFoundError(product_id)
            await uow.commit()
            logger.info(f"Товар {product_id} удален")


class ListCategoriesUseCase:
    def __init__(self, unit_of_work, max_page_size: int = 100):
        self._uow = unit_of_work
        self._max_page_size = max_page_size

    async def __call__(self, page: int = 1, limit: int = 10) -> Page[Category]:
        offset = _check_paging(page, limit, self._max_page_size)
        async with self._uow() as uow:
            categories = await uow.categories.list(offset, limit)
            total = await uow.categories.count()
        return Page[Category](items=categories, page=page, limit=limit, total=total)


class CreateCategoryUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: CreateCategoryDTO) -> Category:
        category = Category(
            id=str(uuid.uuid4()),
            name=dto.name,
            is_exclusive=dto.is_exclusive,
            created_at=datetime.now(timezone.utc),
        )
        async with self._uow() as uow:
            await uow.categories.create(category)
            await uow.commit()
        logger.info(f"Категория создана: {category.id} ({category.name})")
        return category
