from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from storefront.application.catalog import (
    CreateCategoryDTO,
    CreateCategoryUseCase,
    CreateProductDTO,
    CreateProductUseCase,
    DeleteProductUseCase,
    GetProductUseCase,
    ListCategoriesUseCase,
    ListProductsUseCase,
    ProductQuery,
    UpdateProductDTO,
    UpdateProductUseCase,
)
from storefront.config import settings
from storefront.domain.models import Principal
from storefront.presentation.dependencies import ensure_id, get_admin_principal, get_unit_of_work
from storefront.presentation.schemas import (
    CategoriesPageEnvelope, CategoryEnvelope, CategoryResponse, CreateCategoryRequest,
    CreateProductRequest, ErrorResponse, MessageResponse, ProductEnvelope, ProductResponse,
    ProductsPageEnvelope, UpdateProductRequest,
)

products_router = APIRouter(prefix="/products", tags=["products"])
categories_router = APIRouter(prefix="/categories", tags=["categories"])

ADMIN_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


# Фабрики для создания use cases
def get_list_products_use_case(uow=Depends(get_unit_of_work)):
    return ListProductsUseCase(uow, settings.MAX_PAGE_SIZE)


def get_get_product_use_case(uow=Depends(get_unit_of_work)):
    return GetProductUseCase(uow)


def get_create_product_use_case(uow=Depends(get_unit_of_work)):
    return CreateProductUseCase(uow)


def get_update_product_use_case(uow=Depends(get_unit_of_work)):
    return UpdateProductUseCase(uow)


def get_delete_product_use_case(uow=Depends(get_unit_of_work)):
    return DeleteProductUseCase(uow)


def get_list_categories_use_case(uow=Depends(get_unit_of_work)):
    return ListCategoriesUseCase(uow, settings.MAX_PAGE_SIZE)


def get_create_category_use_case(uow=Depends(get_unit_of_work)):
    return CreateCategoryUseCase(uow)


@products_router.get("", response_model=ProductsPageEnvelope, responses={400: {"model": ErrorResponse}})
async def list_products(
    category: Optional[str] = None,
    is_exclusive: Optional[bool] = Query(default=None, alias="isExclusive"),
    page: int = 1,
    limit: int = settings.DEFAULT_PAGE_SIZE,
    use_case: ListProductsUseCase = Depends(get_list_products_use_case)
):
    """Товары с фильтром по категории и пагинацией"""
    query = ProductQuery(
        page=page,
        limit=limit,
        category_id=ensure_id(category, "category") if category else None,
        is_exclusive=is_exclusive
    )
    result = await use_case(query)
    return ProductsPageEnvelope(
        page=result.page,
        total_pages=result.total_pages,
        total_products=result.total,
        count=len(result.items),
        products=[ProductResponse.from_domain(p) for p in result.items]
    )


@products_router.get(
    "/{product_id}",
    response_model=ProductEnvelope,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def get_product(
    product_id: str,
    use_case: GetProductUseCase = Depends(get_get_product_use_case)
):
    product = await use_case(ensure_id(product_id, "product"))
    return ProductEnvelope(product=ProductResponse.from_domain(product))


@products_router.post(
    "",
    response_model=ProductEnvelope,
    responses=ADMIN_ERRORS,
    status_code=status.HTTP_201_CREATED
)
async def create_product(
    request: CreateProductRequest,
    admin: Principal = Depends(get_admin_principal),
    use_case: CreateProductUseCase = Depends(get_create_product_use_case)
):
    dto = CreateProductDTO(
        category_id=ensure_id(request.category, "category"),
        **request.model_dump(exclude={"category"})
    )
    product = await use_case(dto)
    return ProductEnvelope(product=ProductResponse.from_domain(product))


@products_router.put("/{product_id}", response_model=ProductEnvelope, responses=ADMIN_ERRORS)
async def update_product(
    product_id: str,
    request: UpdateProductRequest,
    admin: Principal = Depends(get_admin_principal),
    use_case: UpdateProductUseCase = Depends(get_update_product_use_case)
):
    """Частичное обновление товара, в том числе пополнение остатков"""
    changes = request.model_dump(exclude_unset=True, exclude={"category"})
    if "category" in request.model_fields_set and request.category is not None:
        changes["category_id"] = ensure_id(request.category, "category")
    product = await use_case(ensure_id(product_id, "product"), UpdateProductDTO(**changes))
    return ProductEnvelope(product=ProductResponse.from_domain(product))


@products_router.delete("/{product_id}", response_model=MessageResponse, responses=ADMIN_ERRORS)
async def delete_product(
    product_id: str,
    admin: Principal = Depends(get_admin_principal),
    use_case: DeleteProductUseCase = Depends(get_delete_product_use_case)
):
    await use_case(ensure_id(product_id, "product"))
    return MessageResponse(message="Product deleted")


@categories_router.get("", response_model=CategoriesPageEnvelope, responses={400: {"model": ErrorResponse}})
async def list_categories(
    page: int = 1,
    limit: int = settings.DEFAULT_PAGE_SIZE,
    use_case: ListCategoriesUseCase = Depends(get_list_categories_use_case)
):
    result = await use_case(page, limit)
    return CategoriesPageEnvelope(
        page=result.page,
        total_pages=result.total_pages,
        total_categories=result.total,
        categories=[
            CategoryResponse(id=c.id, name=c.name, is_exclusive=c.is_exclusive) for c in result.items
        ]
    )


@categories_router.post(
    "",
    response_model=CategoryEnvelope,
    responses=ADMIN_ERRORS,
    status_code=status.HTTP_201_CREATED
)
async def create_category(
    request: CreateCategoryRequest,
    admin: Principal = Depends(get_admin_principal),
    use_case: CreateCategoryUseCase = Depends(get_create_category_use_case)
):
    category = await use_case(CreateCategoryDTO(name=request.name, is_exclusive=request.is_exclusive))
    return CategoryEnvelope(
        category=CategoryResponse(id=category.id, name=category.name, is_exclusive=category.is_exclusive)
    )
