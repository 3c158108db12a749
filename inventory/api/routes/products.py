"""Product CRUD endpoints."""

from fastapi import APIRouter, Query, status

from inventory.api.deps import Products
from inventory.schemas.product import (
    ProductCreate,
    ProductListResponse,
    ProductRead,
    ProductUpdate,
)
from inventory.schemas.transfer import DeleteAllResponse

router = APIRouter()


@router.get("", response_model=ProductListResponse, summary="List products")
async def list_products(
    service: Products,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    search: str | None = Query(default=None, description="Match name, code, brand or category"),
    active_only: bool = Query(default=False, alias="activeOnly"),
) -> ProductListResponse:
    products, total = await service.list_products(
        offset=offset, limit=limit, search=search, active_only=active_only
    )
    return ProductListResponse(
        items=[ProductRead.model_validate(p) for p in products],
        total=total,
        offset=offset,
        limit=limit,
    )


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
)
async def create_product(body: ProductCreate, service: Products) -> ProductRead:
    product = await service.create_product(body)
    return ProductRead.model_validate(product)


@router.delete("", response_model=DeleteAllResponse, summary="Delete every product")
async def delete_all_products(service: Products) -> DeleteAllResponse:
    deleted = await service.delete_all_products()
    return DeleteAllResponse(message=f"Deleted {deleted} products", deleted=deleted)


@router.get("/{product_id}", response_model=ProductRead, summary="Get a product")
async def get_product(product_id: int, service: Products) -> ProductRead:
    return ProductRead.model_validate(await service.get_product(product_id))


@router.put("/{product_id}", response_model=ProductRead, summary="Update a product")
async def update_product(product_id: int, body: ProductUpdate, service: Products) -> ProductRead:
    return ProductRead.model_validate(await service.update_product(product_id, body))


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
)
async def delete_product(product_id: int, service: Products) -> None:
    await service.delete_product(product_id)
