"""Seller routes for creating and managing listings of any variant."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from royalbid.api.schemas import (
    ApiResponse,
    ProductCreate,
    ProductOut,
    ProductPageOut,
    ProductUpdate,
    ok,
)
from royalbid.auth import get_current_user, get_optional_user
from royalbid.config import get_settings
from royalbid.database import get_db
from royalbid.models import AuctionType, ProductStatus, User
from royalbid.services.product_editor import ProductEditor

settings = get_settings()

router = APIRouter(prefix="/products", tags=["products"])


@router.post("", response_model=ApiResponse[ProductOut], status_code=201)
async def create_product(
    body: ProductCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a listing; it stays pending review until approved."""
    view = await ProductEditor(db).create(user, body.model_dump(exclude_none=True))
    return ok(ProductOut.from_view(view), "Product created successfully")


@router.get("/mine", response_model=ApiResponse[ProductPageOut])
async def my_products(
    status: ProductStatus | None = Query(None),
    auction_type: AuctionType | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await ProductEditor(db).seller_products(user, page, limit, status, auction_type)
    return ok(ProductPageOut.from_page(result), "Seller products retrieved successfully")


@router.get("/{product_id}", response_model=ApiResponse[ProductOut])
async def get_product(
    product_id: str,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    view = await ProductEditor(db).get_for_owner(user, product_id)
    return ok(ProductOut.from_view(view), "Product retrieved successfully")


@router.patch("/{product_id}", response_model=ApiResponse[ProductOut])
async def update_product(
    product_id: str,
    body: ProductUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    view = await ProductEditor(db).update(user, product_id, body.model_dump(exclude_unset=True))
    return ok(ProductOut.from_view(view), "Product updated successfully")


@router.delete("/{product_id}", response_model=ApiResponse[None])
async def delete_product(
    product_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ProductEditor(db).delete(user, product_id)
    return ok(None, "Product deleted successfully")
