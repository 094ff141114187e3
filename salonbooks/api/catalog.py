"""
Catalog API Routes
Products and stock locations referenced by postings.
"""

from fastapi import APIRouter, Depends, status
from typing import Optional
import logging

from salonbooks.api.deps import get_current_user, get_uow
from salonbooks.schemas import (
    Product as ProductSchema, ProductCreate, ProductUpdate, ProductList,
    Location as LocationSchema, LocationCreate, LocationUpdate, LocationList
)
from salonbooks.services import catalog
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.security import ActingUser

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Products
# ============================================================================

@router.post("/products", response_model=ProductSchema, status_code=status.HTTP_201_CREATED)
def create_product(
    product: ProductCreate,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return catalog.create_product(uow, product.model_dump())


@router.get("/products", response_model=ProductList)
def list_products(
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return catalog.list_products(uow, search or "", max(page, 1), min(max(page_size, 1), 100))


@router.get("/products/{product_id}", response_model=ProductSchema)
def get_product(
    product_id: int,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return catalog.get_product(uow, product_id)


@router.put("/products/{product_id}", response_model=ProductSchema)
def update_product(
    product_id: int,
    product: ProductUpdate,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return catalog.update_product(uow, product_id, product.model_dump(exclude_unset=True))


# ============================================================================
# Locations
# ============================================================================

@router.post("/locations", response_model=LocationSchema, status_code=status.HTTP_201_CREATED)
def create_location(
    location: LocationCreate,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return catalog.create_location(uow, location.model_dump())


@router.get("/locations", response_model=LocationList)
def list_locations(
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return catalog.list_locations(uow, search or "", max(page, 1), min(max(page_size, 1), 100))


@router.get("/locations/{location_id}", response_model=LocationSchema)
def get_location(
    location_id: int,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return catalog.get_location(uow, location_id)


@router.put("/locations/{location_id}", response_model=LocationSchema)
def update_location(
    location_id: int,
    location: LocationUpdate,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return catalog.update_location(uow, location_id, location.model_dump(exclude_unset=True))
