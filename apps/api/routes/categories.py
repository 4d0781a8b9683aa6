from fastapi import APIRouter, Depends, HTTPException, Response
from typing import List

from ..deps import get_catalog_repo
from ..errors import BillingError
from ..models.catalog import Category, CategoryIn
from .common import to_http

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=List[Category])
def list_categories(catalog=Depends(get_catalog_repo)):
    return catalog.list_categories()


@router.get("/{category_id}", response_model=Category)
def get_category(category_id: str, catalog=Depends(get_catalog_repo)):
    category = catalog.get_category(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.post("", response_model=Category, status_code=201)
def create_category(payload: CategoryIn, catalog=Depends(get_catalog_repo)):
    try:
        return catalog.create_category(payload)
    except BillingError as e:
        raise to_http(e)


@router.put("/{category_id}", response_model=Category)
def update_category(category_id: str, payload: CategoryIn, catalog=Depends(get_catalog_repo)):
    try:
        return catalog.update_category(category_id, payload)
    except BillingError as e:
        raise to_http(e)


@router.delete("/{category_id}", status_code=204)
def delete_category(category_id: str, catalog=Depends(get_catalog_repo)):
    try:
        catalog.delete_category(category_id)
    except BillingError as e:
        raise to_http(e)
    return Response(status_code=204)
