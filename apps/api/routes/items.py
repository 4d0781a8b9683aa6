from fastapi import APIRouter, Depends, HTTPException, Response
from typing import List

from ..deps import get_catalog_repo
from ..errors import BillingError
from ..models.catalog import CatalogItem, ItemIn
from .common import to_http

router = APIRouter(prefix="/items", tags=["items"])


# Menu items, with the category name joined in
@router.get("", response_model=List[CatalogItem])
def list_items(catalog=Depends(get_catalog_repo)):
    return catalog.list_items()


@router.get("/{item_id}", response_model=CatalogItem)
def get_item(item_id: str, catalog=Depends(get_catalog_repo)):
    item = catalog.get_item(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.post("", response_model=CatalogItem, status_code=201)
def create_item(payload: ItemIn, catalog=Depends(get_catalog_repo)):
    try:
        return catalog.create_item(payload)
    except BillingError as e:
        raise to_http(e)


# Price changes here never touch invoices already issued (lines are snapshots).
@router.put("/{item_id}", response_model=CatalogItem)
def update_item(item_id: str, payload: ItemIn, catalog=Depends(get_catalog_repo)):
    try:
        return catalog.update_item(item_id, payload)
    except BillingError as e:
        raise to_http(e)


@router.delete("/{item_id}", status_code=204)
def delete_item(item_id: str, catalog=Depends(get_catalog_repo)):
    try:
        catalog.delete_item(item_id)
    except BillingError as e:
        raise to_http(e)
    return Response(status_code=204)
