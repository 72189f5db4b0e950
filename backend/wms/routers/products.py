from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Response, status

from wms.models import ProductCreate, ProductRead, ProductUpdate
from wms.routers.deps import SesDep, UploadDep
from wms.services import catalog, ingestion, inventory
from wms.utils.file_parser import read_dataframe

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=List[ProductRead])
def list_products(ses: SesDep):
    return catalog.list_products(ses)


@router.get("/low-stock", response_model=List[ProductRead])
def low_stock_products(ses: SesDep):
    return catalog.get_low_stock_products(ses)


@router.get("/with-stock")
def products_with_stock(ses: SesDep) -> List[Dict[str, Any]]:
    """Products with stock summed from inventory at read time."""
    return catalog.get_products_with_stock(ses)


@router.get("/sku/{sku}", response_model=ProductRead)
def get_product_by_sku(sku: str, ses: SesDep):
    return catalog.get_product_by_sku(ses, sku)


@router.get("/category/{category}", response_model=List[ProductRead])
def products_by_category(category: str, ses: SesDep):
    return catalog.get_products_by_category(ses, category)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, ses: SesDep):
    return catalog.get_product(ses, product_id)


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreate, ses: SesDep):
    return catalog.create_product(ses, payload)


@router.put("/{product_id}", response_model=ProductRead)
def update_product(product_id: int, payload: ProductUpdate, ses: SesDep):
    return catalog.update_product(ses, product_id, payload)


@router.post("/{product_id}/refresh-stock", response_model=ProductRead)
def refresh_stock(product_id: int, ses: SesDep):
    return inventory.refresh_product_stock(ses, product_id)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: int, ses: SesDep):
    catalog.delete_product(ses, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/upload")
def upload_products(file: UploadDep, ses: SesDep):
    """Bulk-create products from CSV / Excel; existing SKUs are reported, not updated."""
    logger.info("upload_products: filename=%s", file.filename)
    try:
        df = read_dataframe(file)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    summary = ingestion.import_products(ses, df)
    summary["csv_headers"] = list(df.columns)
    return summary
