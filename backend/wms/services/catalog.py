"""Product catalog: CRUD plus stock-oriented reads."""
from __future__ import annotations

import logging
from typing import Dict, List

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from wms.core.config import LOW_STOCK_THRESHOLD
from wms.core.database import transaction
from wms.core.errors import ConflictError, NotFoundError
from wms.models import InventoryItem, Product, ProductCreate, ProductUpdate
from wms.models.common import utcnow

logger = logging.getLogger(__name__)


def get_product(session: Session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product not found with id: {product_id}")
    return product


def get_product_by_sku(session: Session, sku: str) -> Product:
    product = session.exec(select(Product).where(Product.sku == sku)).first()
    if product is None:
        raise NotFoundError(f"Product not found with SKU: {sku}")
    return product


def list_products(session: Session) -> List[Product]:
    return list(session.exec(select(Product).order_by(Product.id)).all())


def get_products_by_category(session: Session, category: str) -> List[Product]:
    stmt = select(Product).where(Product.category == category).order_by(Product.id)
    return list(session.exec(stmt).all())


def get_low_stock_products(session: Session, threshold: int = LOW_STOCK_THRESHOLD) -> List[Product]:
    stmt = select(Product).where(Product.stock_quantity < threshold).order_by(Product.stock_quantity, Product.id)
    return list(session.exec(stmt).all())


def get_products_with_stock(session: Session) -> List[Dict[str, object]]:
    """Products with their available stock computed from the ledger at read time."""
    available = (
        select(InventoryItem.product_id, func.sum(InventoryItem.quantity).label("available"))
        .where(InventoryItem.is_quarantined == False)  # noqa: E712
        .group_by(InventoryItem.product_id)
    )
    stock_map = {pid: int(qty or 0) for pid, qty in session.exec(available).all()}

    out: List[Dict[str, object]] = []
    for product in list_products(session):
        row = product.model_dump(mode="json")
        row["stock_quantity"] = stock_map.get(product.id, 0)
        out.append(row)
    return out


def _sku_exists(session: Session, sku: str) -> bool:
    return session.exec(select(Product.id).where(Product.sku == sku)).first() is not None


def create_product(session: Session, payload: ProductCreate) -> Product:
    sku = payload.sku
    if _sku_exists(session, sku):
        raise ConflictError(f"Product with SKU {sku} already exists")

    try:
        with transaction(session):
            product = Product(**payload.model_dump(), stock_quantity=0)
            session.add(product)
    except IntegrityError:
        # lost a race with a concurrent insert of the same SKU
        raise ConflictError(f"Product with SKU {sku} already exists") from None
    session.refresh(product)
    logger.info("Created product %s (id=%s)", product.sku, product.id)
    return product


def update_product(session: Session, product_id: int, payload: ProductUpdate) -> Product:
    """Update descriptive fields. SKU and the derived stock count are left alone."""
    with transaction(session):
        product = get_product(session, product_id)
        for key, value in payload.model_dump().items():
            setattr(product, key, value)
        product.updated_at = utcnow()
        session.add(product)
    session.refresh(product)
    return product


def delete_product(session: Session, product_id: int) -> None:
    """Delete a product; refused while inventory still references it."""
    with transaction(session):
        product = get_product(session, product_id)
        referenced = session.exec(
            select(func.count()).select_from(InventoryItem).where(InventoryItem.product_id == product_id)
        ).one()
        if referenced:
            raise ConflictError(
                f"Product {product.sku} still has {int(referenced)} inventory item(s); remove them first"
            )
        session.delete(product)
    logger.info("Deleted product id=%s", product_id)
