"""
ingestion.py

Bulk import of catalog products and warehouse locations from an uploaded
CSV / Excel sheet (parsed by ``wms.utils.file_parser.read_dataframe``).

Each row is validated through the same create schema the JSON API uses.
Valid rows are inserted in a single transaction; invalid or duplicate rows
are skipped and reported back as ``{"row": n, "error": "..."}`` where ``n``
is the 1-based data row.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Set, Tuple

import pandas as pd
from pydantic import ValidationError
from sqlmodel import Session, SQLModel, select

from wms.core.database import transaction
from wms.core.errors import BadRequestError
from wms.models import LocationCreate, Product, ProductCreate, WarehouseLocation

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = ("sku", "name", "weight", "width", "height", "depth", "category")
LOCATION_COLUMNS = ("aisle", "rack", "shelf", "bin", "type", "max_weight")


def _require_columns(df: pd.DataFrame, required: Iterable[str]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise BadRequestError(f"Missing required column(s): {', '.join(missing)}")


def _row_dict(row: pd.Series, columns: Iterable[str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for col in columns:
        if col not in row.index:
            continue
        value = row[col]
        if isinstance(value, str):
            value = value.strip()
        out[col] = value if value not in ("", None) else None
    return out


def _format_validation(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ())) or 'row'}: {err.get('msg')}" for err in exc.errors()
    )


def _generic_import(
    session: Session,
    df: pd.DataFrame,
    *,
    schema: type[SQLModel],
    columns: Tuple[str, ...],
    prepare: Callable[[Dict[str, Any]], Dict[str, Any]],
    key_of: Callable[[SQLModel], Any],
    existing_keys: Set[Any],
    build: Callable[[SQLModel], SQLModel],
    describe: Callable[[Any], str],
) -> Dict[str, Any]:
    errors: List[Dict[str, Any]] = []
    to_insert: List[SQLModel] = []
    seen = set(existing_keys)

    for idx, (_, row) in enumerate(df.iterrows(), start=1):
        try:
            payload = schema.model_validate(prepare(_row_dict(row, columns)))
        except ValidationError as exc:
            errors.append({"row": idx, "error": _format_validation(exc)})
            continue

        key = key_of(payload)
        if key in seen:
            errors.append({"row": idx, "error": f"{describe(key)} already exists"})
            continue
        seen.add(key)
        to_insert.append(build(payload))

    if to_insert:
        with transaction(session):
            session.add_all(to_insert)

    result = {"total_rows": int(len(df)), "success_rows": len(to_insert), "errors": errors}
    logger.info(
        "Imported %s: %s/%s rows (%s errors)",
        schema.__name__, result["success_rows"], result["total_rows"], len(errors),
    )
    return result


# --------------------------------------------------------------------------- #
# Products                                                                    #
# --------------------------------------------------------------------------- #
def _prepare_product(values: Dict[str, Any]) -> Dict[str, Any]:
    return values


def import_products(session: Session, df: pd.DataFrame) -> Dict[str, Any]:
    """Columns: sku, name, weight, width, height, depth, category [, description]."""
    _require_columns(df, PRODUCT_COLUMNS)
    existing = set(session.exec(select(Product.sku)).all())
    return _generic_import(
        session,
        df,
        schema=ProductCreate,
        columns=PRODUCT_COLUMNS + ("description",),
        prepare=_prepare_product,
        key_of=lambda p: p.sku,
        existing_keys=existing,
        build=lambda p: Product(**p.model_dump(), stock_quantity=0),
        describe=lambda sku: f"Product with SKU {sku}",
    )


# --------------------------------------------------------------------------- #
# Locations                                                                   #
# --------------------------------------------------------------------------- #
def _prepare_location(values: Dict[str, Any]) -> Dict[str, Any]:
    loc_type = values.get("type")
    if isinstance(loc_type, str):
        values["type"] = loc_type.strip().upper().replace(" ", "_").replace("-", "_")
    return values


def import_locations(session: Session, df: pd.DataFrame) -> Dict[str, Any]:
    """Columns: aisle, rack, shelf, bin, type, max_weight."""
    _require_columns(df, LOCATION_COLUMNS)
    existing = {
        tuple(r)
        for r in session.exec(
            select(WarehouseLocation.aisle, WarehouseLocation.rack, WarehouseLocation.shelf, WarehouseLocation.bin)
        ).all()
    }
    return _generic_import(
        session,
        df,
        schema=LocationCreate,
        columns=LOCATION_COLUMNS,
        prepare=_prepare_location,
        key_of=lambda loc: (loc.aisle, loc.rack, loc.shelf, loc.bin),
        existing_keys=existing,
        build=lambda loc: WarehouseLocation(**loc.model_dump()),
        describe=lambda key: f"Location {'-'.join(key)}",
    )
