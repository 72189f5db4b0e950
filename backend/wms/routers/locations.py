from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from wms.models import LocationCreate, LocationRead, LocationType
from wms.routers.deps import SesDep, UploadDep
from wms.services import ingestion, locations
from wms.utils.file_parser import read_dataframe

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/locations", tags=["locations"])


@router.get("", response_model=List[LocationRead])
def list_locations(ses: SesDep):
    return locations.list_locations(ses)


@router.get("/available", response_model=List[LocationRead])
def available_locations(
    ses: SesDep,
    type: Optional[LocationType] = Query(None, description="Only unoccupied locations of this type"),
):
    """Without ``type``: locations below 90 % of their weight capacity."""
    if type is None:
        return locations.get_locations_with_space(ses)
    return locations.get_available_locations_by_type(ses, type)


@router.get("/type/{location_type}", response_model=List[LocationRead])
def locations_by_type(location_type: LocationType, ses: SesDep):
    return locations.get_locations_by_type(ses, location_type)


@router.get("/{location_id}", response_model=LocationRead)
def get_location(location_id: int, ses: SesDep):
    return locations.get_location(ses, location_id)


@router.post("", response_model=LocationRead, status_code=status.HTTP_201_CREATED)
def create_location(payload: LocationCreate, ses: SesDep):
    return locations.create_location(ses, payload)


@router.post("/upload")
def upload_locations(file: UploadDep, ses: SesDep):
    logger.info("upload_locations: filename=%s", file.filename)
    try:
        df = read_dataframe(file)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    summary = ingestion.import_locations(ses, df)
    summary["csv_headers"] = list(df.columns)
    return summary
