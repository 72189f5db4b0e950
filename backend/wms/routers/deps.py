"""Shared FastAPI dependencies."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, File, UploadFile
from sqlmodel import Session

from wms.core import config
from wms.core.database import get_session
from wms.services.notifications import CeleryNotifier, LoggingNotifier, Notifier


def get_notifier() -> Notifier:
    if config.NOTIFIER_BACKEND == "log":
        return LoggingNotifier()
    return CeleryNotifier()


SesDep = Annotated[Session, Depends(get_session)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]
UploadDep = Annotated[UploadFile, File(...)]
