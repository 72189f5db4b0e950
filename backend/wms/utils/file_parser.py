"""
file_parser.py
==============

Turn uploaded **CSV / Excel** catalog files into a ``pandas.DataFrame``.

* File type is decided from the MIME type / extension
* CSV encoding is guessed with **chardet**, then common fallbacks are tried
* Single-column results are re-parsed with comma / tab / semicolon / pipe
* Every value is read as **string** (``dtype=str``, ``keep_default_na=False``)
* Headers are NFKC-normalised, snake_cased and folded through an alias table
  (``SKU`` → ``sku``, ``Max Weight`` → ``max_weight``, ``Location Type`` → ``type`` ...)
* Empty or unsupported files raise ``ValueError``

Accepts a FastAPI ``UploadFile``, a ``str`` / ``Path`` or raw ``bytes`` so the
same call works from the API and from pytest.
"""

from __future__ import annotations

import io
import mimetypes
import re
import unicodedata
from pathlib import Path
from typing import Final, Iterable

import chardet
import pandas as pd
from fastapi import UploadFile

ENCODINGS: Final[list[str]] = [
    "utf-8",
    "utf-8-sig",
    "utf-16",
    "utf-16-le",
    "utf-16-be",
    "cp1252",
    "iso8859-1",
]

_ALTERNATIVE_SEPARATORS: Final[tuple[str, ...]] = ("\t", ";", "|")

# Synonymous headers seen in catalog / slotting exports -> canonical field
HEADER_ALIASES: Final[dict[str, str]] = {
    # --- products -------------------------------------------------------
    "item_code": "sku",
    "product_code": "sku",
    "article": "sku",
    "product_sku": "sku",
    "product_name": "name",
    "item_name": "name",
    "title": "name",
    "desc": "description",
    "product_description": "description",
    "weight_kg": "weight",
    "unit_weight": "weight",
    "width_cm": "width",
    "height_cm": "height",
    "depth_cm": "depth",
    "length": "depth",
    "product_category": "category",
    "group": "category",
    # --- locations ------------------------------------------------------
    "location_type": "type",
    "loc_type": "type",
    "zone_type": "type",
    "capacity": "max_weight",
    "weight_capacity": "max_weight",
    "max_load": "max_weight",
    "max_weight_kg": "max_weight",
    "row": "aisle",
    "level": "shelf",
    "slot": "bin",
    "position": "bin",
}


# --------------------------------------------------------------------------- #
# public API                                                                  #
# --------------------------------------------------------------------------- #
def read_dataframe(file: UploadFile | str | Path | bytes | bytearray, filename: str = "") -> pd.DataFrame:
    """
    Parameters
    ----------
    file :
        * **FastAPI UploadFile** – real uploads
        * **str / Path** – a file on disk
        * **bytes / bytearray** – in-memory content (pass ``filename`` to
          select Excel parsing; bytes default to CSV)

    Returns
    -------
    pandas.DataFrame
        First row as header, every cell a string, canonical column names.

    Raises
    ------
    ValueError
        Empty file, unsupported file type, undecodable CSV, no data rows.
    """
    raw, detected_name = _get_raw_and_name(file)
    filename = filename or detected_name

    if not raw:
        raise ValueError("File is empty")

    mime, _ = mimetypes.guess_type(filename)
    lower_name = filename.lower()

    # ----------------------------- CSV ------------------------------------
    if lower_name.endswith(".csv") or (mime in ("text/csv", None) and not lower_name.endswith((".xlsx", ".xls"))):
        df = _read_csv(raw)

    # ----------------------------- Excel ----------------------------------
    elif lower_name.endswith((".xlsx", ".xls")):
        df = pd.read_excel(io.BytesIO(raw), dtype=str, keep_default_na=False)

    else:
        raise ValueError("Unsupported file type (only .csv/.xlsx/.xls accepted)")

    df.columns = [canonical_header(c) for c in df.columns]

    if df.empty:
        raise ValueError("File has no data rows")

    # strip cell whitespace once so mappers can rely on it
    return df.apply(lambda col: col.astype(str).str.strip())


def canonical_header(label: object) -> str:
    """``"  Max Weight (kg)"`` → ``"max_weight_kg"`` → alias lookup."""
    text = unicodedata.normalize("NFKC", str(label))
    text = text.replace("\ufeff", "").strip().lower()
    text = re.sub(r"[^0-9a-z]+", "_", text).strip("_")
    return HEADER_ALIASES.get(text, text)


__all__ = ["read_dataframe", "canonical_header", "HEADER_ALIASES"]


# --------------------------------------------------------------------------- #
# helpers (private)                                                           #
# --------------------------------------------------------------------------- #
def _read_csv(raw: bytes) -> pd.DataFrame:
    # If the first KB contains many NUL bytes the file is likely UTF-16
    might_be_utf16 = b"\x00" in raw[:1024]
    enc_guess: str = (chardet.detect(raw[:4096]).get("encoding") or "").lower()

    enc_try_order = (["utf-16", "utf-16-le", "utf-16-be"] if might_be_utf16 else []) + [enc_guess] + ENCODINGS

    for enc in _unique(e for e in enc_try_order if e):
        try:
            df = pd.read_csv(io.BytesIO(raw), encoding=enc, dtype=str, keep_default_na=False, sep=",")
        except (UnicodeDecodeError, UnicodeError, LookupError):
            continue
        except pd.errors.ParserError:
            df = None

        # Wrong delimiter shows up as a single column; try the usual others
        if df is None or df.shape[1] == 1:
            for sep in _ALTERNATIVE_SEPARATORS:
                try:
                    alt = pd.read_csv(io.BytesIO(raw), encoding=enc, dtype=str, keep_default_na=False, sep=sep)
                except (pd.errors.ParserError, UnicodeError):
                    continue
                if alt.shape[1] > 1:
                    df = alt
                    break
        if df is None:
            continue
        return df

    raise ValueError("Cannot decode CSV – unknown encoding")


def _get_raw_and_name(file: UploadFile | str | Path | bytes | bytearray) -> tuple[bytes, str]:
    """
    Convert various *file-like* inputs into raw bytes + filename.

    Accepts:

    * FastAPI / Starlette ``UploadFile`` (objects with ``.file`` & ``.filename``)
    * ``str`` / ``pathlib.Path`` pointing to a file on disk
    * ``bytes`` / ``bytearray`` already in memory
    """
    if isinstance(file, (bytes, bytearray)):
        return bytes(file), ""

    if isinstance(file, (str, Path)):
        p = Path(file)
        return p.read_bytes(), p.name

    if isinstance(file, UploadFile):
        return file.file.read(), file.filename or ""

    # duck typing for test doubles
    if hasattr(file, "file") and hasattr(file, "filename"):
        return file.file.read(), getattr(file, "filename", "") or ""

    raise TypeError(f"file must be UploadFile | str | Path | bytes | bytearray; got {type(file)}")


def _unique(seq: Iterable[str]) -> list[str]:
    """Drop duplicates, keep order."""
    seen: set[str] = set()
    out: list[str] = []
    for item in seq:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out
