"""
ddxtree.records
===============

The record model shared by the trees, and the CSV glue around it.

A record is a read-only mapping from field name to ``str`` or ``None``.
Every record carries all of :data:`FIELDS`; ``None`` marks a missing
value.  The trees never modify a record, they only read it.
"""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

import pandas as pd

from .exceptions import DataError

logger = logging.getLogger(__name__)

Record = Mapping[str, Optional[str]]


class TargetField(str, Enum):
    """The five categorical fields a tree can be trained to predict."""
    CLINICIAN = "clinician"
    GPT4_0 = "gpt4_0"
    LLAMA = "llama"
    GEMINI = "gemini"
    DDX_SNOMED = "ddx_snomed"


ATTRIBUTES: tuple[str, ...] = ("county", "health_level", "years_experience", "clinical_panel")
TARGETS: tuple[str, ...] = tuple(t.value for t in TargetField)
EXTRA_FIELDS: tuple[str, ...] = ("master_index", "prompt", "nursing_competency")
FIELDS: tuple[str, ...] = EXTRA_FIELDS[:1] + ATTRIBUTES + EXTRA_FIELDS[1:] + TARGETS

# CSV header -> field name
HEADER_MAP = {
    "Master_Index": "master_index",
    "County": "county",
    "Health level": "health_level",
    "Years of Experience": "years_experience",
    "Prompt": "prompt",
    "Nursing Competency": "nursing_competency",
    "Clinical Panel": "clinical_panel",
    "Clinician": "clinician",
    "GPT4.0": "gpt4_0",
    "LLAMA": "llama",
    "GEMINI": "gemini",
    "DDX SNOMED": "ddx_snomed",
}

# Fields that get lower-cased during normalisation
_NORMALIZED = ATTRIBUTES + TARGETS


def _clean_value(v) -> str | None:
    if v is None or (pd.api.types.is_scalar(v) and pd.isna(v)):
        return None
    s = str(v).strip()
    return s or None


def make_record(values: Mapping | None = None, *, fields: Sequence[str] = FIELDS, **kwargs) -> Record:
    """Build an immutable record.

    Fields not supplied are ``None``.  Blank strings and pandas missing
    markers (NaN, ``pd.NA``, ``NaT``) become ``None`` and surrounding
    whitespace is stripped.  Keys outside ``fields`` are ignored.

    >>> r = make_record(county="nairobi", clinician=" malaria ")
    >>> r["clinician"], r["gemini"]
    ('malaria', None)
    """
    merged = dict(values or {})
    merged.update(kwargs)
    return MappingProxyType({f: _clean_value(merged.get(f)) for f in fields})


def _field_for_header(header: str) -> str | None:
    h = str(header).strip()
    if h in HEADER_MAP:
        return HEADER_MAP[h]
    key = h.lower().replace(" ", "_").replace(".", "_")
    return key if key in FIELDS else None


def records_from_frame(df: pd.DataFrame, *, normalize: bool = True,
                       deduplicate: bool = True) -> list[Record]:
    """Turn a raw data frame into records.

    Headers are mapped with :data:`HEADER_MAP` (snake-case field names are
    accepted as well); unknown columns are dropped and absent ones are
    treated as missing everywhere.
    """
    rename, dropped = {}, []
    for col in df.columns:
        field = _field_for_header(col)
        if field is None:
            dropped.append(col)
        else:
            rename[col] = field
    if dropped:
        logger.debug(f"Ignoring unknown columns: {dropped}")
    frame = df[list(rename)].rename(columns=rename)
    frame = frame.loc[:, ~frame.columns.duplicated()]
    frame = frame.reindex(columns=list(FIELDS))

    frame = frame.apply(lambda col: col.map(_clean_value))
    if normalize:
        for col in _NORMALIZED:
            frame[col] = frame[col].map(lambda v: v.lower() if isinstance(v, str) else None)
    if deduplicate:
        before = len(frame)
        subset = [c for c in FIELDS if c != "master_index"]
        frame = frame.drop_duplicates(subset=subset, keep="first")
        if len(frame) < before:
            logger.info(f"Dropped {before - len(frame)} duplicate rows")

    records = []
    for row in frame.itertuples(index=False, name=None):
        rec = make_record(dict(zip(FIELDS, row)))
        if rec["clinician"] is None and rec["gpt4_0"] is None:
            logger.warning(f"Record {rec['master_index'] or len(records)} is missing both "
                           "clinician and gpt4_0 targets")
        records.append(rec)
    return records


def _skip_bad_line(path: Path, line: list[str]) -> None:
    logger.warning(f"Skipped malformed row in {path}: {line}")


def read_records(path: str | Path, *, normalize: bool = True,
                 deduplicate: bool = True) -> list[Record]:
    """Read, clean and deduplicate the records in a CSV file.

    Raises
    ------
    DataError
        If the file cannot be parsed or holds no records.
    """
    path = Path(path)
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, engine="python",
                         on_bad_lines=lambda line: _skip_bad_line(path, line))
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataError(f"Could not read {path}: {e}") from e
    records = records_from_frame(df, normalize=normalize, deduplicate=deduplicate)
    if not records:
        raise DataError(f"No valid records in {path}")
    logger.info(f"Loaded {len(records)} records from {path}")
    return records


def write_predictions(path: str | Path, records: Iterable[Record], predictions: Iterable) -> Path:
    """Write one CSV row per record with its attributes and predicted targets.

    ``predictions`` are :class:`ddxtree.predictor.Prediction` objects in the
    same order as ``records``.
    """
    rows = []
    for rec, pred in zip(records, predictions, strict=True):
        row = {"master_index": rec.get("master_index")}
        row.update({a: rec.get(a) for a in ATTRIBUTES})
        row.update({f"pred_{t}": v for t, v in pred.as_dict().items()})
        rows.append(row)
    columns = ["master_index", *ATTRIBUTES, *(f"pred_{t}" for t in TARGETS)]
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows, columns=columns).to_csv(path, index=False)
    logger.info(f"Wrote {len(rows)} predictions to {path}")
    return path
