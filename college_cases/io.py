from __future__ import annotations
import asyncio
import http.client
import logging
import math
import re
import unicodedata
import urllib.parse
import urllib.request
from io import StringIO
from typing import Iterable, Mapping

import pandas as pd

from .config import COLUMN_MAP, data_url
from .models import Count, Dataset, Record

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?\d+", re.ASCII)
_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


class LoadFailure(RuntimeError):
    """Network or parse error while acquiring the dataset."""


def fetch_csv_text(url: str) -> str:
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in {"http", "https"}:
        raise ValueError("Data URL must start with http:// or https://")

    req = urllib.request.Request(
        url,
        headers={
            "User-Agent": "Mozilla/5.0",
            "Accept": "text/csv,*/*",
        },
    )
    try:
        with urllib.request.urlopen(req) as resp:
            return resp.read().decode("utf-8")
    except (OSError, http.client.HTTPException) as exc:
        raise LoadFailure(f"Failed to fetch {url}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise LoadFailure(f"Response from {url} is not UTF-8 text") from exc


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
    return df


def parse_csv_text(text: str) -> list[dict[str, str]]:
    """Parse CSV text into raw rows, every value kept as a string."""
    try:
        df = pd.read_csv(StringIO(text), dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise LoadFailure(f"Could not parse CSV: {exc}") from exc
    return _normalize_columns(df).to_dict("records")


def _to_str(x) -> str:
    if x is None or (isinstance(x, float) and math.isnan(x)):
        return ""
    return str(x).strip()


def _to_count(x) -> Count:
    """Numeric value of a count cell, None when blank or not a number."""
    text = _to_str(x)
    if not text:
        return None
    if not _NUMBER.fullmatch(text):
        logger.debug("Dropping malformed count %r", text)
        return None
    if _INTEGER.fullmatch(text):
        return int(text)
    value = float(text)
    if not math.isfinite(value):
        logger.debug("Dropping non-finite count %r", text)
        return None
    return value


def collation_key(value: str) -> str:
    """Accent- and case-insensitive primary sort key for display strings."""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def build_dataset(rows: Iterable[Mapping[str, object]]) -> Dataset:
    """Turn raw parsed rows into Records sorted by city (stable)."""
    df = pd.DataFrame(list(rows))
    df = df.reindex(columns=list(COLUMN_MAP.values())).astype(object)
    df = df.where(df.notna(), "")
    city = df[COLUMN_MAP["city"]].map(_to_str)
    # ties on the folded key: lowercase before uppercase, then source order
    df = df.assign(_city_key=city.map(collation_key), _city_tie=city.map(str.swapcase))
    df = df.sort_values(["_city_key", "_city_tie"], kind="stable")

    records = []
    for row in df.to_dict("records"):
        records.append(Record(
            institution=_to_str(row[COLUMN_MAP["institution"]]),
            city=_to_str(row[COLUMN_MAP["city"]]),
            state=_to_str(row[COLUMN_MAP["state"]]),
            cases=_to_count(row[COLUMN_MAP["cases"]]),
            cases_2021=_to_count(row[COLUMN_MAP["cases_2021"]]),
        ))
    return tuple(records)


def load_dataset(url: str | None = None) -> Dataset:
    """Fetch, parse and build the Dataset; an empty Dataset on any failure."""
    url = url or data_url()
    try:
        dataset = build_dataset(parse_csv_text(fetch_csv_text(url)))
    except (LoadFailure, ValueError) as exc:
        logger.warning("Could not load dataset from %s: %s", url, exc)
        return ()
    logger.info("Loaded %d records from %s", len(dataset), url)
    return dataset


async def aload_dataset(url: str | None = None) -> Dataset:
    return await asyncio.to_thread(load_dataset, url)
