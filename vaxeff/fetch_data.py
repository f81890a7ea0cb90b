"""
vaxeff/fetch_data.py
====================
Acquire the Our World in Data COVID-19 dataset (one JSON document, keyed by
ISO country code).

Acquisition order:
  CACHE     : data/raw/owid-covid-data.json.gz, if younger than two hours.
  NETWORK   : download the JSON from covid.ourworldindata.org and refresh
              the gzip cache.
  FALLBACK  : if the download fails, use the cache even though it is stale.

Use --refresh to skip the cache and force a re-download.

Usage:
    python -m vaxeff.fetch_data             # uses cache when fresh
    python -m vaxeff.fetch_data --refresh   # forces re-download
"""

import sys
import gzip
import json
import time
import argparse
from datetime import timedelta
from pathlib import Path

import requests
import pandas as pd


# ─────────────────────────────────────────────────────────────────────────────
# Path setup
# ─────────────────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
RAW_DIR      = PROJECT_ROOT / "data" / "raw"

# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────
OWID_JSON_URL    = "https://covid.ourworldindata.org/data/owid-covid-data.json"
CACHE_FILE       = RAW_DIR / "owid-covid-data.json.gz"
REFRESH_INTERVAL = timedelta(hours=2)

HEADERS = {"User-Agent": "Mozilla/5.0 (research; vaxeff/1.0; non-commercial)"}


# =============================================================================
# NETWORK
# =============================================================================

def fetch(url: str = OWID_JSON_URL, timeout: int = 120) -> dict | None:
    """
    Download the OWID JSON document.

    Returns None (after printing a warning) on any HTTP or decoding error.
    """
    print(f"[fetch] Downloading: {url}")
    try:
        resp = requests.get(url, headers=HEADERS, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        print(f"[warn]  Download failed: {e}")
        return None

    try:
        document = resp.json()
        # Some mirrors serve the document as a JSON-encoded string
        if isinstance(document, str):
            document = json.loads(document)
    except ValueError as e:
        print(f"[warn]  Response is not valid JSON: {e}")
        return None

    if not isinstance(document, dict):
        print(f"[warn]  Unexpected document type: {type(document).__name__}")
        return None

    print(f"[info]  Downloaded {len(document)} entries")
    return document


# =============================================================================
# CACHE
# =============================================================================

def read_cache(path: Path = CACHE_FILE) -> bytes | None:
    """Raw (gzipped) cache bytes, or None if there is no cache file."""
    path = Path(path)
    if not path.exists():
        return None
    return path.read_bytes()


def write_cache(path: Path, raw: bytes) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(raw)
    print(f"[cache] Saved → {path.name} ({len(raw) / 1e6:.1f} MB)")


def cache_is_fresh(
    path: Path = CACHE_FILE,
    max_age: timedelta = REFRESH_INTERVAL,
    now: float | None = None,
) -> bool:
    """True if the cache file exists and was modified less than ``max_age`` ago."""
    path = Path(path)
    if not path.exists():
        return False
    now = time.time() if now is None else now
    return path.stat().st_mtime >= now - max_age.total_seconds()


def compress(document: dict) -> bytes:
    return gzip.compress(json.dumps(document).encode("utf-8"))


def decompress(raw: bytes) -> dict:
    return json.loads(gzip.decompress(raw).decode("utf-8"))


def _load_cached(path: Path) -> dict | None:
    raw = read_cache(path)
    if raw is None:
        return None
    try:
        return decompress(raw)
    except (OSError, EOFError, ValueError) as e:
        # gzip.BadGzipFile is an OSError; truncated files raise EOFError
        print(f"[warn]  Could not read cache {Path(path).name}: {e}")
        return None


# =============================================================================
# Dataset loading
# =============================================================================

def load_dataset(
    force_refresh: bool = False,
    cache_path: Path = CACHE_FILE,
    url: str = OWID_JSON_URL,
) -> dict | None:
    """
    Return the OWID document, preferring a fresh cache over the network.

    A fresh but unreadable cache yields None: the run is skipped rather than
    hammering the server every time the cache is corrupt.
    """
    if not force_refresh and cache_is_fresh(cache_path):
        print(f"[cache] Using cached dataset: {Path(cache_path).name}")
        return _load_cached(cache_path)

    document = fetch(url)
    if document is not None:
        write_cache(cache_path, compress(document))
        return document

    if read_cache(cache_path) is not None:
        print(f"[warn]  Falling back to stale cache: {Path(cache_path).name}")
        return _load_cached(cache_path)

    return None


def describe(dataset: dict) -> pd.DataFrame:
    """One row per country: name, number of records and date range."""
    rows = []
    for code, entry in dataset.items():
        dates = [d.get("date") for d in entry.get("data") or [] if d.get("date")]
        rows.append({
            "code":     code,
            "location": entry.get("location"),
            "records":  len(dates),
            "first":    min(dates) if dates else None,
            "last":     max(dates) if dates else None,
        })
    return pd.DataFrame(rows, columns=["code", "location", "records", "first", "last"])


# =============================================================================
# MAIN
# =============================================================================

def main(force_refresh: bool = False) -> None:
    print("=" * 62)
    print("  OWID COVID-19 · Data Acquisition")
    print("=" * 62)

    dataset = load_dataset(force_refresh=force_refresh)
    if dataset is None:
        print(
            "\n[error] No dataset available.\n"
            "        Check your internet connection, or delete a corrupt\n"
            f"        cache file in {RAW_DIR}."
        )
        sys.exit(1)

    overview = describe(dataset)
    print(f"\n[info]  {len(overview)} entries | {overview['records'].sum():,} daily records")
    print(f"[info]  Latest record: {overview['last'].dropna().max()}")
    print(f"\n  First 5 entries:")
    print(overview.head().to_string(index=False))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Fetch and cache the OWID COVID-19 dataset.",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Force re-download even if the cache in data/raw/ is fresh.",
    )
    args = parser.parse_args()
    main(force_refresh=args.refresh)
