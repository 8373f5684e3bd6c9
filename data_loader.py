#!/usr/bin/env python
# coding: utf-8

# In[1]:


# File: data_loader.py

from __future__ import annotations
from pathlib import Path
from typing import Iterable, Callable, Union, Optional
import hashlib
import pandas as pd
from pandas.errors import EmptyDataError, ParserError

from core.exceptions import CacheError

# Add logging decorator imports
from utils.logging import (
    log_error_handling,
    log_performance,
    portfolio_logger,
)

# ── internals ──────────────────────────────────────────────────────────
def _hash(parts: Iterable[str | int | float]) -> str:
    key = "_".join(str(p) for p in parts if p is not None)
    return hashlib.md5(key.encode()).hexdigest()[:8]

def _safe_load(path: Path) -> Optional[pd.DataFrame]:
    try:
        return pd.read_parquet(path)
    except (EmptyDataError, ParserError, OSError, ValueError) as e:
        portfolio_logger.warning(f"Cache file corrupted, deleting: {path.name} ({type(e).__name__}: {e})")
        path.unlink(missing_ok=True)          # drop corrupt file
        return None

def _write_parquet(obj: Union[pd.Series, pd.DataFrame], path: Path, key) -> None:
    df = obj.to_frame(name=obj.name or "value") if isinstance(obj, pd.Series) else obj
    try:
        df.to_parquet(path, engine="pyarrow", compression="zstd", index=True)
    except (OSError, ValueError) as e:
        raise CacheError(f"Could not write cache file {path.name}: {e}", cache_key=list(key)) from e

# ── public API ────────────────────────────────────────────────────────
def cache_read(
    *,
    key: Iterable[str | int | float],
    loader: Callable[[], Union[pd.Series, pd.DataFrame]],
    cache_dir: Union[str, Path] = "cache",
    prefix: Optional[str] = None,
) -> Union[pd.Series, pd.DataFrame]:
    """
    Returns cached object if present, else computes via `loader()` and caches.

    Example
    -------
    series = cache_read(
        key     = ["SPY", "2020-01", "2024-06"],
        loader  = lambda: expensive_fetch(...),
        cache_dir = "cache_prices",
        prefix  = "SPY",
    )
    """
    key = list(key)
    cache_dir = Path(cache_dir).expanduser().resolve()
    cache_dir.mkdir(parents=True, exist_ok=True)

    fname = f"{prefix or key[0]}_{_hash(key)}.parquet"
    path  = cache_dir / fname

    if path.is_file():
        df = _safe_load(path)
        if df is not None:
            portfolio_logger.debug(f"cache hit: {fname}")
            return df.iloc[:, 0] if df.shape[1] == 1 else df

    portfolio_logger.debug(f"cache miss: {fname}")
    obj = loader()                                    # cache miss → compute
    _write_parquet(obj, path, key)
    return obj


def cache_write(
    obj: Union[pd.Series, pd.DataFrame],
    *,
    key: Iterable[str | int | float],
    cache_dir: Union[str, Path] = "cache",
    prefix: Optional[str] = None,
) -> Path:
    """
    Force-write `obj` under a key.  Returns the Path written.
    """
    key = list(key)
    cache_dir = Path(cache_dir).expanduser().resolve()
    cache_dir.mkdir(parents=True, exist_ok=True)

    fname = f"{prefix or key[0]}_{_hash(key)}.parquet"
    path  = cache_dir / fname
    _write_parquet(obj, path, key)
    return path


# In[2]:


# File: data_loader.py

import requests
import os
import time
from datetime import datetime
from dotenv import load_dotenv

from settings import DATA_PROVIDER
from core.exceptions import DataLoadingError, MissingDataError, ValidationError
from utils.logging import log_service_health, log_critical_alert

# Load .env file before accessing environment variables
load_dotenv()

# Configuration
FMP_API_KEY = os.getenv("FMP_API_KEY")
API_KEY  = FMP_API_KEY
BASE_URL = DATA_PROVIDER["base_url"]

# Provider field → endpoint serving it
RAW_PRICE_FIELDS      = ("open", "high", "low", "close", "volume")
ADJUSTED_PRICE_FIELDS = ("adjOpen", "adjHigh", "adjLow", "adjClose")


def _endpoint_for_field(field: str) -> str:
    if field in RAW_PRICE_FIELDS:
        return "historical-price-eod/full"
    if field in ADJUSTED_PRICE_FIELDS:
        return "historical-price-eod/dividend-adjusted"
    raise ValidationError(
        f"Unknown price field '{field}'. Available: {list(RAW_PRICE_FIELDS + ADJUSTED_PRICE_FIELDS)}",
        data=field,
    )


def _get_json(endpoint: str, params: dict, source: str):
    """GET one FMP endpoint; HTTP and network failures become DataLoadingError."""
    start_time = time.time()
    try:
        resp = requests.get(f"{BASE_URL}/{endpoint}", params=params, timeout=DATA_PROVIDER["timeout"])
        resp.raise_for_status()
    except requests.exceptions.RequestException as e:
        status = getattr(getattr(e, "response", None), "status_code", None)
        log_service_health("FMP_API", "degraded" if status == 429 else "down",
                           time.time() - start_time, {"endpoint": endpoint, "status_code": status})
        log_critical_alert("api_connection_failure", "high", f"FMP request failed for {source}",
                           details={"endpoint": endpoint, "status_code": status, "error": str(e)})
        raise DataLoadingError(f"FMP request failed for {source}: {e}", source=endpoint) from e

    log_service_health("FMP_API", "healthy", time.time() - start_time)
    return resp.json()


@log_error_handling("high")
def fetch_price_history(
    ticker: str,
    start_date: Optional[Union[str, datetime]] = None,
    end_date:   Optional[Union[str, datetime]] = None,
    field: str = "adjClose",
) -> pd.Series:
    """
    Fetch daily prices for a given ticker from FMP.

    Raw fields (`close`, ...) come from `/stable/historical-price-eod/full`;
    adjusted fields (`adjClose`, ...) from
    `/stable/historical-price-eod/dividend-adjusted`.

    Args:
        ticker (str):       Stock or ETF symbol.
        start_date (str|datetime, optional): Earliest date (inclusive).
        end_date   (str|datetime, optional): Latest date (inclusive).
        field (str):        Provider column to return.

    Returns:
        pd.Series: Daily prices indexed by date (ascending), named `ticker`.

    Raises:
        MissingDataError: provider returned no rows for the symbol / range.
        DataLoadingError: HTTP or network failure.
    """
    endpoint = _endpoint_for_field(field)

    # ----- loader (runs only on cache miss) ------------------------------
    def _api_pull() -> pd.Series:
        params = {"symbol": ticker, "apikey": API_KEY}
        if start_date:
            params["from"] = pd.to_datetime(start_date).date().isoformat()
        if end_date:
            params["to"]   = pd.to_datetime(end_date).date().isoformat()

        raw  = _get_json(endpoint, params, ticker)
        data = raw if isinstance(raw, list) else raw.get("historical", [])
        if not data:
            raise MissingDataError(
                f"No price data for {ticker} between {start_date} and {end_date}",
                ticker=ticker,
            )

        df = pd.DataFrame(data)
        if field not in df.columns:
            raise MissingDataError(f"Field '{field}' missing from {ticker} price data", ticker=ticker)
        df["date"] = pd.to_datetime(df["date"])
        prices = df.set_index("date").sort_index()[field].astype(float)
        prices = prices[~prices.index.duplicated(keep="last")]
        return prices.rename(ticker)

    # ----- call cache layer ---------------------------------------------
    prices = cache_read(
        key=[ticker, field, start_date or "none", end_date or "none"],
        loader=_api_pull,
        cache_dir=DATA_PROVIDER["cache_dir"],
        prefix=ticker,
    )
    return prices.rename(ticker)


@log_error_handling("high")
def fetch_monthly_treasury_rates(
    maturity: str = "month3",
    start_date: Optional[Union[str, datetime]] = None,
    end_date:   Optional[Union[str, datetime]] = None
) -> pd.Series:
    """
    Fetch month-end Treasury rates for a given maturity from FMP.

    Uses the `/stable/treasury-rates` endpoint to get Treasury rates,
    then resamples to month-end to align with monthly returns.

    Args:
        maturity (str): Treasury maturity ("month3", "month6", "year1", etc.)
        start_date (str|datetime, optional): Earliest date (inclusive).
        end_date   (str|datetime, optional): Latest date (inclusive).

    Returns:
        pd.Series: Month-end Treasury rates (as percentages) indexed by date.
    """
    # ----- loader (runs only on cache miss) ------------------------------
    def _api_pull() -> pd.Series:
        params = {"apikey": API_KEY}
        if start_date:
            params["from"] = pd.to_datetime(start_date).date().isoformat()
        if end_date:
            params["to"] = pd.to_datetime(end_date).date().isoformat()

        raw = _get_json("treasury-rates", params, f"treasury {maturity}")
        if not raw:
            raise MissingDataError(f"No Treasury rates between {start_date} and {end_date}", ticker=maturity)

        df = pd.DataFrame(raw)
        df["date"] = pd.to_datetime(df["date"])
        df.set_index("date", inplace=True)

        if maturity not in df.columns:
            available = [c for c in df.columns]
            raise ValidationError(f"Maturity '{maturity}' not available. Available: {available}", data=maturity)

        # Resample to month-end (align with monthly returns)
        monthly = df.sort_index().resample("ME")[maturity].last().dropna()
        monthly.name = f"treasury_{maturity}"
        return monthly

    # ----- call cache layer ---------------------------------------------
    return cache_read(
        key=["treasury", maturity, start_date or "none", end_date or "none"],
        loader=_api_pull,
        cache_dir=DATA_PROVIDER["cache_dir"],
        prefix=f"treasury_{maturity}",
    )


# In[3]:


# File: data_loader.py
# ── comparison fund file ─────────────────────────────────────────────

from settings import FUND_FILE_COLUMNS
from core.exceptions import MalformedDateError


def _resolve_columns(columns: Iterable[str]) -> dict:
    """Map canonical names to the header spelling used in the file."""
    columns = list(columns)
    resolved, missing = {}, []
    for canonical, aliases in FUND_FILE_COLUMNS.items():
        match = next((c for c in aliases if c in columns), None)
        if match is None:
            missing.append(canonical)
        else:
            resolved[canonical] = match
    if missing:
        raise ValidationError(
            f"Fund file missing columns {missing}. Found: {columns}",
            data=missing,
        )
    return resolved


@log_error_handling("high")
@log_performance(1.0)
def load_fund_returns(
    path: Union[str, Path],
    returns_in_percent: bool = False,
) -> pd.DataFrame:
    """
    Load a comparison fund's monthly file.

    Expected columns (any alias from ``settings.FUND_FILE_COLUMNS``):
    Date (month/day/year), Fund Return, Market Return, Risk-Free Rate.

    Args:
        path: CSV file path.
        returns_in_percent (bool): Divide every return column by 100.

    Returns:
        pd.DataFrame: Columns ``fund_return``, ``market_return``, ``risk_free``
        indexed by month start.

    Raises:
        MalformedDateError: a Date value cannot be parsed.
        ValidationError: required columns are missing.
        MissingDataError: the file has no rows.
    """
    try:
        raw = pd.read_csv(path)
    except EmptyDataError as e:
        raise MissingDataError(f"Fund file {path} is empty", ticker=str(path)) from e
    if raw.empty:
        raise MissingDataError(f"Fund file {path} has no rows", ticker=str(path))

    cols = _resolve_columns(raw.columns)

    date_text = raw[cols["date"]].astype(str).str.strip()
    dates = pd.to_datetime(date_text, format="%m/%d/%Y", errors="coerce")
    # fall back to ISO dates for files that are not month/day/year
    retry = dates.isna()
    if retry.any():
        dates[retry] = pd.to_datetime(date_text[retry], format="%Y-%m-%d", errors="coerce")
    bad = date_text[dates.isna()].tolist()
    if bad:
        raise MalformedDateError(f"Unparseable dates in {path}: {bad[:5]}", values=bad)

    fund = pd.DataFrame({
        "fund_return":   pd.to_numeric(raw[cols["fund_return"]], errors="coerce").values,
        "market_return": pd.to_numeric(raw[cols["market_return"]], errors="coerce").values,
        "risk_free":     pd.to_numeric(raw[cols["risk_free"]], errors="coerce").values,
    }, index=pd.DatetimeIndex(dates.values, name="date").to_period("M").to_timestamp(how="start"))

    if returns_in_percent:
        fund = fund / 100

    fund = fund.sort_index()
    if not fund.index.is_unique:
        dupes = fund.index[fund.index.duplicated()].unique()
        raise ValidationError(
            f"Fund file {path} has several rows for the same month: {[d.strftime('%Y-%m') for d in dupes[:5]]}",
            data=list(dupes),
        )
    return fund


# ----------------------------------------------------------------------
#  RAM-cache wrapper
# ----------------------------------------------------------------------
from functools import lru_cache

# 1) private handle to the disk-cached version
_fetch_price_history_disk = fetch_price_history
_fetch_monthly_treasury_rates_disk = fetch_monthly_treasury_rates

# 2) re-export the public name with an LRU layer
@lru_cache(maxsize=256)          # tune size to taste
def fetch_price_history(         # ← same name seen by callers
    ticker: str,
    start_date: str | None = None,
    end_date:   str | None = None,
    field: str = "adjClose",
) -> pd.Series:
    """
    RAM-cached → disk-cached → network price fetch.
    Same signature and behaviour as the disk-cached function.
    """
    return _fetch_price_history_disk(ticker, start_date, end_date, field)


@lru_cache(maxsize=64)          # smaller cache for Treasury rates
def fetch_monthly_treasury_rates(
    maturity: str = "month3",
    start_date: str | None = None,
    end_date:   str | None = None,
) -> pd.Series:
    """
    RAM-cached → disk-cached → network Treasury rate fetch.
    Same signature and behaviour as the disk-cached function.
    """
    return _fetch_monthly_treasury_rates_disk(maturity, start_date, end_date)
