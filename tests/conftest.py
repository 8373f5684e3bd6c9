"""Shared fixtures: synthetic prices, an isolated price cache, cleared RAM caches."""
import zlib
from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest

import data_loader
from settings import DATA_PROVIDER


def month_end_prices(values, start="2020-01-31", name=None) -> pd.Series:
    """Prices observed on consecutive month-ends."""
    index = pd.date_range(start, periods=len(values), freq="ME")
    return pd.Series(values, index=index, name=name, dtype=float)


def synthetic_prices(ticker, start_date=None, end_date=None, field="adjClose") -> pd.Series:
    """
    Deterministic business-day random walk per ticker; signature matches
    ``data_loader.fetch_price_history``.
    """
    start = pd.Timestamp(start_date or "2019-01-01")
    end = pd.Timestamp(end_date or "2021-12-31")
    index = pd.bdate_range(start, end)
    rng = np.random.default_rng(zlib.crc32(ticker.encode()))
    steps = rng.normal(0.0005, 0.01, len(index))
    return pd.Series(100 * np.cumprod(1 + steps), index=index, name=ticker)


@pytest.fixture(autouse=True)
def clear_ram_caches():
    data_loader.fetch_price_history.cache_clear()
    data_loader.fetch_monthly_treasury_rates.cache_clear()
    yield
    data_loader.fetch_price_history.cache_clear()
    data_loader.fetch_monthly_treasury_rates.cache_clear()


@pytest.fixture
def price_cache_dir(tmp_path):
    cache_dir = tmp_path / "cache_prices"
    with patch.dict(DATA_PROVIDER, {"cache_dir": str(cache_dir)}):
        yield cache_dir


@pytest.fixture
def mock_prices():
    """Patch the price fetch used by the analysis pipeline."""
    with patch("run_portfolio_performance.fetch_price_history", side_effect=synthetic_prices) as m:
        yield m


@pytest.fixture
def portfolio_yaml(tmp_path):
    def _write(text: str, name: str = "portfolio.yaml"):
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return _write


@pytest.fixture
def fund_csv(tmp_path):
    """Monthly comparison-fund file covering Feb 2019 through Dec 2021."""
    months = pd.date_range("2019-02-28", "2021-12-31", freq="ME")
    rng = np.random.default_rng(7)
    market = rng.normal(0.01, 0.04, len(months))
    fund = 0.002 + 0.9 * market + rng.normal(0, 0.01, len(months))
    df = pd.DataFrame({
        "Date": months.strftime("%m/%d/%Y"),
        "ContraRet": fund,
        "Market.Return": market,
        "Risk.Free": 0.001,
    })
    path = tmp_path / "fund.csv"
    df.to_csv(path, index=False)
    return str(path)


SAMPLE_YAML = """
tickers: [AAPL, GOOG, NFLX]
portfolios:
  "1": [0.50, 0.25, 0.25]
  "2": {AAPL: 0.25, GOOG: 0.50, NFLX: 0.25}
start_date: 2019-01-01
end_date: 2021-12-31
baseline_ticker: XLK
initial_investment: 1000
"""
