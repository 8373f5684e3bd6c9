#!/usr/bin/env python
# coding: utf-8

# In[ ]:


import pandas as pd
from typing import List, Union

from data_loader import fetch_price_history, fetch_monthly_treasury_rates
from return_utils import build_returns_frame, calc_period_returns
from core.data_objects import PortfolioData
from core.exceptions import MissingDataError
from settings import DATA_PROVIDER

from utils.logging import (
    log_error_handling,
    log_performance,
)


# In[ ]:


# File: run_portfolio_performance.py

# --------------------------------------------------------------------
# 1) Pure-data loader  → returns a PortfolioData you can reuse programmatically
# --------------------------------------------------------------------
def load_portfolio_config(filepath: str = "portfolio.yaml") -> PortfolioData:
    """
    Load the YAML and return a validated PortfolioData.
    No printing, no side effects.
    """
    return PortfolioData.from_yaml(filepath)


# --------------------------------------------------------------------
# 2) Market data → returns
# --------------------------------------------------------------------
@log_error_handling("high")
@log_performance(10.0)
def get_returns_dataframe(
    tickers: List[str],
    start_date: str,
    end_date: str,
    period: str = "monthly",
    field: str = "adjClose",
) -> pd.DataFrame:
    """
    Fetch prices for every ticker and return the wide returns frame
    (columns in ticker order, periods common to all tickers).
    """
    price_dict = {
        t: fetch_price_history(t, start_date, end_date, field)
        for t in tickers
    }
    return build_returns_frame(price_dict, period=period)


@log_error_handling("high")
def get_baseline_returns(
    ticker: str,
    start_date: str,
    end_date: str,
    period: str = "monthly",
    field: str = "adjClose",
) -> pd.Series:
    """Periodic returns of the baseline ticker (Rb)."""
    prices = fetch_price_history(ticker, start_date, end_date, field)
    rets = calc_period_returns(prices, period=period).rename(ticker)
    if rets.empty:
        raise MissingDataError(f"Not enough {period} prices for baseline {ticker}", ticker=ticker)
    return rets


def get_risk_free(config: PortfolioData, index: pd.DatetimeIndex) -> Union[float, pd.Series]:
    """
    Per-period risk-free rate for the analysis.

    A numeric ``risk_free_rate`` is an annual rate divided by periods per
    year. ``"treasury"`` uses FMP Treasury yields: month by month for monthly
    analysis, otherwise their average over the window.
    """
    if config.risk_free_rate != "treasury":
        return float(config.risk_free_rate) / config.scale

    rates = fetch_monthly_treasury_rates(
        DATA_PROVIDER["treasury_maturity"], config.start_date, config.end_date
    ) / 100
    if config.period == "monthly":
        rf = (rates / 12).reindex(index, method="ffill")
        return rf.rename("risk_free")
    return float(rates.mean()) / config.scale


# --------------------------------------------------------------------
# 3) Pretty-printers
# --------------------------------------------------------------------
def display_portfolio_config(cfg: PortfolioData) -> None:
    """
    Nicely print the fields of a PortfolioData.
    """
    print("=== PORTFOLIO CONFIGURATION ===")
    print(f"📅 Window:      {cfg.start_date} → {cfg.end_date} ({cfg.period})")
    print(f"📈 Baseline:    {cfg.baseline_ticker}")
    print(f"🏦 Risk-free:   {cfg.risk_free_rate}")
    print(f"💰 Investment:  ${cfg.initial_investment:,.2f}")
    if cfg.fund_file:
        print(f"🔍 Fund file:   {cfg.fund_file}")
    print("\n=== WEIGHTS ===")
    print(cfg.get_weights_table().to_string(float_format=lambda x: f"{x:.0%}"))


def display_performance_result(result) -> None:
    """Print the formatted report of a PerformanceResult."""
    print(result.to_formatted_report())


def display_growth(growth: pd.DataFrame, initial_investment: float) -> None:
    from helpers_display import format_growth_table

    print(f"\n💰 Growth of ${initial_investment:,.2f}")
    print("─" * 40)
    print(format_growth_table(growth))
    final = growth.iloc[-1]
    best = final.idxmax()
    print(f"\n🏆 Best portfolio: {best} (${final[best]:,.2f})")
