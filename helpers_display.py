#!/usr/bin/env python
# coding: utf-8

# In[3]:


import pandas as pd
from typing import List, Optional

# Import logging decorators for display operations
from utils.logging import (
    log_performance,
    log_error_handling
)


# In[4]:


# ─── File: helpers_display.py ──────────────────────────────────────────

def _fmt_pct(x: float) -> str:
    return "n/a" if pd.isna(x) else f"{x:.2%}"


def _fmt_num(x: float, digits: int = 4) -> str:
    return "n/a" if pd.isna(x) else f"{x:.{digits}f}"


def _fmt_money(x: float) -> str:
    return "n/a" if pd.isna(x) else f"${x:,.2f}"


@log_error_handling("low")
def format_capm_table(table: pd.DataFrame, columns: Optional[List[str]] = None) -> str:
    """
    Render a CAPM table (one row per portfolio).

    Alpha-like and premium columns are percentages; Beta, correlations,
    R-squared and ratios are plain four-decimal numbers.
    """
    if columns:
        table = table[columns]
    pct_cols = {"Alpha", "AnnualizedAlpha", "Tracking Error", "Active Premium"}
    formatters = {c: (_fmt_pct if c in pct_cols else _fmt_num) for c in table.columns}
    return table.to_string(formatters=formatters)


@log_error_handling("low")
def format_fund_comparison(table: pd.DataFrame) -> str:
    """Render the portfolio vs comparison-fund table."""
    return table.to_string(
        formatters={
            "sharpe_ratio":         _fmt_num,
            "treynor_ratio":        _fmt_num,
            "jensens_alpha":        _fmt_pct,
            "jensens_alpha_pvalue": lambda x: _fmt_num(x, 3),
            "beta":                 _fmt_num,
            "cumulative_return":    _fmt_pct,
        }
    )


@log_error_handling("low")
def format_growth_table(growth: pd.DataFrame, freq: str = "YE") -> str:
    """
    Value of the investment at the end of each year (or ``freq``).

    A window that stops part-way through its last year is shown at the date
    of its final observation, not at the unreached year-end.
    """
    snapshots = growth.resample(freq).last().dropna(how="all")
    if snapshots.index[-1] > growth.index[-1]:
        snapshots.index = snapshots.index[:-1].append(growth.index[-1:])
    snapshots.index = snapshots.index.strftime("%Y-%m-%d")
    return snapshots.to_string(float_format=_fmt_money)


# In[5]:


# ─── File: helpers_display.py ──────────────────────────────────────────

@log_error_handling("medium")
@log_performance(0.5)
def format_performance_report(result) -> str:
    """
    Full text report for a ``PerformanceResult``.
    """
    period = result.analysis_period
    lines = []
    lines.append("=" * 60)
    lines.append(f"📊 PORTFOLIO PERFORMANCE ANALYSIS · {result.portfolio_name or 'Portfolio'}")
    lines.append("=" * 60)
    lines.append(f"📅 Analysis Period: {period['start_date']} to {period['end_date']}")
    lines.append(f"📊 Periods: {period['periods']} ({period['period']})")
    lines.append(f"📈 Baseline: {result.baseline_ticker}")
    lines.append(f"🏦 Risk-free rate: {result.risk_free_rate}")

    lines.append("\n⚖️  WEIGHTS")
    lines.append("─" * 40)
    lines.append(result.weights.to_string(float_format=lambda x: f"{x:.0%}"))

    lines.append(f"\n📐 CAPM vs {result.baseline_ticker}")
    lines.append("─" * 40)
    lines.append(format_capm_table(result.get_capm_summary()))

    lines.append("\n📈 CUMULATIVE RETURN")
    lines.append("─" * 40)
    for pid, value in result.cumulative_returns.items():
        lines.append(f"   Portfolio {pid:<10} {_fmt_pct(value):>10}")
    if result.cumulative_growth is not None and result.baseline_ticker in result.cumulative_growth:
        baseline_cum = result.cumulative_growth[result.baseline_ticker].iloc[-1] - 1
        lines.append(f"   Baseline  {result.baseline_ticker:<10} {_fmt_pct(baseline_cum):>10}")

    lines.append("\n⚖️  SHARPE RATIO / VOLATILITY")
    lines.append("─" * 40)
    for pid, value in result.sharpe_ratios.items():
        annual_vol = result.volatility.get(pid, {}).get("annual_vol", float("nan"))
        lines.append(f"   Portfolio {pid:<10} Sharpe {_fmt_num(value):>8}   Vol {_fmt_pct(annual_vol):>8}")

    lines.append(f"\n💰 GROWTH OF {_fmt_money(result.initial_investment)}")
    lines.append("─" * 40)
    lines.append(format_growth_table(result.growth))

    if result.fund_comparison is not None:
        lines.append("\n🔍 COMPARISON FUND, monthly (Sharpe / Treynor / Jensen)")
        lines.append("─" * 40)
        lines.append(format_fund_comparison(result.fund_comparison))

    lines.append("=" * 60)
    return "\n".join(lines)
