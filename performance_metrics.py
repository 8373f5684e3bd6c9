#!/usr/bin/env python
# coding: utf-8

# In[ ]:


# File: performance_metrics.py
"""
Risk / performance ratios of portfolio returns against a baseline.

    join_returns            exact-date or calendar-period join, fails on no overlap
    table_capm              Alpha, AnnualizedAlpha, Beta, Correlation, R-squared, ...
    capm_table_multi        one CAPM row per portfolio
    sharpe_ratio            mean(excess) / stdev(excess)
    treynor_ratio           mean(excess) / beta vs market
    jensens_alpha           intercept of excess-on-excess OLS
    compare_with_fund       portfolios vs a comparison fund's monthly file
    cumulative_growth_frame ∏(1 + r) per portfolio on common dates

All functions take periodic returns (not prices). ``rf`` is a per-period
risk-free rate: a scalar or a Series joined on exact dates.
"""

import pandas as pd
import numpy as np
from typing import Dict, Hashable, Mapping, Optional, Tuple, Union

from return_utils import annualized_return, compute_regression_metrics, cumulative_return
from core.exceptions import AnalysisError, JoinMismatchError, ValidationError

from utils.logging import (
    log_error_handling,
    log_performance,
    log_portfolio_operation_decorator,
    portfolio_logger,
)

RiskFree = Union[float, pd.Series]

CAPM_COLUMNS = [
    "Alpha",
    "AnnualizedAlpha",
    "Beta",
    "Correlation",
    "Correlation p-value",
    "R-squared",
    "Tracking Error",
    "Active Premium",
    "Information Ratio",
    "Treynor Ratio",
]

# Rows appended by compare_with_fund after the portfolio rows
FUND_COMPARISON_ROWS = ("fund", "market")


# ── joins ─────────────────────────────────────────────────────────────
def _to_frame(obj: Union[pd.Series, pd.DataFrame], name: Optional[str]) -> pd.DataFrame:
    if isinstance(obj, pd.Series):
        return obj.to_frame(name=name if name is not None else (obj.name or "portfolio"))
    return obj


def _to_period_index(df: pd.DataFrame, freq: str) -> pd.DataFrame:
    out = df.copy()
    out.index = pd.DatetimeIndex(out.index).to_period(freq)
    if not out.index.is_unique:
        dupes = out.index[out.index.duplicated()].unique()
        raise ValidationError(
            f"More than one observation per period: {[str(p) for p in dupes[:5]]}",
            data=list(dupes),
        )
    return out


def join_returns(
    ra: Union[pd.Series, pd.DataFrame],
    rb: Union[pd.Series, pd.DataFrame],
    how: str = "inner",
    on: str = "date",
    freq: str = "M",
    names: Tuple[Optional[str], Optional[str]] = ("Ra", "Rb"),
) -> pd.DataFrame:
    """
    Join two return series / frames.

    Args:
        ra, rb: Series are renamed to ``names``; DataFrames keep their columns.
        how (str): "inner" or "left" (keeps every row of ``ra``).
        on (str): "date" matches dates exactly; "period" matches calendar
            periods of ``freq`` and labels the result at the period start.

    Returns:
        pd.DataFrame: Joined columns of ``ra`` then ``rb``.

    Raises:
        JoinMismatchError: if no row has values on both sides.
    """
    if how not in ("inner", "left"):
        raise ValidationError(f"Unsupported join '{how}'", data=how)
    if on not in ("date", "period"):
        raise ValidationError(f"Unsupported join key '{on}'", data=on)

    left = _to_frame(ra, names[0])
    right = _to_frame(rb, names[1])
    if on == "period":
        left = _to_period_index(left, freq)
        right = _to_period_index(right, freq)

    joined = left.join(right, how=how)
    if joined.dropna().empty:
        raise JoinMismatchError(
            f"No overlapping periods between {list(left.columns)} and {list(right.columns)}",
            left=list(left.columns),
            right=list(right.columns),
        )
    if on == "period":
        joined.index = joined.index.to_timestamp(how="start")
    return joined


def _excess_frame(ra: pd.Series, rb: pd.Series, rf: RiskFree) -> pd.DataFrame:
    """Ra, Rb and Rf on common dates, with at least two observations."""
    df = join_returns(ra, rb, how="inner").dropna()
    if isinstance(rf, pd.Series):
        rf_aligned = rf.reindex(df.index)
        if rf_aligned.isna().all():
            raise JoinMismatchError(
                "No overlapping periods between returns and risk-free series",
                left=list(df.columns),
                right=[rf.name],
            )
        df = df.assign(Rf=rf_aligned).dropna()
    else:
        df = df.assign(Rf=float(rf))
    if len(df) < 2:
        raise AnalysisError(f"Need at least 2 joined observations, got {len(df)}", analysis_type="regression")
    return df


def _excess_returns(ra: pd.Series, rf: RiskFree) -> pd.Series:
    if isinstance(rf, pd.Series):
        df = join_returns(ra, rf, how="inner", names=("Ra", "Rf")).dropna()
        return df["Ra"] - df["Rf"]
    return ra.dropna() - float(rf)


# ── ratios ────────────────────────────────────────────────────────────
def sharpe_ratio(
    ra: pd.Series,
    rf: RiskFree = 0.0,
    annualize: bool = False,
    scale: int = 12,
) -> float:
    """
    Sharpe ratio: mean(Ra − Rf) / stdev(Ra − Rf), sample stdev.

    Returns NaN when the excess series has no dispersion.
    """
    excess = _excess_returns(ra, rf)
    if len(excess) < 2:
        raise AnalysisError(f"Need at least 2 observations for Sharpe, got {len(excess)}", analysis_type="sharpe")
    sd = excess.std()
    if not sd > 0:
        portfolio_logger.warning(f"Sharpe ratio undefined for {ra.name!r}: zero volatility")
        return float("nan")
    sr = float(excess.mean() / sd)
    return sr * np.sqrt(scale) if annualize else sr


def treynor_ratio(
    ra: pd.Series,
    rm: pd.Series,
    rf: RiskFree = 0.0,
    annualize: bool = False,
    scale: int = 12,
) -> float:
    """
    Treynor ratio: mean(Ra − Rf) / β, β from Ra − Rf regressed on Rm − Rf.

    annualize=True uses the geometric annualized excess return as numerator.
    """
    df = _excess_frame(ra, rm, rf)
    excess = df["Ra"] - df["Rf"]
    reg = compute_regression_metrics(pd.DataFrame({"y": excess, "x": df["Rb"] - df["Rf"]}))
    beta = reg["beta"]
    if beta == 0:
        return float("nan")
    numerator = annualized_return(excess, scale) if annualize else float(excess.mean())
    return numerator / beta


def jensens_alpha(
    ra: pd.Series,
    rm: pd.Series,
    rf: RiskFree = 0.0,
    scale: int = 12,
) -> Dict[str, float]:
    """
    Jensen's alpha: intercept of (Ra − Rf) = α + β (Rm − Rf) + ε.

    Returns:
        dict: alpha, annualized_alpha, beta, alpha_tstat, alpha_pvalue,
              r_squared, n_obs
    """
    df = _excess_frame(ra, rm, rf)
    reg = compute_regression_metrics(pd.DataFrame({
        "y": df["Ra"] - df["Rf"],
        "x": df["Rb"] - df["Rf"],
    }))
    return {
        "alpha":            reg["alpha"],
        "annualized_alpha": (1 + reg["alpha"]) ** scale - 1,
        "beta":             reg["beta"],
        "alpha_tstat":      reg["alpha_tstat"],
        "alpha_pvalue":     reg["alpha_pvalue"],
        "r_squared":        reg["r_squared"],
        "n_obs":            reg["n_obs"],
    }


# In[ ]:


# File: performance_metrics.py
# ── CAPM table ───────────────────────────────────────────────────────

@log_error_handling("high")
def table_capm(
    ra: pd.Series,
    rb: pd.Series,
    rf: RiskFree = 0.0,
    scale: int = 12,
) -> Dict[str, float]:
    """
    CAPM statistics of ``ra`` against baseline ``rb``.

    Alpha / Beta come from OLS of (Ra − Rf) on (Rb − Rf).
    AnnualizedAlpha = (1 + Alpha)^scale − 1.
    Tracking Error  = stdev(Ra − Rb) · √scale.
    Active Premium  = annualized(Ra) − annualized(Rb).
    Treynor Ratio   = annualized(Ra − Rf) / Beta.
    """
    df = _excess_frame(ra, rb, rf)
    xa = df["Ra"] - df["Rf"]
    xb = df["Rb"] - df["Rf"]
    reg = compute_regression_metrics(pd.DataFrame({"y": xa, "x": xb}))

    tracking_error = float((df["Ra"] - df["Rb"]).std() * np.sqrt(scale))
    active_premium = annualized_return(df["Ra"], scale) - annualized_return(df["Rb"], scale)
    information_ratio = active_premium / tracking_error if tracking_error > 0 else float("nan")
    treynor = annualized_return(xa, scale) / reg["beta"] if reg["beta"] != 0 else float("nan")

    return {
        "Alpha":               reg["alpha"],
        "AnnualizedAlpha":     (1 + reg["alpha"]) ** scale - 1,
        "Beta":                reg["beta"],
        "Correlation":         float(xa.corr(xb)),
        "Correlation p-value": reg["beta_pvalue"],
        "R-squared":           reg["r_squared"],
        "Tracking Error":      tracking_error,
        "Active Premium":      active_premium,
        "Information Ratio":   information_ratio,
        "Treynor Ratio":       treynor,
    }


@log_error_handling("high")
@log_portfolio_operation_decorator("capm_table")
@log_performance(2.0)
def capm_table_multi(
    portfolio_returns: Union[pd.Series, pd.DataFrame],
    rb: pd.Series,
    rf: RiskFree = 0.0,
    scale: int = 12,
) -> pd.DataFrame:
    """
    CAPM table with one row per portfolio column; each portfolio is joined
    with the baseline on its own.
    """
    frame = _to_frame(portfolio_returns, None)
    rows = {pid: table_capm(frame[pid], rb, rf=rf, scale=scale) for pid in frame.columns}
    table = pd.DataFrame.from_dict(rows, orient="index")[CAPM_COLUMNS]
    table.index.name = "portfolio"
    return table


# ── comparison fund ──────────────────────────────────────────────────
def _comparison_row(r: pd.Series, market: pd.Series, rf: pd.Series, scale: int) -> Dict[str, float]:
    jensen = jensens_alpha(r, market, rf, scale=scale)
    return {
        "sharpe_ratio":        sharpe_ratio(r, rf),
        "treynor_ratio":       treynor_ratio(r, market, rf),
        "jensens_alpha":       jensen["alpha"],
        "jensens_alpha_pvalue": jensen["alpha_pvalue"],
        "beta":                jensen["beta"],
        "cumulative_return":   cumulative_return(r),
    }


@log_error_handling("high")
@log_portfolio_operation_decorator("fund_comparison")
def compare_with_fund(
    portfolio_returns: Union[pd.Series, pd.DataFrame],
    fund: pd.DataFrame,
    how: str = "left",
    scale: int = 12,
) -> pd.DataFrame:
    """
    Compare portfolios with a comparison fund on a monthly basis.

    ``fund`` has columns ``fund_return``, ``market_return`` and ``risk_free``
    (see ``data_loader.load_fund_returns``). Portfolios are joined with it by
    calendar month; metrics use the months where every series has a value.

    Returns:
        pd.DataFrame: rows = portfolio ids, "fund", "market"; columns =
        sharpe_ratio, treynor_ratio, jensens_alpha, jensens_alpha_pvalue,
        beta, cumulative_return.
    """
    missing = {"fund_return", "market_return", "risk_free"} - set(fund.columns)
    if missing:
        raise ValidationError(f"Fund frame missing columns: {sorted(missing)}", data=sorted(missing))

    frame = _to_frame(portfolio_returns, None)
    clashes = [str(pid) for pid in frame.columns if str(pid) in FUND_COMPARISON_ROWS]
    if clashes:
        raise ValidationError(f"Portfolio ids {clashes} are reserved for the comparison table", data=clashes)
    joined = join_returns(
        frame,
        fund[["fund_return", "market_return", "risk_free"]],
        how=how,
        on="period",
        freq="M",
    ).dropna()

    market = joined["market_return"]
    rf = joined["risk_free"]
    rows = {pid: _comparison_row(joined[pid], market, rf, scale) for pid in frame.columns}
    rows["fund"] = _comparison_row(joined["fund_return"], market, rf, scale)
    rows["market"] = _comparison_row(market, market, rf, scale)

    table = pd.DataFrame.from_dict(rows, orient="index")
    table.index.name = "portfolio"
    return table


def cumulative_growth_frame(
    portfolio_returns: Union[pd.DataFrame, Mapping[Hashable, pd.Series]],
) -> pd.DataFrame:
    """
    ∏(1 + r) for each portfolio over their common dates.
    """
    if isinstance(portfolio_returns, Mapping):
        frame = pd.concat(dict(portfolio_returns), axis=1, join="inner")
    else:
        frame = portfolio_returns
    frame = frame.dropna()
    if frame.empty:
        raise JoinMismatchError("Portfolios share no common dates", left=list(frame.columns))
    return (1 + frame).cumprod()
