#!/usr/bin/env python
# coding: utf-8

# In[1]:


# File: return_utils.py

import pandas as pd
import numpy as np
import statsmodels.api as sm
from typing import Dict, Union

from core.exceptions import (
    JoinMismatchError,
    MalformedDateError,
    ValidationError,
)

# Import logging decorators for return calculations
from utils.logging import (
    log_error_handling,
    log_performance,
    portfolio_logger,
)

# Resample rule (labelled at the period boundary) per periodicity
PERIOD_RULES = {
    "daily":     None,
    "weekly":    "W-FRI",
    "monthly":   "ME",
    "quarterly": "QE",
    "yearly":    "YE",
}

PERIODS_PER_YEAR = {
    "daily":     252,
    "weekly":    52,
    "monthly":   12,
    "quarterly": 4,
    "yearly":    1,
}

RETURN_METHODS = ("arithmetic", "log")


def periods_per_year(period: str) -> int:
    if period not in PERIODS_PER_YEAR:
        raise ValidationError(
            f"Unknown periodicity '{period}'. Available: {list(PERIODS_PER_YEAR)}",
            data=period,
        )
    return PERIODS_PER_YEAR[period]


def validate_price_series(prices: pd.Series) -> pd.Series:
    """
    Check a price series before computing returns.

    Args:
        prices (pd.Series): Prices indexed by date.

    Returns:
        pd.Series: Float prices on a DatetimeIndex with missing prices dropped.

    Raises:
        MalformedDateError: index values that cannot be parsed as dates.
        ValidationError: non-numeric prices, or dates that are not strictly increasing.
    """
    if not isinstance(prices.index, pd.DatetimeIndex):
        parsed = pd.to_datetime(pd.Series(prices.index), errors="coerce")
        bad = [v for v, p in zip(prices.index, parsed) if pd.isna(p)]
        if bad:
            raise MalformedDateError(
                f"Unparseable dates in price series {prices.name!r}: {bad[:5]}",
                values=bad,
            )
        prices = pd.Series(prices.values, index=pd.DatetimeIndex(parsed), name=prices.name)

    if not prices.index.is_unique:
        dupes = prices.index[prices.index.duplicated()].unique()
        raise ValidationError(
            f"Duplicate dates in price series {prices.name!r}: {list(dupes[:5])}",
            data=list(dupes),
        )
    if not prices.index.is_monotonic_increasing:
        raise ValidationError(
            f"Dates in price series {prices.name!r} are not strictly increasing",
            data=prices.name,
        )

    try:
        prices = prices.astype(float)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Non-numeric prices in {prices.name!r}: {e}", data=prices.name) from e

    return prices.dropna()


@log_error_handling("medium")
def calc_period_returns(
    prices: pd.Series,
    period: str = "monthly",
    method: str = "arithmetic",
) -> pd.Series:
    """
    Compute periodic returns from a price series.

    Non-daily periodicities take the last observation inside each period and
    label it at the period boundary (e.g. month-end), so series fetched for
    different symbols line up on the same dates. Periods with no observation
    are omitted. The first period has no prior price and is dropped.

    Args:
        prices (pd.Series): Price series indexed by date.
        period (str): "daily", "weekly", "monthly", "quarterly" or "yearly".
        method (str): "arithmetic" (p_i / p_{i-1} - 1) or "log" (ln(p_i / p_{i-1})).

    Returns:
        pd.Series: Periodic returns. Empty if fewer than two periods are observed.
    """
    if period not in PERIOD_RULES:
        raise ValidationError(
            f"Unknown periodicity '{period}'. Available: {list(PERIOD_RULES)}",
            data=period,
        )
    if method not in RETURN_METHODS:
        raise ValidationError(f"Unknown return method '{method}'", data=method)

    prices = validate_price_series(prices)

    rule = PERIOD_RULES[period]
    if rule is not None:
        prices = prices.resample(rule).last().dropna()

    if len(prices) < 2:
        portfolio_logger.warning(
            f"{prices.name or 'series'}: {len(prices)} {period} observation(s), returns undefined"
        )
        return pd.Series(dtype=float, name=prices.name)

    if method == "log":
        rets = np.log(prices / prices.shift(1))
    else:
        rets = prices.pct_change(fill_method=None)
    return rets.iloc[1:].rename(prices.name)


def calc_monthly_returns(prices: pd.Series) -> pd.Series:
    """
    Compute percent-change monthly returns from price series.

    Args:
        prices (pd.Series): Daily or month-end price series.

    Returns:
        pd.Series: Monthly % change returns, first month dropped.
    """
    return calc_period_returns(prices, period="monthly")


@log_error_handling("high")
@log_performance(1.0)
def build_returns_frame(
    price_dict: Dict[str, pd.Series],
    period: str = "monthly",
    method: str = "arithmetic",
) -> pd.DataFrame:
    """
    Convert a set of price series into one wide returns frame.

    Columns follow the order of ``price_dict``; rows are the periods common to
    every asset (inner join).

    Raises:
        JoinMismatchError: if the assets share no period.
    """
    if not price_dict:
        raise ValidationError("No price series supplied")

    series_list = [
        calc_period_returns(prices, period=period, method=method).rename(ticker)
        for ticker, prices in price_dict.items()
    ]
    df_ret = pd.concat(series_list, axis=1, join="inner").dropna()

    if df_ret.empty:
        raise JoinMismatchError(
            f"No common {period} periods across assets: {list(price_dict)}",
            left=list(price_dict),
        )
    return df_ret


# In[ ]:


# File: return_utils.py

def cumulative_return(
    returns: Union[pd.Series, pd.DataFrame],
    geometric: bool = True,
) -> Union[float, pd.Series]:
    """
    Cumulative return over the full series.

    geometric=True  →  ∏(1 + r) − 1
    geometric=False →  Σ r

    A DataFrame yields one value per column.
    """
    returns = returns.dropna()
    if geometric:
        out = (1 + returns).prod() - 1
    else:
        out = returns.sum()
    return float(out) if isinstance(returns, pd.Series) else out


def wealth_index(
    returns: Union[pd.Series, pd.DataFrame],
    initial: float = 1.0,
) -> Union[pd.Series, pd.DataFrame]:
    """
    Growth of ``initial`` invested at the start: running ∏(1 + r).
    The first value is the wealth after the first period.
    """
    return (1 + returns).cumprod() * initial


def annualized_return(
    returns: pd.Series,
    scale: int = 12,
    geometric: bool = True,
) -> float:
    """
    Annualize a periodic return series.

    geometric=True  →  ∏(1 + r)^(scale / n) − 1
    geometric=False →  mean(r) × scale
    """
    returns = returns.dropna()
    n = len(returns)
    if n == 0:
        return float("nan")
    if geometric:
        return float((1 + returns).prod() ** (scale / n) - 1)
    return float(returns.mean() * scale)


def compute_volatility(returns: pd.Series, scale: int = 12) -> Dict[str, float]:
    """
    Calculate periodic and annualized volatility from a returns series.

    Args:
        returns (pd.Series): Series of periodic returns.
        scale (int): Periods per year.

    Returns:
        dict: {
            "periodic_vol": float,  # standard deviation of returns
            "annual_vol":   float   # scaled by sqrt(scale)
        }
    """
    vol_p = float(returns.std())
    vol_a = vol_p * np.sqrt(scale)
    return {"periodic_vol": vol_p, "annual_vol": vol_a}


def compute_regression_metrics(df: pd.DataFrame) -> Dict[str, float]:
    """
    Run OLS regression of ``y`` on ``x`` with an intercept.

    Args:
        df (pd.DataFrame): DataFrame with columns ["y", "x"].

    Returns:
        dict: {
            "alpha":        float,  # intercept
            "beta":         float,  # slope coefficient
            "alpha_tstat":  float,
            "alpha_pvalue": float,
            "beta_tstat":   float,
            "beta_pvalue":  float,
            "r_squared":    float,  # model R²
            "resid_vol":    float,  # std deviation of residuals
            "n_obs":        int
        }
    """
    X     = sm.add_constant(df["x"])
    model = sm.OLS(df["y"], X).fit()
    return {
        "alpha":        float(model.params["const"]),
        "beta":         float(model.params["x"]),
        "alpha_tstat":  float(model.tvalues["const"]),
        "alpha_pvalue": float(model.pvalues["const"]),
        "beta_tstat":   float(model.tvalues["x"]),
        "beta_pvalue":  float(model.pvalues["x"]),
        "r_squared":    float(model.rsquared),
        "resid_vol":    float(model.resid.std()),
        "n_obs":        int(model.nobs),
    }
