#!/usr/bin/env python
# coding: utf-8

# In[ ]:


# File: portfolio_returns.py

import pandas as pd
import numpy as np
from typing import Dict, Hashable, Iterable, Mapping, Optional, Sequence, Union

from settings import PORTFOLIO_DEFAULTS, WEIGHT_TOLERANCE
from core.exceptions import MisalignedWeightsError, ValidationError

# Import logging decorators for portfolio aggregation
from utils.logging import (
    log_portfolio_operation_decorator,
    log_performance,
    log_error_handling,
)

WeightVector = Union[Mapping[str, float], Sequence[float], pd.Series]


def normalize_weights(weights: Dict[str, float], normalize: Optional[bool] = None) -> Dict[str, float]:
    """
    Normalize weights to gross exposure (sum of absolute values = 1).

    Args:
        weights: Dictionary of ticker -> weight
        normalize: If True, normalize to gross exposure. If False, return as-is.
                  If None (default), uses global setting from PORTFOLIO_DEFAULTS.

    Returns:
        Dictionary of normalized weights
    """
    if normalize is None:
        normalize = PORTFOLIO_DEFAULTS.get("normalize_weights", False)

    if not normalize:
        return dict(weights)
    total = sum(abs(w) for w in weights.values())
    if total == 0:
        raise MisalignedWeightsError("Sum of absolute weights is zero, cannot normalize.", weights=weights)
    return {t: w / total for t, w in weights.items()}


def validate_weights(
    weights: WeightVector,
    assets: Sequence[str],
    normalize: Optional[bool] = None,
) -> pd.Series:
    """
    Align a weight vector to the asset order of a returns frame.

    A mapping must name exactly the assets (matched on their string form, so
    integer column labels accept "0", "1", ... keys); a plain sequence is read
    in asset order and must have one weight per asset.

    Without normalization the weights must sum to 1.0. With ``normalize=True``
    they are scaled to gross exposure (sum of absolute values = 1) and the net
    sum is left free, so long/short vectors are accepted as given.

    Returns:
        pd.Series: weights indexed by asset, in ``assets`` order.

    Raises:
        MisalignedWeightsError: on any count, name or sum mismatch.
    """
    assets = list(assets)
    labels = [str(a) for a in assets]
    if normalize is None:
        normalize = PORTFOLIO_DEFAULTS.get("normalize_weights", False)

    if isinstance(weights, (Mapping, pd.Series)):
        w = {str(k): float(v) for k, v in dict(weights).items()}
        missing = [a for a in labels if a not in w]
        extra = [k for k in w if k not in labels]
        if missing or extra:
            raise MisalignedWeightsError(
                f"Weights do not match assets (missing={missing}, unexpected={extra})",
                weights=w,
            )
    else:
        values = [float(v) for v in weights]
        if len(values) != len(assets):
            raise MisalignedWeightsError(
                f"{len(values)} weights supplied for {len(assets)} assets {assets}",
                weights=values,
            )
        w = dict(zip(labels, values))

    w = normalize_weights(w, normalize)
    total = sum(w.values())
    if not normalize and not np.isclose(total, 1.0, rtol=0.0, atol=WEIGHT_TOLERANCE):
        raise MisalignedWeightsError(
            f"Weights sum to {total:.6f}, expected 1.0",
            weights=w,
        )
    return pd.Series([w[a] for a in labels], index=assets, name="weight")


def compute_portfolio_returns(
    returns: pd.DataFrame,
    weights: WeightVector,
    wealth_index: bool = False,
    name: Hashable = "portfolio",
    normalize: Optional[bool] = None,
) -> pd.Series:
    """
    Given a DataFrame of individual asset returns (columns = tickers)
    and a weight vector, compute the weighted portfolio return series.

    With ``wealth_index=True`` the running ∏(1 + r) is returned instead,
    starting from 1 before the first period.
    """
    w = validate_weights(weights, returns.columns, normalize=normalize)
    # periods missing any asset return are excluded
    aligned = returns[list(w.index)].dropna()
    # dot product row-wise
    port_ret = pd.Series(aligned.values.dot(w.values), index=aligned.index, name=name)
    if wealth_index:
        return (1 + port_ret).cumprod().rename(name)
    return port_ret


# In[ ]:


# File: portfolio_returns.py
# ── multiple portfolios ──────────────────────────────────────────────

def repeat_returns(
    returns: pd.DataFrame,
    n: Union[int, Iterable[Hashable]],
    index_col_name: str = "portfolio",
) -> pd.DataFrame:
    """
    Replicate a returns frame once per portfolio.

    ``n`` is either the number of copies (ids 1..n) or an iterable of ids.
    The result is stacked with an outer index level named ``index_col_name``.
    """
    ids = list(range(1, n + 1)) if isinstance(n, int) else list(n)
    if not ids:
        raise ValidationError("At least one portfolio is required")
    return pd.concat({pid: returns.copy() for pid in ids}, names=[index_col_name])


def build_weights_table(
    assets: Sequence[str],
    weights: Sequence[float],
    n: int,
) -> pd.DataFrame:
    """
    Build a weights table from one flat, row-major list of weights.

    Example
    -------
    build_weights_table(["AAPL", "GOOG", "NFLX"],
                        [0.50, 0.25, 0.25,
                         0.25, 0.50, 0.25,
                         0.25, 0.25, 0.50], n=3)
    → 3×3 table, index 1..3 named "portfolio".
    """
    assets = list(assets)
    if len(weights) != n * len(assets):
        raise MisalignedWeightsError(
            f"{len(weights)} weights supplied for {n} portfolios of {len(assets)} assets",
            weights=list(weights),
        )
    table = pd.DataFrame(
        np.asarray(weights, dtype=float).reshape(n, len(assets)),
        index=pd.Index(range(1, n + 1), name="portfolio"),
        columns=assets,
    )
    return table


def _coerce_weights_table(
    weights_table: Union[pd.DataFrame, Mapping[Hashable, WeightVector]],
) -> Dict[Hashable, WeightVector]:
    """Accept a wide table, a long (portfolio, asset, weight) table or a mapping."""
    if isinstance(weights_table, pd.DataFrame):
        if {"portfolio", "asset", "weight"}.issubset(weights_table.columns):
            return {
                pid: dict(zip(grp["asset"], grp["weight"]))
                for pid, grp in weights_table.groupby("portfolio", sort=False)
            }
        return {pid: row.to_dict() for pid, row in weights_table.iterrows()}
    if isinstance(weights_table, Mapping):
        return dict(weights_table)
    raise ValidationError(f"Unsupported weights table type: {type(weights_table).__name__}")


@log_error_handling("high")
@log_portfolio_operation_decorator("portfolio_aggregation")
@log_performance(2.0)
def compute_portfolio_returns_multi(
    returns: pd.DataFrame,
    weights_table: Union[pd.DataFrame, Mapping[Hashable, WeightVector]],
    wealth_index: bool = False,
    normalize: Optional[bool] = None,
) -> pd.DataFrame:
    """
    Aggregate the same asset returns into several portfolios.

    The returns frame is replicated once per portfolio id and each copy is
    aggregated with its own weights, so portfolios never share state.

    Args:
        returns (pd.DataFrame): Wide asset returns (columns = tickers).
        weights_table: One of
            - wide DataFrame, index = portfolio id, columns = tickers
            - long DataFrame with columns ``portfolio``, ``asset``, ``weight``
            - mapping {portfolio_id: weights}
        wealth_index (bool): Return ∏(1 + r) per portfolio instead of returns.

    Returns:
        pd.DataFrame: One column per portfolio id, indexed by date.
    """
    weights_by_id = _coerce_weights_table(weights_table)
    # validate every portfolio before computing any of them
    aligned_weights = {
        pid: validate_weights(w, returns.columns, normalize=normalize)
        for pid, w in weights_by_id.items()
    }

    stacked = repeat_returns(returns, list(aligned_weights))
    results = {}
    for pid, grp in stacked.groupby(level="portfolio", sort=False):
        results[pid] = compute_portfolio_returns(
            grp.droplevel("portfolio"),
            aligned_weights[pid],
            wealth_index=wealth_index,
            name=pid,
            normalize=False,
        )
    out = pd.DataFrame(results)
    out.columns.name = "portfolio"
    return out


def compute_portfolio_growth(
    returns: pd.DataFrame,
    weights: Union[WeightVector, pd.DataFrame, Mapping[Hashable, WeightVector]],
    initial_investment: Optional[float] = None,
) -> Union[pd.Series, pd.DataFrame]:
    """
    Value over time of ``initial_investment`` placed in the portfolio(s).

    A single weight vector yields a Series; a weights table or a mapping of
    portfolio ids yields one column per portfolio.
    """
    if initial_investment is None:
        initial_investment = PORTFOLIO_DEFAULTS["initial_investment"]

    is_multi = isinstance(weights, pd.DataFrame) or (
        isinstance(weights, Mapping)
        and weights
        and all(isinstance(v, (Mapping, pd.Series, list, tuple)) for v in weights.values())
    )
    if is_multi:
        growth = compute_portfolio_returns_multi(returns, weights, wealth_index=True)
    else:
        growth = compute_portfolio_returns(returns, weights, wealth_index=True, name="investment_growth")
    return growth * initial_investment
