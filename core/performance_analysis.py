#!/usr/bin/env python3
# coding: utf-8

"""
Core portfolio performance analysis business logic.

Pipeline: prices → periodic returns → weighted portfolios → join with the
baseline → CAPM table, Sharpe ratios, volatility, cumulative returns, growth,
and (optionally) the comparison-fund table. The comparison fund file is
monthly, so that table is always built from monthly portfolio returns
whatever periodicity the rest of the analysis uses. Errors propagate to the
caller.
"""

from typing import Dict, Any, Optional, Union

from run_portfolio_performance import (
    load_portfolio_config,
    get_returns_dataframe,
    get_baseline_returns,
    get_risk_free,
)
from portfolio_returns import compute_portfolio_returns_multi, compute_portfolio_growth
from performance_metrics import (
    capm_table_multi,
    compare_with_fund,
    cumulative_growth_frame,
    sharpe_ratio,
)
from return_utils import compute_volatility, cumulative_return, periods_per_year
from data_loader import load_fund_returns
from core.data_objects import PortfolioData
from core.result_objects import PerformanceResult

# Import logging decorators for performance analysis
from utils.logging import (
    log_portfolio_operation_decorator,
    log_performance,
    log_error_handling,
    portfolio_logger,
)


def _as_portfolio_data(portfolio: Union[str, PortfolioData]) -> PortfolioData:
    if isinstance(portfolio, PortfolioData):
        return portfolio
    return load_portfolio_config(portfolio)


def _monthly_portfolio_returns(config: PortfolioData, weights, portfolio_returns):
    """Portfolio returns at monthly periodicity, reusing them when already monthly."""
    if config.period == "monthly":
        return portfolio_returns
    monthly = get_returns_dataframe(
        config.tickers, config.start_date, config.end_date,
        period="monthly", field=config.price_field,
    )
    return compute_portfolio_returns_multi(monthly, weights)


@log_error_handling("high")
@log_portfolio_operation_decorator("performance_analysis")
@log_performance(15.0)
def analyze_performance(
    portfolio: Union[str, PortfolioData],
    fund_file: Optional[str] = None,
) -> PerformanceResult:
    """
    Core portfolio performance analysis.

    Parameters
    ----------
    portfolio : str | PortfolioData
        Path to the portfolio YAML file, or an already-built configuration.
    fund_file : str, optional
        Comparison fund CSV; overrides ``fund_file`` from the configuration.

    Returns
    -------
    PerformanceResult

    Raises
    ------
    PerformanceModuleException
        Any typed error from loading, aggregation or evaluation.
    """
    config = _as_portfolio_data(portfolio)
    weights = config.get_weights_table()

    returns = get_returns_dataframe(
        config.tickers, config.start_date, config.end_date,
        period=config.period, field=config.price_field,
    )
    portfolio_returns = compute_portfolio_returns_multi(returns, weights)
    baseline_returns = get_baseline_returns(
        config.baseline_ticker, config.start_date, config.end_date,
        period=config.period, field=config.price_field,
    )
    rf = get_risk_free(config, portfolio_returns.index)

    capm = capm_table_multi(portfolio_returns, baseline_returns, rf=rf, scale=config.scale)
    growth = compute_portfolio_growth(returns, weights, config.initial_investment)
    cumulative = {str(pid): v for pid, v in cumulative_return(portfolio_returns).items()}
    sharpe = {str(pid): sharpe_ratio(portfolio_returns[pid], rf) for pid in portfolio_returns.columns}
    volatility = {
        str(pid): compute_volatility(portfolio_returns[pid], scale=config.scale)
        for pid in portfolio_returns.columns
    }
    cumulative_growth = cumulative_growth_frame({
        **{str(pid): portfolio_returns[pid] for pid in portfolio_returns.columns},
        config.baseline_ticker: baseline_returns,
    })

    fund_comparison = None
    fund_path = fund_file or config.fund_file
    if fund_path:
        fund = load_fund_returns(fund_path, returns_in_percent=config.fund_returns_in_percent)
        fund_comparison = compare_with_fund(
            _monthly_portfolio_returns(config, weights, portfolio_returns),
            fund,
            how="left",
            scale=periods_per_year("monthly"),
        )

    portfolio_logger.info(
        f"Performance analysis complete: {len(weights)} portfolio(s), "
        f"{len(portfolio_returns)} {config.period} periods"
    )

    return PerformanceResult.from_analysis({
        "capm_table": capm,
        "portfolio_returns": portfolio_returns,
        "baseline_returns": baseline_returns,
        "growth": growth,
        "cumulative_returns": cumulative,
        "sharpe_ratios": sharpe,
        "volatility": volatility,
        "cumulative_growth": cumulative_growth,
        "weights": weights,
        "analysis_period": {
            "start_date": config.start_date,
            "end_date": config.end_date,
            "period": config.period,
            "periods": len(portfolio_returns),
            "first_period": portfolio_returns.index[0].date().isoformat(),
            "last_period": portfolio_returns.index[-1].date().isoformat(),
        },
        "baseline_ticker": config.baseline_ticker,
        "risk_free_rate": config.risk_free_rate,
        "initial_investment": config.initial_investment,
        "fund_comparison": fund_comparison,
    }, portfolio_name=config.portfolio_name)


@log_error_handling("high")
@log_portfolio_operation_decorator("growth_analysis")
@log_performance(10.0)
def analyze_growth(
    portfolio: Union[str, PortfolioData],
    initial_investment: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Value over time of an investment in each portfolio.

    Returns
    -------
    Dict[str, Any]
        - growth: DataFrame, one column per portfolio
        - final_values: {portfolio_id: value at the last period}
        - initial_investment, analysis_period
    """
    config = _as_portfolio_data(portfolio)
    investment = initial_investment if initial_investment is not None else config.initial_investment

    returns = get_returns_dataframe(
        config.tickers, config.start_date, config.end_date,
        period=config.period, field=config.price_field,
    )
    growth = compute_portfolio_growth(returns, config.get_weights_table(), investment)

    return {
        "growth": growth,
        "final_values": {str(pid): float(v) for pid, v in growth.iloc[-1].items()},
        "initial_investment": investment,
        "analysis_period": {
            "start_date": config.start_date,
            "end_date": config.end_date,
            "period": config.period,
            "periods": len(growth),
        },
    }
