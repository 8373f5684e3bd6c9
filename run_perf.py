#!/usr/bin/env python3
# coding: utf-8

# In[ ]:


# File: run_perf.py

import argparse
import json
from typing import Optional, Dict, Any

from run_portfolio_performance import (
    load_portfolio_config,
    display_portfolio_config,
    display_performance_result,
    display_growth,
)
from core.performance_analysis import analyze_performance, analyze_growth
from core.exceptions import PerformanceModuleException
from helpers_display import format_growth_table
from utils.serialization import make_json_safe

# Import logging decorators
from utils.logging import (
    log_error_json,
    log_portfolio_operation_decorator,
    log_performance,
)

"""
Portfolio Performance CLI & API Interface Module

Every entry point follows the dual-mode pattern:

    function_name(parameters, *, return_data: bool = False)

CLI Mode (default, return_data=False):
    - Prints the formatted report to stdout
    - Example: python run_perf.py --portfolio portfolio.yaml

API Mode (return_data=True):
    - Returns a structured dictionary with the analysis data and the same
      formatted report the CLI prints
    - Example: result = run_portfolio_performance("portfolio.yaml", return_data=True)

Typed analysis errors are caught here and only here: printed in CLI mode,
returned as {"error": ...} in API mode.
"""


def _error_payload(e: PerformanceModuleException) -> Dict[str, Any]:
    return {
        "error": str(e),
        "error_type": type(e).__name__,
    }


# ============================================================================
# PERFORMANCE ANALYSIS
# ============================================================================
@log_portfolio_operation_decorator("portfolio_performance")
@log_performance(20.0)
def run_portfolio_performance(
    filepath: str,
    *,
    fund_file: Optional[str] = None,
    return_data: bool = False,
):
    """
    Full performance report for the portfolios in a YAML file.

    Workflow
    --------
    * Parse the portfolio YAML file into :class:`core.data_objects.PortfolioData`.
    * Run :func:`core.performance_analysis.analyze_performance` (prices →
      returns → portfolios → CAPM vs baseline, growth, fund comparison).
    * Print or return the result.

    Parameters
    ----------
    filepath : str
        Path to the portfolio YAML file.
    fund_file : str, optional
        Comparison fund CSV, overrides ``fund_file`` in the YAML.
    return_data : bool, default False
        If True, return structured data for API usage. If False, print.

    Returns
    -------
    dict or None
        API mode: ``PerformanceResult.to_dict()`` (includes ``formatted_report``)
        or ``{"error": ..., "error_type": ...}``.
    """
    try:
        config = load_portfolio_config(filepath)
        result = analyze_performance(config, fund_file=fund_file)
    except PerformanceModuleException as e:
        log_error_json("run_portfolio_performance", {"filepath": filepath, "fund_file": fund_file}, e)
        if return_data:
            return _error_payload(e)
        print(f"❌ Performance analysis failed: {e}")
        return None

    if return_data:
        return result.to_dict()

    print("📊 Portfolio Performance Analysis")
    print("=" * 50)
    print(f"📁 Portfolio file: {filepath}")
    display_portfolio_config(config)
    print()
    display_performance_result(result)
    return None


# ============================================================================
# GROWTH OF AN INVESTMENT
# ============================================================================
@log_portfolio_operation_decorator("portfolio_growth")
@log_performance(10.0)
def run_portfolio_growth(
    filepath: str,
    initial_investment: Optional[float] = None,
    *,
    return_data: bool = False,
):
    """
    Value over time of an initial investment in each portfolio.

    Returns
    -------
    dict or None
        API mode: growth table (JSON-safe), final values, the investment,
        the analysis period and the formatted report.
    """
    try:
        growth = analyze_growth(filepath, initial_investment)
    except PerformanceModuleException as e:
        log_error_json("run_portfolio_growth", {"filepath": filepath, "initial_investment": initial_investment}, e)
        if return_data:
            return _error_payload(e)
        print(f"❌ Growth analysis failed: {e}")
        return None

    if return_data:
        payload = make_json_safe(growth)
        payload["formatted_report"] = format_growth_table(growth["growth"])
        return payload

    display_growth(growth["growth"], growth["initial_investment"])
    return None


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Portfolio performance vs baseline and comparison fund")
    parser.add_argument("--portfolio", type=str, help="Path to YAML portfolio file")
    parser.add_argument("--growth", action="store_true", help="Only show the growth of the initial investment")
    parser.add_argument("--investment", type=float, help="Initial investment for --growth (overrides YAML)")
    parser.add_argument("--fund-file", type=str, help="Comparison fund CSV (overrides YAML)")
    parser.add_argument("--json", action="store_true", help="Print structured JSON instead of the text report")
    args = parser.parse_args()

    if args.portfolio and args.growth:
        if args.json:
            print(json.dumps(run_portfolio_growth(args.portfolio, args.investment, return_data=True), indent=2))
        else:
            run_portfolio_growth(args.portfolio, args.investment)

    elif args.portfolio:
        if args.json:
            print(json.dumps(run_portfolio_performance(args.portfolio, fund_file=args.fund_file, return_data=True), indent=2))
        else:
            run_portfolio_performance(args.portfolio, fund_file=args.fund_file)

    else:
        parser.print_help()


# In[ ]:
