"""Result objects for structured analysis responses."""

from typing import Dict, Any, Optional, List, Union
import pandas as pd
from datetime import datetime
from dataclasses import dataclass, field

from utils.serialization import make_json_safe

# Columns reported by the short CAPM view
CAPM_SUMMARY_COLUMNS = ["Alpha", "AnnualizedAlpha", "Beta", "Correlation", "R-squared"]


@dataclass
class PerformanceResult:
    """
    Portfolio performance analysis results.

    Holds the CAPM table against the baseline, the per-portfolio return and
    growth series, Sharpe ratios, volatility, cumulative returns, the
    ∏(1 + r) paths of every portfolio next to the baseline and, when a
    comparison fund file was supplied, the monthly Sharpe / Treynor / Jensen
    comparison table.
    """

    # CAPM statistics vs baseline, one row per portfolio
    capm_table: pd.DataFrame

    # Periodic returns, one column per portfolio
    portfolio_returns: pd.DataFrame

    # Baseline (Rb) periodic returns
    baseline_returns: pd.Series

    # Value of the initial investment over time, one column per portfolio
    growth: pd.DataFrame

    # Geometric cumulative return per portfolio
    cumulative_returns: Dict[str, float]

    # Weights table (index = portfolio id, columns = tickers)
    weights: pd.DataFrame

    # Analysis period information
    analysis_period: Dict[str, Any]

    baseline_ticker: str
    risk_free_rate: Union[float, str]
    initial_investment: float

    # Per-period Sharpe ratio against the analysis risk-free rate
    sharpe_ratios: Dict[str, float] = field(default_factory=dict)

    # {portfolio_id: {"periodic_vol", "annual_vol"}}
    volatility: Dict[str, Dict[str, float]] = field(default_factory=dict)

    # ∏(1 + r) per portfolio and for the baseline, on their common dates
    cumulative_growth: Optional[pd.DataFrame] = None

    # Comparison fund table (optional)
    fund_comparison: Optional[pd.DataFrame] = None

    # Metadata
    analysis_date: datetime = field(default_factory=datetime.now)
    portfolio_name: Optional[str] = None

    def get_capm_summary(self, columns: Optional[List[str]] = None) -> pd.DataFrame:
        """CAPM table restricted to the headline columns."""
        return self.capm_table[columns or CAPM_SUMMARY_COLUMNS]

    def get_summary(self) -> Dict[str, Any]:
        """Key metrics per portfolio."""
        final_values = self.growth.iloc[-1] if not self.growth.empty else pd.Series(dtype=float)
        summary = {}
        for pid in self.capm_table.index:
            summary[str(pid)] = {
                "cumulative_return": self.cumulative_returns.get(str(pid)),
                "alpha": float(self.capm_table.loc[pid, "Alpha"]),
                "annualized_alpha": float(self.capm_table.loc[pid, "AnnualizedAlpha"]),
                "beta": float(self.capm_table.loc[pid, "Beta"]),
                "final_value": float(final_values.get(pid, float("nan"))),
                "sharpe_ratio": self.sharpe_ratios.get(str(pid), float("nan")),
                "annual_volatility": self.volatility.get(str(pid), {}).get("annual_vol", float("nan")),
            }
        return summary

    def to_formatted_report(self) -> str:
        """Formatted text report, identical to the CLI output."""
        from helpers_display import format_performance_report
        return format_performance_report(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dictionary."""
        return make_json_safe({
            "portfolio_name": self.portfolio_name,
            "analysis_period": self.analysis_period,
            "baseline_ticker": self.baseline_ticker,
            "risk_free_rate": self.risk_free_rate,
            "initial_investment": self.initial_investment,
            "weights": self.weights.T,
            "capm_table": self.capm_table.T,
            "cumulative_returns": self.cumulative_returns,
            "sharpe_ratios": self.sharpe_ratios,
            "volatility": self.volatility,
            "cumulative_growth": self.cumulative_growth,
            "fund_comparison": self.fund_comparison.T if self.fund_comparison is not None else None,
            "portfolio_returns": self.portfolio_returns,
            "baseline_returns": self.baseline_returns,
            "growth": self.growth,
            "summary": self.get_summary(),
            "analysis_date": self.analysis_date,
            "formatted_report": self.to_formatted_report(),
        })

    @classmethod
    def from_analysis(cls, analysis: Dict[str, Any],
                      portfolio_name: Optional[str] = None) -> 'PerformanceResult':
        """Create PerformanceResult from the dict assembled by the analysis pipeline."""
        return cls(
            capm_table=analysis["capm_table"],
            portfolio_returns=analysis["portfolio_returns"],
            baseline_returns=analysis["baseline_returns"],
            growth=analysis["growth"],
            cumulative_returns=analysis["cumulative_returns"],
            sharpe_ratios=analysis.get("sharpe_ratios", {}),
            volatility=analysis.get("volatility", {}),
            cumulative_growth=analysis.get("cumulative_growth"),
            weights=analysis["weights"],
            analysis_period=analysis["analysis_period"],
            baseline_ticker=analysis["baseline_ticker"],
            risk_free_rate=analysis["risk_free_rate"],
            initial_investment=analysis["initial_investment"],
            fund_comparison=analysis.get("fund_comparison"),
            portfolio_name=portfolio_name,
        )
