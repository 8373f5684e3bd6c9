"""
Core Data Objects Module

Data structures for portfolio performance analysis with input validation and caching.

Classes:
- PortfolioData: Tickers, one or more named weight vectors, and the analysis
  window / baseline / risk-free configuration.

Usage: Foundation object for the performance analysis pipeline.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Union
import pandas as pd
import yaml
import hashlib
import json
from datetime import datetime

from settings import PORTFOLIO_DEFAULTS
from core.exceptions import (
    DataLoadingError,
    MalformedDateError,
    PortfolioValidationError,
    ValidationError,
)
from portfolio_returns import validate_weights
from return_utils import periods_per_year
from performance_metrics import FUND_COMPARISON_ROWS


@dataclass
class PortfolioData:
    """
    Portfolio performance configuration with validation and caching.

    Portfolios may be given per ticker or as a list in ticker order:

        tickers: [AAPL, GOOG, NFLX]
        portfolios:
          "1": [0.50, 0.25, 0.25]
          "2": {AAPL: 0.25, GOOG: 0.50, NFLX: 0.25}

    Construction methods:
    - from_yaml(): Load complete configuration from YAML file
    - from_weights(): Single portfolio from a {ticker: weight} mapping

    Example:
        portfolio_data = PortfolioData.from_weights(
            {"AAPL": 0.4, "GOOG": 0.3, "NFLX": 0.3},
            "2010-01-01", "2018-06-01"
        )
        table = portfolio_data.get_weights_table()
    """

    # Universe and weights
    tickers: List[str]
    portfolios: Dict[str, Union[Dict[str, float], List[float]]]

    # Analysis window
    start_date: str = PORTFOLIO_DEFAULTS["start_date"]
    end_date: str = PORTFOLIO_DEFAULTS["end_date"]

    # Return / comparison configuration
    period: str = PORTFOLIO_DEFAULTS["period"]
    price_field: str = PORTFOLIO_DEFAULTS["price_field"]
    baseline_ticker: str = PORTFOLIO_DEFAULTS["baseline_ticker"]
    risk_free_rate: Union[float, str] = PORTFOLIO_DEFAULTS["risk_free_rate"]
    initial_investment: float = PORTFOLIO_DEFAULTS["initial_investment"]
    normalize_weights: bool = PORTFOLIO_DEFAULTS["normalize_weights"]
    fund_file: Optional[str] = None
    fund_returns_in_percent: bool = False

    # Portfolio name for identification
    portfolio_name: Optional[str] = None

    # Caching and metadata
    _cache_key: Optional[str] = field(default=None, repr=False)
    _last_updated: Optional[datetime] = field(default=None, repr=False)

    def __post_init__(self):
        """
        Validate and normalize the configuration.

        Raises:
            PortfolioValidationError: empty universe, no portfolios, or a portfolio
                id reserved for the comparison-fund table ("fund", "market")
            MalformedDateError: unparseable start/end dates
            MisalignedWeightsError: a weight vector that does not fit the tickers
            ValidationError: unknown periodicity or risk-free source
        """
        if not self.tickers:
            raise PortfolioValidationError("Tickers cannot be empty", portfolio_data=self.tickers)
        self.tickers = [str(t).upper() for t in self.tickers]
        if len(set(self.tickers)) != len(self.tickers):
            raise PortfolioValidationError(f"Duplicate tickers: {self.tickers}", portfolio_data=self.tickers)

        if not self.portfolios or not isinstance(self.portfolios, dict):
            raise PortfolioValidationError("At least one portfolio is required", portfolio_data=self.portfolios)
        self.portfolios = {
            str(pid): ({str(k).upper(): float(v) for k, v in w.items()} if isinstance(w, dict) else [float(v) for v in w])
            for pid, w in self.portfolios.items()
        }
        reserved = [pid for pid in self.portfolios if pid in FUND_COMPARISON_ROWS]
        if reserved:
            raise PortfolioValidationError(
                f"Portfolio ids {reserved} are reserved for the comparison-fund table",
                portfolio_data=reserved,
            )
        for w in self.portfolios.values():
            validate_weights(w, self.tickers, normalize=self.normalize_weights)

        for label in ("start_date", "end_date"):
            value = getattr(self, label)
            try:
                parsed = pd.to_datetime(value)
            except (TypeError, ValueError) as e:
                raise MalformedDateError(f"Invalid {label}: {value!r}", values=[value]) from e
            if parsed is None or pd.isna(parsed):
                raise MalformedDateError(f"Missing {label}", values=[value])
            setattr(self, label, parsed.date().isoformat())
        if self.start_date >= self.end_date:
            raise PortfolioValidationError(
                f"start_date {self.start_date} must precede end_date {self.end_date}",
                portfolio_data=(self.start_date, self.end_date),
            )

        periods_per_year(self.period)
        if isinstance(self.risk_free_rate, str) and self.risk_free_rate != "treasury":
            raise ValidationError(
                f"risk_free_rate must be a number or 'treasury', got {self.risk_free_rate!r}",
                data=self.risk_free_rate,
            )
        self.baseline_ticker = self.baseline_ticker.upper()

        if not self.portfolio_name:
            self.portfolio_name = "+".join(self.tickers)

        self._cache_key = self._generate_cache_key()
        self._last_updated = datetime.now()

    @property
    def scale(self) -> int:
        """Periods per year for the configured periodicity."""
        return periods_per_year(self.period)

    def get_cache_key(self) -> str:
        return self._cache_key

    def _generate_cache_key(self) -> str:
        """Generate cache key for this configuration."""
        key_data = {
            "tickers": self.tickers,
            "portfolios": self.portfolios,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "period": self.period,
            "price_field": self.price_field,
            "baseline_ticker": self.baseline_ticker,
            "risk_free_rate": self.risk_free_rate,
            "fund_file": self.fund_file,
        }
        json_str = json.dumps(key_data, sort_keys=True)
        return hashlib.md5(json_str.encode()).hexdigest()

    def get_weights_table(self) -> pd.DataFrame:
        """
        Weights as a table: index = portfolio id, columns = tickers.
        """
        rows = {
            pid: validate_weights(w, self.tickers, normalize=self.normalize_weights)
            for pid, w in self.portfolios.items()
        }
        table = pd.DataFrame(rows).T[self.tickers]
        table.index.name = "portfolio"
        return table

    def get_tickers(self) -> List[str]:
        return list(self.tickers)

    @classmethod
    def from_weights(cls, weights: Dict[str, float],
                     start_date: Optional[str] = None,
                     end_date: Optional[str] = None,
                     **kwargs) -> 'PortfolioData':
        """
        Single portfolio (id "1") from a {ticker: weight} mapping.
        """
        return cls(
            tickers=list(weights),
            portfolios={"1": dict(weights)},
            start_date=start_date or PORTFOLIO_DEFAULTS["start_date"],
            end_date=end_date or PORTFOLIO_DEFAULTS["end_date"],
            **kwargs,
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'PortfolioData':
        """
        Load a configuration from YAML.

        Required keys: ``tickers`` and either ``portfolios`` (id → weights)
        or ``weights`` (one portfolio). Every other key is optional and falls
        back to ``PORTFOLIO_DEFAULTS``.
        """
        try:
            with open(yaml_path, "r") as f:
                cfg: Dict[str, Any] = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise DataLoadingError(f"Cannot read portfolio file {yaml_path}: {e}", source=yaml_path) from e

        if "tickers" not in cfg:
            raise PortfolioValidationError(f"{yaml_path}: 'tickers' is required", portfolio_data=cfg)
        if "portfolios" in cfg:
            portfolios = cfg["portfolios"]
        elif "weights" in cfg:
            portfolios = {"1": cfg["weights"]}
        else:
            raise PortfolioValidationError(f"{yaml_path}: 'portfolios' or 'weights' is required", portfolio_data=cfg)

        known = {
            "start_date", "end_date", "period", "price_field", "baseline_ticker",
            "risk_free_rate", "initial_investment", "normalize_weights",
            "fund_file", "fund_returns_in_percent", "portfolio_name",
        }
        options = {k: v for k, v in cfg.items() if k in known}
        for k in ("start_date", "end_date"):
            if k in options:
                options[k] = str(options[k])
        return cls(tickers=cfg["tickers"], portfolios=portfolios, **options)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tickers": self.tickers,
            "portfolios": self.portfolios,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "period": self.period,
            "price_field": self.price_field,
            "baseline_ticker": self.baseline_ticker,
            "risk_free_rate": self.risk_free_rate,
            "initial_investment": self.initial_investment,
            "fund_file": self.fund_file,
            "portfolio_name": self.portfolio_name,
        }

    def __hash__(self) -> int:
        return hash(self._cache_key)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PortfolioData):
            return False
        return self._cache_key == other._cache_key
