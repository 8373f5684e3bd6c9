"""End-to-end pipeline tests with the price provider patched out."""
import json
from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest

from conftest import SAMPLE_YAML
from core.data_objects import PortfolioData
from core.exceptions import JoinMismatchError, MissingDataError
from core.performance_analysis import analyze_growth, analyze_performance
from core.result_objects import PerformanceResult
from performance_metrics import CAPM_COLUMNS, sharpe_ratio


class TestAnalyzePerformance:
    def test_full_pipeline_from_yaml(self, mock_prices, portfolio_yaml):
        result = analyze_performance(portfolio_yaml(SAMPLE_YAML))

        assert isinstance(result, PerformanceResult)
        assert list(result.capm_table.index) == ["1", "2"]
        assert list(result.capm_table.columns) == CAPM_COLUMNS
        assert list(result.portfolio_returns.columns) == ["1", "2"]
        assert result.analysis_period["periods"] == len(result.portfolio_returns) == 35
        assert result.baseline_returns.name == "XLK"

        fetched = {c.args[0] for c in mock_prices.call_args_list}
        assert fetched == {"AAPL", "GOOG", "NFLX", "XLK"}

    def test_growth_matches_cumulative_return(self, mock_prices, portfolio_yaml):
        result = analyze_performance(portfolio_yaml(SAMPLE_YAML))
        for pid, cum in result.cumulative_returns.items():
            assert result.growth[pid].iloc[-1] == pytest.approx(1000 * (1 + cum))

    def test_accepts_portfolio_data(self, mock_prices):
        cfg = PortfolioData.from_weights({"AAPL": 1.0}, "2019-01-01", "2020-12-31", baseline_ticker="AAPL")
        result = analyze_performance(cfg)
        assert result.capm_table.loc["1", "Beta"] == pytest.approx(1.0)
        assert result.capm_table.loc["1", "Tracking Error"] == pytest.approx(0.0)

    def test_fund_comparison(self, mock_prices, portfolio_yaml, fund_csv):
        result = analyze_performance(portfolio_yaml(SAMPLE_YAML), fund_file=fund_csv)
        assert list(result.fund_comparison.index) == ["1", "2", "fund", "market"]
        assert "sharpe_ratio" in result.get_summary()["1"]

    @pytest.mark.parametrize("period", ["weekly", "quarterly", "daily"])
    def test_fund_comparison_is_monthly_for_any_period(self, mock_prices, portfolio_yaml, fund_csv, period):
        monthly = analyze_performance(portfolio_yaml(SAMPLE_YAML), fund_file=fund_csv)
        other = analyze_performance(
            portfolio_yaml(SAMPLE_YAML + f"period: {period}\n", name=f"{period}.yaml"),
            fund_file=fund_csv,
        )
        assert other.analysis_period["period"] == period
        assert list(other.fund_comparison.index) == ["1", "2", "fund", "market"]
        pd.testing.assert_frame_equal(other.fund_comparison, monthly.fund_comparison)

    def test_sharpe_without_fund_file(self, mock_prices, portfolio_yaml):
        result = analyze_performance(portfolio_yaml(SAMPLE_YAML))
        assert result.fund_comparison is None
        summary = result.get_summary()
        for pid in ("1", "2"):
            expected = sharpe_ratio(result.portfolio_returns[pid], 0.0)
            assert summary[pid]["sharpe_ratio"] == pytest.approx(expected)
            assert result.sharpe_ratios[pid] == pytest.approx(expected)
        assert "SHARPE RATIO" in result.to_formatted_report()

    def test_sharpe_uses_risk_free_rate(self, mock_prices, portfolio_yaml):
        result = analyze_performance(portfolio_yaml(SAMPLE_YAML + "risk_free_rate: 0.024\n"))
        expected = sharpe_ratio(result.portfolio_returns["1"], 0.002)
        assert result.sharpe_ratios["1"] == pytest.approx(expected)

    def test_volatility_and_cumulative_growth(self, mock_prices, portfolio_yaml):
        result = analyze_performance(portfolio_yaml(SAMPLE_YAML + "period: weekly\n"))
        vol = result.volatility["1"]
        assert vol["annual_vol"] == pytest.approx(result.portfolio_returns["1"].std() * np.sqrt(52))
        assert result.get_summary()["1"]["annual_volatility"] == pytest.approx(vol["annual_vol"])

        paths = result.cumulative_growth
        assert list(paths.columns) == ["1", "2", "XLK"]
        assert paths["1"].iloc[-1] - 1 == pytest.approx(result.cumulative_returns["1"])
        payload = result.to_dict()
        assert set(payload["cumulative_growth"]) == {"1", "2", "XLK"}
        assert set(payload["sharpe_ratios"]) == {"1", "2"}

    def test_treasury_risk_free(self, mock_prices, portfolio_yaml):
        months = pd.date_range("2019-01-31", "2021-12-31", freq="ME")
        rates = pd.Series(2.4, index=months, name="treasury_month3")
        with patch("run_portfolio_performance.fetch_monthly_treasury_rates", return_value=rates) as mock_rates:
            with_rf = analyze_performance(portfolio_yaml(SAMPLE_YAML + "risk_free_rate: treasury\n"))
        mock_rates.assert_called_once_with("month3", "2019-01-01", "2021-12-31")
        without_rf = analyze_performance(portfolio_yaml(SAMPLE_YAML, name="plain.yaml"))
        # a constant risk-free rate moves alpha but not beta
        assert with_rf.capm_table["Beta"].values == pytest.approx(without_rf.capm_table["Beta"].values)
        assert not np.allclose(with_rf.capm_table["Alpha"], without_rf.capm_table["Alpha"])

    def test_missing_ticker_propagates(self, portfolio_yaml):
        def fetch(ticker, *args):
            if ticker == "NFLX":
                raise MissingDataError("no data", ticker=ticker)
            from conftest import synthetic_prices
            return synthetic_prices(ticker, *args)

        with patch("run_portfolio_performance.fetch_price_history", side_effect=fetch):
            with pytest.raises(MissingDataError) as exc:
                analyze_performance(portfolio_yaml(SAMPLE_YAML))
        assert exc.value.ticker == "NFLX"

    def test_baseline_outside_window(self, portfolio_yaml):
        from conftest import synthetic_prices

        def fetch(ticker, start, end, field="adjClose"):
            if ticker == "XLK":
                return synthetic_prices(ticker, "2005-01-01", "2007-12-31")
            return synthetic_prices(ticker, start, end)

        with patch("run_portfolio_performance.fetch_price_history", side_effect=fetch):
            with pytest.raises(JoinMismatchError):
                analyze_performance(portfolio_yaml(SAMPLE_YAML))

    def test_result_is_json_serializable(self, mock_prices, portfolio_yaml, fund_csv):
        result = analyze_performance(portfolio_yaml(SAMPLE_YAML), fund_file=fund_csv)
        payload = json.loads(json.dumps(result.to_dict()))
        assert set(payload["capm_table"]) == {"1", "2"}
        assert "Alpha" in payload["capm_table"]["1"]
        assert payload["formatted_report"].startswith("=")
        assert "COMPARISON FUND" in payload["formatted_report"]


class TestAnalyzeGrowth:
    def test_override_investment(self, mock_prices, portfolio_yaml):
        out = analyze_growth(portfolio_yaml(SAMPLE_YAML), initial_investment=250)
        assert out["initial_investment"] == 250
        assert set(out["final_values"]) == {"1", "2"}
        growth = out["growth"]
        assert out["final_values"]["1"] == pytest.approx(growth["1"].iloc[-1])

    def test_does_not_fetch_baseline(self, mock_prices, portfolio_yaml):
        analyze_growth(portfolio_yaml(SAMPLE_YAML))
        assert "XLK" not in {c.args[0] for c in mock_prices.call_args_list}
