"""Tests for weight validation and portfolio aggregation."""
import numpy as np
import pandas as pd
import pytest

from core.exceptions import MisalignedWeightsError
from portfolio_returns import (
    build_weights_table,
    compute_portfolio_growth,
    compute_portfolio_returns,
    compute_portfolio_returns_multi,
    normalize_weights,
    repeat_returns,
    validate_weights,
)


@pytest.fixture
def two_asset_returns():
    return pd.DataFrame(
        {"A": [0.05, -0.02], "B": [0.03, 0.04]},
        index=pd.to_datetime(["2020-02-29", "2020-03-31"]),
    )


@pytest.fixture
def three_asset_returns():
    rng = np.random.default_rng(11)
    index = pd.date_range("2020-01-31", periods=24, freq="ME")
    return pd.DataFrame(rng.normal(0.01, 0.05, (24, 3)), index=index, columns=["AAPL", "GOOG", "NFLX"])


class TestValidateWeights:
    def test_sequence_in_asset_order(self):
        w = validate_weights([0.2, 0.8], ["A", "B"])
        assert w.to_dict() == {"A": 0.2, "B": 0.8}

    def test_mapping_is_reordered_to_assets(self):
        w = validate_weights({"B": 0.8, "A": 0.2}, ["A", "B"])
        assert list(w.index) == ["A", "B"]

    def test_sum_within_tolerance(self):
        validate_weights([0.5, 0.5 + 5e-7], ["A", "B"])

    @pytest.mark.parametrize("weights", [
        [0.5, 0.4],
        [0.5, 0.25, 0.25],
        {"A": 1.0},
        {"A": 0.5, "B": 0.25, "C": 0.25},
        {"A": 0.5, "C": 0.5},
    ])
    def test_misaligned(self, weights):
        with pytest.raises(MisalignedWeightsError):
            validate_weights(weights, ["A", "B"])

    def test_normalize_to_gross_exposure(self):
        assert normalize_weights({"A": 2, "B": 2}, normalize=True) == {"A": 0.5, "B": 0.5}
        assert validate_weights({"A": 3, "B": 1}, ["A", "B"], normalize=True).tolist() == [0.75, 0.25]

    def test_normalize_zero_exposure(self):
        with pytest.raises(MisalignedWeightsError):
            normalize_weights({"A": 0.0}, normalize=True)

    def test_normalize_long_short(self):
        w = validate_weights({"A": 1.5, "B": -0.5}, ["A", "B"], normalize=True)
        assert w.tolist() == pytest.approx([0.75, -0.25])

    def test_long_short_without_normalize_must_sum_to_one(self):
        validate_weights({"A": 1.5, "B": -0.5}, ["A", "B"])
        with pytest.raises(MisalignedWeightsError):
            validate_weights({"A": 0.75, "B": -0.25}, ["A", "B"])

    def test_non_string_asset_labels(self):
        w = validate_weights({"0": 0.25, "1": 0.75}, [0, 1])
        assert list(w.index) == [0, 1]
        assert w.tolist() == [0.25, 0.75]
        rets = pd.DataFrame({0: [0.04, 0.0], 1: [0.0, 0.04]})
        port = compute_portfolio_returns(rets, {0: 0.25, 1: 0.75})
        assert port.tolist() == pytest.approx([0.01, 0.03])


class TestSinglePortfolio:
    def test_equal_weights_example(self, two_asset_returns):
        port = compute_portfolio_returns(two_asset_returns, [0.5, 0.5])
        assert port.tolist() == pytest.approx([0.04, 0.01])

    def test_full_weight_on_one_asset(self):
        rets = pd.DataFrame({"A": [0.10, 0.10]})
        assert compute_portfolio_returns(rets, [1.0]).tolist() == pytest.approx([0.10, 0.10])
        assert compute_portfolio_returns(rets, [1.0], wealth_index=True).tolist() == pytest.approx([1.10, 1.21])

    def test_is_dot_product(self, three_asset_returns):
        weights = {"NFLX": 0.2, "AAPL": 0.5, "GOOG": 0.3}
        port = compute_portfolio_returns(three_asset_returns, weights)
        expected = three_asset_returns.values @ np.array([0.5, 0.3, 0.2])
        assert port.values == pytest.approx(expected)

    def test_rows_with_missing_returns_are_excluded(self):
        rets = pd.DataFrame({"A": [0.1, np.nan, 0.2], "B": [0.0, 0.1, 0.0]})
        port = compute_portfolio_returns(rets, [0.5, 0.5])
        assert list(port.index) == [0, 2]

    def test_input_is_not_modified(self, three_asset_returns):
        before = three_asset_returns.copy()
        compute_portfolio_returns(three_asset_returns, [0.2, 0.3, 0.5], wealth_index=True)
        pd.testing.assert_frame_equal(three_asset_returns, before)

    def test_misaligned_weights(self, two_asset_returns):
        with pytest.raises(MisalignedWeightsError):
            compute_portfolio_returns(two_asset_returns, [1.0])


class TestMultiplePortfolios:
    def test_repeat_returns(self, two_asset_returns):
        stacked = repeat_returns(two_asset_returns, 3)
        assert stacked.index.names[0] == "portfolio"
        assert len(stacked) == 3 * len(two_asset_returns)
        assert sorted(stacked.index.get_level_values("portfolio").unique()) == [1, 2, 3]

    def test_build_weights_table(self):
        table = build_weights_table(
            ["AAPL", "GOOG", "NFLX"],
            [0.50, 0.25, 0.25,
             0.25, 0.50, 0.25,
             0.25, 0.25, 0.50],
            n=3,
        )
        assert table.index.name == "portfolio"
        assert list(table.index) == [1, 2, 3]
        assert table.loc[3, "NFLX"] == 0.50
        with pytest.raises(MisalignedWeightsError):
            build_weights_table(["A", "B"], [1.0, 0.0, 0.5], n=2)

    def test_each_portfolio_matches_single_computation(self, three_asset_returns):
        table = build_weights_table(
            ["AAPL", "GOOG", "NFLX"],
            [0.50, 0.25, 0.25, 0.25, 0.50, 0.25, 0.25, 0.25, 0.50],
            n=3,
        )
        multi = compute_portfolio_returns_multi(three_asset_returns, table)
        assert list(multi.columns) == [1, 2, 3]
        assert multi.columns.name == "portfolio"
        for pid, row in table.iterrows():
            single = compute_portfolio_returns(three_asset_returns, row.to_dict())
            assert multi[pid].values == pytest.approx(single.values)

    def test_long_table_and_mapping_inputs(self, three_asset_returns):
        long = pd.DataFrame({
            "portfolio": ["x", "x", "x", "y", "y", "y"],
            "asset": ["AAPL", "GOOG", "NFLX"] * 2,
            "weight": [1.0, 0.0, 0.0, 0.0, 0.0, 1.0],
        })
        from_long = compute_portfolio_returns_multi(three_asset_returns, long)
        from_mapping = compute_portfolio_returns_multi(
            three_asset_returns, {"x": [1.0, 0.0, 0.0], "y": {"AAPL": 0, "GOOG": 0, "NFLX": 1}}
        )
        pd.testing.assert_frame_equal(from_long, from_mapping)
        assert from_long["y"].values == pytest.approx(three_asset_returns["NFLX"].values)

    def test_one_bad_portfolio_fails_the_batch(self, three_asset_returns):
        with pytest.raises(MisalignedWeightsError):
            compute_portfolio_returns_multi(
                three_asset_returns, {"ok": [0.2, 0.3, 0.5], "bad": [0.2, 0.3, 0.4]}
            )

    def test_wealth_index_per_portfolio(self, three_asset_returns):
        wealth = compute_portfolio_returns_multi(
            three_asset_returns, {"1": [0.2, 0.3, 0.5], "2": [0.6, 0.2, 0.2]}, wealth_index=True
        )
        rets = compute_portfolio_returns_multi(
            three_asset_returns, {"1": [0.2, 0.3, 0.5], "2": [0.6, 0.2, 0.2]}
        )
        pd.testing.assert_frame_equal(wealth, (1 + rets).cumprod())


class TestGrowth:
    def test_single_growth(self):
        rets = pd.DataFrame({"A": [0.10, 0.10]})
        growth = compute_portfolio_growth(rets, {"A": 1.0}, initial_investment=1000)
        assert growth.tolist() == pytest.approx([1100.0, 1210.0])

    def test_default_investment(self):
        rets = pd.DataFrame({"A": [0.10]})
        assert compute_portfolio_growth(rets, [1.0]).iloc[-1] == pytest.approx(1100.0)

    def test_multi_growth(self, two_asset_returns):
        table = pd.DataFrame([[0.5, 0.5], [1.0, 0.0]], index=["1", "2"], columns=["A", "B"])
        growth = compute_portfolio_growth(two_asset_returns, table, initial_investment=100)
        assert list(growth.columns) == ["1", "2"]
        assert growth["1"].tolist() == pytest.approx([104.0, 105.04])
        assert growth["2"].tolist() == pytest.approx([105.0, 102.9])
