"""
Tests for entity classes.

Tests cover:
- Sample validation (calendar dates, finite numbers)
- TimeSeries construction, slicing and pandas conversion
- Derived fields of the record types
"""

import pytest
import numpy as np
import pandas as pd
from quantdash.entities import (
    Sample, TimeSeries, COTRecord, TermStructurePoint, VRPRecord,
    CreditSpreadRecord, GlobalOpenInterest, Liquidation, FundingHeatmap,
    require_finite, records_to_frame
)
from quantdash.errors import InvalidArgumentError


class TestSample:
    """Tests for Sample class."""

    def test_valid_sample(self):
        sample = Sample("2024-03-15", 12)

        assert sample.date == "2024-03-15"
        assert sample.value == 12.0
        assert isinstance(sample.value, float)

    @pytest.mark.parametrize("bad_date", ["2024-13-01", "2024-1-01", "2024-03-15T00:00", 20240315, None])
    def test_invalid_date_raises(self, bad_date):
        with pytest.raises(InvalidArgumentError):
            Sample(bad_date, 1.0)

    @pytest.mark.parametrize("bad_value", [float("nan"), float("inf"), -float("inf"), None, "1.0"])
    def test_invalid_value_raises(self, bad_value):
        with pytest.raises(InvalidArgumentError):
            Sample("2024-03-15", bad_value)

    def test_frozen(self):
        sample = Sample("2024-03-15", 1.0)
        with pytest.raises(Exception):
            sample.value = 2.0

    def test_require_finite_numpy(self):
        assert require_finite(np.float64(1.5)) == 1.5


class TestTimeSeries:
    """Tests for TimeSeries class."""

    def test_from_pairs(self):
        series = TimeSeries.from_pairs([("2024-01-01", 1), ("2024-01-02", 2)], name="x")

        assert len(series) == 2
        assert series.name == "x"
        assert series.dates == ["2024-01-01", "2024-01-02"]
        np.testing.assert_array_equal(series.values, [1.0, 2.0])
        assert series.latest == Sample("2024-01-02", 2.0)

    def test_rejects_non_samples(self):
        with pytest.raises(InvalidArgumentError):
            TimeSeries([("2024-01-01", 1.0)])

    def test_empty(self):
        series = TimeSeries()

        assert len(series) == 0
        assert series.latest is None
        assert series.values.size == 0

    def test_slice_returns_series(self):
        series = TimeSeries.from_pairs([("2024-01-01", 1), ("2024-01-02", 2), ("2024-01-03", 3)], name="x")
        tail = series[1:]

        assert isinstance(tail, TimeSeries)
        assert tail.name == "x"
        assert tail.dates == ["2024-01-02", "2024-01-03"]
        assert series[-1].value == 3.0

    def test_sorted_and_duplicates(self):
        ordered = TimeSeries.from_pairs([("2024-01-01", 1), ("2024-01-02", 2)])
        unordered = TimeSeries.from_pairs([("2024-01-02", 1), ("2024-01-01", 2)])
        duplicated = TimeSeries.from_pairs([("2024-01-01", 1), ("2024-01-01", 2)])

        assert ordered.is_sorted and not ordered.has_duplicate_dates
        assert not unordered.is_sorted
        assert duplicated.is_sorted and duplicated.has_duplicate_dates

    def test_from_pandas_drops_missing(self):
        raw = pd.Series([1.0, np.nan, 3.0], index=pd.date_range("2024-01-01", periods=3), name="VIXCLS")
        series = TimeSeries.from_pandas(raw)

        assert series.dates == ["2024-01-01", "2024-01-03"]
        assert series.name == "VIXCLS"

    def test_from_pandas_coerces_text(self):
        """FRED marks missing observations with "."."""
        raw = pd.Series(["1.5", ".", "2.5"], index=pd.date_range("2024-01-01", periods=3))
        series = TimeSeries.from_pandas(raw, name="x")

        np.testing.assert_array_equal(series.values, [1.5, 2.5])

    def test_to_pandas(self):
        series = TimeSeries.from_pairs([("2024-01-01", 1), ("2024-01-02", 2)], name="x")
        frame = series.to_pandas()

        assert frame.name == "x"
        assert list(frame.values) == [1.0, 2.0]
        assert frame.index[0] == pd.Timestamp("2024-01-01")

    def test_equality(self):
        a = TimeSeries.from_pairs([("2024-01-01", 1)])
        b = TimeSeries.from_pairs([("2024-01-01", 1.0)])

        assert a == b
        assert a != TimeSeries()


class TestRecords:
    """Tests for derived record fields."""

    def test_cot_nets(self):
        record = COTRecord("2024-01-02", 100, 300, 250, 50, 10, 20)

        assert record.commercial_net == -200
        assert record.large_spec_net == 200
        assert record.small_spec_net == -10
        assert record.to_dict()["commercial_net"] == -200

    def test_cot_invalid_date(self):
        with pytest.raises(InvalidArgumentError):
            COTRecord("not-a-date", 1, 1, 1, 1)

    def test_vrp_derived(self):
        assert VRPRecord("2024-01-01", iv=60.0, rv=45.5).vrp == 14.5

    def test_credit_spread_derived(self):
        assert CreditSpreadRecord("2024-01-01", hy=4.0, ig=1.5).spread == 2.5

    def test_global_oi_others(self):
        point = GlobalOpenInterest("2024-01-01", global_oi=40.0, btc=20.0, eth=8.0)

        assert point.others == 12.0
        assert point.to_dict()["others"] == 12.0

    def test_liquidation_total(self):
        assert Liquidation(0, 1.5, 2.5).total_liquidations == 4.0

    def test_term_structure_point_iv(self):
        point = TermStructurePoint("1m", 30, 60.0, 48.0, 72.0, 60.0, 55.0, 65.0)

        assert point.iv == 60.0
        assert point.to_dict()["iv"] == 60.0

    def test_heatmap_shape_checked(self):
        with pytest.raises(InvalidArgumentError):
            FundingHeatmap(dates=("2024-01-01",), symbols=("BTC", "ETH"), data=((1.0,),))
        with pytest.raises(InvalidArgumentError):
            FundingHeatmap(dates=("2024-01-01", "2024-01-02"), symbols=("BTC",), data=((1.0,),))

    def test_records_to_frame(self):
        frame = records_to_frame([VRPRecord("2024-01-01", 60.0, 50.0), VRPRecord("2024-01-02", 61.0, 50.0)])

        assert list(frame.columns) == ["date", "iv", "rv", "vrp"]
        assert list(frame["vrp"]) == [10.0, 11.0]
