import pytest

from energiwatch.charts import (
    aggregate,
    build_chart_frame,
    chart_title,
    expand_to_month,
    format_tooltip,
    synthesize_hourly_profile,
    time_labels,
    x_axis_title,
)
from energiwatch.models import EnergySeries

MONTH = [6.0] + [round(1 + i * 0.1, 2) for i in range(29)]


def test_day_view_synthesises_solar_from_first_day():
    hourly = aggregate(MONTH, "day", is_solar=True)
    assert len(hourly) == 24
    assert sum(hourly) == pytest.approx(6.0, abs=0.02)
    assert all(v >= 0 for v in hourly)
    assert all(hourly[h] == 0 for h in list(range(0, 6)) + list(range(20, 24)))
    assert max(hourly) == hourly[13]


def test_day_view_passes_usage_through():
    hourly_usage = [float(h) for h in range(30)]
    assert aggregate(hourly_usage, "day") == hourly_usage[:24]


def test_week_and_month_views_truncate():
    assert aggregate(MONTH, "week") == MONTH[:7]
    assert aggregate(MONTH + [99.0], "month") == MONTH
    assert aggregate(MONTH, "week", is_solar=True) == MONTH[:7]


def test_month_view_does_not_pad_short_series():
    assert aggregate([1.0, 2.0, 3.0], "month") == [1.0, 2.0, 3.0]


def test_empty_series_aggregates_to_nothing():
    assert aggregate([], "day", is_solar=True) == []
    assert aggregate(None, "month") == []


def test_aggregate_accepts_tagged_series():
    series = EnergySeries.from_values([2.0] * 7)
    assert aggregate(series, "week") == [2.0] * 7


def test_solar_profile_shape_and_total():
    profile = synthesize_hourly_profile(12.34, "solar")
    assert len(profile) == 24
    assert sum(profile) == pytest.approx(12.34, abs=12.34 * 0.003)
    assert profile[5] == 0 and profile[20] == 0
    assert profile[6] > 0 and profile[19] > 0


def test_usage_profile_total(rng):
    profile = synthesize_hourly_profile(18.5, "usage", rng=rng)
    assert len(profile) == 24
    assert all(v > 0 for v in profile)
    assert sum(profile) == pytest.approx(18.5, abs=18.5 * 0.003)


@pytest.mark.parametrize("total", [0, -3, None, "n/a"])
def test_profile_of_nothing_is_zeros(total):
    assert synthesize_hourly_profile(total, "solar") == [0.0] * 24


def test_expand_to_month_cycles_short_series():
    expanded = expand_to_month([1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0])
    assert len(expanded) == 30
    assert expanded[7] == 1.0
    assert expand_to_month(MONTH) == MONTH
    assert expand_to_month([]) == []


def test_labels_and_titles():
    assert time_labels("day")[0] == "00:00"
    assert time_labels("week") == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    assert time_labels("month")[-1] == "Day 30"
    assert chart_title("day") == "Hourly Energy Usage"
    assert x_axis_title("week") == "Day of Week"
    assert chart_title("year") == "Energy Usage"


def test_format_tooltip():
    assert format_tooltip("13:00", "Solar Generation (kWh)", 1.234, "day") == "Solar Generation (kWh) at 13:00: 1.23 kWh"
    assert format_tooltip("Mon", "Energy Usage (kWh)", 12, "week") == "Energy Usage (kWh) on Mon: 12.00 kWh"


def test_build_chart_frame():
    frame = build_chart_frame([10.0] * 7, [3.0] * 7, "week")
    assert list(frame.columns) == ['period', 'order', 'series', 'kwh', 'tooltip']
    assert len(frame) == 14
    assert set(frame['series']) == {"Energy Usage (kWh)", "Solar Generation (kWh)"}
    assert frame.iloc[0]['period'] == "Mon"
    assert frame.iloc[0]['tooltip'] == "Energy Usage (kWh) on Mon: 10.00 kWh"
    assert frame.iloc[-1]['tooltip'] == "Solar Generation (kWh) on Sun: 3.00 kWh"


def test_build_chart_frame_empty():
    assert build_chart_frame([], [], "month").empty
