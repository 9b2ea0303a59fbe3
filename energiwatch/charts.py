"""
Shapes stored series into what the day / week / month chart views display.
"""
import numpy as np
import pandas as pd

from .config import DAYS_PER_MONTH
from .models import EnergySeries, to_number

VIEWS = ("day", "week", "month")
WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# Solar only produces between these hours (inclusive), peaking at 13:00
SOLAR_START_HOUR = 6
SOLAR_END_HOUR = 19
SOLAR_PEAK_HOUR = 13


def _solar_weights():
    weights = np.zeros(24)
    for hour in range(SOLAR_START_HOUR, SOLAR_END_HOUR + 1):
        distance = hour - SOLAR_PEAK_HOUR
        weights[hour] = np.exp(-(distance * distance) / 18) * 2
    return weights


def _usage_weights(rng):
    weights = np.zeros(24)
    for hour in range(24):
        if hour < 6:
            value = 0.5 + rng.random() * 0.5   # night
        elif hour < 9:
            value = 1.5 + rng.random()         # morning peak
        elif hour < 16:
            value = 0.8 + rng.random() * 0.8   # daytime
        elif hour < 22:
            value = 1.2 + rng.random() * 1.2   # evening peak
        else:
            value = 0.7 + rng.random() * 0.6   # late evening
        weights[hour] = value
    return weights


def synthesize_hourly_profile(daily_total, kind="usage", rng=None):
    """
    Spread a daily total over 24 hours.

    :param daily_total: kWh for the whole day
    :param kind: 'solar' (bell curve around 13:00, zero at night) or 'usage'
                 (morning and evening peaks with some jitter)
    :return: 24 values rounded to 2 decimals
    """
    daily_total = to_number(daily_total)
    if kind == "solar":
        weights = _solar_weights()
    else:
        weights = _usage_weights(rng if rng is not None else np.random.default_rng())

    total_weight = weights.sum()
    if daily_total <= 0 or total_weight <= 0:
        return [0.0] * 24

    factor = daily_total / total_weight
    hourly = [round(float(w * factor), 2) for w in weights]
    # Put the rounding remainder on the largest hour so the day still adds up
    residual = round(daily_total - sum(hourly), 2)
    if residual:
        peak = int(np.argmax(weights))
        hourly[peak] = round(max(0.0, hourly[peak] + residual), 2)
    return hourly


def aggregate(series, view, is_solar=False):
    """
    Values for one chart view.

    month -> first 30 entries, week -> first 7. For the day view a solar series
    is a list of daily totals, so day one is spread over 24 hours; usage is
    passed through as it is already hourly.
    """
    if series is None:
        return []
    values = series.to_list() if isinstance(series, EnergySeries) else list(series)
    if not values:
        return []

    if view == "day":
        if is_solar:
            return synthesize_hourly_profile(values[0], "solar")
        return values[:24]
    if view == "week":
        return values[:7]
    return values[:DAYS_PER_MONTH]


def expand_to_month(series):
    """Cycle a shorter series out to 30 days. A 30-day series is returned unchanged."""
    values = list(series or [])
    if not values or len(values) == DAYS_PER_MONTH:
        return values
    return [values[day % len(values)] for day in range(DAYS_PER_MONTH)]


def time_labels(view):
    if view == "day":
        return [f"{hour:02d}:00" for hour in range(24)]
    if view == "week":
        return list(WEEKDAY_LABELS)
    return [f"Day {day + 1}" for day in range(DAYS_PER_MONTH)]


def chart_title(view):
    return {
        "day": "Hourly Energy Usage",
        "week": "Daily Energy Usage (This Week)",
        "month": "Daily Energy Usage (This Month)",
    }.get(view, "Energy Usage")


def x_axis_title(view):
    return {
        "day": "Hour of Day",
        "week": "Day of Week",
        "month": "Day of Month",
    }.get(view, "Time")


def format_tooltip(label, dataset_label, value, view):
    preposition = "at" if view == "day" else "on"
    return f"{dataset_label} {preposition} {label}: {to_number(value):.2f} kWh"


def build_chart_frame(usage, solar, view):
    """
    Long-format frame (period, order, series, kwh, tooltip) for the energy chart.
    Series shorter than the view's labels are left short; missing points are dropped.
    """
    labels = time_labels(view)
    rows = []
    for name, values in (("Energy Usage (kWh)", usage), ("Solar Generation (kWh)", solar)):
        for index, value in enumerate(values[:len(labels)]):
            rows.append({
                'period': labels[index],
                'order': index,
                'series': name,
                'kwh': round(to_number(value), 3),
                'tooltip': format_tooltip(labels[index], name, value, view),
            })
    if not rows:
        return pd.DataFrame(columns=['period', 'order', 'series', 'kwh', 'tooltip'])
    return pd.DataFrame(rows)
