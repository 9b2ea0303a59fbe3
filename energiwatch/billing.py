"""
Bill estimation from appliance profiles, solar data and the tariff.

The headline bill is appliance consumption only; solar generation is applied
separately as `bill_after_solar` in the bill overview.
"""
import numpy as np

from .config import DAYS_PER_MONTH, DEFAULT_TARIFF_RATE, FIXED_TARIFF_RATE
from .logger import get_logger
from .models import (
    BillOverview,
    EnergySeries,
    FlatTariff,
    ScheduleTariff,
    appliances_from_dicts,
    to_number,
)

logger = get_logger(__name__)


def _appliances(appliances):
    return appliances_from_dicts(appliances)


def monthly_kwh(appliance):
    return appliance.power_watts / 1000 * appliance.typical_daily_hours * DAYS_PER_MONTH


def calculate_energy_usage(appliances):
    """Total monthly kWh for a list of appliances."""
    return sum(monthly_kwh(a) for a in _appliances(appliances))


def _average(rates):
    if not rates:
        return None
    return sum(rates) / len(rates)


def as_tariff(raw):
    """
    Turn one of the accepted tariff shapes into a FlatTariff or ScheduleTariff.
    Returns None when the input is not understood.

    Accepted: a number, a list of numbers, a list of {"ratePerKWh": x} objects,
    or an already typed tariff.
    """
    if isinstance(raw, (FlatTariff, ScheduleTariff)):
        return raw
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return FlatTariff(to_number(raw))
    if isinstance(raw, (list, tuple)) and raw:
        # Any usable entry makes it a schedule; the rest count as 0
        if not any(isinstance(entry, dict) or _is_rate(entry) for entry in raw):
            return None
        return ScheduleTariff(tuple(_entry_rate(entry) for entry in raw))
    return None


def _is_rate(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _entry_rate(entry):
    if isinstance(entry, dict):
        return to_number(entry.get("ratePerKWh"))
    if not _is_rate(entry):
        return 0.0
    return to_number(entry)


def normalize_tariff(raw):
    """Single average rate per kWh for any accepted tariff shape, 0.35 if unrecognised."""
    tariff = as_tariff(raw)
    if tariff is None:
        return DEFAULT_TARIFF_RATE
    if isinstance(tariff, FlatTariff):
        return tariff.rate
    average = _average(tariff.rates)
    return DEFAULT_TARIFF_RATE if average is None else average


def calculate_monthly_cost(energy_usage, tariff):
    return to_number(energy_usage) * normalize_tariff(tariff)


def estimate_monthly_bill(appliances, solar_series=None, tariff=FIXED_TARIFF_RATE):
    """
    Monthly bill for the appliances at the given tariff.

    `solar_series` is accepted so callers can pass the full state, but it does
    not reduce this figure; see build_bill_overview for the after-solar bill.
    """
    total_kwh = calculate_energy_usage(appliances)
    rate = normalize_tariff(tariff)
    logger.debug("estimate_monthly_bill: total_kwh=%.3f rate=%.4f", total_kwh, rate)
    return total_kwh * rate


def total_solar_kwh(solar_series):
    """Solar generation projected to one month."""
    if solar_series is None:
        return 0.0
    if isinstance(solar_series, EnergySeries):
        return solar_series.monthly_total()
    if isinstance(solar_series, (int, float)) and not isinstance(solar_series, bool):
        # A bare number is already a monthly total
        return to_number(solar_series)
    if isinstance(solar_series, (list, tuple)):
        if not solar_series:
            return 0.0
        return EnergySeries.from_values(solar_series).monthly_total()
    return 0.0


def _percent_diff(bill, budget):
    return (bill - budget) / budget * 100 if budget > 0 else 0.0


def build_bill_overview(appliances, solar_series, tariff, budget):
    current_bill = estimate_monthly_bill(appliances, solar_series, tariff)
    target_bill = to_number(budget)

    rate = normalize_tariff(tariff)
    if rate == 0:
        rate = FIXED_TARIFF_RATE
    solar_savings = total_solar_kwh(solar_series) * rate
    bill_after_solar = max(0.0, current_bill - solar_savings)

    percent_diff = _percent_diff(current_bill, target_bill)
    percent_diff_after_solar = _percent_diff(bill_after_solar, target_bill)

    return BillOverview(
        current_bill=current_bill,
        target_bill=target_bill,
        percent_diff=percent_diff,
        abs_percent_diff=int(round(abs(percent_diff))),
        is_over_budget=current_bill > target_bill,
        bill_after_solar=bill_after_solar,
        solar_savings=solar_savings,
        percent_diff_after_solar=percent_diff_after_solar,
        abs_percent_diff_after_solar=int(round(abs(percent_diff_after_solar))),
        is_over_budget_after_solar=bill_after_solar > target_bill,
    )


def _distribute(appliances, days, rng):
    rng = rng if rng is not None else np.random.default_rng()
    usage = np.zeros(days)
    for appliance in _appliances(appliances):
        period_kwh = appliance.power_watts * appliance.typical_daily_hours * days / 1000
        # Random weights that sum to 1 keep each appliance's total intact
        weights = rng.random(days)
        weight_sum = weights.sum()
        if weight_sum <= 0:
            weights = np.full(days, 1.0 / days)
        else:
            weights = weights / weight_sum
        usage += period_kwh * weights
    return usage.tolist()


def monthly_energy_usage(appliances, rng=None):
    """30 daily kWh values whose sum equals the appliances' monthly total."""
    return _distribute(appliances, DAYS_PER_MONTH, rng)


def weekly_energy_usage(appliances, rng=None):
    """7 daily kWh values whose sum equals the appliances' weekly total."""
    return _distribute(appliances, 7, rng)
