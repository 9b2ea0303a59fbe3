"""Data models for the bill estimator: appliances, energy series, tariffs and state."""
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .config import DEFAULT_USAGE_MODE, FIXED_TARIFF_RATE

# Projection of one stored series onto a 30-day month
HOURLY_TO_MONTH = 30
WEEKLY_TO_MONTH = 30 / 7
MONTHLY_TO_MONTH = 1


def to_number(value, default=0.0):
    """Coerce anything to a finite float, `default` otherwise."""
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _is_real_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and to_number(value, None) is not None


def _parse_flag(value):
    """Strict boolean: real bools pass, "true"/"false" strings are mapped. Returns (flag, patched)."""
    if isinstance(value, bool):
        return value, False
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true", True
    return False, True


@dataclass(slots=True)
class Appliance:
    """A household appliance profile."""

    id: str
    name: str
    power_watts: float
    typical_daily_hours: float
    is_continuously_on: bool = False
    is_essential: bool = False

    @property
    def daily_kwh(self) -> float:
        return self.power_watts / 1000 * self.typical_daily_hours

    @classmethod
    def parse(cls, data: Dict[str, Any]):
        """
        Build from the camelCase shape used by storage and the AI payload.

        Returns (appliance, patched) where `patched` is True when any field had
        to be coerced, clamped or defaulted. Raises ValueError when the entry is
        not a usable appliance.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Appliance entry must be an object, got {type(data).__name__}")
        if data.get("id") is None:
            raise ValueError("Appliance entry has no id")
        raw_power = data.get("powerWatts")
        power = to_number(raw_power)
        if power <= 0:
            raise ValueError(f"Appliance {data.get('id')} has invalid powerWatts: {raw_power!r}")
        raw_hours = data.get("typicalDailyHours")
        hours = min(24.0, max(0.0, to_number(raw_hours)))
        is_continuously_on, continuous_patched = _parse_flag(data.get("isContinuouslyOn"))
        is_essential, essential_patched = _parse_flag(data.get("isEssential"))

        patched = (
            not isinstance(data["id"], str)
            or not isinstance(data.get("name"), str) or not data.get("name")
            or not _is_real_number(raw_power)
            or not _is_real_number(raw_hours) or hours != raw_hours
            or continuous_patched
            or essential_patched
        )
        appliance = cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            power_watts=power,
            typical_daily_hours=hours,
            is_continuously_on=is_continuously_on,
            is_essential=is_essential,
        )
        return appliance, patched

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Appliance":
        """Like `parse`, without the patch report."""
        return cls.parse(data)[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "powerWatts": self.power_watts,
            "typicalDailyHours": self.typical_daily_hours,
            "isContinuouslyOn": self.is_continuously_on,
            "isEssential": self.is_essential,
        }

    def copy(self) -> "Appliance":
        return replace(self)


def appliances_from_dicts(entries) -> List[Appliance]:
    """Convert a list of dicts (or Appliances), silently skipping unusable entries."""
    appliances = []
    for entry in entries or []:
        if isinstance(entry, Appliance):
            appliances.append(entry.copy())
            continue
        try:
            appliances.append(Appliance.from_dict(entry))
        except ValueError:
            continue
    return appliances


def parse_appliances(entries):
    """
    Strict variant for untrusted payloads.
    Returns (appliances, patched): `patched` is True if any entry was dropped or repaired.
    """
    appliances = []
    patched = False
    for entry in entries:
        try:
            appliance, repaired = Appliance.parse(entry)
        except ValueError:
            patched = True
            continue
        appliances.append(appliance)
        patched = patched or repaired
    return appliances, patched


class Granularity(Enum):
    HOURLY_DAY = "hourly_day"
    DAILY_WEEK = "daily_week"
    DAILY_MONTH = "daily_month"

    @property
    def month_factor(self) -> float:
        return {
            Granularity.HOURLY_DAY: HOURLY_TO_MONTH,
            Granularity.DAILY_WEEK: WEEKLY_TO_MONTH,
            Granularity.DAILY_MONTH: MONTHLY_TO_MONTH,
        }[self]


@dataclass(frozen=True)
class EnergySeries:
    """Energy values with an explicit time resolution."""

    granularity: Granularity
    values: tuple

    @classmethod
    def from_values(cls, values) -> "EnergySeries":
        # 24 readings are one day hourly, 7 a week of days, anything else is taken as-is
        numbers = tuple(to_number(v) for v in (values or []))
        if len(numbers) == 24:
            granularity = Granularity.HOURLY_DAY
        elif len(numbers) == 7:
            granularity = Granularity.DAILY_WEEK
        else:
            granularity = Granularity.DAILY_MONTH
        return cls(granularity, numbers)

    def __len__(self):
        return len(self.values)

    @property
    def total(self) -> float:
        return sum(self.values)

    def monthly_total(self) -> float:
        return self.total * self.granularity.month_factor

    def to_list(self) -> List[float]:
        return list(self.values)


@dataclass(frozen=True)
class FlatTariff:
    rate: float


@dataclass(frozen=True)
class ScheduleTariff:
    rates: tuple


Tariff = Union[FlatTariff, ScheduleTariff]


@dataclass
class BillOverview:
    """Budget comparison derived from the current state. Never persisted."""

    current_bill: float
    target_bill: float
    percent_diff: float
    abs_percent_diff: int
    is_over_budget: bool
    bill_after_solar: float
    solar_savings: float
    percent_diff_after_solar: float
    abs_percent_diff_after_solar: int
    is_over_budget_after_solar: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentBill": round(self.current_bill, 2),
            "targetBill": self.target_bill,
            "percentDiff": round(self.percent_diff, 2),
            "absPercentDiff": self.abs_percent_diff,
            "isOverBudget": self.is_over_budget,
            "billAfterSolar": round(self.bill_after_solar, 2),
            "solarSavings": round(self.solar_savings, 2),
            "percentDiffAfterSolar": round(self.percent_diff_after_solar, 2),
            "absPercentDiffAfterSolar": self.abs_percent_diff_after_solar,
            "isOverBudgetAfterSolar": self.is_over_budget_after_solar,
        }


@dataclass
class HouseholdData:
    """Payload of the demo-data path, from the model or the local generator."""

    appliances: List[Appliance]
    solar_series: List[float]
    usage_series: List[float]
    tariff: float = FIXED_TARIFF_RATE
    source_is_ai: bool = False


@dataclass
class ApplicationState:
    appliances: List[Appliance] = field(default_factory=list)
    solar_data: Optional[List[float]] = None
    usage_data: Optional[List[float]] = None
    tariff_data: float = FIXED_TARIFF_RATE
    usage_mode: str = DEFAULT_USAGE_MODE
    is_ai_generated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "appliances": [a.to_dict() for a in self.appliances],
            "solarData": list(self.solar_data) if self.solar_data is not None else None,
            "usageData": list(self.usage_data) if self.usage_data is not None else None,
            "usageMode": self.usage_mode,
            "tariffData": self.tariff_data,
            "isAIGenerated": self.is_ai_generated,
        }
