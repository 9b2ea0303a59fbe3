"""
Local demo data generator 🤖
Produces a believable household (appliances plus 30 days of solar and usage)
when the AI service is unavailable or returns something unusable.
"""
import numpy as np

from .config import DAYS_PER_MONTH, FIXED_TARIFF_RATE
from .models import Appliance, HouseholdData

APPLIANCE_NAMES = [
    "Refrigerator",
    "Air Conditioner",
    "TV",
    "Washing Machine",
    "Microwave",
    "Fan",
    "Lights",
    "Water Heater",
    "Laptop",
    "Oven",
]

# Daily kWh ranges for the randomised series
SOLAR_RANGE = (0.5, 8.0)
USAGE_RANGE = (8.0, 25.0)


def _rng(rng):
    return rng if rng is not None else np.random.default_rng()


def random_series(low, high, n=DAYS_PER_MONTH, rng=None):
    values = _rng(rng).uniform(low, high, size=n)
    return [round(float(v), 2) for v in values]


def random_solar_series(n=DAYS_PER_MONTH, rng=None):
    return random_series(*SOLAR_RANGE, n=n, rng=rng)


def random_usage_series(n=DAYS_PER_MONTH, rng=None):
    return random_series(*USAGE_RANGE, n=n, rng=rng)


def generate_hourly_usage(hour, base_multiplier=1.0, rng=None):
    """Household consumption (kWh) for one hour of the day."""
    rng = _rng(rng)
    if 0 <= hour < 6:
        base_usage = 0.1 + rng.random() * 0.2    # sleeping
    elif 6 <= hour < 9:
        base_usage = 0.5 + rng.random() * 0.7    # morning routine
    elif 9 <= hour < 16:
        base_usage = 0.3 + rng.random() * 0.5
    elif 16 <= hour < 22:
        base_usage = 0.7 + rng.random() * 0.8    # evening peak
    else:
        base_usage = 0.2 + rng.random() * 0.3

    randomness = 0.8 + rng.random() * 0.4
    return round(base_usage * base_multiplier * randomness, 2)


def generate_solar_generation(hour, weather_factor=0.8, rng=None):
    """
    Solar output (kWh) for one hour of the day.
    :param weather_factor: 0.2 for heavy cloud up to 1.0 for clear sky
    """
    if hour < 6 or hour > 19:
        return 0.0

    rng = _rng(rng)
    peak_hour = 12.5
    hours_from_peak = abs(hour - peak_hour)
    if hours_from_peak < 6:
        generation = np.cos(hours_from_peak * np.pi / 12) * 0.9 + 0.1
    else:
        generation = 0.05

    generation *= weather_factor
    generation *= 0.9 + rng.random() * 0.2  # 10% variation
    return round(max(0.0, float(generation)), 2)


class LocalDataGenerator:
    """
    One instance per process. The solar and usage series are generated once and
    reused on every later fallback so the chart stays stable; only the
    appliances are re-randomised.
    """

    def __init__(self, rng=None):
        self.rng = _rng(rng)
        self.cached_solar = None
        self.cached_usage = None

    def random_appliance(self, index):
        return Appliance(
            id=f"appliance{index}",
            name=APPLIANCE_NAMES[int(self.rng.integers(len(APPLIANCE_NAMES)))],
            power_watts=float(self.rng.integers(50, 1850)),        # 50W to 1849W
            typical_daily_hours=round(float(self.rng.uniform(1, 13)), 1),
            is_continuously_on=bool(self.rng.random() < 0.3),
            is_essential=bool(self.rng.random() < 0.5),
        )

    def generate_appliances(self):
        count = int(self.rng.integers(5, 9))  # 5-8 appliances
        return [self.random_appliance(i + 1) for i in range(count)]

    def solar_series(self):
        if self.cached_solar is None or len(self.cached_solar) != DAYS_PER_MONTH:
            self.cached_solar = random_solar_series(rng=self.rng)
        return list(self.cached_solar)

    def usage_series(self):
        if self.cached_usage is None or len(self.cached_usage) != DAYS_PER_MONTH:
            self.cached_usage = random_usage_series(rng=self.rng)
        return list(self.cached_usage)

    def generate(self):
        return HouseholdData(
            appliances=self.generate_appliances(),
            solar_series=self.solar_series(),
            usage_series=self.usage_series(),
            tariff=FIXED_TARIFF_RATE,
            source_is_ai=False,
        )
