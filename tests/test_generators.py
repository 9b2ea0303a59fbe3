import numpy as np
import pytest

from energiwatch.config import FIXED_TARIFF_RATE
from energiwatch.generators import (
    APPLIANCE_NAMES,
    LocalDataGenerator,
    generate_hourly_usage,
    generate_solar_generation,
    random_solar_series,
    random_usage_series,
)


def test_generated_household_shape(rng):
    data = LocalDataGenerator(rng).generate()

    assert 5 <= len(data.appliances) <= 8
    assert [a.id for a in data.appliances] == [f"appliance{i + 1}" for i in range(len(data.appliances))]
    assert data.source_is_ai is False
    assert data.tariff == FIXED_TARIFF_RATE
    for appliance in data.appliances:
        assert appliance.name in APPLIANCE_NAMES
        assert 50 <= appliance.power_watts <= 1849
        assert 1 <= appliance.typical_daily_hours <= 13
        assert appliance.typical_daily_hours == round(appliance.typical_daily_hours, 1)


def test_series_are_memoised_but_appliances_are_not():
    generator = LocalDataGenerator(np.random.default_rng(7))
    first = generator.generate()
    second = generator.generate()

    assert first.solar_series == second.solar_series
    assert first.usage_series == second.usage_series
    # Callers get copies of the cached series
    first.solar_series[0] = -1
    assert generator.solar_series()[0] != -1


def test_series_ranges(rng):
    solar = random_solar_series(rng=rng)
    usage = random_usage_series(rng=rng)
    assert len(solar) == len(usage) == 30
    assert all(0.5 <= v <= 8.0 for v in solar)
    assert all(8.0 <= v <= 25.0 for v in usage)


@pytest.mark.parametrize("hour", [0, 3, 5, 20, 23])
def test_no_solar_at_night(hour, rng):
    assert generate_solar_generation(hour, rng=rng) == 0.0


def test_solar_peaks_around_midday(rng):
    midday = generate_solar_generation(12, weather_factor=1.0, rng=rng)
    morning = generate_solar_generation(7, weather_factor=1.0, rng=rng)
    assert midday > morning > 0
    assert generate_solar_generation(12, weather_factor=0.2, rng=rng) < midday


def test_evening_usage_exceeds_night_usage(rng):
    night = [generate_hourly_usage(3, rng=rng) for _ in range(20)]
    evening = [generate_hourly_usage(19, rng=rng) for _ in range(20)]
    assert max(night) < min(evening)
