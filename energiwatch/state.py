"""
Session state for the dashboard.

StateManager is the only thing that mutates the application state. Readers
get copies, writers hand over whole replacement lists, and every write is
persisted straight away through the AppStateStore.
"""

from .config import FIXED_TARIFF_RATE, USAGE_MODES
from .logger import get_logger
from .models import ApplicationState, appliances_from_dicts

logger = get_logger(__name__)


def _copy_series(values):
    return list(values) if values is not None else None


class StateManager:
    def __init__(self, store):
        self.store = store
        self.appliances = []
        self.solar_data = None
        self.usage_data = None
        self.tariff_data = FIXED_TARIFF_RATE
        self.usage_mode = "on-demand"
        self.is_ai_generated = False
        self.needs_regeneration = False
        self.generation = 0

    def initialize(self):
        """Load whatever the store holds. Missing or broken data keeps the defaults."""
        logger.info("Initializing application state...")
        stored = self.store.load()
        if stored is None:
            logger.info("No stored state, starting from defaults")
            return self
        if stored.appliances:
            self.appliances = [a.copy() for a in stored.appliances]
            logger.info("Restored %d appliances from storage", len(stored.appliances))
        if stored.solar_data:
            self.solar_data = list(stored.solar_data)
        if stored.usage_data:
            self.usage_data = list(stored.usage_data)
        self.usage_mode = stored.usage_mode
        self.tariff_data = self.store.load_tariff()
        self.is_ai_generated = stored.is_ai_generated
        logger.info(
            "Application state restored (source: %s)",
            "AI-generated" if self.is_ai_generated else "Local fallback",
        )
        return self

    def snapshot(self):
        return ApplicationState(
            appliances=self.get_appliances(),
            solar_data=self.get_solar_data(),
            usage_data=self.get_usage_data(),
            tariff_data=self.tariff_data,
            usage_mode=self.usage_mode,
            is_ai_generated=self.is_ai_generated,
        )

    # --- appliances ---

    def get_appliances(self):
        return [a.copy() for a in self.appliances]

    def set_appliances(self, appliances):
        if not isinstance(appliances, (list, tuple)):
            logger.error("set_appliances: expected a list of appliances, got %s", type(appliances).__name__)
            return False
        self._replace_appliances(appliances_from_dicts(appliances))
        self.set_needs_regeneration(True)
        return True

    def _replace_appliances(self, appliances):
        self.appliances = [a.copy() for a in appliances]
        self.store.save_appliances(self.appliances)

    def _set_appliance_flag(self, appliance_id, flag, value):
        found = False
        updated = []
        for appliance in self.appliances:
            if str(appliance.id) == str(appliance_id):
                appliance = appliance.copy()
                setattr(appliance, flag, bool(value))
                found = True
            updated.append(appliance)
        if not found:
            logger.error("Appliance with ID %s not found", appliance_id)
            return None
        # Flag toggles only refresh the bill; they do not mark advice as stale
        self._replace_appliances(updated)
        return next(a.copy() for a in self.appliances if str(a.id) == str(appliance_id))

    def set_appliance_essential(self, appliance_id, is_essential):
        return self._set_appliance_flag(appliance_id, "is_essential", is_essential)

    def set_appliance_continuous(self, appliance_id, is_continuously_on):
        return self._set_appliance_flag(appliance_id, "is_continuously_on", is_continuously_on)

    def toggle_appliance_flag(self, appliance_id, flag):
        """Flip `is_essential` or `is_continuously_on` on one appliance."""
        if flag not in ("is_essential", "is_continuously_on"):
            raise ValueError(f"Unknown appliance flag: {flag}")
        current = self.find_appliance(appliance_id)
        if current is None:
            logger.error("Appliance with ID %s not found", appliance_id)
            return None
        return self._set_appliance_flag(appliance_id, flag, not getattr(current, flag))

    def find_appliance(self, appliance_id):
        for appliance in self.appliances:
            if str(appliance.id) == str(appliance_id):
                return appliance.copy()
        return None

    def get_needs_regeneration(self):
        return self.needs_regeneration

    def set_needs_regeneration(self, value):
        self.needs_regeneration = bool(value)

    # --- series ---

    def get_solar_data(self):
        return _copy_series(self.solar_data)

    def set_solar_data(self, solar_data):
        if not isinstance(solar_data, (list, tuple)):
            logger.error("set_solar_data: invalid solar data provided (%s)", type(solar_data).__name__)
            return False
        self.solar_data = list(solar_data)
        self.store.save_solar_data(self.solar_data)
        return True

    def get_usage_data(self):
        return _copy_series(self.usage_data)

    def set_usage_data(self, usage_data):
        if not isinstance(usage_data, (list, tuple)):
            logger.error("set_usage_data: invalid usage data provided (%s)", type(usage_data).__name__)
            return False
        self.usage_data = list(usage_data)
        self.store.save_usage_data(self.usage_data)
        return True

    # --- tariff, mode, source ---

    def get_tariff_data(self):
        return self.tariff_data

    def set_tariff_data(self, _ignored=None):
        """Pin the tariff to the regulated flat rate. The argument is discarded."""
        self.tariff_data = FIXED_TARIFF_RATE
        self.store.save_tariff(FIXED_TARIFF_RATE)

    def get_usage_mode(self):
        return self.usage_mode

    def set_usage_mode(self, mode):
        if mode not in USAGE_MODES:
            logger.warning("Ignoring unknown usage mode: %r", mode)
            return False
        self.usage_mode = mode
        self.store.save_usage_mode(mode)
        return True

    def is_data_ai_generated(self):
        return self.is_ai_generated

    def set_data_ai_generated(self, value):
        self.is_ai_generated = bool(value)
        self.store.save_ai_generated(self.is_ai_generated)

    # --- request generations ---

    def begin_request(self):
        """Start an async-style request; only the latest generation may apply its result."""
        self.generation += 1
        return self.generation

    def is_current(self, generation):
        return generation == self.generation

    def apply_household_data(self, data, generation=None):
        """Replace appliances, series and source flag with a generated payload."""
        if generation is not None and not self.is_current(generation):
            logger.info("Discarding household data from stale request %s (current %s)", generation, self.generation)
            return False
        self.set_appliances(data.appliances)
        self.set_solar_data(data.solar_series)
        self.set_usage_data(data.usage_series)
        self.set_tariff_data(data.tariff)
        self.set_data_ai_generated(data.source_is_ai)
        logger.info("Data source: %s", "AI-generated" if data.source_is_ai else "Local fallback")
        return True
