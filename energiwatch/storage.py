"""
Persistent store for the dashboard state.

Everything lives under one JSON document (STORAGE_KEY). Solar data is also
mirrored under LEGACY_SOLAR_KEY for older readers. Nothing in here raises on
a storage failure: errors are logged and callers get None or a default.
"""
import json
import os
from pathlib import Path

from .config import DEFAULT_USAGE_MODE, FIXED_TARIFF_RATE, USAGE_MODES
from .logger import get_logger
from .models import ApplicationState, appliances_from_dicts

STORAGE_KEY = "energiwatch_app_state"
LEGACY_SOLAR_KEY = "solarGenerationData"

logger = get_logger(__name__)


class MemoryStorage:
    """Key-value storage kept in a dict. Used for tests and sessions without a disk."""

    def __init__(self, items=None):
        self.items = dict(items or {})

    def get_item(self, key):
        return self.items.get(key)

    def set_item(self, key, value):
        self.items[key] = str(value)

    def remove_item(self, key):
        self.items.pop(key, None)


class FileStorage:
    """Key-value storage backed by a single JSON file on disk."""

    def __init__(self, path):
        self.path = Path(path)

    def _read_all(self):
        if not self.path.exists():
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def _write_all(self, items):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(items, f)
        os.replace(tmp_path, self.path)

    def _read_for_write(self):
        # A corrupt file is replaced by the next write instead of blocking it
        try:
            return self._read_all()
        except ValueError as e:
            logger.error("Storage file %s is corrupt, starting a new one: %s", self.path, e)
            return {}

    def get_item(self, key):
        return self._read_all().get(key)

    def set_item(self, key, value):
        items = self._read_for_write()
        items[key] = str(value)
        self._write_all(items)

    def remove_item(self, key):
        items = self._read_for_write()
        if key in items:
            del items[key]
            self._write_all(items)


def safe_json_parse(text, default):
    """Parse JSON text, returning `default` when it is empty or corrupt."""
    if not text:
        return default
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        logger.error("Error parsing JSON from storage: %s", e)
        return default


def _describe(values):
    return f"{len(values)} items" if values else "no data"


class AppStateStore:
    def __init__(self, storage):
        self.storage = storage

    # --- whole document ---

    def load_app_state(self):
        """Return the raw saved document, or None if missing or unreadable."""
        try:
            saved = self.storage.get_item(STORAGE_KEY)
        except (OSError, ValueError) as e:
            logger.error("Error loading application state: %s", e)
            return None
        result = safe_json_parse(saved, None)
        if result is not None and not isinstance(result, dict):
            logger.error("Stored application state is not an object, ignoring it")
            return None
        logger.debug("Loaded app state from storage: %s", "data exists" if result else "no data")
        return result

    def save_app_state(self, state):
        try:
            logger.debug(
                "Saving app state: appliances=%s solarData=%s usageData=%s source=%s",
                _describe(state.get("appliances")),
                _describe(state.get("solarData")),
                _describe(state.get("usageData")),
                "AI-generated" if state.get("isAIGenerated") else "Local fallback",
            )
            self.storage.set_item(STORAGE_KEY, json.dumps(state))
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error saving application state: %s", e)

    def clear(self):
        try:
            self.storage.remove_item(STORAGE_KEY)
        except OSError as e:
            logger.error("Error clearing application state: %s", e)

    def load(self):
        """Load the typed state, or None when nothing usable is stored."""
        raw = self.load_app_state()
        if not raw:
            return None
        state = ApplicationState()
        state.appliances = appliances_from_dicts(raw.get("appliances") if isinstance(raw.get("appliances"), list) else [])
        if isinstance(raw.get("solarData"), list):
            state.solar_data = list(raw["solarData"])
        if isinstance(raw.get("usageData"), list):
            state.usage_data = list(raw["usageData"])
        if raw.get("usageMode") in USAGE_MODES:
            state.usage_mode = raw["usageMode"]
        state.tariff_data = FIXED_TARIFF_RATE
        if isinstance(raw.get("isAIGenerated"), bool):
            state.is_ai_generated = raw["isAIGenerated"]
        return state

    def save(self, state):
        self.save_app_state(state.to_dict())
        if state.solar_data is not None:
            self._mirror_solar(state.solar_data)

    def _update(self, **fields):
        state = self.load_app_state() or {}
        state.update(fields)
        self.save_app_state(state)

    # --- per field ---

    def load_tariff(self):
        # The tariff is regulated and flat; whatever is stored is ignored
        return FIXED_TARIFF_RATE

    def save_tariff(self, rate=None):
        self._update(tariffData=FIXED_TARIFF_RATE)

    def load_appliances(self):
        state = self.load_app_state() or {}
        result = appliances_from_dicts(state.get("appliances") or [])
        logger.debug("Loaded appliances from storage: %s", _describe(result))
        return result

    def save_appliances(self, appliances):
        self._update(appliances=[a.to_dict() for a in appliances])

    def load_solar_data(self):
        state = self.load_app_state() or {}
        result = state.get("solarData")
        return list(result) if isinstance(result, list) and result else None

    def save_solar_data(self, solar_data):
        self._update(solarData=list(solar_data))
        self._mirror_solar(solar_data)

    def _mirror_solar(self, solar_data):
        try:
            self.storage.set_item(LEGACY_SOLAR_KEY, json.dumps(list(solar_data)))
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save solar data under legacy key: %s", e)

    def load_usage_data(self):
        state = self.load_app_state() or {}
        result = state.get("usageData")
        return list(result) if isinstance(result, list) and result else None

    def save_usage_data(self, usage_data):
        self._update(usageData=list(usage_data))

    def load_usage_mode(self):
        state = self.load_app_state() or {}
        mode = state.get("usageMode")
        return mode if mode in USAGE_MODES else DEFAULT_USAGE_MODE

    def save_usage_mode(self, usage_mode):
        self._update(usageMode=usage_mode)

    def load_ai_generated(self):
        state = self.load_app_state() or {}
        flag = state.get("isAIGenerated")
        return flag if isinstance(flag, bool) else None

    def save_ai_generated(self, flag):
        self._update(isAIGenerated=bool(flag))
