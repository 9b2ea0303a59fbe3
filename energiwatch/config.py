"""
Settings for EnergiWatch: Streamlit secrets first, then environment, then defaults.
"""
import os
from dataclasses import dataclass, field
from typing import Optional

import streamlit as st

# Flat regulated tariff: 45.62 sen per kWh (RM 0.4562)
FIXED_TARIFF_RATE = 0.4562
# Used when a tariff cannot be understood at all
DEFAULT_TARIFF_RATE = 0.35

DEFAULT_BUDGET = 100.0
USAGE_MODES = ("on-demand", "24/7")
DEFAULT_USAGE_MODE = "on-demand"

DEFAULT_MODEL = "gemini-2.0-flash"
FALLBACK_MODELS = ["gemini-1.5-pro", "gemini-pro"]
GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1/models/{model}:generateContent"

DAYS_PER_MONTH = 30


def get_setting(name, default=None):
    """Get a setting from Streamlit secrets or environment."""
    try:
        if name in st.secrets:
            return st.secrets[name]
        if "secrets" in st.secrets and name in st.secrets["secrets"]:
            return st.secrets["secrets"][name]
    except Exception:
        # No secrets.toml outside of `streamlit run`
        pass
    return os.getenv(name, default)


def _as_float(value, default):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_list(value, default):
    if value is None:
        return list(default)
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return list(value)


@dataclass
class Settings:
    api_key: Optional[str] = None
    proxy_url: Optional[str] = None
    model: str = DEFAULT_MODEL
    fallback_models: list = field(default_factory=lambda: list(FALLBACK_MODELS))
    request_timeout: float = 30.0
    storage_path: str = os.path.join(".energiwatch", "storage.json")
    default_budget: float = DEFAULT_BUDGET


def load_settings():
    return Settings(
        api_key=get_setting("GEMINI_API_KEY"),
        proxy_url=get_setting("ENERGIWATCH_PROXY_URL"),
        model=get_setting("ENERGIWATCH_MODEL", DEFAULT_MODEL),
        fallback_models=_as_list(get_setting("ENERGIWATCH_FALLBACK_MODELS"), FALLBACK_MODELS),
        request_timeout=_as_float(get_setting("ENERGIWATCH_REQUEST_TIMEOUT"), 30.0),
        storage_path=get_setting("ENERGIWATCH_STORAGE_PATH", os.path.join(".energiwatch", "storage.json")),
        default_budget=_as_float(get_setting("ENERGIWATCH_DEFAULT_BUDGET"), DEFAULT_BUDGET),
    )
