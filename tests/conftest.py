import json

import numpy as np
import pytest
import requests

from energiwatch.ai_service import AIGateway
from energiwatch.config import Settings
from energiwatch.generators import LocalDataGenerator
from energiwatch.models import Appliance
from energiwatch.state import StateManager
from energiwatch.storage import AppStateStore, MemoryStorage

PROXY_URL = "http://proxy.test/api/gemini"


def gemini_body(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}], "_modelUsed": "gemini-2.0-flash"}


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self.body = body
        self.reason = reason

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    @property
    def text(self):
        return json.dumps(self.body) if self.body is not None else ""

    def json(self):
        if self.body is None:
            raise ValueError("No JSON body")
        return self.body


class FakeSession:
    """Stands in for requests.Session; replies are consumed in order."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class BrokenStorage:
    """Every operation fails, like a full or read-only disk."""

    def get_item(self, key):
        raise OSError("storage unavailable")

    def set_item(self, key, value):
        raise OSError("quota exceeded")

    def remove_item(self, key):
        raise OSError("storage unavailable")


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def store():
    return AppStateStore(MemoryStorage())


@pytest.fixture
def state(store):
    return StateManager(store).initialize()


@pytest.fixture
def settings():
    return Settings(api_key=None, proxy_url=PROXY_URL, request_timeout=5.0)


@pytest.fixture
def make_gateway(settings, rng):
    def _make(*replies):
        session = FakeSession(*replies)
        gateway = AIGateway(settings, session=session, generator=LocalDataGenerator(rng))
        return gateway, session
    return _make


@pytest.fixture
def appliances():
    return [
        Appliance("a1", "Refrigerator", 150, 24, is_continuously_on=True, is_essential=True),
        Appliance("a2", "Air Conditioner", 1300, 6, is_continuously_on=False, is_essential=False),
        Appliance("a3", "Decorative Lights", 60, 24, is_continuously_on=True, is_essential=False),
    ]


@pytest.fixture
def timeout_error():
    return requests.Timeout("read timed out")
