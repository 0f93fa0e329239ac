import random

import pytest
import requests

from core.acquisition import BatteryDataService
from core.bms_api import BMSApiError, BMSClient
from core.storage import BatteryStorage, LocalStore


class FakeResponse:
    def __init__(self, payload=None, status=200, content=None):
        self.payload = payload
        self.status_code = status
        if content is None:
            content = b'' if payload is None else b'{}'
        self.content = content

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Records requests and replays queued responses (or raises queued errors)."""

    def __init__(self, *responses):
        self.headers = {}
        self.calls = []
        self.responses = list(responses)

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0) if self.responses else FakeResponse({})
        if isinstance(response, Exception):
            raise response
        return response


class FakeClient:
    """Stands in for BMSClient at the acquisition layer."""

    base_url = 'http://bms.test'

    def __init__(self, cells=None, error=None):
        self.cells = cells
        self.error = error
        self.commands = []
        self.fetches = 0

    def fetch_cells(self, start, end):
        self.fetches += 1
        if self.error is not None:
            raise self.error
        return self.cells

    def set_cells(self, cell_ids, command):
        if self.error is not None:
            raise self.error
        self.commands.append((list(cell_ids), command))
        return {}

    def set_cells_macro(self, cell_ids, macro):
        if self.error is not None:
            raise self.error
        self.commands.append((list(cell_ids), f"macro:{macro}"))
        return {}


@pytest.fixture
def store(tmp_path):
    return LocalStore(tmp_path / 'data')


@pytest.fixture
def storage(store):
    return BatteryStorage(store)


@pytest.fixture
def offline_client():
    return FakeClient(error=BMSApiError("connection refused"))


@pytest.fixture
def offline_service(offline_client, storage):
    return BatteryDataService(client=offline_client, storage=storage,
                              rng=random.Random(7))


def make_client(*responses):
    return BMSClient('http://bms.test/', timeout=2, session=FakeSession(*responses))
