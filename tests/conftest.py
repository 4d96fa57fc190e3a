"""Pytest configuration and shared fakes for catalog-blob-sync tests."""

import pytest
import requests
from requests.structures import CaseInsensitiveDict


def pytest_addoption(parser):
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires network)",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires network)"
    )


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, body=b"", status_code=200, headers=None, json_data=None):
        self.body = body
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self._json_data = json_data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.body), chunk_size):
            yield self.body[start : start + chunk_size]

    def json(self):
        return self._json_data

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False


class FakeSession:
    """Routes GET requests to canned responses and records every call.

    Responses registered for the same URL are served in order; the last one
    keeps being served once the queue is down to it.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.closed = False

    def add(self, url, body=b"", status_code=200, headers=None, json_data=None, error=None):
        route = error if error is not None else (body, status_code, headers, json_data)
        self.routes.setdefault(url, []).append(route)

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        queue = self.routes.get(url)
        if not queue:
            raise requests.ConnectionError(f"No route for {url}")
        route = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(route, Exception):
            raise route
        body, status_code, headers, json_data = route
        return FakeResponse(body, status_code, headers, json_data)

    def urls_called(self):
        return [url for url, _ in self.calls]

    def close(self):
        self.closed = True


@pytest.fixture
def fake_session():
    return FakeSession()
