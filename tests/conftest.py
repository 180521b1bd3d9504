"""Shared test doubles: a stub HTTP client and fixture loading."""

from pathlib import Path

import pytest

from src.zwemsterdam.config import ZwemsterdamConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", json_data=None):
        self.status_code = status_code
        self.text = text
        self._json = json_data

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeClient:
    """Answers GETs from a url -> response (or exception) mapping; unknown URLs 404."""

    def __init__(self, routes: dict | None = None):
        self.routes = routes or {}
        self.calls: list[tuple[str, dict | None]] = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, params))
        response = self.routes.get(url)
        if response is None:
            return FakeResponse(status_code=404, text="Not Found")
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


def load_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def config() -> ZwemsterdamConfig:
    return ZwemsterdamConfig(timezone="Europe/Amsterdam", municipal_window_days=7)
