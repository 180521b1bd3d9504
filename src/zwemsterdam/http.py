"""Shared HTTP helpers for the plain (non-browser) sources.

Adapters receive a requests.Session so tests can hand in a stub; these
helpers turn transport problems into FetchFailure and undecodable bodies
into ParseFailure.
"""

from typing import Any

import requests

from src.zwemsterdam.config import ZwemsterdamConfig, get_config
from src.zwemsterdam.errors import FetchFailure, ParseFailure
from src.zwemsterdam.logging import get_logger

log = get_logger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json, text/html;q=0.9, */*;q=0.8",
    "Accept-Language": "nl-NL,nl;q=0.9,en-US;q=0.8,en;q=0.7",
}


def build_http_session(config: ZwemsterdamConfig | None = None) -> requests.Session:
    """Create a requests.Session carrying the browser-like default headers."""
    config = config or get_config()
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    session.headers["User-Agent"] = config.user_agent
    return session


def http_get(
    client: requests.Session,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> requests.Response:
    """GET a URL, raising FetchFailure for network errors and non-2xx statuses."""
    if timeout is None:
        timeout = get_config().request_timeout_seconds
    try:
        resp = client.get(url, params=params, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise FetchFailure(f"Request to {url} failed: {e}", url=url) from e

    if not 200 <= resp.status_code < 300:
        raise FetchFailure(
            f"GET {url} returned {resp.status_code}",
            url=url,
            status=resp.status_code,
        )
    log.debug("http_get", url=url, status=resp.status_code)
    return resp


def get_json(client: requests.Session, url: str, **kwargs: Any) -> Any:
    """GET a URL and decode its JSON body."""
    resp = http_get(client, url, **kwargs)
    try:
        return resp.json()
    except ValueError as e:
        raise ParseFailure(f"Response from {url} is not JSON: {e}", path=url) from e


def get_text(client: requests.Session, url: str, **kwargs: Any) -> str:
    """GET a URL and return its decoded body."""
    return http_get(client, url, **kwargs).text
