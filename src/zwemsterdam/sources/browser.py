"""Playwright page setup for the browser-driven source: resource blocking and read-only guardrails."""

from playwright.async_api import Page, Route

from src.zwemsterdam.logging import get_logger

log = get_logger(__name__)

# Stylesheets and scripts stay: the bot challenge needs them to render
BLOCKED_RESOURCE_TYPES: frozenset[str] = frozenset({"image", "font", "media"})

# HTTP methods that modify server state, never needed to read a schedule
_BLOCKED_METHODS: frozenset[str] = frozenset({"PUT", "DELETE", "PATCH"})

# POST endpoints that are read-only (schedule search, challenge handshake).
WHITELISTED_POST_PATHS: frozenset[str] = frozenset(
    {
        "/api/optisport/v1/schedule",
        "/cdn-cgi/",
    }
)


async def configure_page_for_scraping(page: Page, *, timeout_ms: int = 30000) -> None:
    """Set up a Playwright page for schedule collection.

    Blocks images, fonts and media to cut bandwidth, and aborts any request
    that could modify server state (PUT/DELETE/PATCH, and POSTs outside the
    whitelist).

    Args:
        page: Playwright Page instance.
        timeout_ms: Default action and navigation timeout.
    """

    async def _guard(route: Route) -> None:
        request = route.request

        if request.method in _BLOCKED_METHODS or (
            request.method == "POST"
            and not any(path in request.url for path in WHITELISTED_POST_PATHS)
        ):
            log.warning(
                "blocked_mutating_request",
                method=request.method,
                url=request.url,
            )
            await route.abort("blockedbyclient")
            return

        if request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    await page.route("**/*", _guard)
    page.set_default_timeout(timeout_ms)
    page.set_default_navigation_timeout(timeout_ms)
