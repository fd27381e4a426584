"""
Browser lifecycle: acquire a page for a run and release it afterwards.

Two ways to get a browser:
- Attach: if remote_cdp_url is set (or PLAYWRIGHT_CDP_URL, see the config
  loader) and its DevTools endpoint answers, connect over CDP and reuse the
  running browser's first context. The browser is never closed by us.
- Launch: start Chromium with a persistent profile. Without an explicit
  chrome_profile_path a throwaway profile directory is created and removed
  after the run.

Example:
    >>> async with open_page(config) as page:
    ...     result = await run_on_page(page, "Hello", config)
"""

import logging
import shutil
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx
from playwright.async_api import BrowserContext, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from browser_oracle.config.constants import CHROME_ARGS, VIEWPORT
from browser_oracle.config.schema import BrowserConfig
from browser_oracle.exceptions import BrowserLaunchError

from .playwright_page import PlaywrightPage

logger = logging.getLogger(__name__)

TEMP_PROFILE_PREFIX = "oracle-stealth-"

# Timeout for the DevTools endpoint probe (seconds)
CDP_PROBE_TIMEOUT = 0.5

# Backoff between navigation attempts (seconds)
NAVIGATION_MIN_WAIT_SECONDS = 1
NAVIGATION_MAX_WAIT_SECONDS = 10

WEBDRIVER_INIT_SCRIPT = (
    "Object.defineProperty(navigator, 'webdriver', { get: () => undefined });"
)


@dataclass
class BrowserSession:
    """
    Resources held for one run.

    Attributes:
        context: Browser context the page lives in
        remote_attached: Connected over CDP rather than launched
        temp_profile: Throwaway profile directory to remove, if any
    """

    context: BrowserContext
    remote_attached: bool = False
    temp_profile: str | None = None


def devtools_version_url(cdp_url: str) -> str:
    """
    Return the /json/version URL for a CDP endpoint.

    Example:
        >>> devtools_version_url("ws://127.0.0.1:9222/devtools/browser/abc")
        'http://127.0.0.1:9222/json/version'
    """
    parsed = urlparse(cdp_url)
    scheme = "https" if parsed.scheme in ("https", "wss") else "http"
    return f"{scheme}://{parsed.netloc}/json/version"


async def probe_cdp_endpoint(cdp_url: str) -> bool:
    """Return True if a DevTools endpoint answers at cdp_url."""
    try:
        async with httpx.AsyncClient(timeout=CDP_PROBE_TIMEOUT) as client:
            response = await client.get(devtools_version_url(cdp_url))
            return response.status_code == 200
    except httpx.HTTPError as e:
        logger.debug(f"CDP endpoint {cdp_url} not reachable: {e}")
        return False


async def _attach(pw: Playwright, cdp_url: str) -> BrowserSession | None:
    logger.info(f"Connecting to existing Chrome via CDP at {cdp_url}")
    try:
        browser = await pw.chromium.connect_over_cdp(cdp_url)
    except PlaywrightError as e:
        logger.warning(f"Failed to connect to CDP: {e}")
        return None
    context = browser.contexts[0] if browser.contexts else await browser.new_context()
    return BrowserSession(context=context, remote_attached=True)


async def _launch(pw: Playwright, config: BrowserConfig) -> BrowserSession:
    temp_profile = None
    user_data_dir = config.chrome_profile_path
    if user_data_dir is None:
        temp_profile = tempfile.mkdtemp(prefix=TEMP_PROFILE_PREFIX)
        user_data_dir = temp_profile

    logger.info(f"Launching Chromium with profile: {user_data_dir}")
    try:
        context = await pw.chromium.launch_persistent_context(
            user_data_dir,
            headless=config.headless,
            executable_path=config.chrome_path,
            viewport=VIEWPORT,
            args=CHROME_ARGS,
        )
    except PlaywrightError as e:
        if temp_profile is not None:
            shutil.rmtree(temp_profile, ignore_errors=True)
        raise BrowserLaunchError(f"Failed to launch Chromium: {e}") from e

    return BrowserSession(context=context, temp_profile=temp_profile)


async def acquire_session(pw: Playwright, config: BrowserConfig) -> BrowserSession:
    """
    Attach to a running browser if possible, otherwise launch one.

    Raises:
        BrowserLaunchError: If launching Chromium fails
    """
    if config.remote_cdp_url and await probe_cdp_endpoint(config.remote_cdp_url):
        session = await _attach(pw, config.remote_cdp_url)
        if session is not None:
            return session
    return await _launch(pw, config)


async def navigate(page: PlaywrightPage, url: str, attempts: int) -> bool:
    """
    Navigate with retries and exponential backoff.

    A final failure is logged, not raised: the page may still be usable (an
    interstitial can make goto time out while the UI loads behind it).

    Returns:
        True if navigation succeeded
    """
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(
                multiplier=1,
                min=NAVIGATION_MIN_WAIT_SECONDS,
                max=NAVIGATION_MAX_WAIT_SECONDS,
            ),
            retry=retry_if_exception_type(PlaywrightError),
            reraise=True,
        ):
            with attempt:
                await page.goto(url)
    except PlaywrightError as e:
        logger.warning(f"Navigation to {url} failed after {attempts} attempts: {e}")
        return False
    return True


async def release_session(session: BrowserSession, keep_browser: bool) -> None:
    """Close the context and remove the throwaway profile unless kept or attached."""
    if keep_browser or session.remote_attached:
        logger.info("Leaving browser open")
        return

    try:
        await session.context.close()
    except PlaywrightError as e:
        logger.debug(f"Closing browser context failed: {e}")
    if session.temp_profile is not None:
        shutil.rmtree(session.temp_profile, ignore_errors=True)


@asynccontextmanager
async def open_page(config: BrowserConfig) -> AsyncIterator[PlaywrightPage]:
    """
    Yield a PlaywrightPage navigated to config.url.

    An already open tab on the target host is reused, otherwise a new tab is
    opened. The navigator.webdriver flag is hidden on every document.

    Args:
        config: Browser configuration

    Yields:
        PlaywrightPage ready for run_on_page()

    Raises:
        BrowserLaunchError: If no browser could be started
    """
    pw = await async_playwright().start()
    session = None
    try:
        session = await acquire_session(pw, config)
        context = session.context
        await context.add_init_script(WEBDRIVER_INIT_SCRIPT)

        host = urlparse(config.url).netloc
        page = next((p for p in context.pages if host and host in (p.url or "")), None)
        if page is None:
            page = await context.new_page()

        handle = PlaywrightPage(page)
        await navigate(handle, config.url, config.navigation_attempts)
        yield handle
    finally:
        if session is not None:
            await release_session(session, config.keep_browser)
        if session is None or not (config.keep_browser and not session.remote_attached):
            # Stopping the driver would kill a launched browser we were asked to keep
            await pw.stop()
