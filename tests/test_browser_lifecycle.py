"""
Tests for browser.lifecycle module.

Playwright and the DevTools endpoint are mocked; no browser is started.

Tests cover:
- DevTools URL derivation and endpoint probing
- Attach-or-launch decision
- Temp profile cleanup on launch failure and on release
- Navigation retries
- open_page() tab reuse and teardown
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from playwright.async_api import Error as PlaywrightError

from browser_oracle.browser import lifecycle
from browser_oracle.browser.lifecycle import (
    WEBDRIVER_INIT_SCRIPT,
    BrowserSession,
    _launch,
    acquire_session,
    devtools_version_url,
    navigate,
    open_page,
    probe_cdp_endpoint,
    release_session,
)
from browser_oracle.config.schema import BrowserConfig
from browser_oracle.exceptions import BrowserLaunchError


def make_context(pages=None):
    """Return a mocked BrowserContext."""
    context = MagicMock()
    context.pages = pages or []
    context.close = AsyncMock()
    context.add_init_script = AsyncMock()
    context.new_page = AsyncMock(return_value=make_tab("about:blank"))
    return context


def make_tab(url):
    tab = MagicMock()
    tab.url = url
    tab.goto = AsyncMock()
    return tab


def make_playwright(context=None, browser=None):
    pw = MagicMock()
    pw.chromium.launch_persistent_context = AsyncMock(return_value=context or make_context())
    pw.chromium.connect_over_cdp = AsyncMock(return_value=browser)
    pw.stop = AsyncMock()
    return pw


@pytest.fixture
def fast_navigation(monkeypatch):
    """Remove backoff between navigation attempts."""
    monkeypatch.setattr(lifecycle, "NAVIGATION_MIN_WAIT_SECONDS", 0)
    monkeypatch.setattr(lifecycle, "NAVIGATION_MAX_WAIT_SECONDS", 0)


class TestDevtoolsVersionUrl:
    """Test suite for devtools_version_url()."""

    @pytest.mark.parametrize(
        "cdp_url,expected",
        [
            ("http://127.0.0.1:9222", "http://127.0.0.1:9222/json/version"),
            ("ws://127.0.0.1:9222/devtools/browser/abc", "http://127.0.0.1:9222/json/version"),
            ("wss://remote.example:443/cdp", "https://remote.example:443/json/version"),
        ],
    )
    def test_urls(self, cdp_url, expected):
        assert devtools_version_url(cdp_url) == expected


class TestProbeCdpEndpoint:
    """Test suite for probe_cdp_endpoint()."""

    @pytest.mark.asyncio
    async def test_endpoint_answers(self):
        response = httpx.Response(200, json={"Browser": "Chrome/130"})
        with patch.object(httpx.AsyncClient, "get", AsyncMock(return_value=response)) as get:
            assert await probe_cdp_endpoint("http://127.0.0.1:9222") is True

        get.assert_awaited_once_with("http://127.0.0.1:9222/json/version")

    @pytest.mark.asyncio
    async def test_non_200_is_unreachable(self):
        response = httpx.Response(404)
        with patch.object(httpx.AsyncClient, "get", AsyncMock(return_value=response)):
            assert await probe_cdp_endpoint("http://127.0.0.1:9222") is False

    @pytest.mark.asyncio
    async def test_connection_refused_is_unreachable(self):
        error = httpx.ConnectError("Connection refused")
        with patch.object(httpx.AsyncClient, "get", AsyncMock(side_effect=error)):
            assert await probe_cdp_endpoint("http://127.0.0.1:9222") is False


class TestAcquireSession:
    """Test suite for acquire_session()."""

    @pytest.mark.asyncio
    async def test_attaches_when_endpoint_answers(self):
        """A live CDP endpoint should be reused instead of launching."""
        context = make_context()
        browser = MagicMock()
        browser.contexts = [context]
        pw = make_playwright(browser=browser)
        config = BrowserConfig(remote_cdp_url="http://127.0.0.1:9222")

        with patch.object(lifecycle, "probe_cdp_endpoint", AsyncMock(return_value=True)):
            session = await acquire_session(pw, config)

        assert session.remote_attached is True
        assert session.context is context
        assert session.temp_profile is None
        pw.chromium.launch_persistent_context.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_launches_when_endpoint_down(self, tmp_path):
        """A dead CDP endpoint should fall back to launching Chromium."""
        pw = make_playwright()
        config = BrowserConfig(
            remote_cdp_url="http://127.0.0.1:9222", chrome_profile_path=str(tmp_path)
        )

        with patch.object(lifecycle, "probe_cdp_endpoint", AsyncMock(return_value=False)):
            session = await acquire_session(pw, config)

        assert session.remote_attached is False
        pw.chromium.connect_over_cdp.assert_not_awaited()
        args, kwargs = pw.chromium.launch_persistent_context.call_args
        assert args == (str(tmp_path),)
        assert kwargs["headless"] is False

    @pytest.mark.asyncio
    async def test_attach_failure_falls_back_to_launch(self, tmp_path):
        pw = make_playwright()
        pw.chromium.connect_over_cdp = AsyncMock(side_effect=PlaywrightError("refused"))
        config = BrowserConfig(
            remote_cdp_url="http://127.0.0.1:9222", chrome_profile_path=str(tmp_path)
        )

        with patch.object(lifecycle, "probe_cdp_endpoint", AsyncMock(return_value=True)):
            session = await acquire_session(pw, config)

        assert session.remote_attached is False
        pw.chromium.launch_persistent_context.assert_awaited_once()


class TestLaunch:
    """Test suite for _launch() profile handling."""

    @pytest.mark.asyncio
    async def test_temp_profile_created(self, tmp_path):
        profile = tmp_path / "oracle-stealth-1"
        profile.mkdir()
        pw = make_playwright()

        with patch.object(lifecycle.tempfile, "mkdtemp", return_value=str(profile)):
            session = await _launch(pw, BrowserConfig(headless=True))

        assert session.temp_profile == str(profile)
        assert pw.chromium.launch_persistent_context.call_args.args == (str(profile),)

    @pytest.mark.asyncio
    async def test_launch_failure_removes_temp_profile(self, tmp_path):
        """A failed launch should raise and leave no profile directory behind."""
        profile = tmp_path / "oracle-stealth-2"
        profile.mkdir()
        pw = make_playwright()
        pw.chromium.launch_persistent_context = AsyncMock(
            side_effect=PlaywrightError("Executable doesn't exist")
        )

        with patch.object(lifecycle.tempfile, "mkdtemp", return_value=str(profile)):
            with pytest.raises(BrowserLaunchError, match="Executable doesn't exist"):
                await _launch(pw, BrowserConfig())

        assert not profile.exists()

    @pytest.mark.asyncio
    async def test_explicit_profile_is_not_temporary(self, tmp_path):
        pw = make_playwright()

        session = await _launch(pw, BrowserConfig(chrome_profile_path=str(tmp_path)))

        assert session.temp_profile is None


class TestReleaseSession:
    """Test suite for release_session()."""

    @pytest.mark.asyncio
    async def test_closes_and_removes_temp_profile(self, tmp_path):
        profile = tmp_path / "profile"
        profile.mkdir()
        context = make_context()

        await release_session(BrowserSession(context, temp_profile=str(profile)), keep_browser=False)

        context.close.assert_awaited_once()
        assert not profile.exists()

    @pytest.mark.asyncio
    async def test_keep_browser_leaves_everything(self, tmp_path):
        profile = tmp_path / "profile"
        profile.mkdir()
        context = make_context()

        await release_session(BrowserSession(context, temp_profile=str(profile)), keep_browser=True)

        context.close.assert_not_awaited()
        assert profile.exists()

    @pytest.mark.asyncio
    async def test_attached_browser_is_never_closed(self):
        context = make_context()

        await release_session(BrowserSession(context, remote_attached=True), keep_browser=False)

        context.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_close_error_still_removes_profile(self, tmp_path):
        profile = tmp_path / "profile"
        profile.mkdir()
        context = make_context()
        context.close = AsyncMock(side_effect=PlaywrightError("Browser has been closed"))

        await release_session(BrowserSession(context, temp_profile=str(profile)), keep_browser=False)

        assert not profile.exists()


class TestNavigate:
    """Test suite for navigate()."""

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, fast_navigation):
        page = MagicMock()
        page.goto = AsyncMock(side_effect=[PlaywrightError("net::ERR_TIMED_OUT"), None])

        assert await navigate(page, "https://chatgpt.com/", attempts=3) is True
        assert page.goto.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_without_raising(self, fast_navigation):
        """Exhausted attempts should be logged and reported, not raised."""
        page = MagicMock()
        page.goto = AsyncMock(side_effect=PlaywrightError("net::ERR_TIMED_OUT"))

        assert await navigate(page, "https://chatgpt.com/", attempts=3) is False
        assert page.goto.await_count == 3

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self, fast_navigation):
        page = MagicMock()
        page.goto = AsyncMock(side_effect=ValueError("bad url"))

        with pytest.raises(ValueError):
            await navigate(page, "https://chatgpt.com/", attempts=3)

        assert page.goto.await_count == 1


class TestOpenPage:
    """Test suite for open_page()."""

    def patched_playwright(self, pw):
        starter = MagicMock()
        starter.start = AsyncMock(return_value=pw)
        return patch.object(lifecycle, "async_playwright", MagicMock(return_value=starter))

    @pytest.mark.asyncio
    async def test_opens_new_tab_and_tears_down(self, tmp_path, fast_navigation):
        context = make_context()
        pw = make_playwright(context=context)
        config = BrowserConfig(chrome_profile_path=str(tmp_path))

        with self.patched_playwright(pw):
            async with open_page(config) as page:
                assert page is not None

        context.add_init_script.assert_awaited_once_with(WEBDRIVER_INIT_SCRIPT)
        context.new_page.assert_awaited_once()
        context.new_page.return_value.goto.assert_awaited_once()
        assert context.new_page.return_value.goto.call_args.args[0] == config.url
        context.close.assert_awaited_once()
        pw.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reuses_tab_on_target_host(self, tmp_path, fast_navigation):
        existing = make_tab("https://chatgpt.com/c/123")
        context = make_context(pages=[make_tab("https://example.com/"), existing])
        pw = make_playwright(context=context)

        with self.patched_playwright(pw):
            async with open_page(BrowserConfig(chrome_profile_path=str(tmp_path))):
                pass

        context.new_page.assert_not_awaited()
        existing.goto.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_keep_browser_leaves_driver_running(self, tmp_path, fast_navigation):
        context = make_context()
        pw = make_playwright(context=context)
        config = BrowserConfig(chrome_profile_path=str(tmp_path), keep_browser=True)

        with self.patched_playwright(pw):
            async with open_page(config):
                pass

        context.close.assert_not_awaited()
        pw.stop.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_launch_failure_stops_driver(self, fast_navigation):
        pw = make_playwright()
        pw.chromium.launch_persistent_context = AsyncMock(side_effect=PlaywrightError("boom"))

        with self.patched_playwright(pw):
            with pytest.raises(BrowserLaunchError):
                async with open_page(BrowserConfig()):
                    pass

        pw.stop.assert_awaited_once()
