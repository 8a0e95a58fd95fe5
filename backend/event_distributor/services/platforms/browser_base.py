"""Shared Playwright plumbing for browser automation adapters."""

import asyncio
import random
import re
from abc import abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright
from playwright.async_api import Error as PlaywrightError

from event_distributor.config import get_settings
from event_distributor.models.event import Event
from event_distributor.models.platform_config import IntegrationMethod, PLATFORM_NAMES
from event_distributor.services.platforms.base import (
    AutomationCapable,
    EventPlatformAdapter,
    PublishOutcome,
    VerificationOutcome,
    OperationOutcome,
    SessionOutcome,
)
from event_distributor.services.platforms.credentials import AutomationCredentials

logger = structlog.get_logger()

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def inspect_screenshot(evidence_ref: Optional[str]) -> VerificationOutcome:
    """Check the screenshot recorded at publish time.

    Verification of automation publishes is evidence based: no logged-in
    browser session is needed, only the stored screenshot.
    """
    if not evidence_ref:
        return VerificationOutcome(verified=False, error="No screenshot available for verification")

    path = Path(evidence_ref)
    if not path.is_file():
        return VerificationOutcome(verified=False, error=f"Screenshot not found: {evidence_ref}")

    size = path.stat().st_size
    if size == 0:
        return VerificationOutcome(verified=False, error=f"Screenshot is empty: {evidence_ref}")

    with open(path, "rb") as f:
        header = f.read(len(PNG_SIGNATURE))
    if header != PNG_SIGNATURE:
        return VerificationOutcome(verified=False, error=f"Screenshot is not a PNG image: {evidence_ref}")

    return VerificationOutcome(
        verified=True,
        data={"screenshot": evidence_ref, "size_bytes": size},
    )


class BrowserPlatformAdapter(EventPlatformAdapter, AutomationCapable):
    """Base for the automation-method adapters.

    Subclasses provide URLs, selectors and the form mapping. Playwright
    errors during a run (timeouts, missing selectors) are reported as
    unsuccessful outcomes together with a screenshot of the failing page.
    """

    BASE_URL: str = ""
    LOGIN_URL: str = ""
    LOGIN_EMAIL_SELECTOR: str = 'input[type="email"]'
    LOGIN_PASSWORD_SELECTOR: str = 'input[type="password"]'
    LOGIN_SUBMIT_SELECTOR: str = 'button[type="submit"]'
    SUBMIT_SELECTOR: str = 'button[type="submit"]'
    DELETE_SELECTOR: str = 'button[data-action="delete"]'
    CONFIRM_SELECTOR: str = 'button[data-action="confirm"]'
    # Matches the platform's event ID in the URL reached after submitting
    EVENT_ID_PATTERN: str = r"/events/(\d+)"
    NAVIGATION_TIMEOUT_MS: int = 30000

    def __init__(
        self,
        credentials: AutomationCredentials,
        headless: Optional[bool] = None,
        screenshot_dir: Optional[str] = None,
        page: Optional[Page] = None,
    ):
        """Initialize browser automation.

        Args:
            credentials: Login details and platform settings
            headless: Whether to run browser in headless mode
            screenshot_dir: Where evidence screenshots are written
            page: Externally managed page (skips launching a browser)
        """
        settings = get_settings()
        self.credentials = credentials
        self.headless = settings.browser_headless if headless is None else headless
        self.screenshot_dir = Path(screenshot_dir or settings.screenshot_dir)

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = page
        self._owns_browser = page is None
        self._session_blob: Optional[Dict[str, Any]] = credentials.session_blob
        self._logged_in = False

    @property
    def method(self) -> IntegrationMethod:
        return IntegrationMethod.AUTOMATION

    @property
    def display_name(self) -> str:
        return PLATFORM_NAMES[self.platform]

    # Browser lifecycle

    async def _ensure_page(self) -> Page:
        """Ensure browser is initialized and return the working page."""
        if self._page is not None:
            return self._page

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=[
                "--disable-blink-features=AutomationControlled",
                "--no-sandbox",
                "--disable-dev-shm-usage",
            ],
        )

        context_options = {
            "viewport": {"width": 1280, "height": 900},
            "user_agent": (
                "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/120.0.0.0 Safari/537.36"
            ),
            "locale": "de-DE",
        }
        if self._session_blob:
            context_options["storage_state"] = self._session_blob

        self._context = await self._browser.new_context(**context_options)
        self._page = await self._context.new_page()
        self._page.set_default_timeout(self.NAVIGATION_TIMEOUT_MS)
        logger.info("Browser initialized", platform=self.platform.value)
        return self._page

    @property
    def _active_context(self) -> Optional[BrowserContext]:
        if self._context is not None:
            return self._context
        if self._page is not None:
            return self._page.context
        return None

    async def _human_delay(self, min_seconds: float = 0.5, max_seconds: float = 2.0):
        """Add human-like delay between actions."""
        if not self._owns_browser:
            return
        await asyncio.sleep(random.uniform(min_seconds, max_seconds))

    def _is_login_page(self, url: str) -> bool:
        return "login" in url or "signin" in url

    async def _ensure_logged_in(self, page: Page) -> bool:
        """Reuse the restored session when valid, otherwise log in."""
        if self._logged_in:
            return True

        await page.goto(self.BASE_URL, wait_until="domcontentloaded")
        if self._session_blob and not self._is_login_page(page.url):
            self._logged_in = True
            logger.info("Browser session restored", platform=self.platform.value)
            return True

        logger.info("Logging in via browser", platform=self.platform.value)
        await page.goto(self.LOGIN_URL, wait_until="domcontentloaded")
        await page.fill(self.LOGIN_EMAIL_SELECTOR, self.credentials.username)
        await self._human_delay(0.3, 0.8)
        await page.fill(self.LOGIN_PASSWORD_SELECTOR, self.credentials.password)
        await self._human_delay(0.3, 0.8)
        await page.click(self.LOGIN_SUBMIT_SELECTOR)
        await page.wait_for_load_state("domcontentloaded")

        if self._is_login_page(page.url):
            logger.warning("Browser login failed", platform=self.platform.value)
            return False

        self._logged_in = True
        return True

    async def _capture_screenshot(self, page: Page, label: str) -> Optional[str]:
        """Save a full-page screenshot and return its path."""
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S%f")
        path = self.screenshot_dir / f"{self.platform.value}_{label}_{stamp}.png"
        try:
            await page.screenshot(path=str(path), full_page=True)
        except PlaywrightError as e:
            logger.warning("Screenshot failed", platform=self.platform.value, error=str(e))
            return None
        return str(path)

    async def _fill_form(self, page: Page, fields: Dict[str, str]):
        for selector, value in fields.items():
            if value:
                await page.fill(selector, value)
                await self._human_delay(0.2, 0.6)

    def extract_event_id(self, url: str) -> Optional[str]:
        match = re.search(self.EVENT_ID_PATTERN, url)
        return match.group(1) if match else None

    # Platform hooks

    @abstractmethod
    def create_url(self) -> str:
        pass

    @abstractmethod
    def edit_url(self, platform_event_id: str) -> str:
        pass

    @abstractmethod
    def event_url(self, platform_event_id: str) -> str:
        pass

    @abstractmethod
    def build_form(self, event: Event) -> Dict[str, str]:
        """Map an event to ``{selector: value}`` for the creation form."""
        pass

    # Uniform capability set

    async def create_event(self, event: Event) -> PublishOutcome:
        page = await self._ensure_page()
        try:
            if not await self._ensure_logged_in(page):
                return PublishOutcome(success=False, error=f"Login to {self.display_name} failed")

            await page.goto(self.create_url(), wait_until="domcontentloaded")
            await self._fill_form(page, self.build_form(event))
            await page.click(self.SUBMIT_SELECTOR)
            await page.wait_for_url(re.compile(self.EVENT_ID_PATTERN))
        except PlaywrightError as e:
            evidence_ref = await self._capture_screenshot(page, f"{event.id}_error")
            logger.warning("Browser publish failed", platform=self.platform.value, error=str(e))
            return PublishOutcome(
                success=False,
                error=f"{self.display_name} automation failed: {e}",
                evidence_ref=evidence_ref,
            )

        platform_event_id = self.extract_event_id(page.url)
        evidence_ref = await self._capture_screenshot(page, str(event.id))
        if not platform_event_id:
            return PublishOutcome(
                success=False,
                error=f"Could not read event ID from {page.url}",
                evidence_ref=evidence_ref,
            )

        logger.info(
            "Event created via browser",
            platform=self.platform.value,
            platform_event_id=platform_event_id,
        )
        return PublishOutcome(
            success=True,
            platform_event_id=platform_event_id,
            evidence_ref=evidence_ref,
        )

    async def verify_event(
        self,
        platform_event_id: str,
        evidence_ref: Optional[str] = None,
    ) -> VerificationOutcome:
        outcome = inspect_screenshot(evidence_ref)
        if outcome.verified:
            outcome.data["event_url"] = self.event_url(platform_event_id)
        return outcome

    async def update_event(self, platform_event_id: str, event: Event) -> OperationOutcome:
        page = await self._ensure_page()
        try:
            if not await self._ensure_logged_in(page):
                return OperationOutcome(success=False, error=f"Login to {self.display_name} failed")
            await page.goto(self.edit_url(platform_event_id), wait_until="domcontentloaded")
            await self._fill_form(page, self.build_form(event))
            await page.click(self.SUBMIT_SELECTOR)
            await page.wait_for_load_state("domcontentloaded")
        except PlaywrightError as e:
            return OperationOutcome(success=False, error=f"{self.display_name} update failed: {e}")
        evidence_ref = await self._capture_screenshot(page, f"update_{platform_event_id}")
        return OperationOutcome(success=True, evidence_ref=evidence_ref)

    async def delete_event(self, platform_event_id: str) -> OperationOutcome:
        page = await self._ensure_page()
        try:
            if not await self._ensure_logged_in(page):
                return OperationOutcome(success=False, error=f"Login to {self.display_name} failed")
            await page.goto(self.event_url(platform_event_id), wait_until="domcontentloaded")
            await page.click(self.DELETE_SELECTOR)
            await self._human_delay(0.5, 1.0)
            await page.click(self.CONFIRM_SELECTOR)
            await page.wait_for_load_state("domcontentloaded")
        except PlaywrightError as e:
            return OperationOutcome(success=False, error=f"{self.display_name} deletion failed: {e}")
        evidence_ref = await self._capture_screenshot(page, f"delete_{platform_event_id}")
        return OperationOutcome(success=True, evidence_ref=evidence_ref)

    async def verify_connection(self) -> bool:
        page = await self._ensure_page()
        try:
            return await self._ensure_logged_in(page)
        except PlaywrightError as e:
            logger.warning("Browser connection test failed", platform=self.platform.value, error=str(e))
            return False

    # Session persistence

    async def save_session(self) -> SessionOutcome:
        context = self._active_context
        if context is None:
            return SessionOutcome(success=False, error="No browser session to save")
        try:
            state = await context.storage_state()
        except PlaywrightError as e:
            return SessionOutcome(success=False, error=f"Session save failed: {e}")
        self._session_blob = state
        return SessionOutcome(success=True, session_blob=state)

    async def restore_session(self, session_blob: Dict[str, Any]) -> SessionOutcome:
        if not isinstance(session_blob, dict) or "cookies" not in session_blob:
            return SessionOutcome(success=False, error="Invalid session data")

        self._session_blob = session_blob
        self._logged_in = False
        context = self._active_context
        if context is not None:
            try:
                await context.add_cookies(session_blob["cookies"])
            except PlaywrightError as e:
                return SessionOutcome(success=False, error=f"Session restore failed: {e}")
        logger.info(
            "Browser session loaded",
            platform=self.platform.value,
            cookies=len(session_blob["cookies"]),
        )
        return SessionOutcome(success=True)

    async def close(self):
        """Close browser and cleanup."""
        if not self._owns_browser:
            return
        try:
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
            if self._playwright:
                await self._playwright.stop()
        except PlaywrightError as e:
            logger.warning("Error closing browser", platform=self.platform.value, error=str(e))
        finally:
            self._context = None
            self._browser = None
            self._playwright = None
            self._page = None
