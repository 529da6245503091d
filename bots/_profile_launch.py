"""Playwright lifecycle for the browser actions.

``BrowserController`` starts Chromium the first time an action needs a page and
keeps that single page for the rest of the session. With ``profile_dir`` set it
uses a persistent Chromium profile (cookies, localStorage and logins survive
between runs); otherwise it opens a throwaway context.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

from logger import logger


def launch_persistent(
    profile_dir: str,
    *,
    headless: bool = False,
) -> Tuple[Playwright, BrowserContext, Page]:
    """Launch a persistent Chromium context backed by ``profile_dir``.

    The directory is created when missing so repeated runs reuse the same
    profile. Returns the Playwright controller too, so the caller can stop it.
    """

    profile_path = Path(profile_dir)
    profile_path.mkdir(parents=True, exist_ok=True)

    playwright = sync_playwright().start()
    try:
        context = playwright.chromium.launch_persistent_context(
            str(profile_path),
            headless=headless,
        )
    except Exception:
        playwright.stop()
        raise

    page = context.pages[0] if context.pages else context.new_page()
    return playwright, context, page


def shutdown(
    playwright: Optional[Playwright],
    context: Optional[BrowserContext],
    browser: Optional[Browser] = None,
) -> None:
    """Dispose of Playwright resources, stopping the driver even if closing fails."""

    try:
        if context:
            context.close()
        if browser:
            browser.close()
    finally:
        if playwright:
            playwright.stop()


class BrowserController:
    def __init__(self, *, headless: bool = False, profile_dir: Optional[str] = None):
        self.headless = headless
        self.profile_dir = profile_dir
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    def ensure(self) -> Page:
        if self._page is not None:
            return self._page

        if self.profile_dir:
            self._playwright, self._context, self._page = launch_persistent(
                self.profile_dir, headless=self.headless
            )
            return self._page

        playwright = sync_playwright().start()
        try:
            browser = playwright.chromium.launch(headless=self.headless)
            context = browser.new_context()
            page = context.new_page()
        except Exception:
            playwright.stop()
            raise
        self._playwright, self._browser, self._context, self._page = playwright, browser, context, page
        return page

    def close(self) -> None:
        playwright, context, browser = self._playwright, self._context, self._browser
        self._playwright = self._browser = self._context = self._page = None
        if playwright is None:
            return
        try:
            shutdown(playwright, context, browser)
        except Exception as exc:
            logger.warn("browser", f"Browser shutdown reported an error: {exc}")
