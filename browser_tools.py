"""
Browser actions for the agent.

Keep outputs concise: the planner only needs enough to decide the next step.
Every wait is bounded by a Playwright timeout, so a stuck page turns into an
error result for that one action instead of hanging the session.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from bots._profile_launch import BrowserController
from catalog import ActionCatalog
from logger import AgentLogger, logger as default_logger


VISIBLE_TIMEOUT_MS = 10000
ACTION_TIMEOUT_MS = 15000
CLICK_SETTLE_MS = 1000
DEFAULT_EXTRACT_CHARS = 2000
FIND_BY_TEXT_LIMIT = 10
DEFAULT_LINK_LIMIT = 20
LINK_SCAN_LIMIT = 50
ELEMENT_TEXT_LIMIT = 100

SELECTOR_HELP = (
    "Try using browser_find_by_text to find the element by its text content, "
    "or browser_find_links to see all clickable links."
)

CLICKABLES_SCRIPT = """
(elements) => elements.slice(0, %d).map((el, i) => {
  const tag = el.tagName.toLowerCase();
  const text = (el.textContent || "").trim().substring(0, %d);
  const href = el.href || "";
  const id = el.id || "";
  const className = (el.className && el.className.toString().split(" ")[0]) || "";
  let selector = tag;
  if (id) selector = `#${id}`;
  else if (className) selector = `${tag}.${className}`;
  return { index: i + 1, tag, text, href: href || null, selector };
})
""" % (LINK_SCAN_LIMIT, ELEMENT_TEXT_LIMIT)


def _suggest_selector(element, tag_name: str, text: str) -> str:
    try:
        element_id = element.get_attribute("id")
        if element_id:
            return f"#{element_id}"
        class_name = element.get_attribute("class")
        if class_name and class_name.split():
            return f"{tag_name}.{class_name.split()[0]}"
    except Exception:
        pass
    return f'{tag_name}:has-text("{text}")'


def create_browser_catalog(
    controller: BrowserController,
    logger: Optional[AgentLogger] = None,
    catalog: Optional[ActionCatalog] = None,
) -> ActionCatalog:
    log = logger or default_logger
    catalog = catalog or ActionCatalog()

    @catalog.action(
        "browser_goto",
        "Navigate the browser to a URL.",
        {"url": {"type": "url", "required": True}},
    )
    def goto(url: str) -> str:
        log.browser(f"Navigating to: {url}")
        page = controller.ensure()
        page.goto(url, wait_until="domcontentloaded", timeout=ACTION_TIMEOUT_MS * 2)
        title = page.title()
        log.browser(f'Page loaded: "{title}"')
        return f"Navigated to {url}. Title: {title}"

    @catalog.action(
        "browser_click",
        "Left click an element using a CSS selector. The element must be visible and clickable. "
        "If the selector doesn't work, use browser_find_by_text or browser_find_links first.",
        {"selector": {"type": "string", "required": True}},
    )
    def click(selector: str) -> str:
        log.browser(f"Attempting to click: {selector}")
        page = controller.ensure()
        try:
            page.wait_for_selector(selector, state="visible", timeout=VISIBLE_TIMEOUT_MS)
        except Exception as exc:
            log.browser(f"✗ Click failed: {exc}")
            raise RuntimeError(f"clicking {selector}: {exc}. {SELECTOR_HELP}") from exc

        element = page.query_selector(selector)
        if element is None:
            raise RuntimeError(f"Element not found: {selector}. {SELECTOR_HELP}")
        if not element.is_visible():
            raise RuntimeError(
                f"Element exists but is not visible: {selector}. "
                "The element might be hidden or require scrolling."
            )

        try:
            page.click(selector, timeout=ACTION_TIMEOUT_MS)
        except Exception as exc:
            log.browser(f"✗ Click failed: {exc}")
            raise RuntimeError(f"clicking {selector}: {exc}. {SELECTOR_HELP}") from exc
        log.browser(f"✓ Successfully clicked: {selector}")
        page.wait_for_timeout(CLICK_SETTLE_MS)
        return f"Successfully clicked: {selector}"

    @catalog.action(
        "browser_right_click",
        "Right click an element using a CSS selector.",
        {"selector": {"type": "string", "required": True}},
    )
    def right_click(selector: str) -> str:
        log.browser(f"Right-clicking: {selector}")
        page = controller.ensure()
        page.click(selector, button="right", timeout=ACTION_TIMEOUT_MS)
        log.browser(f"✓ Right-clicked: {selector}")
        return f"Right-clicked selector: {selector}"

    @catalog.action(
        "browser_type",
        "Type into an input/textarea using a CSS selector. Optionally press Enter.",
        {
            "selector": {"type": "string", "required": True},
            "text": {"type": "string", "required": True},
            "press_enter": {"type": "boolean", "default": False},
        },
    )
    def type_text(selector: str, text: str, press_enter: bool = False) -> str:
        suffix = " (will press Enter)" if press_enter else ""
        log.browser(f'Typing into {selector}: "{text}"{suffix}')
        page = controller.ensure()
        page.fill(selector, text, timeout=ACTION_TIMEOUT_MS)
        if press_enter:
            page.press(selector, "Enter", timeout=ACTION_TIMEOUT_MS)
        log.browser(f"✓ Typed into {selector}")
        return f'Typed into {selector}: "{text}"' + (" and pressed Enter" if press_enter else "")

    @catalog.action(
        "browser_scroll",
        "Scroll the page vertically by dy pixels (positive = down, negative = up).",
        {"dy": {"type": "number", "required": True}},
    )
    def scroll(dy: float) -> str:
        direction = "down" if dy > 0 else "up"
        log.browser(f"Scrolling {direction} by {abs(dy):g}px")
        page = controller.ensure()
        page.mouse.wheel(0, dy)
        return f"Scrolled vertically by dy={dy:g}"

    @catalog.action(
        "browser_screenshot",
        "Take a full-page screenshot and save it to a file path.",
        {"path": {"type": "string", "required": True}},
    )
    def screenshot(path: str) -> str:
        log.browser(f"Taking screenshot: {path}")
        page = controller.ensure()
        target = Path(path)
        if target.parent and not target.parent.exists():
            target.parent.mkdir(parents=True, exist_ok=True)
        page.screenshot(path=str(target), full_page=True, timeout=ACTION_TIMEOUT_MS * 2)
        log.browser(f"✓ Screenshot saved: {path}")
        return f"Saved screenshot to {path}"

    @catalog.action(
        "browser_extract_text",
        "Extract innerText from a CSS selector (clipped).",
        {
            "selector": {"type": "string", "required": True},
            "max_chars": {"type": "integer", "default": DEFAULT_EXTRACT_CHARS},
        },
    )
    def extract_text(selector: str, max_chars: int = DEFAULT_EXTRACT_CHARS) -> str:
        log.browser(f"Extracting text from: {selector}")
        page = controller.ensure()
        element = page.query_selector(selector)
        if element is None:
            log.browser(f"✗ Element not found: {selector}")
            return f"No element found for selector: {selector}"
        text = (element.inner_text() or "").strip()
        clipped = text[: max(max_chars, 0)]
        log.browser(f"✓ Extracted {len(clipped)} characters from {selector}")
        return f"Extracted text ({len(clipped)} chars) from {selector}:\n{clipped}"

    @catalog.action(
        "browser_find_by_text",
        "Find clickable elements by their text content. Returns selectors you can use with "
        "browser_click. Use this when you know the text but not the selector.",
        {
            "text": {"type": "string", "required": True},
            "exact": {"type": "boolean", "default": False},
        },
    )
    def find_by_text(text: str, exact: bool = False) -> str:
        log.browser(f'Finding elements containing text: "{text}"')
        page = controller.ensure()
        if exact:
            locator = page.locator(f'text="{text}"')
        else:
            locator = page.locator(f"text=/.*{re.escape(text)}.*/i")
        elements = locator.all()
        if not elements:
            log.browser(f'✗ No elements found with text: "{text}"')
            return f'No elements found containing text: "{text}". Try using browser_find_links to see all clickable elements.'

        results: List[Dict[str, Any]] = []
        for index, element in enumerate(elements[:FIND_BY_TEXT_LIMIT], start=1):
            try:
                tag_name = element.evaluate("(el) => el.tagName.toLowerCase()")
                results.append(
                    {
                        "index": index,
                        "tag": tag_name,
                        "visible": element.is_visible(),
                        "selector": _suggest_selector(element, tag_name, text),
                        "text": (element.inner_text(timeout=VISIBLE_TIMEOUT_MS) or "").strip()[:ELEMENT_TEXT_LIMIT],
                        "href": element.get_attribute("href") if tag_name == "a" else None,
                    }
                )
            except Exception as exc:
                log.debug("browser", f"Skipping element {index}: {exc}")
                continue

        if not results:
            return f"Found {len(elements)} element(s) but couldn't extract details. Try using browser_find_links instead."
        log.browser(f'✓ Found {len(results)} element(s) with text "{text}"')
        return f'Found {len(results)} element(s) containing "{text}":\n{json.dumps(results, indent=2)}'

    @catalog.action(
        "browser_find_links",
        "Find all clickable links, buttons, and interactive elements on the page. Returns their "
        "text, href, and selectors. Use this to discover what's clickable on the page.",
        {"max_links": {"type": "integer", "default": DEFAULT_LINK_LIMIT}},
    )
    def find_links(max_links: int = DEFAULT_LINK_LIMIT) -> str:
        log.browser("Finding all clickable links on the page")
        page = controller.ensure()
        links = page.eval_on_selector_all("a, button, [onclick], [role='button']", CLICKABLES_SCRIPT)
        limit = max_links if max_links and max_links > 0 else DEFAULT_LINK_LIMIT
        shown = links[:limit]
        log.browser(f"✓ Found {len(links)} clickable element(s), showing first {len(shown)}")
        return f"Found {len(links)} clickable elements:\n{json.dumps(shown, indent=2)}"

    return catalog
