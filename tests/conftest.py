"""
Shared pytest fixtures: a scripted planner, a recording logger and a fake page.
"""
import inspect
import io
from unittest.mock import create_autospec

import pytest
from playwright.sync_api import ElementHandle, Locator, Mouse, Page

from catalog import ActionCatalog
from logger import AgentLogger
from memory import ActionRequest, Turn


class ScriptedPlanner:
    """Returns the queued assistant turns in order and records every call."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    def queue(self, reply):
        self.replies.append(reply)

    def consult(self, instruction, turns, tools):
        self.calls.append({"instruction": instruction, "turns": list(turns), "tools": list(tools)})
        if not self.replies:
            raise AssertionError("ScriptedPlanner ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(instruction, turns, tools)
        return reply


class RecordingLogger(AgentLogger):
    def __init__(self):
        super().__init__(timestamps=False, debug=True, stream=io.StringIO())
        self.records = []

    def log(self, category, message, data=None, *, level="info"):
        self.records.append((level, category, message, data))
        super().log(category, message, data, level=level)

    def messages(self, category=None):
        return [message for _, cat, message, _ in self.records if category is None or cat == category]


def final(content):
    return Turn.assistant(content)


def calls(*requests):
    return Turn.assistant("", [ActionRequest(id=rid, name=name, arguments=args) for rid, name, args in requests])


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def echo_catalog():
    catalog = ActionCatalog()

    @catalog.action("echo", "Echo the text back.", {"text": {"type": "string", "required": True}})
    def echo(text):
        return f"echo: {text}"

    @catalog.action("boom", "Always fails.", {})
    def boom():
        raise RuntimeError("kaboom")

    @catalog.action(
        "add",
        "Add two integers.",
        {"a": {"type": "integer", "required": True}, "b": {"type": "integer", "default": 1}},
    )
    def add(a, b=1):
        return str(a + b)

    return catalog


def element_handle(tag="button", text="Sign in", visible=True, attributes=None):
    """An ElementHandle mock that rejects calls Playwright's real signature would."""
    attributes = attributes or {}
    element = create_autospec(ElementHandle, instance=True)
    element.is_visible.return_value = visible
    element.inner_text.return_value = text
    element.get_attribute.side_effect = attributes.get
    element.evaluate.return_value = tag
    return element


def text_match(tag="button", text="Sign in", visible=True, attributes=None):
    """One entry of ``Locator.all()``, specced like a real Locator."""
    attributes = attributes or {}
    match = create_autospec(Locator, instance=True)
    match.is_visible.return_value = visible
    match.inner_text.return_value = text
    match.get_attribute.side_effect = lambda name, **kwargs: attributes.get(name)
    match.evaluate.return_value = tag
    return match


def _bind(owner, name, *args, **kwargs):
    # raises TypeError when Playwright would reject the call
    inspect.signature(getattr(owner, name)).bind(None, *args, **kwargs)


class FakeLocator:
    def __init__(self, elements):
        self.elements = elements

    def all(self):
        return list(self.elements)


class FakeMouse:
    def __init__(self, calls):
        self.calls = calls

    def wheel(self, *args, **kwargs):
        _bind(Mouse, "wheel", *args, **kwargs)
        self.calls.append(("wheel", *args))


class FakePage:
    """Records page calls after checking each one against ``playwright.sync_api.Page``."""

    def __init__(self):
        self.calls = []
        self.title_value = "Example Domain"
        self.elements = {}
        self.text_matches = []
        self.links = []
        self.fail_wait = None
        self.mouse = FakeMouse(self.calls)

    def goto(self, *args, **kwargs):
        _bind(Page, "goto", *args, **kwargs)
        self.calls.append(("goto", args[0], kwargs))

    def title(self, *args, **kwargs):
        _bind(Page, "title", *args, **kwargs)
        return self.title_value

    def wait_for_selector(self, *args, **kwargs):
        _bind(Page, "wait_for_selector", *args, **kwargs)
        self.calls.append(("wait_for_selector", args[0], kwargs))
        if self.fail_wait:
            raise self.fail_wait
        return self.elements.get(args[0])

    def query_selector(self, *args, **kwargs):
        _bind(Page, "query_selector", *args, **kwargs)
        return self.elements.get(args[0])

    def click(self, *args, **kwargs):
        _bind(Page, "click", *args, **kwargs)
        self.calls.append(("click", args[0], kwargs))

    def wait_for_timeout(self, *args, **kwargs):
        _bind(Page, "wait_for_timeout", *args, **kwargs)
        self.calls.append(("wait_for_timeout", *args))

    def fill(self, *args, **kwargs):
        _bind(Page, "fill", *args, **kwargs)
        self.calls.append(("fill", args[0], args[1]))

    def press(self, *args, **kwargs):
        _bind(Page, "press", *args, **kwargs)
        self.calls.append(("press", args[0], args[1]))

    def screenshot(self, *args, **kwargs):
        _bind(Page, "screenshot", *args, **kwargs)
        self.calls.append(("screenshot", kwargs))

    def locator(self, *args, **kwargs):
        _bind(Page, "locator", *args, **kwargs)
        self.calls.append(("locator", args[0]))
        return FakeLocator(self.text_matches)

    def eval_on_selector_all(self, *args, **kwargs):
        _bind(Page, "eval_on_selector_all", *args, **kwargs)
        self.calls.append(("eval_on_selector_all", args[0]))
        return list(self.links)


class FakeController:
    def __init__(self, page):
        self.page = page
        self.ensure_calls = 0

    def ensure(self):
        self.ensure_calls += 1
        return self.page

    def close(self):
        pass


@pytest.fixture
def fake_page():
    return FakePage()


@pytest.fixture
def fake_controller(fake_page):
    return FakeController(fake_page)
