# executor.py
import json
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional

from catalog import ActionCatalog, ArgumentValidationError
from logger import AgentLogger, logger as default_logger
from memory import ActionRequest


RESULT_PREVIEW_LIMIT = 200

OK = "ok"
UNKNOWN_ACTION = "unknown_action"
INVALID_ARGUMENTS = "invalid_arguments"
FAILED = "failed"


@dataclass(frozen=True)
class ActionResult:
    request_id: str
    name: str
    kind: str
    message: str
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.kind == OK


def _preview(text: str, limit: int = RESULT_PREVIEW_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def _as_text(output) -> str:
    if isinstance(output, str):
        return output
    return json.dumps(output, default=str)


class Dispatcher:
    """
    Runs the actions requested by one assistant turn against the catalog.

    Every request yields exactly one ActionResult, in request order. Nothing
    raised by validation or by a handler escapes; it becomes an error result.
    """

    def __init__(self, catalog: ActionCatalog, logger: Optional[AgentLogger] = None):
        self.catalog = catalog
        self.logger = logger or default_logger

    def run(self, requests: Iterable[ActionRequest]) -> List[ActionResult]:
        batch = list(requests)
        if not batch:
            return []
        self.logger.tool(f"Executing {len(batch)} tool call(s)")
        return [self.execute_action(request) for request in batch]

    def execute_action(self, request: ActionRequest) -> ActionResult:
        started = time.monotonic()

        def _elapsed() -> int:
            return int((time.monotonic() - started) * 1000)

        spec = self.catalog.get(request.name)
        if spec is None:
            elapsed = _elapsed()
            self.logger.error("tool", f"✗ Unknown tool: {request.name} (rejected in {elapsed}ms)")
            return ActionResult(request.id, request.name, UNKNOWN_ACTION, f"unknown action: {request.name}", elapsed)

        self.logger.tool(f"Calling {request.name}", {"args": dict(request.arguments)})
        try:
            arguments = spec.validate(request.arguments)
        except ArgumentValidationError as exc:
            elapsed = _elapsed()
            self.logger.error("tool", f"✗ {request.name} rejected arguments in {elapsed}ms: {exc}")
            return ActionResult(
                request.id,
                request.name,
                INVALID_ARGUMENTS,
                f"invalid arguments for {request.name}: {exc}",
                elapsed,
            )

        try:
            text = _as_text(spec.invoke(arguments))
        except Exception as exc:
            elapsed = _elapsed()
            message = str(exc) or exc.__class__.__name__
            self.logger.error("tool", f"✗ {request.name} failed in {elapsed}ms: {message}")
            return ActionResult(request.id, request.name, FAILED, message, elapsed)

        elapsed = _elapsed()
        self.logger.tool(f"✓ {request.name} completed in {elapsed}ms", {"result": _preview(text)})
        return ActionResult(request.id, request.name, OK, text, elapsed)
