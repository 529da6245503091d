"""Console logger for agent activity.

Lines look like ``[2025-01-01T10:00:00+00:00] [INFO] 🔧 TOOL: Calling browser_click {...}``.
The agent loop and the dispatcher get a logger passed in; the module-level
``logger`` is only for glue code such as ``main.py`` and the browser tools.
"""

import json
import sys
from datetime import UTC, datetime
from typing import Any, Optional, TextIO


CATEGORY_TAGS = {
    "agent": "🤖 AGENT",
    "tool": "🔧 TOOL",
    "browser": "🌐 BROWSER",
    "step": "➡️  STEP",
    "session": "🧭 SESSION",
}
LEVELS = {"debug", "info", "warn", "error"}


class AgentLogger:
    def __init__(
        self,
        *,
        enabled: bool = True,
        timestamps: bool = True,
        debug: bool = False,
        stream: Optional[TextIO] = None,
    ):
        self.enabled = enabled
        self.timestamps = timestamps
        self.show_debug = debug
        self._stream = stream

    def format_line(self, level: str, category: str, message: str, data: Any = None) -> str:
        stamp = f"[{datetime.now(UTC).isoformat(timespec='seconds')}] " if self.timestamps else ""
        tag = CATEGORY_TAGS.get(category, category.upper())
        line = f"{stamp}[{level.upper()}] {tag}: {message}"
        if data is not None:
            line += " " + json.dumps(data, indent=2, default=str, ensure_ascii=False)
        return line

    def log(self, category: str, message: str, data: Any = None, *, level: str = "info") -> None:
        if not self.enabled:
            return
        if level not in LEVELS:
            level = "info"
        if level == "debug" and not self.show_debug:
            return
        # logging must never break the agent loop
        try:
            line = self.format_line(level, category, message, data)
            print(line, file=self._stream or sys.stdout, flush=True)
        except Exception:
            pass

    def agent(self, message: str, data: Any = None) -> None:
        self.log("agent", message, data)

    def tool(self, message: str, data: Any = None) -> None:
        self.log("tool", message, data)

    def browser(self, message: str, data: Any = None) -> None:
        self.log("browser", message, data)

    def step(self, message: str, data: Any = None) -> None:
        self.log("step", message, data)

    def session(self, message: str, data: Any = None) -> None:
        self.log("session", message, data)

    def warn(self, category: str, message: str, data: Any = None) -> None:
        self.log(category, f"⚠️ {message}", data, level="warn")

    def error(self, category: str, message: str, data: Any = None) -> None:
        self.log(category, f"❌ {message}", data, level="error")

    def debug(self, category: str, message: str, data: Any = None) -> None:
        self.log(category, message, data, level="debug")


logger = AgentLogger()
