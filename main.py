# main.py
import sys
from typing import Callable

from agent import AgentSession
from bots._profile_launch import BrowserController
from browser_tools import create_browser_catalog
from config import AgentSettings, load_settings
from errors import BudgetExceededError, ConfigurationError, OracleError
from logger import AgentLogger
from planner import OpenAIPlanner

EXIT_COMMANDS = {"exit", "quit"}
CLEAR_COMMANDS = {"clear", "reset"}


def build_session(settings: AgentSettings, controller: BrowserController, logger: AgentLogger) -> AgentSession:
    catalog = create_browser_catalog(controller, logger=logger)
    planner = OpenAIPlanner(
        api_key=settings.api_key,
        model=settings.model,
        temperature=settings.temperature,
        timeout=settings.oracle_timeout,
        logger=logger,
    )
    return AgentSession(
        planner,
        catalog,
        instruction=settings.system_prompt,
        max_messages=settings.max_messages,
        max_iterations=settings.max_iterations,
        max_seconds=settings.max_seconds,
        logger=logger,
    )


def repl(session: AgentSession, read_line: Callable[[str], str] = input) -> int:
    print("🌐 Browser agent ready. Type a request, 'clear' to forget the conversation, or 'exit' to quit.")
    while True:
        try:
            message = read_line("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return 0

        if not message:
            continue
        lowered = message.lower()
        if lowered in EXIT_COMMANDS:
            return 0
        if lowered in CLEAR_COMMANDS:
            session.reset()
            print("🧹 Conversation cleared.")
            continue

        try:
            answer = session.run(message)
        except BudgetExceededError as exc:
            print(f"⚠️ Stopped before a final answer: {exc.reason}")
            continue
        except OracleError as exc:
            print(f"❌ {exc}")
            return 1
        print(f"\n🤖 Agent: {answer}")


def main() -> int:
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print(f"❌ {exc}")
        return 2

    logger = AgentLogger(timestamps=settings.log_timestamps, debug=settings.log_debug)
    controller = BrowserController(headless=settings.headless, profile_dir=settings.profile_dir)
    session = build_session(settings, controller, logger)
    try:
        return repl(session)
    finally:
        session.close()
        controller.close()


if __name__ == "__main__":
    sys.exit(main())
