"""Agent loop: ask the planner, run the requested actions, repeat until it answers.

One ``AgentSession`` holds one conversation. ``run`` takes a user message and
blocks until the planner replies without requesting any action, then returns
that reply. The session can take further messages afterwards; the history
carries over, trimmed to ``max_messages`` turns plus the standing instruction.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from catalog import ActionCatalog
from errors import BudgetExceededError, OracleError, SessionClosedError
from executor import OK, ActionResult, Dispatcher
from logger import AgentLogger, logger as default_logger
from memory import DEFAULT_MAX_MESSAGES, ConversationMemory, Turn

ERROR_PREFIX = "ERROR"


class SessionState(str, Enum):
    AWAITING_USER_INPUT = "awaiting_user_input"
    CONSULTING_ORACLE = "consulting_oracle"
    DISPATCHING_ACTIONS = "dispatching_actions"
    DONE = "done"
    BUDGET_EXCEEDED = "budget_exceeded"
    FAILED = "failed"
    CLOSED = "closed"


ACCEPTS_INPUT = {SessionState.AWAITING_USER_INPUT, SessionState.DONE, SessionState.BUDGET_EXCEEDED}


def result_to_turn(result: ActionResult) -> Turn:
    if result.kind == OK:
        return Turn.action_result(result.request_id, result.name, result.message)
    return Turn.action_result(
        result.request_id,
        result.name,
        f"{ERROR_PREFIX}: {result.message}",
        failed=True,
    )


class AgentSession:
    def __init__(
        self,
        planner,
        catalog: ActionCatalog,
        *,
        instruction: str = "",
        max_messages: int = DEFAULT_MAX_MESSAGES,
        max_iterations: Optional[int] = None,
        max_seconds: Optional[float] = None,
        logger: Optional[AgentLogger] = None,
        dispatcher: Optional[Dispatcher] = None,
        clock=time.monotonic,
    ):
        self.planner = planner
        self.catalog = catalog
        self.instruction = instruction
        # zero or negative disables a budget
        self.max_iterations = max_iterations if max_iterations and max_iterations > 0 else None
        self.max_seconds = max_seconds if max_seconds and max_seconds > 0 else None
        self.logger = logger or default_logger
        self.dispatcher = dispatcher or Dispatcher(catalog, logger=self.logger)
        self._clock = clock
        self.memory = ConversationMemory(max_messages=max_messages)
        if instruction:
            self.memory.append([Turn.instruction(instruction)])
        self.state = SessionState.AWAITING_USER_INPUT
        self.iterations = 0
        self.logger.session("Session started", {"max_messages": max_messages, "actions": catalog.names()})

    @property
    def history(self) -> List[Turn]:
        return self.memory.snapshot()

    def run(self, message: str) -> str:
        if self.state not in ACCEPTS_INPUT:
            raise SessionClosedError(f"Session is {self.state.value}; start a new session.")

        self.state = SessionState.AWAITING_USER_INPUT
        self.memory.append([Turn.user(message)])
        self.logger.agent(
            "Processing user request",
            {"message": message, "conversationLength": self.memory.size()},
        )

        self.iterations = 0
        started = self._clock()
        tools = self.catalog.schemas()
        self.state = SessionState.CONSULTING_ORACLE
        while True:
            self._check_budget(started)
            reply = self._consult(tools)
            self.memory.append([reply])

            if not reply.requests:
                self.state = SessionState.DONE
                self.logger.agent("Responding with final answer (no tools needed)")
                self.logger.step("→ Routing to END (conversation complete)")
                return reply.content

            self.logger.agent(
                f"Planning to use {len(reply.requests)} tool(s)",
                {"tools": [{"name": request.name, "args": dict(request.arguments)} for request in reply.requests]},
            )
            self.logger.step("→ Routing to tools node")
            self.state = SessionState.DISPATCHING_ACTIONS
            results = self.dispatcher.run(reply.requests)
            self.memory.append([result_to_turn(result) for result in results])
            self.logger.debug(
                "agent",
                "Batch recorded",
                {
                    "elapsed_ms": {result.name: result.elapsed_ms for result in results},
                    "recent": self.memory.recent_sentences(),
                },
            )
            self.state = SessionState.CONSULTING_ORACLE

    def _consult(self, tools: Sequence[Dict[str, Any]]) -> Turn:
        self.iterations += 1
        self.logger.agent("Calling LLM to generate response...", {"iteration": self.iterations})
        try:
            return self.planner.consult(self.instruction, self.memory.snapshot(), tools)
        except OracleError as exc:
            self._fail(exc)
            raise
        except Exception as exc:
            error = OracleError(f"Planning LLM failed: {exc}")
            self._fail(error)
            raise error from exc

    def _fail(self, exc: Exception) -> None:
        self.state = SessionState.FAILED
        self.logger.error("session", f"Session failed: {exc}")

    def _check_budget(self, started: float) -> None:
        elapsed = self._clock() - started
        reason = None
        if self.max_iterations is not None and self.iterations >= self.max_iterations:
            reason = f"Reached the limit of {self.max_iterations} planner call(s) without a final answer."
        elif self.max_seconds is not None and elapsed >= self.max_seconds:
            reason = f"Ran for {elapsed:.1f}s, over the {self.max_seconds:g}s budget, without a final answer."
        if reason is None:
            return
        self.state = SessionState.BUDGET_EXCEEDED
        self.logger.warn("session", reason)
        raise BudgetExceededError(reason, self.iterations, elapsed)

    def reset(self) -> None:
        """Forget the conversation but keep the standing instruction."""
        if self.state in (SessionState.FAILED, SessionState.CLOSED):
            raise SessionClosedError(f"Session is {self.state.value}; start a new session.")
        self.memory.clear()
        if self.instruction:
            self.memory.append([Turn.instruction(self.instruction)])
        self.state = SessionState.AWAITING_USER_INPUT
        self.logger.session("History cleared")

    def close(self) -> None:
        self.memory.clear()
        self.state = SessionState.CLOSED
        self.logger.session("Session closed")
