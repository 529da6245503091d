import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Tuple


DEFAULT_MAX_MESSAGES = 50


class TurnRole(str, Enum):
    INSTRUCTION = "instruction"
    USER = "user"
    ASSISTANT = "assistant"
    ACTION_RESULT = "action_result"


@dataclass(frozen=True)
class ActionRequest:
    id: str
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # read-only copy so history cannot be edited through a snapshot
        object.__setattr__(self, "arguments", MappingProxyType(copy.deepcopy(dict(self.arguments or {}))))


#one entry in the conversation. never mutated after it is created.
@dataclass(frozen=True)
class Turn:
    role: TurnRole
    content: str = ""
    requests: Tuple[ActionRequest, ...] = ()
    request_id: Optional[str] = None
    action_name: Optional[str] = None
    failed: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC), compare=False)

    @classmethod
    def instruction(cls, content: str) -> "Turn":
        return cls(role=TurnRole.INSTRUCTION, content=content)

    @classmethod
    def user(cls, content: str) -> "Turn":
        return cls(role=TurnRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str = "", requests: Iterable[ActionRequest] = ()) -> "Turn":
        return cls(role=TurnRole.ASSISTANT, content=content or "", requests=tuple(requests))

    @classmethod
    def action_result(cls, request_id: str, action_name: str, content: str, failed: bool = False) -> "Turn":
        return cls(
            role=TurnRole.ACTION_RESULT,
            content=content,
            request_id=request_id,
            action_name=action_name,
            failed=failed,
        )

    @property
    def is_instruction(self) -> bool:
        return self.role == TurnRole.INSTRUCTION

    # one-liner used by the debug log
    def sentence(self) -> str:
        if self.role == TurnRole.ASSISTANT and self.requests:
            names = ", ".join(request.name for request in self.requests)
            return f"assistant requested {names}"
        if self.role == TurnRole.ACTION_RESULT:
            status = "failed" if self.failed else "succeeded"
            return f"{self.action_name or 'action'} {status}"
        text = " ".join(self.content.split())
        if len(text) > 80:
            text = f"{text[:77]}..."
        return f"{self.role.value}: {text}"


class ConversationMemory:
    """
    Ordered conversation with a cap on retained turns.

    Instruction turns are kept no matter what. Everything else is trimmed to the
    most recent ``max_messages`` turns, oldest first, once per ``append`` call.
    """

    def __init__(self, max_messages: int = DEFAULT_MAX_MESSAGES):
        self.max_messages = max_messages
        self._turns: List[Turn] = []

    def append(self, turns: Iterable[Turn]) -> None:
        batch = list(turns)
        if not batch:
            return
        self._turns.extend(batch)
        self._evict()

    def _evict(self) -> None:
        instructions = [turn for turn in self._turns if turn.is_instruction]
        others = [turn for turn in self._turns if not turn.is_instruction]
        limit = max(self.max_messages, 0)
        if len(others) > limit:
            others = others[len(others) - limit:]
        self._turns = instructions + others

    def snapshot(self) -> List[Turn]:
        return list(self._turns)

    def tail(self, count: int) -> List[Turn]:
        if count <= 0:
            return []
        return list(self._turns[-count:])

    def clear(self) -> None:
        self._turns.clear()

    def size(self) -> int:
        return len(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def recent_sentences(self, limit: int = 6) -> List[str]:
        if limit <= 0:
            return []
        return [turn.sentence() for turn in self._turns[-limit:]]
