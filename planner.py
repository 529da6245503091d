# planner.py
import json
import uuid
from typing import Any, Dict, List, Optional, Sequence

from openai import APITimeoutError, OpenAI, OpenAIError

from errors import OracleError
from logger import AgentLogger, logger as default_logger
from memory import ActionRequest, Turn, TurnRole


def to_chat_messages(instruction: str, turns: Sequence[Turn]) -> List[Dict[str, Any]]:
    """
    Convert history turns into chat-completions messages.

    The standing instruction goes first as the system message; instruction turns
    inside ``turns`` are skipped so it is not sent twice. Result turns whose
    requesting assistant turn was trimmed out of history are dropped, since the
    API rejects a tool message without its matching tool call.
    """
    messages: List[Dict[str, Any]] = []
    if instruction:
        messages.append({"role": "system", "content": instruction})

    open_calls = set()
    for turn in turns:
        if turn.role == TurnRole.INSTRUCTION:
            continue
        if turn.role == TurnRole.USER:
            messages.append({"role": "user", "content": turn.content})
        elif turn.role == TurnRole.ASSISTANT:
            message: Dict[str, Any] = {"role": "assistant", "content": turn.content or None}
            if turn.requests:
                message["tool_calls"] = [
                    {
                        "id": request.id,
                        "type": "function",
                        "function": {
                            "name": request.name,
                            "arguments": json.dumps(dict(request.arguments), default=str),
                        },
                    }
                    for request in turn.requests
                ]
                open_calls.update(request.id for request in turn.requests)
            messages.append(message)
        elif turn.role == TurnRole.ACTION_RESULT:
            if turn.request_id not in open_calls:
                continue
            messages.append({"role": "tool", "tool_call_id": turn.request_id, "content": turn.content})
    return messages


def _parse_arguments(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def parse_assistant_message(message: Any) -> Turn:
    """Turn an API response message into an assistant Turn with ordered action requests."""
    requests: List[ActionRequest] = []
    for call in getattr(message, "tool_calls", None) or []:
        function = getattr(call, "function", None)
        if function is None:
            continue
        call_id = getattr(call, "id", None) or f"call_{uuid.uuid4().hex[:12]}"
        requests.append(
            ActionRequest(
                id=call_id,
                name=function.name,
                arguments=_parse_arguments(function.arguments),
            )
        )
    return Turn.assistant(getattr(message, "content", None) or "", requests)


class OpenAIPlanner:
    """
    Asks an OpenAI chat model for the next step.

    ``consult`` returns one assistant Turn: either a final answer (no requests)
    or a list of tool calls. Any API failure, including the per-call timeout,
    is raised as OracleError.
    """

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        *,
        api_key: Optional[str] = None,
        model: str = "gpt-4o",
        temperature: float = 0.2,
        timeout: Optional[float] = 60.0,
        logger: Optional[AgentLogger] = None,
    ):
        self.client = client or OpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.logger = logger or default_logger

    def consult(self, instruction: str, turns: Sequence[Turn], tools: Sequence[Dict[str, Any]]) -> Turn:
        messages = to_chat_messages(instruction, turns)
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if tools:
            kwargs["tools"] = list(tools)
        if self.timeout:
            kwargs["timeout"] = self.timeout

        self.logger.debug("agent", f"Sending {len(messages)} message(s) to {self.model}")
        try:
            response = self.client.chat.completions.create(**kwargs)
        except APITimeoutError as exc:
            raise OracleError(f"Planning LLM timed out after {self.timeout}s") from exc
        except OpenAIError as exc:
            raise OracleError(f"Planning LLM failed: {exc}") from exc

        if not response.choices:
            raise OracleError("Planning LLM returned no choices.")
        return parse_assistant_message(response.choices[0].message)
