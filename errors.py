"""Session-level failures raised out of the agent loop.

Action-level problems (unknown action, bad arguments, a click that timed out)
never show up here; the dispatcher turns them into result turns so the
planner can react. Everything below ends a turn cycle and reaches the caller.
"""


class AgentError(RuntimeError):
    """Base class for failures the caller of a session has to handle."""


class ConfigurationError(AgentError):
    """Raised at startup when required settings are missing or malformed."""


class OracleError(AgentError):
    """The planning model could not be consulted (network, auth, rate limit, timeout)."""


class BudgetExceededError(AgentError):
    def __init__(self, reason: str, iterations: int, elapsed: float):
        super().__init__(reason)
        self.reason = reason
        self.iterations = iterations
        self.elapsed = elapsed


class SessionClosedError(AgentError):
    """The session already failed or was closed and cannot take new messages."""
