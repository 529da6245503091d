import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from errors import ConfigurationError


DEFAULT_MODEL = "gpt-4o"  # or "gpt-4o-mini" for faster/cheaper runs
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_MESSAGES = 50
DEFAULT_MAX_ITERATIONS = 25
DEFAULT_ORACLE_TIMEOUT = 60.0

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}

MISSING_KEY_HINT = (
    "OPENAI_API_KEY is required.\n"
    "Create a .env file in the project root with: OPENAI_API_KEY=your-key-here\n"
    "Or set it as an environment variable:\n"
    "  - Linux/Mac: export OPENAI_API_KEY='your-key-here'\n"
    "  - Windows PowerShell: $env:OPENAI_API_KEY='your-key-here'\n"
    "  - Windows CMD: set OPENAI_API_KEY=your-key-here"
)

SYSTEM_PROMPT = "\n".join(
    [
        "You are a web-capable agent controlling a real browser via tools.",
        "Rules:",
        "- You may call tools multiple times before finishing.",
        "- If you need page info, use browser_extract_text or browser_screenshot; do not guess.",
        "- When clicking fails or you don't know the selector:",
        "  1. Use browser_find_by_text to find elements by their visible text",
        "  2. Use browser_find_links to see all clickable elements on the page",
        "  3. Then use the returned selector with browser_click",
        "- Prefer stable selectors (input[name=...], button:has-text(...)) when possible.",
        "- A tool result starting with ERROR means the action did not happen; adjust and retry.",
        "- Keep tool calls minimal and purposeful.",
        "- When done, provide a clear final answer and STOP.",
        "",
        "If the user asks for actions that violate a site's terms or attempt to evade bot "
        "detection, refuse that part and suggest compliant alternatives.",
    ]
)


@dataclass
class AgentSettings:
    api_key: str
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_messages: int = DEFAULT_MAX_MESSAGES
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    max_seconds: float = 0.0
    oracle_timeout: float = DEFAULT_ORACLE_TIMEOUT
    headless: bool = False
    profile_dir: Optional[str] = None
    log_timestamps: bool = True
    log_debug: bool = False
    system_prompt: str = SYSTEM_PROMPT


def _env_flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    normalized = raw.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean flag (true/false), got '{raw}'.")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'.") from None


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'.") from None


def load_settings(env: Optional[Mapping[str, str]] = None, *, use_dotenv: bool = True) -> AgentSettings:
    """
    Build settings from the environment (and a .env file in the working directory).
    Raises ConfigurationError before anything touches the network or the browser.
    """
    if env is None:
        if use_dotenv:
            load_dotenv()
        env = os.environ

    api_key = (env.get("OPENAI_API_KEY") or "").strip()
    if not api_key:
        raise ConfigurationError(MISSING_KEY_HINT)

    profile_dir = (env.get("AGENT_PROFILE_DIR") or "").strip() or None

    return AgentSettings(
        api_key=api_key,
        model=(env.get("AGENT_MODEL") or "").strip() or DEFAULT_MODEL,
        temperature=_env_float(env, "AGENT_TEMPERATURE", DEFAULT_TEMPERATURE),
        max_messages=_env_int(env, "AGENT_MAX_MESSAGES", DEFAULT_MAX_MESSAGES),
        max_iterations=_env_int(env, "AGENT_MAX_ITERATIONS", DEFAULT_MAX_ITERATIONS),
        max_seconds=_env_float(env, "AGENT_MAX_SECONDS", 0.0),
        oracle_timeout=_env_float(env, "AGENT_ORACLE_TIMEOUT", DEFAULT_ORACLE_TIMEOUT),
        headless=_env_flag(env, "AGENT_HEADLESS", False),
        profile_dir=profile_dir,
        log_timestamps=_env_flag(env, "AGENT_LOG_TIMESTAMPS", True),
        log_debug=_env_flag(env, "AGENT_LOG_DEBUG", False),
    )
