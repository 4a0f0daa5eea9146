"""Load elevator settings from config.txt.

Reads a simple ``key = value`` text file from the project root.
Blank lines and lines starting with ``#`` are ignored, as is a
trailing `` # comment`` after a value.  Booleans, integers and floats are cast automatically.

Usage::

    from elevator.config import CFG

    provider = CFG["llm_provider"]      # str
    timeout  = CFG["timeout_seconds"]   # int

If config.txt is missing, sensible defaults are used so the CLI
still works.
"""

import logging
import os
import re

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

logger = logging.getLogger(__name__)

# ── Load .env (GOOGLE_API_KEY, GEMINI_API_KEY, OLLAMA_HOST, etc.) ───
load_dotenv()  # reads .env from project root, if present

_console = Console()

# ── Defaults ────────────────────────────────────────────────────────
DEFAULTS: dict[str, str | int | float | bool] = {
    "llm_provider": "google",
    "llm_model": "gemini-2.5-flash",
    "temperature": 0.3,
    "timeout_seconds": 30,
    "max_retries": 2,
    "max_concurrency": 4,
    "preserve_formatting": True,
    "strategy": "balanced",
    "min_prompt_length": 3,
    "max_prompt_length": 10000,
    "raw_output": False,
    "log_sessions": False,
    "log_level": "WARNING",
}

CONFIG_PATH = os.path.join(os.path.dirname(__file__), os.pardir, "config.txt")


# Values recognised as boolean true / false (case-insensitive).
_BOOL_TRUE = frozenset({"true", "yes", "1", "on"})
_BOOL_FALSE = frozenset({"false", "no", "0", "off"})

_FLOAT_RE = re.compile(r"^-?\d+\.\d+$")
_INLINE_COMMENT_RE = re.compile(r"\s+#.*$")


def _cast_value(value: str) -> str | int | float | bool:
    """Turn a raw config string into bool, int, float or str."""
    lowered = value.lower()
    if lowered in _BOOL_TRUE:
        return True
    if lowered in _BOOL_FALSE:
        return False
    if value.isdigit():
        return int(value)
    if _FLOAT_RE.match(value):
        return float(value)
    return value


def load_config(path: str = CONFIG_PATH) -> dict[str, str | int | float | bool]:
    """Parse *path* and return a merged dict of defaults + overrides.

    File format (one pair per line)::

        # comment
        llm_provider = ollama      # or google, openai, anthropic
        llm_model = llama3.2:3b
        temperature = 0.2
        preserve_formatting = true

    Boolean values are recognised as true/yes/1/on and false/no/0/off
    (case-insensitive).  ``1`` and ``0`` are therefore booleans, not
    integers.

    Returns
    -------
    dict[str, str | int | float | bool]
        Merged configuration.  Keys not present in the file keep
        their default values.
    """
    cfg: dict[str, str | int | float | bool] = dict(DEFAULTS)

    resolved = os.path.normpath(path)
    if not os.path.isfile(resolved):
        logger.warning(
            f"Config file not found at {resolved}, using defaults"
        )
        return cfg

    with open(resolved, encoding="utf-8") as fh:
        for lineno, raw_line in enumerate(fh, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                logger.warning(
                    f"config.txt:{lineno}: skipping malformed line: {line!r}"
                )
                continue
            key, value = line.split("=", 1)
            value = _INLINE_COMMENT_RE.sub("", value.strip())
            cfg[key.strip()] = _cast_value(value)

    logger.info(f"Loaded config from {resolved}: {cfg}")
    return cfg


# Module-level singleton, imported everywhere as ``from elevator.config import CFG``
CFG: dict[str, str | int | float | bool] = load_config()


def print_config(cfg: dict[str, str | int | float | bool] | None = None) -> None:
    """Pretty-print the active configuration using a rich table."""
    cfg = cfg if cfg is not None else CFG
    table = Table(
        title="config.txt",
        title_style="bold yellow",
        border_style="yellow",
        show_header=True,
        header_style="bold",
        padding=(0, 2),
    )
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white bold")
    for key, value in cfg.items():
        table.add_row(str(key), str(value))
    _console.print(table)


def config_as_text(cfg: dict[str, str | int | float | bool] | None = None) -> str:
    """Return the active configuration as a plain-text block for log files."""
    cfg = cfg if cfg is not None else CFG
    lines = [f"{k} = {v}" for k, v in cfg.items()]
    return "\n".join(lines)
