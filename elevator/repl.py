"""Interactive elevation session.

Each line typed at the ``elevator>`` prompt is elevated and printed.
A few words are handled as commands instead:

* ``help``: show the command list
* ``clear``: clear the screen
* ``exit`` / ``quit``: leave (Ctrl+D and Ctrl+C also work)

Errors are printed and the session carries on.
"""

import logging
from enum import Enum

from rich.panel import Panel

from elevator.cli import (
    EXIT_SUCCESS,
    console,
    elevate_once,
    print_error,
    print_result,
)
from elevator.errors import ElevatorError
from elevator.generation.enhancer import LLMEnhancer

logger = logging.getLogger(__name__)

PROMPT = "elevator> "

HELP_TEXT = """\
Available commands:
  help         Show this help message
  clear        Clear the screen
  exit, quit   Leave the session (Ctrl+D also works)

Anything else is elevated as a prompt."""


class SpecialCommand(str, Enum):
    EXIT = "exit"
    HELP = "help"
    CLEAR = "clear"


_COMMANDS = {
    "exit": SpecialCommand.EXIT,
    "quit": SpecialCommand.EXIT,
    "help": SpecialCommand.HELP,
    "clear": SpecialCommand.CLEAR,
}


def parse_command(line: str) -> SpecialCommand | None:
    """Return the command *line* names, or ``None`` for a prompt."""
    return _COMMANDS.get(line.strip().lower())


def print_banner(enhancer: LLMEnhancer) -> None:
    console.print(
        Panel.fit(
            "[bold deep_sky_blue1]elevator[/bold deep_sky_blue1]\n"
            f"[grey70]{enhancer.provider} / {enhancer.model} · "
            f"strategy: {enhancer.strategy}[/grey70]\n"
            "Type 'help' for commands or 'exit' to quit.",
            border_style="grey39",
        )
    )


def run_repl(
    enhancer: LLMEnhancer,
    *,
    raw: bool = False,
    log_session: bool = False,
    input_func=input,
) -> int:
    """Run the read-elevate-print loop until the user leaves.

    Returns
    -------
    int
        Always :data:`~elevator.cli.EXIT_SUCCESS`.
    """
    print_banner(enhancer)

    while True:
        try:
            line = input_func(PROMPT)
        except (EOFError, KeyboardInterrupt):
            console.print("\nGoodbye!")
            return EXIT_SUCCESS

        if not line.strip():
            continue

        command = parse_command(line)
        if command is SpecialCommand.EXIT:
            console.print("Goodbye!")
            return EXIT_SUCCESS
        if command is SpecialCommand.HELP:
            console.print(HELP_TEXT, markup=False)
            continue
        if command is SpecialCommand.CLEAR:
            console.clear()
            continue

        try:
            result = elevate_once(line, enhancer, log_session=log_session)
        except KeyboardInterrupt:
            console.print("\nCancelled", style="yellow")
            continue
        except (ElevatorError, ValueError) as exc:
            print_error(str(exc))
            continue
        except Exception as exc:
            logger.debug("Unexpected error in REPL", exc_info=True)
            print_error(f"{type(exc).__name__}: {exc}")
            continue

        print_result(result, raw=raw)
