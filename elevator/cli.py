"""Command-line entry point for elevator.

Reads a prompt from the command line, a pipe, or interactive multiline
input, elevates it, and prints the result.

Usage (CLI)::

    elevator "fix this bug"                 # single argument
    elevator                                # multiline mode (Ctrl+D to submit)
    echo "refactor this code" | elevator    # piped input
    elevator < prompt.txt                   # file input
    elevator --repl                         # interactive session

    elevator "speed up the query" --provider ollama --model llama3.2:3b --raw
"""

import argparse
import asyncio
import logging
import sys
import time

from rich.console import Console

from elevator.config import CFG, print_config
from elevator.errors import ElevatorError, InputError
from elevator.formatting.pipeline import ElevationMode
from elevator.generation.enhancer import LLMEnhancer
from elevator.generation.llm import ELEVATION_PROMPTS
from elevator.session_log import SessionReporter, log_elevation_session
from elevator.validation import validate_prompt

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130

console = Console()
err_console = Console(stderr=True)


# ── Input ───────────────────────────────────────────────────────────


def read_stream(stream) -> str:
    """Read *stream* to EOF and return the trimmed text.

    Raises
    ------
    InputError
        If nothing but whitespace was read.
    """
    text = stream.read().strip()
    if not text:
        raise InputError("No input provided")
    return text


def get_input(prompt: str | None, stdin=None) -> str:
    """Return the prompt from the argument, a pipe, or the terminal.

    A non-blank *prompt* argument wins.  Otherwise piped input is read
    to EOF; on a terminal the user types any number of lines and
    submits with Ctrl+D.
    """
    if prompt and prompt.strip():
        return prompt

    stdin = stdin or sys.stdin
    if not stdin.isatty():
        return read_stream(stdin)

    console.print("[grey70]Enter your prompt (press Ctrl+D when done):[/grey70]")
    console.print()
    return read_stream(stdin)


# ── Elevation ───────────────────────────────────────────────────────


def elevate_once(prompt: str, enhancer: LLMEnhancer, *, log_session: bool = False) -> str:
    """Validate and elevate one prompt, optionally writing a session log."""
    prompt = validate_prompt(prompt)

    reporter = SessionReporter()
    enhancer.reporter = reporter

    result: str | None = None
    error: str | None = None
    t0 = time.time()
    try:
        result = asyncio.run(enhancer.enhance(prompt))
    except Exception as exc:
        error = f"{type(exc).__name__}: {exc}"
        raise
    finally:
        if log_session:
            # Mode comes from the pipeline's own events, fallbacks included
            mode = reporter.mode()
            try:
                log_elevation_session(
                    prompt=prompt,
                    result=result,
                    provider=enhancer.provider,
                    model=enhancer.model,
                    temperature=enhancer.temperature,
                    strategy=enhancer.strategy,
                    mode=mode.value,
                    segment_totals=reporter.totals() if mode is ElevationMode.SEGMENTED else None,
                    error=error,
                    elapsed_seconds=time.time() - t0,
                )
            except OSError as exc:
                logger.warning(f"Could not write session log: {exc}")
    return result


def print_result(result: str, raw: bool = False) -> None:
    """Print the elevated prompt, with a heading unless *raw*."""
    if raw:
        print(result)
        return
    console.print("[bold green]✨ Enhanced prompt:[/bold green]")
    console.print(result, markup=False, highlight=False, soft_wrap=True)


def print_error(message: str) -> None:
    err_console.print(f"❌ Error: {message}", style="red", markup=False, highlight=False)


# ── CLI entry point ─────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="elevator",
        description=(
            "Turn a natural-language prompt into a richer, more technical "
            "articulation. Code blocks and inline code are kept verbatim."
        ),
    )
    parser.add_argument(
        "prompt",
        nargs="?",
        default=None,
        help="Prompt to elevate (default: read piped input or multiline input)",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print only the elevated prompt, with no heading",
    )
    parser.add_argument(
        "--provider",
        default=None,
        help="LLM provider (default: config.txt)",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Model name (default: config.txt, or the default model of --provider)",
    )
    parser.add_argument(
        "--temperature",
        type=float,
        default=None,
        help="Sampling temperature (default: config.txt)",
    )
    parser.add_argument(
        "--strategy",
        choices=list(ELEVATION_PROMPTS),
        default=None,
        help="Elevation style (default: config.txt)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: config.txt)",
    )
    parser.add_argument(
        "--no-preserve-formatting",
        dest="preserve_formatting",
        action="store_false",
        default=None,
        help="Send the whole prompt to the model, code blocks included",
    )
    parser.add_argument(
        "--repl",
        action="store_true",
        help="Start an interactive session",
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the active configuration and exit",
    )
    parser.add_argument(
        "--log-session",
        action="store_true",
        help="Write a session log to logs/",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log progress to stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments, elevate the prompt, and return an exit code."""
    args = build_parser().parse_args(argv)

    level_name = str(CFG.get("log_level", "WARNING")).upper()
    logging.basicConfig(
        level=logging.INFO if args.verbose else getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.show_config:
        print_config()
        return EXIT_SUCCESS

    raw = args.raw or bool(CFG.get("raw_output", False))
    log_session = args.log_session or bool(CFG.get("log_sessions", False))

    try:
        enhancer = LLMEnhancer(
            provider=args.provider,
            model=args.model,
            temperature=args.temperature,
            strategy=args.strategy,
            timeout_seconds=args.timeout,
            preserve_formatting=args.preserve_formatting,
        )
        # Build the chain up front so provider errors surface before any input is read
        enhancer.chain

        if args.repl:
            from elevator.repl import run_repl

            return run_repl(enhancer, raw=raw, log_session=log_session)

        prompt = get_input(args.prompt)
        result = elevate_once(prompt, enhancer, log_session=log_session)
    except KeyboardInterrupt:
        err_console.print("\n❌ Operation cancelled", style="red")
        return EXIT_INTERRUPTED
    except InputError as exc:
        print_error(str(exc))
        err_console.print("Usage: elevator [prompt] or enter multiline mode without arguments")
        return EXIT_ERROR
    except (ElevatorError, ValueError, ImportError) as exc:
        print_error(str(exc))
        return EXIT_ERROR
    except Exception as exc:
        logger.debug("Unexpected error", exc_info=True)
        print_error(f"{type(exc).__name__}: {exc}")
        return EXIT_ERROR

    print_result(result, raw=raw)
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
