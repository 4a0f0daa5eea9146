"""Log elevation sessions to timestamped files in logs/.

Each logged elevation produces a single ``.log`` file containing:

* Active config.txt settings
* Timestamp, provider, model, temperature and strategy
* Elevation mode (direct / segmented) and segment counts
* The original prompt and the elevated result

Files are named ``YYYYMMDD_HHMMSS_ffffff_elevate.log`` (microseconds,
plus a counter if that name is taken) so they sort chronologically and
back-to-back sessions never overwrite each other.
"""

import logging
import os
from datetime import datetime
from typing import Any

from elevator.config import config_as_text
from elevator.formatting.orchestrator import LoggingReporter
from elevator.formatting.pipeline import ElevationMode

logger = logging.getLogger(__name__)

LOGS_DIR = os.path.join("logs")


class SessionReporter(LoggingReporter):
    """A :class:`LoggingReporter` that also keeps the events it saw."""

    def __init__(self, log: logging.Logger | None = None):
        super().__init__(log)
        self.events: list[tuple[str, dict[str, Any]]] = []

    def report(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))
        super().report(event, **fields)

    def mode(self) -> ElevationMode:
        """The mode the pipeline actually ran, ``DIRECT`` if it never reported."""
        mode = ElevationMode.DIRECT
        for event, fields in self.events:
            if event in ("mode_selected", "mode_fallback"):
                mode = ElevationMode(fields["mode"])
        return mode

    def totals(self) -> dict[str, int]:
        """Summed ``segments_elevated`` counts across all elevations."""
        totals = {"elevated": 0, "failed": 0, "preserved": 0}
        for event, fields in self.events:
            if event == "segments_elevated":
                for key in totals:
                    totals[key] += int(fields.get(key, 0))
        return totals


def _ensure_logs_dir(logs_dir: str = LOGS_DIR) -> None:
    """Create the logs directory if it doesn't exist."""
    os.makedirs(logs_dir, exist_ok=True)


def log_elevation_session(
    *,
    prompt: str,
    result: str | None,
    provider: str,
    model: str,
    temperature: float,
    strategy: str,
    mode: str,
    segment_totals: dict[str, int] | None = None,
    error: str | None = None,
    elapsed_seconds: float | None = None,
    logs_dir: str = LOGS_DIR,
) -> str:
    """Write a complete elevation session to a log file.

    Parameters
    ----------
    prompt : str
        The validated user prompt.
    result : str | None
        The elevated prompt, or ``None`` if elevation failed.
    provider, model : str
        LLM provider and model name.
    temperature : float
        Sampling temperature used.
    strategy : str
        Elevation strategy name.
    mode : str
        ``"direct"`` or ``"segmented"``.
    segment_totals : dict[str, int] | None
        ``elevated`` / ``failed`` / ``preserved`` counts (segmented mode).
    error : str | None
        Error message when elevation failed.
    elapsed_seconds : float | None
        Wall-clock time for the elevation.
    logs_dir : str
        Directory for log files.

    Returns
    -------
    str
        Path to the log file.
    """
    _ensure_logs_dir(logs_dir)

    now = datetime.now()
    stem = now.strftime("%Y%m%d_%H%M%S_%f")
    filepath = os.path.join(logs_dir, f"{stem}_elevate.log")
    suffix = 1
    while os.path.exists(filepath):
        filepath = os.path.join(logs_dir, f"{stem}_{suffix}_elevate.log")
        suffix += 1

    separator = "─" * 72

    with open(filepath, "w", encoding="utf-8") as fh:
        # ── Config ──────────────────────────────────────────────────
        fh.write("CONFIG\n")
        fh.write(f"{separator}\n")
        fh.write(f"{config_as_text()}\n")
        fh.write(f"{separator}\n\n")

        # ── Parameters ──────────────────────────────────────────────
        fh.write("ELEVATION SESSION\n")
        fh.write(f"{separator}\n")
        fh.write(f"Timestamp:    {now.isoformat()}\n")
        fh.write(f"Provider:     {provider}\n")
        fh.write(f"Model:        {model}\n")
        fh.write(f"Temperature:  {temperature}\n")
        fh.write(f"Strategy:     {strategy}\n")
        fh.write(f"Mode:         {mode}\n")
        if segment_totals:
            fh.write(
                f"Segments:     {segment_totals.get('elevated', 0)} elevated, "
                f"{segment_totals.get('failed', 0)} failed, "
                f"{segment_totals.get('preserved', 0)} preserved\n"
            )
        if elapsed_seconds is not None:
            fh.write(f"Elapsed:      {elapsed_seconds:.1f}s\n")
        if error:
            fh.write(f"Error:        {error}\n")
        fh.write(f"{separator}\n\n")

        # ── Prompt / result ─────────────────────────────────────────
        fh.write("PROMPT\n")
        fh.write(f"{separator}\n")
        fh.write(f"{prompt}\n")
        fh.write(f"{separator}\n\n")

        if result is not None:
            fh.write("ELEVATED\n")
            fh.write(f"{separator}\n")
            fh.write(f"{result}\n")
            fh.write(f"{separator}\n")

    logger.info(f"Elevation session logged to {filepath}")
    return filepath
