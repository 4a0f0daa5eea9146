"""Tests for elevator/session_log.py.

Covers log file creation, content structure, and the recording reporter.
"""

import os
import sys
import tempfile
import unittest
from datetime import datetime
from unittest.mock import patch

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from elevator.formatting.pipeline import ElevationMode
from elevator.session_log import SessionReporter, log_elevation_session


def _log(logs_dir: str, **overrides) -> str:
    """Write a session log with sensible defaults and return its path."""
    kwargs = dict(
        prompt="make the login page faster",
        result="Optimise the login page's time to interactive.",
        provider="google",
        model="gemini-2.5-flash",
        temperature=0.3,
        strategy="balanced",
        mode="direct",
        logs_dir=logs_dir,
    )
    kwargs.update(overrides)
    return log_elevation_session(**kwargs)


def _read(path: str) -> str:
    with open(path, encoding="utf-8") as fh:
        return fh.read()


class TestLogElevationSession(unittest.TestCase):
    """Tests for log_elevation_session()."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def test_creates_log_file(self):
        self.assertTrue(os.path.isfile(_log(self.tmpdir)))

    def test_filename_format(self):
        basename = os.path.basename(_log(self.tmpdir))
        self.assertRegex(basename, r"^\d{8}_\d{6}_\d{6}_elevate\.log$")

    @patch("elevator.session_log.datetime")
    def test_same_instant_sessions_do_not_overwrite(self, mock_datetime):
        mock_datetime.now.return_value = datetime(2026, 1, 2, 3, 4, 5, 678901)
        first = _log(self.tmpdir, prompt="first prompt")
        second = _log(self.tmpdir, prompt="second prompt")

        self.assertNotEqual(first, second)
        self.assertEqual(os.path.basename(first), "20260102_030405_678901_elevate.log")
        self.assertEqual(os.path.basename(second), "20260102_030405_678901_1_elevate.log")
        self.assertIn("first prompt", _read(first))
        self.assertIn("second prompt", _read(second))

    def test_log_contains_prompt_and_result(self):
        content = _read(_log(self.tmpdir))
        self.assertIn("PROMPT", content)
        self.assertIn("make the login page faster", content)
        self.assertIn("ELEVATED", content)
        self.assertIn("Optimise the login page's time to interactive.", content)

    def test_log_contains_parameters(self):
        content = _read(_log(self.tmpdir, strategy="concise", mode="segmented"))
        self.assertIn("Provider:     google", content)
        self.assertIn("Model:        gemini-2.5-flash", content)
        self.assertIn("Strategy:     concise", content)
        self.assertIn("Mode:         segmented", content)

    def test_segment_totals(self):
        content = _read(_log(
            self.tmpdir,
            mode="segmented",
            segment_totals={"elevated": 2, "failed": 1, "preserved": 3},
        ))
        self.assertIn("2 elevated, 1 failed, 3 preserved", content)

    def test_failed_session_has_error_and_no_result(self):
        content = _read(_log(self.tmpdir, result=None, error="TransportError: offline"))
        self.assertIn("Error:        TransportError: offline", content)
        self.assertNotIn("ELEVATED\n", content)

    def test_elapsed_time(self):
        content = _read(_log(self.tmpdir, elapsed_seconds=1.234))
        self.assertIn("Elapsed:      1.2s", content)

    def test_creates_logs_dir_if_missing(self):
        nested = os.path.join(self.tmpdir, "sub", "logs")
        self.assertTrue(os.path.isfile(_log(nested)))

    def test_log_contains_config(self):
        content = _read(_log(self.tmpdir))
        self.assertIn("CONFIG", content)
        self.assertIn("llm_provider", content)
        self.assertIn("preserve_formatting", content)


class TestSessionReporter(unittest.TestCase):

    def test_records_events(self):
        reporter = SessionReporter()
        reporter.report("segments_classified", total=3, eligible=2, preserved=1)
        self.assertEqual(
            reporter.events,
            [("segments_classified", {"total": 3, "eligible": 2, "preserved": 1})],
        )

    def test_totals_sum_elevated_events(self):
        reporter = SessionReporter()
        reporter.report("segments_elevated", elevated=2, failed=1, preserved=1)
        reporter.report("segment_failed", index=0, type="plain", error="x")
        reporter.report("segments_elevated", elevated=1, failed=0, preserved=2)
        self.assertEqual(reporter.totals(), {"elevated": 3, "failed": 1, "preserved": 3})

    def test_mode_defaults_to_direct(self):
        self.assertIs(SessionReporter().mode(), ElevationMode.DIRECT)

    def test_mode_follows_selection(self):
        reporter = SessionReporter()
        reporter.report("mode_selected", mode="segmented", spans=2)
        self.assertIs(reporter.mode(), ElevationMode.SEGMENTED)

    def test_fallback_overrides_selection(self):
        reporter = SessionReporter()
        reporter.report("mode_selected", mode="segmented", spans=2)
        reporter.report("mode_fallback", mode="direct", stage="segmented", error="x")
        self.assertIs(reporter.mode(), ElevationMode.DIRECT)

    def test_totals_empty(self):
        self.assertEqual(
            SessionReporter().totals(),
            {"elevated": 0, "failed": 0, "preserved": 0},
        )


if __name__ == "__main__":
    unittest.main()
