"""Tests for elevator/cli.py.

The LCEL chain or the whole enhancer is mocked, so no model is contacted.

Run with:
    pytest tests/test_cli.py -v
"""

import io
import os
import sys
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from elevator.cli import (
    EXIT_ERROR,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    build_parser,
    elevate_once,
    get_input,
    main,
    read_stream,
)
from elevator.errors import InputError, SegmentationError, TransportError
from elevator.generation.enhancer import LLMEnhancer

CODE_PROMPT = "Tidy this:\n```\nx=1\n```"


def _chain(return_value):
    """A mock LCEL chain whose ``ainvoke`` always returns *return_value*."""
    chain = MagicMock()
    chain.ainvoke = AsyncMock(return_value=return_value)
    return chain


def _enhancer(result="Elevated prompt.", side_effect=None):
    enhancer = MagicMock()
    enhancer.provider = "google"
    enhancer.model = "gemini-2.5-flash"
    enhancer.temperature = 0.3
    enhancer.strategy = "balanced"
    enhancer.preserve_formatting = True
    enhancer.enhance = AsyncMock(return_value=result, side_effect=side_effect)
    return enhancer


# ── Input ───────────────────────────────────────────────────────────


class TestGetInput(unittest.TestCase):

    def test_argument_wins(self):
        stdin = io.StringIO("piped text")
        self.assertEqual(get_input("from argv", stdin=stdin), "from argv")

    def test_piped_input(self):
        self.assertEqual(get_input(None, stdin=io.StringIO("  line one\nline two\n")), "line one\nline two")

    def test_blank_argument_falls_through_to_stdin(self):
        self.assertEqual(get_input("   ", stdin=io.StringIO("piped")), "piped")

    def test_empty_pipe_raises(self):
        with self.assertRaises(InputError):
            get_input(None, stdin=io.StringIO("   \n"))

    @patch("elevator.cli.console")
    def test_terminal_multiline(self, mock_console):
        stdin = MagicMock()
        stdin.isatty.return_value = True
        stdin.read.return_value = "first line\nsecond line\n"
        self.assertEqual(get_input(None, stdin=stdin), "first line\nsecond line")
        mock_console.print.assert_called()

    def test_read_stream_trims(self):
        self.assertEqual(read_stream(io.StringIO("\n  text \n")), "text")


# ── Argument parsing ────────────────────────────────────────────────


class TestBuildParser(unittest.TestCase):

    def test_defaults_defer_to_config(self):
        args = build_parser().parse_args([])
        self.assertIsNone(args.prompt)
        self.assertIsNone(args.provider)
        self.assertIsNone(args.preserve_formatting)
        self.assertFalse(args.raw)

    def test_flags(self):
        args = build_parser().parse_args([
            "fix it", "--raw", "--provider", "ollama", "--strategy", "concise",
            "--temperature", "0.1", "--timeout", "5", "--no-preserve-formatting",
        ])
        self.assertEqual(args.prompt, "fix it")
        self.assertTrue(args.raw)
        self.assertEqual(args.provider, "ollama")
        self.assertEqual(args.strategy, "concise")
        self.assertEqual(args.temperature, 0.1)
        self.assertEqual(args.timeout, 5.0)
        self.assertIs(args.preserve_formatting, False)

    def test_unknown_strategy_rejected(self):
        with patch("sys.stderr", new_callable=io.StringIO), self.assertRaises(SystemExit):
            build_parser().parse_args(["x", "--strategy", "poetic"])


# ── elevate_once ────────────────────────────────────────────────────


class TestElevateOnce(unittest.TestCase):

    def test_returns_elevated_text(self):
        enhancer = _enhancer("Better.")
        self.assertEqual(elevate_once("  make it faster ", enhancer), "Better.")
        enhancer.enhance.assert_awaited_once_with("make it faster")

    @patch("elevator.cli.log_elevation_session")
    def test_session_logged_with_mode(self, mock_log):
        enhancer = LLMEnhancer(chain=_chain("Tidier."), preserve_formatting=True)
        result = elevate_once(CODE_PROMPT, enhancer, log_session=True)
        self.assertEqual(result, "Tidier.\n```\nx=1\n```")
        kwargs = mock_log.call_args.kwargs
        self.assertEqual(kwargs["mode"], "segmented")
        self.assertEqual(kwargs["segment_totals"], {"elevated": 1, "failed": 0, "preserved": 1})
        self.assertEqual(kwargs["result"], result)
        self.assertIsNone(kwargs["error"])

    @patch("elevator.cli.log_elevation_session")
    def test_fallback_logged_as_direct(self, mock_log):
        enhancer = LLMEnhancer(chain=_chain("Whole."), preserve_formatting=True)
        with patch(
            "elevator.formatting.pipeline.extract_segments",
            side_effect=SegmentationError("bad spans"),
        ):
            self.assertEqual(elevate_once(CODE_PROMPT, enhancer, log_session=True), "Whole.")
        kwargs = mock_log.call_args.kwargs
        self.assertEqual(kwargs["mode"], "direct")
        self.assertIsNone(kwargs["segment_totals"])

    @patch("elevator.cli.log_elevation_session")
    def test_direct_mode_when_preservation_off(self, mock_log):
        enhancer = LLMEnhancer(chain=_chain("Whole."), preserve_formatting=False)
        elevate_once(CODE_PROMPT, enhancer, log_session=True)
        self.assertEqual(mock_log.call_args.kwargs["mode"], "direct")
        self.assertIsNone(mock_log.call_args.kwargs["segment_totals"])

    @patch("elevator.cli.log_elevation_session", side_effect=PermissionError("logs/ is read-only"))
    def test_unwritable_log_keeps_result(self, _mock_log):
        with self.assertLogs("elevator.cli", level="WARNING") as cm:
            result = elevate_once("make it faster", _enhancer("Better."), log_session=True)
        self.assertEqual(result, "Better.")
        self.assertIn("Could not write session log", cm.output[0])

    @patch("elevator.cli.log_elevation_session", side_effect=OSError("disk full"))
    def test_unwritable_log_keeps_original_error(self, _mock_log):
        enhancer = _enhancer(side_effect=TransportError("offline"))
        with self.assertLogs("elevator.cli", level="WARNING"):
            with self.assertRaises(TransportError):
                elevate_once("make it faster", enhancer, log_session=True)

    @patch("elevator.cli.log_elevation_session")
    def test_failure_logged_and_reraised(self, mock_log):
        enhancer = _enhancer(side_effect=TransportError("offline"))
        with self.assertRaises(TransportError):
            elevate_once("make it faster", enhancer, log_session=True)
        kwargs = mock_log.call_args.kwargs
        self.assertIsNone(kwargs["result"])
        self.assertIn("TransportError", kwargs["error"])

    @patch("elevator.cli.log_elevation_session")
    def test_no_log_by_default(self, mock_log):
        elevate_once("make it faster", _enhancer())
        mock_log.assert_not_called()


# ── main ────────────────────────────────────────────────────────────


class TestMain(unittest.TestCase):

    def setUp(self):
        patcher = patch("elevator.cli.LLMEnhancer")
        self.mock_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.enhancer = _enhancer("Elevated prompt.")
        self.mock_cls.return_value = self.enhancer

    def test_raw_output(self):
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = main(["make the login page faster", "--raw"])
        self.assertEqual(code, EXIT_SUCCESS)
        self.assertEqual(out.getvalue(), "Elevated prompt.\n")

    @patch("elevator.cli.console")
    def test_decorated_output(self, mock_console):
        code = main(["make the login page faster"])
        self.assertEqual(code, EXIT_SUCCESS)
        printed = [c.args[0] for c in mock_console.print.call_args_list]
        self.assertIn("Enhanced prompt:", printed[0])
        self.assertEqual(printed[1], "Elevated prompt.")

    def test_options_forwarded(self):
        with patch("sys.stdout", new_callable=io.StringIO):
            main([
                "fix it", "--raw", "--provider", "ollama", "--model", "llama3.2:3b",
                "--strategy", "educational", "--no-preserve-formatting",
            ])
        kwargs = self.mock_cls.call_args.kwargs
        self.assertEqual(kwargs["provider"], "ollama")
        self.assertEqual(kwargs["model"], "llama3.2:3b")
        self.assertEqual(kwargs["strategy"], "educational")
        self.assertIs(kwargs["preserve_formatting"], False)

    def test_transport_error_exit_code(self):
        self.enhancer.enhance = AsyncMock(side_effect=TransportError("offline"))
        self.assertEqual(main(["make it faster"]), EXIT_ERROR)

    def test_validation_error_exit_code(self):
        self.assertEqual(main(["hi"]), EXIT_ERROR)
        self.enhancer.enhance.assert_not_called()

    @patch("elevator.cli.get_input", side_effect=InputError("No input provided"))
    def test_no_input_exit_code(self, _mock_input):
        self.assertEqual(main([]), EXIT_ERROR)

    @patch("elevator.cli.get_input", side_effect=KeyboardInterrupt)
    def test_interrupt_exit_code(self, _mock_input):
        self.assertEqual(main([]), EXIT_INTERRUPTED)

    def test_unknown_provider_exit_code(self):
        self.mock_cls.side_effect = ValueError("Unknown llm_provider 'foo'")
        self.assertEqual(main(["make it faster", "--provider", "foo"]), EXIT_ERROR)

    def test_unexpected_error_exit_code(self):
        self.enhancer.enhance = AsyncMock(side_effect=RuntimeError("boom"))
        self.assertEqual(main(["make it faster"]), EXIT_ERROR)

    @patch("elevator.cli.print_config")
    def test_show_config(self, mock_print_config):
        self.assertEqual(main(["--show-config"]), EXIT_SUCCESS)
        mock_print_config.assert_called_once()
        self.mock_cls.assert_not_called()

    @patch("elevator.repl.run_repl", return_value=EXIT_SUCCESS)
    def test_repl_flag(self, mock_repl):
        self.assertEqual(main(["--repl", "--raw"]), EXIT_SUCCESS)
        mock_repl.assert_called_once()
        self.assertIs(mock_repl.call_args.args[0], self.enhancer)
        self.assertTrue(mock_repl.call_args.kwargs["raw"])


class TestProviderOverride(unittest.TestCase):
    """The real LLMEnhancer resolves the model for an overridden provider."""

    @patch("elevator.cli.elevate_once", return_value="Elevated.")
    @patch("elevator.generation.enhancer.elevation_chain")
    @patch("elevator.generation.enhancer.DEFAULT_PROVIDER", "google")
    def test_provider_without_model(self, mock_chain_fn, mock_elevate):
        with patch("sys.stdout", new_callable=io.StringIO):
            code = main(["make it faster", "--provider", "ollama", "--raw"])
        self.assertEqual(code, EXIT_SUCCESS)
        self.assertEqual(mock_chain_fn.call_args.kwargs["model"], "llama3.2:3b")
        self.assertEqual(mock_elevate.call_args.args[1].model, "llama3.2:3b")

    @patch("elevator.cli.elevate_once", return_value="Elevated.")
    @patch("elevator.generation.enhancer.elevation_chain")
    @patch("elevator.generation.enhancer.DEFAULT_PROVIDER", "google")
    def test_explicit_model_kept(self, mock_chain_fn, _mock_elevate):
        with patch("sys.stdout", new_callable=io.StringIO):
            main(["make it faster", "--provider", "ollama", "--model", "phi3", "--raw"])
        self.assertEqual(mock_chain_fn.call_args.kwargs["model"], "phi3")


if __name__ == "__main__":
    unittest.main()
