"""Tests for elevator/validation.py."""

import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from elevator.errors import ElevatorError, PromptValidationError
from elevator.validation import validate_prompt


class TestValidatePrompt(unittest.TestCase):

    def test_returns_trimmed_prompt(self):
        self.assertEqual(validate_prompt("  fix the bug \n"), "fix the bug")

    def test_empty_prompt(self):
        for text in ("", "   ", "\n\t\n"):
            with self.assertRaises(PromptValidationError) as ctx:
                validate_prompt(text)
            self.assertEqual(ctx.exception.code, "EMPTY_PROMPT")

    def test_too_short(self):
        with self.assertRaises(PromptValidationError) as ctx:
            validate_prompt("  hi  ", min_length=3)
        self.assertEqual(ctx.exception.code, "TOO_SHORT")
        self.assertEqual(ctx.exception.details, {"min_length": 3, "actual_length": 2})

    def test_too_long(self):
        with self.assertRaises(PromptValidationError) as ctx:
            validate_prompt("x" * 11, max_length=10)
        self.assertEqual(ctx.exception.code, "TOO_LONG")
        self.assertEqual(ctx.exception.details["actual_length"], 11)

    def test_boundaries_accepted(self):
        self.assertEqual(validate_prompt("abc", min_length=3), "abc")
        self.assertEqual(validate_prompt("x" * 10, max_length=10), "x" * 10)

    def test_unicode_and_newlines_allowed(self):
        text = "Réécris ce code\n\tet 日本語 aussi"
        self.assertEqual(validate_prompt(text), text)

    def test_error_hierarchy(self):
        with self.assertRaises(ValueError):
            validate_prompt("")
        with self.assertRaises(ElevatorError):
            validate_prompt("")


if __name__ == "__main__":
    unittest.main()
