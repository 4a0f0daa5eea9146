"""Exception types raised by elevator.

Only :class:`TransportError` from the final whole-document call and
:class:`PromptValidationError` / :class:`InputError` are expected to
reach the user.  :class:`SegmentationError` and per-segment
:class:`EnhancerError` failures are absorbed by the formatting pipeline.
"""


class ElevatorError(Exception):
    """Base class for all elevator errors."""


class SegmentationError(ElevatorError):
    """A formatting stage produced spans or segments that break coverage."""


class EnhancerError(ElevatorError):
    """The model answered, but the answer was unusable (e.g. empty)."""


class TransportError(EnhancerError, ConnectionError):
    """The model could not be reached or did not answer in time."""


class InputError(ElevatorError):
    """No usable input was read, or reading was cancelled."""


class PromptValidationError(ElevatorError, ValueError):
    """A prompt failed a validation rule.

    Attributes
    ----------
    code : str
        One of ``EMPTY_PROMPT``, ``TOO_SHORT``, ``TOO_LONG``.
    details : dict
        Rule parameters and the measured value.
    """

    def __init__(self, code: str, message: str, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}
