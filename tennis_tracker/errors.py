"""
Exception taxonomy for Tennis Tracker.

Per-frame problems (`InferenceError`, `CalibrationUnavailable`) are absorbed
by the tracker and pipeline; `InvalidInput` and `SerializationFailure`
reach the caller.
"""


class TrackerError(Exception):
    """Base class for every error raised by this package."""


class InvalidInput(TrackerError, ValueError):
    """Required session inputs are missing or malformed."""


class InferenceError(TrackerError):
    """The detection backend failed, timed out or returned garbage."""


class CalibrationUnavailable(TrackerError):
    """No usable net or court-line detection for calibration."""


class SerializationFailure(TrackerError):
    """An AnalysisResult could not be written or read back."""
