"""
Error types for spanheat.

Every error raised while serving a heatmap maps to exactly one HTTP status.
The server registers a handler for HeatmapError that turns these into
plain-text responses.
"""


class HeatmapError(Exception):
    """Base class for errors that are reported to the client."""
    status_code = 500
    # Value of the "error" label on the request error counter.
    error_label = "internal"

    def __init__(self, message: str, error_label: str = None):
        super().__init__(message)
        self.message = message
        if error_label is not None:
            self.error_label = error_label


class InputValidationError(HeatmapError):
    """Missing or malformed query parameter (id, ranges, timezone, year)."""
    status_code = 400


class UpstreamFetchError(HeatmapError):
    """Network failure or non-2xx status from the spans API."""
    status_code = 500
    error_label = "upstream_failure"


class UpstreamParseError(HeatmapError):
    """The spans API answered with a body we could not decode."""
    status_code = 500
    error_label = "upstream_failure"


class UpstreamTimeoutError(HeatmapError):
    """The spans API did not answer within the configured timeout."""
    status_code = 504
    error_label = "upstream_failure"


class DateResolutionError(HeatmapError):
    """A local wall-clock time does not exist (or is ambiguous) in the timezone."""
    status_code = 500


class CacheError(HeatmapError):
    """Internal cache failure."""
    status_code = 500
