"""Exception types raised by the orbit tracker."""


class TrackerError(Exception):
    """Base class for orbit tracker errors."""


class MalformedTLEError(TrackerError, ValueError):
    """Provider text could not be parsed into a two-line element set."""


class TLEUnavailableError(TrackerError):
    """No cached, fetched or fallback elements exist for a catalog ID."""

    def __init__(self, norad_id: int):
        super().__init__(f"No TLE data available for NORAD {norad_id}")
        self.norad_id = norad_id
