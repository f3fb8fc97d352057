"""Error taxonomy for the analyzer bridge."""


class BridgeError(Exception):
    """Base class for all bridge errors."""
    pass


class ConfigError(BridgeError):
    """Settings could not be loaded or validated. Fatal at startup."""
    pass


class FetchError(BridgeError):
    """The analyzer report could not be retrieved."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url


class ConnectError(FetchError):
    """The analyzer could not be reached."""
    pass


class HttpStatusError(FetchError):
    """The analyzer answered with something other than HTTP 200."""

    def __init__(self, url: str, status_code: int):
        super().__init__(url, f"Analyzer returned HTTP {status_code}")
        self.status_code = status_code


class IoError(FetchError):
    """The connection failed while the report body was being read."""
    pass


class LedgerIoError(BridgeError):
    """A delivery mark could not be persisted to the ledger."""
    pass
