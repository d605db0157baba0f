"""
Agent stats exceptions
"""


class AgentStatsError(Exception):
    """Base exception for all agent stats errors"""

    pass


class ConfigError(AgentStatsError):
    """Raised when command-line arguments or settings are invalid"""

    pass


class TransportError(AgentStatsError):
    """Raised when a request cannot reach the server"""

    pass


class UnexpectedStatusError(AgentStatsError):
    """Raised when the server answers with a non-success status"""

    def __init__(self, message: str, status_code: int, url: str | None = None):
        super().__init__(f"{message}: HTTP {status_code}")
        self.status_code = status_code
        self.url = url


class DecodeError(AgentStatsError):
    """Raised when a response body does not have the expected shape"""

    pass


class SinkWriteError(AgentStatsError):
    """Raised when a stats line cannot be written to the console or a file"""

    pass
