"""Error taxonomy for tool calls.

Every class here is caught at the dispatcher boundary and turned into an
error-tagged ResponseEnvelope; none of them is allowed to escape a call.
"""

from __future__ import annotations


class TrialscopeError(Exception):
    """Base class for all expected tool-call failures."""


class ClientArgumentError(TrialscopeError):
    """Missing, malformed or out-of-range argument. Raised before any network call."""


class UpstreamFailure(TrialscopeError):
    """Transport error, timeout or non-2xx response from the registry."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(TrialscopeError):
    """An identifier lookup returned zero records."""


class UnknownToolError(TrialscopeError):
    """The requested tool name is not registered."""

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name
