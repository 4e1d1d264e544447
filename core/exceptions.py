"""
Core domain exceptions.

These exceptions are transport-agnostic and should be caught by the server
layer (the tool router) to convert into tool results. Process and handshake
failures are the exception: they abort startup.
"""


class CoreError(Exception):
    """Base exception for all core errors."""

    pass


class NotFoundError(CoreError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str, detail: str = ""):
        self.resource = resource
        self.identifier = identifier
        message = f"{resource} not found: {identifier}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class InvalidOperationError(CoreError):
    """Raised when an operation cannot be performed in the current state."""

    pass


# --- Language server errors ---


class LSPError(CoreError):
    """Base exception for language server errors."""

    pass


class ServerStartError(LSPError):
    """The language server process could not be started."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"failed to start language server: {detail}")


class ServerExitedError(LSPError):
    """The language server process exited or closed its output."""

    def __init__(self, detail: str = "connection closed"):
        self.detail = detail
        super().__init__(f"language server exited unexpectedly: {detail}")


class InitializationError(LSPError):
    """The initialize/initialized exchange failed."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"language server initialization failed: {detail}")


class LSPTimeoutError(LSPError):
    """A request did not receive a response in time."""

    def __init__(self, method: str, timeout: float):
        self.method = method
        self.timeout = timeout
        super().__init__(f"request '{method}' timed out after {timeout:g}s")


class RequestFailedError(LSPError):
    """A request or notification could not be completed."""

    def __init__(self, method: str, detail: str):
        self.method = method
        self.detail = detail
        super().__init__(f"request '{method}' failed: {detail}")


class ServerResponseError(RequestFailedError):
    """The language server answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(method, f"{message} (code: {code})")


class CapabilityNotSupportedError(LSPError):
    """The server did not advertise the capability a request needs."""

    def __init__(self, capability: str, method: str):
        self.capability = capability
        self.method = method
        super().__init__(f"capability not supported: {capability} (needed for '{method}')")


# --- Documents, positions and symbols ---


class DocumentNotFoundError(NotFoundError):
    """The document is missing on disk or is not open in the server."""

    def __init__(self, path: str, detail: str = ""):
        self.path = path
        super().__init__("Document", path, detail)


class InvalidPositionError(CoreError):
    """A 1-indexed line or column was below 1."""

    def __init__(self, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(
            f"invalid position: line {line}, column {column} (both are 1-indexed)"
        )


class SymbolNotFoundError(NotFoundError):
    """No exact match for a symbol name."""

    def __init__(self, name: str, file_hint: str | None = None):
        self.name = name
        self.file_hint = file_hint
        detail = f"searched {file_hint} and the workspace" if file_hint else "searched the workspace"
        super().__init__("Symbol", name, detail)


# --- Tool surface ---


class ToolNotFoundError(NotFoundError):
    """No tool is registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__("Tool", name)


class InvalidToolArgumentsError(CoreError):
    """Tool arguments failed validation."""

    def __init__(self, tool: str, detail: str):
        self.tool = tool
        self.detail = detail
        super().__init__(f"invalid arguments for '{tool}': {detail}")


class ToolExecutionError(CoreError):
    """A tool call completed with a failed result."""

    def __init__(self, tool: str, message: str):
        self.tool = tool
        super().__init__(message)
