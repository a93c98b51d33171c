from __future__ import annotations


class RomBuilderError(Exception):
    """Base class for every error an operation reports to the session."""

    kind = "error"


class ConfigError(RomBuilderError):
    kind = "config"


class ConfigLoadError(ConfigError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Could not open config file '{path}': {reason}")
        self.path = path
        self.reason = reason


class ConfigParseError(ConfigError):
    def __init__(self, message: str, *, source: str, line: int) -> None:
        super().__init__(f"{source}:{line}: {message}")
        self.source = source
        self.line = line


class MalformedAssignmentError(ConfigParseError):
    pass


class MalformedListError(ConfigParseError):
    pass


class DuplicateKeyError(ConfigParseError):
    def __init__(self, key: str, *, source: str, line: int) -> None:
        super().__init__(f"Duplicate key '{key}'", source=source, line=line)
        self.key = key


class ToolError(RomBuilderError):
    kind = "tool"


class ToolNotFoundError(ToolError):
    def __init__(self, tool_path: str) -> None:
        super().__init__(f"Tool not found at '{tool_path}'")
        self.tool_path = tool_path


class ToolExecutionError(ToolError):
    def __init__(self, tool_path: str, exit_code: int, diagnostic: str) -> None:
        message = f"{tool_path} exited with code {exit_code}"
        if diagnostic.strip():
            message = f"{message}:\n{diagnostic.rstrip()}"
        super().__init__(message)
        self.tool_path = tool_path
        self.exit_code = exit_code
        self.diagnostic = diagnostic


class IdentifierError(RomBuilderError):
    kind = "identifier"


class MalformedIdentifierError(IdentifierError):
    pass


class IdentifierNotFoundError(IdentifierError):
    pass


class ArtifactError(RomBuilderError):
    kind = "artifact"


class ToolTimeoutError(ToolError):
    def __init__(self, tool_path: str, timeout_s: float) -> None:
        super().__init__(f"{tool_path} did not exit within {timeout_s:g}s and was killed")
        self.tool_path = tool_path
        self.timeout_s = timeout_s
