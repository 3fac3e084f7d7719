"""Custom exceptions for depstatus."""


class DepStatusError(Exception):
    """Base exception for all depstatus errors."""


class UnknownEcosystemError(DepStatusError):
    """Raised when an ecosystem name is not one of the supported ecosystems."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Unknown ecosystem '{name}'. Expected one of: python, go, npm, composer, cargo"
        )


class CheckError(DepStatusError):
    """Base for errors that make a single check impossible to run."""


class ToolMissingError(CheckError):
    """Raised when a required executable or tool extension is not installed."""

    def __init__(self, tool: str, hint: str):
        self.tool = tool
        self.hint = hint
        super().__init__(f"{tool} not found. {hint}")


class ManifestMissingError(CheckError):
    """Raised when the ecosystem manifest (or a required sibling) is absent."""


class ProcessFailureError(CheckError):
    """Raised when the external tool exits with a failure code."""

    def __init__(self, command: str, exit_code: int, detail: str):
        self.command = command
        self.exit_code = exit_code
        self.detail = detail
        super().__init__(f"{command} failed (exit code: {exit_code}): {detail}")
