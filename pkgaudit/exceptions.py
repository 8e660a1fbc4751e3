"""Custom exceptions for pkgaudit."""


class AnalyzerError(Exception):
    """Base exception for all analyzer errors."""


class NodeModulesNotFoundError(AnalyzerError):
    """Raised when the analysis root does not exist or is not a directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"node_modules not found at: {path}")


class NodeModulesAccessError(AnalyzerError):
    """Raised when the analysis root exists but cannot be listed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read node_modules at {path}: {reason}")
