"""
Error types raised by the Policy Engine.

Evaluation itself never raises for missing or malformed policy data; these
errors cover preconditions at the boundary (no active account) and loading
of configuration and fixture files.
"""


class PolicyEngineError(Exception):
    """Base class for Policy Engine errors."""


class NoActiveUserError(PolicyEngineError, RuntimeError):
    """A mutation needed the active account but none is signed in."""

    def __init__(self, operation: str):
        super().__init__(f"Cannot {operation}: no active user")
        self.operation = operation


class FixtureLoadError(PolicyEngineError, ValueError):
    """A fixture or configuration file could not be read or validated."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to load {path}: {reason}")
        self.path = path
        self.reason = reason
