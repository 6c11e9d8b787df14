"""Exception types raised across the rules core."""

from __future__ import annotations

from typing import Any


class RuleCoreError(Exception):
    """Base class for errors raised by the rules core."""


class RootRemovalError(RuleCoreError):
    """Raised when an edit tries to remove the root of a condition tree."""

    def __init__(self, node_id: str):
        super().__init__(f"Cannot remove root condition group {node_id!r}")
        self.node_id = node_id


class ExpressionError(RuleCoreError):
    """Raised when a condition expression cannot be parsed or evaluated."""


class ConfigValidationError(RuleCoreError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []
