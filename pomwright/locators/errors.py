"""Errors raised when locator schemas are registered, updated or resolved."""

from __future__ import annotations


class LocatorSchemaError(ValueError):
    """Base class for locator schema contract violations."""


class DuplicateRegistrationError(LocatorSchemaError):
    pass


class SchemaNotFoundError(LocatorSchemaError, KeyError):
    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0]) if self.args else ""


class InvalidSubPathError(LocatorSchemaError):
    def __init__(self, sub_path: str, operation: str, allowed: list[str]):
        self.sub_path = sub_path
        self.operation = operation
        self.allowed = allowed
        super().__init__(
            f"Invalid sub-path '{sub_path}' in {operation}. "
            f"Allowed sub-paths are:\n" + ",\n".join(allowed)
        )


class InvalidPropertyError(LocatorSchemaError):
    pass


class IllegalIdentityMutationError(LocatorSchemaError):
    pass


class InvalidIndexError(LocatorSchemaError):
    pass


class NestedLocatorBuildError(LocatorSchemaError):
    pass


class LocatorStrategyError(LocatorSchemaError):
    """The schema lacks the field its locator method needs, or the method is unsupported."""
