"""
Error taxonomy for patch-field construction and evaluation.

Both errors are fail-fast: they mark a case-setup problem, never a transient
fault, so callers should not retry.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """
    Raised when a configuration record is missing a required key or holds a
    value that cannot be coerced to the expected type.

    The offending key is kept on ``key`` so drivers can report it.
    """

    def __init__(self, key: str, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"Missing or invalid configuration key '{key}'")


class LinkedFieldError(ConfigurationError):
    """
    Raised when a coupled field cannot be resolved on the patch.

    Either the named field does not exist in the registry, or it exists but
    does not provide the capability the caller needs (for example a velocity
    condition without a wave model).
    """

    def __init__(self, field_name: str, message: str | None = None) -> None:
        self.field_name = field_name
        super().__init__(field_name, message or f"Cannot resolve linked field '{field_name}'")
