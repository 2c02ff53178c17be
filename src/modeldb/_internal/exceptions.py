"""Exception hierarchy for modeldb.

Every error raised by the library derives from :class:`ModelDBError`, which
carries an optional ``context`` mapping with structured details (offending
key, value type, provider id) so callers and logs can report precisely what
went wrong without parsing the message.

Examples:
    >>> err = BadProviderError("Invalid provider id", context={"value": "9x"})
    >>> err.context["value"]
    '9x'
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class ModelDBError(Exception):
    """Base class for all custom exceptions in modeldb."""

    def __init__(self, message: str = "", *, context: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigError(ModelDBError):
    """Raised for invalid configuration files or values."""

    pass


class IdentityError(ModelDBError):
    """Base class for malformed provider or model identity."""

    pass


class BadProviderError(IdentityError):
    """Raised when a provider identifier cannot be canonicalized."""

    pass


class UnknownProviderError(IdentityError):
    """Raised when a runtime provider identifier is not part of the catalog."""

    pass


class BadModelIdError(IdentityError):
    """Raised when a model id is not a non-empty string."""

    pass


class MissingIdError(IdentityError):
    pass


class MissingProviderError(IdentityError):
    pass


class InvalidModelError(IdentityError):
    """Raised when a model record carries neither id nor provider."""

    pass


class ValidationFailure(ModelDBError):
    """Raised internally when a record fails schema validation.

    The validator recovers from it locally; it never escapes a pipeline run.
    """

    pass


class SourceError(ModelDBError):
    """Raised by a source adapter that could not produce its layer."""

    pass


class EmptyCatalogError(ModelDBError):
    """Raised when merge and filtering leave zero models."""

    pass


class StaleEpochError(ModelDBError):
    """Raised when a compare-and-swap publish loses to a concurrent writer."""

    pass


class CatalogNotLoadedError(ModelDBError):
    """Raised by queries issued before any catalog was published."""

    pass


class ModelNotFoundError(ModelDBError):
    """Raised when a requested model is not in the current snapshot."""

    pass


class InvalidSpecError(ModelDBError):
    """Raised when a model spec string or tuple is malformed."""

    pass


class InvalidArgumentError(ModelDBError):
    """Raised for unsupported arguments such as unknown capability names."""

    pass


__all__ = [
    "ModelDBError",
    "ConfigError",
    "IdentityError",
    "BadProviderError",
    "UnknownProviderError",
    "BadModelIdError",
    "MissingIdError",
    "MissingProviderError",
    "InvalidModelError",
    "ValidationFailure",
    "SourceError",
    "EmptyCatalogError",
    "CatalogNotLoadedError",
    "StaleEpochError",
    "ModelNotFoundError",
    "InvalidSpecError",
    "InvalidArgumentError",
]
