"""Domain error taxonomy for playlist conversion.

Each error carries a stable ``code`` so failures can be stored on a
ConversionRecord and turned back into the typed exception later.
"""

from typing import Any, ClassVar


class TunebridgeError(Exception):
    """Base class for all domain errors."""

    code: ClassVar[str] = "error"

    def __init__(self, message: str = "", **details: Any) -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.details = details


class DuplicateConversionError(TunebridgeError):
    """Playlist already converted (or converting) to the target catalog."""

    code = "duplicate_conversion"


class LowCompatibilityError(TunebridgeError):
    """Pre-flight compatibility gate rejected the conversion."""

    code = "low_compatibility"


class NoCredentialError(TunebridgeError):
    """No usable access token for the target catalog."""

    code = "no_credential"


class ExternalCatalogError(TunebridgeError):
    """Transient failure talking to an external catalog."""

    code = "external_catalog"


class UnsupportedCatalogError(TunebridgeError):
    """Target catalog cannot receive this conversion."""

    code = "unsupported_catalog"


class NotFoundError(TunebridgeError):
    """Source playlist does not exist."""

    code = "not_found"


class ConversionCancelledError(TunebridgeError):
    """Caller cancelled a conversion while it was processing."""

    code = "cancelled"


class InvalidTransitionError(ValueError):
    """Illegal ConversionRecord status transition."""


ERRORS_BY_CODE: dict[str, type[TunebridgeError]] = {
    cls.code: cls
    for cls in (
        DuplicateConversionError,
        LowCompatibilityError,
        NoCredentialError,
        ExternalCatalogError,
        NotFoundError,
        UnsupportedCatalogError,
        ConversionCancelledError,
    )
}
