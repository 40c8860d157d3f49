class DocshelfError(Exception):
    """Base error for all user-facing docshelf exceptions."""


class ConfigurationError(DocshelfError):
    """Raised when configuration is invalid or incomplete."""


class SourcingError(DocshelfError):
    """Raised when a content tree cannot be sourced at all."""


class ManifestParseError(SourcingError):
    """Raised when a document manifest is malformed."""


class DateValidationError(SourcingError):
    """Raised when a manifest date is not a valid calendar date."""


class AssetTraversalError(SourcingError):
    """Raised when a document's asset tree cannot be walked."""


class ConversionError(DocshelfError):
    """Raised when a document cannot be rendered or converted."""


class ConverterProcessError(ConversionError):
    """Raised when an external converter fails to spawn or exits non-zero."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class ConverterTimeoutError(ConverterProcessError):
    """Raised when an external converter exceeds its time limit."""


class EncodingError(ConversionError):
    """Raised when process output is not valid UTF-8 where text is expected."""


class CitationParseError(ConversionError):
    """Raised when citation processor output does not match the CSL schema."""


class NotFoundError(DocshelfError):
    """Raised when a document or asset lookup misses."""


class InvalidFormatError(ConversionError):
    """Raised when a requested target format name is empty or malformed."""
