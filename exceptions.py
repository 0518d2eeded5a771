"""
Custom exceptions for the Kettle graph parser.
"""
from typing import Optional


class KettleParserError(Exception):
    """Base exception for Kettle parsing errors."""
    pass


class DocumentParseError(KettleParserError):
    """Raised when a single document cannot be turned into a workflow."""

    error_kind = "parse_error"

    def __init__(self, message: str, file_name: Optional[str] = None):
        self.file_name = file_name
        if file_name:
            message = f"{file_name}: {message}"
        super().__init__(message)


class MalformedDocumentError(DocumentParseError):
    """Raised when the document markup cannot be parsed."""

    error_kind = "malformed"


class UnrecognizedFormatError(DocumentParseError):
    """Raised when the document is neither a transformation nor a job."""

    error_kind = "unrecognized_format"


class DependencyRulesError(KettleParserError):
    """Raised when a dependency rules file cannot be loaded."""
    pass
