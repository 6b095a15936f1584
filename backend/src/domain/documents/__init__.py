"""Documents domain module - lifecycle states, file validation, storage ports"""

from .document_state import DocumentState, IMMUTABLE_STATES, is_immutable, parse_state
from .validation import (
    FileValidationResult,
    FileValidator,
    validate_file_size,
    validate_filename,
    sanitize_filename,
    MAX_FILE_SIZE,
)

__all__ = [
    "DocumentState",
    "IMMUTABLE_STATES",
    "is_immutable",
    "parse_state",
    "FileValidationResult",
    "FileValidator",
    "validate_file_size",
    "validate_filename",
    "sanitize_filename",
    "MAX_FILE_SIZE",
]
