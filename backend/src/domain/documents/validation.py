"""File validation for draft and check-in uploads

Every stream entering the draft or published slot passes through
FileValidator first. A failed validation is a business rejection, not an
exception.
"""

import mimetypes
import os
import re
from dataclasses import dataclass
from typing import BinaryIO, FrozenSet, Optional, Tuple


# File size limit (default 100MB, configurable via env)
MAX_FILE_SIZE = int(os.getenv('MAX_UPLOAD_SIZE_BYTES', 100 * 1024 * 1024))

# Executable and script extensions are never accepted into the repository
BLOCKED_EXTENSIONS: FrozenSet[str] = frozenset({
    '.exe', '.dll', '.bat', '.cmd', '.com', '.msi', '.scr', '.ps1', '.vbs', '.js', '.jar',
})

# Leading bytes for formats whose extension is commonly spoofed
MAGIC_SIGNATURES = {
    'application/pdf': b'%PDF',
    'image/png': b'\x89PNG',
    'image/jpeg': b'\xff\xd8\xff',
    'application/zip': b'PK\x03\x04',
}

OCTET_STREAM = 'application/octet-stream'


@dataclass
class FileValidationResult:
    """Outcome of validating one uploaded file.

    Attributes:
        valid: Whether the file may be stored
        resolved_content_type: Content type to record (may differ from the claimed one)
        error: Rejection reason when not valid
        warning: Non-blocking remark surfaced to the uploader
    """
    valid: bool
    resolved_content_type: Optional[str] = None
    error: Optional[str] = None
    warning: Optional[str] = None


def validate_file_size(size_bytes: int, max_size: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """Validate file size is within limits

    Args:
        size_bytes: File size in bytes
        max_size: Maximum allowed size (defaults to MAX_FILE_SIZE)

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_file_size(1024)
        (True, None)
        >>> validate_file_size(0)
        (False, 'File is empty (0 bytes)')
    """
    if max_size is None:
        max_size = MAX_FILE_SIZE

    if size_bytes == 0:
        return False, "File is empty (0 bytes)"

    if size_bytes > max_size:
        return False, f"File exceeds maximum size of {max_size} bytes (got {size_bytes} bytes)"

    return True, None


def validate_filename(filename: str) -> Tuple[bool, Optional[str]]:
    """Validate an uploaded filename

    Validation rules:
    - Not empty
    - Max 255 characters
    - No path traversal (../, ..\\)
    - No null bytes or control characters
    - Not an executable/script extension

    Example:
        >>> validate_filename('contract.pdf')
        (True, None)
        >>> validate_filename('../../etc/passwd')
        (False, 'Filename contains path traversal or directory separators')
    """
    if not filename or len(filename.strip()) == 0:
        return False, "Filename cannot be empty"

    if len(filename) > 255:
        return False, f"Filename exceeds 255 characters (got {len(filename)})"

    if '..' in filename or '/' in filename or '\\' in filename:
        return False, "Filename contains path traversal or directory separators"

    if '\x00' in filename:
        return False, "Filename contains null bytes"

    if any(ord(c) < 32 for c in filename):
        return False, "Filename contains control characters"

    extension = os.path.splitext(filename)[1].lower()
    if extension in BLOCKED_EXTENSIONS:
        return False, f"Files with extension '{extension}' are not allowed"

    return True, None


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for use inside a storage key

    Example:
        >>> sanitize_filename('../../contract.pdf')
        'contract.pdf'
        >>> sanitize_filename('contract (copy).pdf')
        'contract_copy_.pdf'
    """
    filename = os.path.basename(filename)
    filename = re.sub(r'[^\w\s.-]', '_', filename)
    filename = re.sub(r'[\s_]+', '_', filename)

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[:255 - len(ext)] + ext

    return filename


def _measure(stream: BinaryIO) -> int:
    start = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell() - start
    stream.seek(start)
    return size


class FileValidator:
    """Validates uploaded streams before they reach storage.

    The claimed content type from the client is only trusted when it agrees
    with the file extension; otherwise the extension-derived type wins and a
    warning is attached. Known binary formats are checked against their
    magic bytes so a renamed executable cannot pass as a PDF.

    The stream position is restored after validation.
    """

    def __init__(self, max_size: Optional[int] = None):
        self.max_size = max_size if max_size is not None else MAX_FILE_SIZE

    def validate(self, stream: BinaryIO, file_name: str, claimed_content_type: Optional[str]) -> FileValidationResult:
        ok, error = validate_filename(file_name)
        if not ok:
            return FileValidationResult(valid=False, error=error)

        ok, error = validate_file_size(_measure(stream), self.max_size)
        if not ok:
            return FileValidationResult(valid=False, error=error)

        guessed, _ = mimetypes.guess_type(file_name)
        claimed = (claimed_content_type or "").strip().lower() or None
        resolved = claimed or guessed or OCTET_STREAM
        warning = None

        if guessed and claimed and claimed != OCTET_STREAM and claimed != guessed:
            warning = (
                f"Declared content type '{claimed}' does not match file extension; "
                f"using '{guessed}'."
            )
            resolved = guessed
        elif guessed and (claimed is None or claimed == OCTET_STREAM):
            resolved = guessed

        signature = MAGIC_SIGNATURES.get(resolved)
        if signature is not None:
            start = stream.tell()
            head = stream.read(len(signature))
            stream.seek(start)
            if head != signature:
                return FileValidationResult(
                    valid=False,
                    error=f"File content does not match its declared type '{resolved}'",
                )

        return FileValidationResult(valid=True, resolved_content_type=resolved, warning=warning)
