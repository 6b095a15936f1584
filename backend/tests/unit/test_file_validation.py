"""Unit tests for file validation utilities"""

from io import BytesIO

import pytest

from domain.documents import (
    FileValidator,
    MAX_FILE_SIZE,
    sanitize_filename,
    validate_file_size,
    validate_filename,
)

PDF = b"%PDF-1.4\nbody"


class TestFileSizeValidation:
    """Test file size limits"""

    def test_valid_file_size(self):
        """Test a small file is accepted"""
        assert validate_file_size(1024) == (True, None)

    def test_empty_file_rejected(self):
        """Test empty files are rejected"""
        assert validate_file_size(0) == (False, "File is empty (0 bytes)")

    def test_file_over_limit_rejected(self):
        """Test files over the default limit are rejected"""
        ok, error = validate_file_size(MAX_FILE_SIZE + 1)
        assert ok is False
        assert "exceeds maximum size" in error


class TestFilenameValidation:
    """Test filename rules"""

    def test_valid_filename(self):
        """Test an ordinary filename passes"""
        assert validate_filename("contract.pdf") == (True, None)

    @pytest.mark.parametrize("name", ["../etc/passwd", "a/b.pdf", "a\\b.pdf"])
    def test_path_traversal_rejected(self, name):
        """Test directory separators are rejected"""
        ok, error = validate_filename(name)
        assert ok is False
        assert "path traversal" in error

    def test_executable_rejected(self):
        """Test executable extensions are blocked"""
        assert validate_filename("setup.EXE") == (False, "Files with extension '.exe' are not allowed")

    def test_empty_filename_rejected(self):
        """Test blank filenames are rejected"""
        assert validate_filename("   ") == (False, "Filename cannot be empty")

    def test_sanitize_filename(self):
        """Test unsafe characters are replaced for storage keys"""
        assert sanitize_filename("contract (copy).pdf") == "contract_copy_.pdf"


class TestFileValidator:
    """Test FileValidator.validate"""

    def test_valid_pdf(self):
        """Test a real PDF with matching type is accepted"""
        result = FileValidator().validate(BytesIO(PDF), "contract.pdf", "application/pdf")
        assert result.valid is True
        assert result.resolved_content_type == "application/pdf"
        assert result.warning is None

    def test_missing_type_resolved_from_extension(self):
        """Test the extension decides the type when none is claimed"""
        result = FileValidator().validate(BytesIO(b"plain"), "notes.txt", None)
        assert result.valid is True
        assert result.resolved_content_type == "text/plain"

    def test_mismatched_claim_warns_and_uses_extension(self):
        """Test a claimed type disagreeing with the extension is overridden with a warning"""
        result = FileValidator().validate(BytesIO(b"plain"), "notes.txt", "image/png")
        assert result.valid is True
        assert result.resolved_content_type == "text/plain"
        assert "does not match file extension" in result.warning

    def test_spoofed_pdf_rejected(self):
        """Test magic bytes must match a PDF extension"""
        result = FileValidator().validate(BytesIO(b"MZ\x90\x00"), "invoice.pdf", "application/pdf")
        assert result.valid is False
        assert result.error == "File content does not match its declared type 'application/pdf'"

    def test_empty_stream_rejected(self):
        """Test empty uploads are rejected"""
        result = FileValidator().validate(BytesIO(b""), "empty.txt", "text/plain")
        assert result.valid is False
        assert result.error == "File is empty (0 bytes)"

    def test_custom_max_size(self):
        """Test the validator honours its own size limit"""
        result = FileValidator(max_size=3).validate(BytesIO(b"four"), "a.txt", None)
        assert result.valid is False
        assert "exceeds maximum size of 3 bytes" in result.error

    def test_stream_position_restored(self):
        """Test validation leaves the stream where it found it"""
        stream = BytesIO(PDF)
        FileValidator().validate(stream, "contract.pdf", "application/pdf")
        assert stream.tell() == 0
