"""Upload validation run before any text extraction."""

import os
from typing import Dict, List, Optional
from loguru import logger


ALLOWED_EXTENSIONS = ("pdf", "docx", "txt")


def get_extension(filename: str) -> Optional[str]:
    """Return the lower-cased extension of a filename, without the dot."""
    if '.' not in filename:
        return None
    return filename.rsplit('.', 1)[1].lower()


class FileValidator:
    """Validator for uploaded contract files."""

    def __init__(
        self,
        max_size_mb: Optional[float] = None,
        allowed_extensions: Optional[List[str]] = None
    ):
        """Initialize file validator.

        Args:
            max_size_mb: Maximum file size in megabytes (defaults to MAX_FILE_SIZE_MB or 10)
            allowed_extensions: Extensions without dot (defaults to pdf, docx, txt)
        """
        if max_size_mb is None:
            max_size_mb = float(os.getenv("MAX_FILE_SIZE_MB", "10"))
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)
        self.allowed_extensions = list(allowed_extensions or ALLOWED_EXTENSIONS)

    def validate_file(self, filename: str, file_content: bytes) -> Dict[str, any]:
        """Validate an uploaded file.

        Args:
            filename: Name of the uploaded file
            file_content: Raw file bytes

        Returns:
            Dictionary with validation results:
                - supported: Whether the extension is accepted
                - valid: Whether the file can be handed to the extractor
                - errors: List of validation errors
                - file_extension: Extension without dot, or None
        """
        errors = []
        file_ext = get_extension(filename)
        supported = file_ext in self.allowed_extensions

        if not supported:
            errors.append(
                f"Invalid file type. Allowed types: {', '.join(self.allowed_extensions)}"
            )

        file_size = len(file_content)
        if file_size > self.max_size_bytes:
            errors.append(
                f"File size ({file_size / 1024 / 1024:.2f} MB) exceeds "
                f"maximum allowed size ({self.max_size_bytes / 1024 / 1024:.0f} MB)"
            )

        if file_size == 0:
            errors.append("File is empty")

        # Check for PDF magic number
        if file_ext == 'pdf' and file_size and not file_content.startswith(b'%PDF'):
            errors.append("File does not appear to be a valid PDF")

        valid = len(errors) == 0

        if not valid:
            logger.warning(
                "File validation failed",
                filename=filename,
                errors=errors
            )

        return {
            "supported": supported,
            "valid": valid,
            "errors": errors,
            "file_extension": file_ext,
        }
