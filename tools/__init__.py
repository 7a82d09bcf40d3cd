"""Tools package for upload validation and text extraction."""

from tools.file_validator import ALLOWED_EXTENSIONS, FileValidator, get_extension
from tools.file_extractor import TextExtractor, extract_text_from_file

__all__ = [
    "ALLOWED_EXTENSIONS",
    "FileValidator",
    "get_extension",
    "TextExtractor",
    "extract_text_from_file",
]
