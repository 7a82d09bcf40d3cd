"""Text extraction for uploaded contracts.

PDF pages are read with pdfplumber, DOCX paragraphs with python-docx and
plain text is decoded as UTF-8. The result is a single string handed to the
analysis agent as-is.
"""

import io
from typing import Optional

import docx
import pdfplumber
from loguru import logger

from contrato.error_handling import (
    DocumentParsingError,
    UnsupportedFormatError,
    handle_errors
)
from contrato.logging_config import log_tool_execution
from tools.file_validator import FileValidator


UNSUPPORTED_FORMAT_MESSAGE = "Formato de arquivo não suportado. Use PDF, DOCX ou TXT."
EXTRACTION_FAILED_MESSAGE = "Erro ao ler o arquivo. Verifique se ele não está corrompido e tente novamente."


class TextExtractor:
    """Turns an uploaded txt, pdf or docx file into plain text."""

    def __init__(self, validator: Optional[FileValidator] = None):
        self.validator = validator or FileValidator()

    @log_tool_execution("text_extractor")
    @handle_errors(DocumentParsingError)
    def extract(self, filename: str, data: bytes) -> str:
        """Extract the full text of an uploaded file.

        Args:
            filename: Original filename, used to pick the extractor
            data: File content as bytes

        Returns:
            Extracted text

        Raises:
            UnsupportedFormatError: If the extension is not pdf, docx or txt
            DocumentParsingError: If the file cannot be read
        """
        validation = self.validator.validate_file(filename, data)
        if not validation["supported"]:
            raise UnsupportedFormatError(UNSUPPORTED_FORMAT_MESSAGE)
        if not validation["valid"]:
            raise DocumentParsingError(
                f"{EXTRACTION_FAILED_MESSAGE} ({'; '.join(validation['errors'])})"
            )

        extension = validation["file_extension"]
        try:
            if extension == "pdf":
                text = self._extract_pdf(data)
            elif extension == "docx":
                text = self._extract_docx(data)
            else:
                text = data.decode("utf-8", errors="replace")
        except Exception as e:
            logger.error(
                "Text extraction failed",
                extension=extension,
                error=str(e),
                error_type=type(e).__name__
            )
            raise DocumentParsingError(EXTRACTION_FAILED_MESSAGE) from e

        logger.info(
            "Extracted text from upload",
            extension=extension,
            text_length=len(text)
        )
        return text

    def _extract_pdf(self, data: bytes) -> str:
        parts = []
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            for page_num, page in enumerate(pdf.pages, start=1):
                words = page.extract_words()
                if not words:
                    logger.warning(f"No text extracted from page {page_num}")
                parts.append(" ".join(word["text"] for word in words) + "\n")
        return "".join(parts)

    def _extract_docx(self, data: bytes) -> str:
        document = docx.Document(io.BytesIO(data))
        return "\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_text_from_file(filename: str, data: bytes) -> str:
    """Extract text from an uploaded file with the default validator."""
    return TextExtractor().extract(filename, data)
