"""Security utilities for the local web UI."""

import os
import re
from typing import Any, Dict


def validate_api_key_format(api_key: str) -> bool:
    """Validate Google API key format."""
    if not api_key:
        return False

    placeholder_values = [
        "your_gemini_api_key_here",
        "your_api_key_here",
        "placeholder",
        "test_key",
        "demo_key"
    ]

    if api_key.lower() in placeholder_values:
        return False

    if api_key.startswith("AIza") and len(api_key) == 39:
        return True

    if len(api_key) >= 20 and re.match(r'^[A-Za-z0-9_-]+$', api_key):
        return True

    return False


def validate_environment_security() -> Dict[str, Any]:
    """Validate configuration from environment variables.

    Returns:
        Dictionary with validation results and warnings
    """
    warnings = []
    errors = []

    # Check API key
    api_key = os.getenv("GOOGLE_API_KEY")
    if not api_key:
        errors.append("GOOGLE_API_KEY is not set")
    elif not validate_api_key_format(api_key):
        errors.append("GOOGLE_API_KEY has invalid format or is a placeholder")

    # History keeps full contract texts on disk
    warnings.append(
        f"Contract history is stored unencrypted in {os.getenv('HISTORY_DB_PATH', 'contrato_facil.db')}"
    )

    if os.getenv("APP_HOST", "127.0.0.1") not in ("127.0.0.1", "localhost", "::1"):
        warnings.append(
            "APP_HOST exposes the single-user workspace beyond localhost."
        )

    # Check log level
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    if log_level == "DEBUG":
        warnings.append(
            "LOG_LEVEL is set to DEBUG. Unparseable model responses will be logged."
        )

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings
    }


def get_security_headers() -> Dict[str, str]:
    """Get security headers for HTML and JSON responses.

    The page carries its own inline style and copy-to-clipboard script.

    Returns:
        Dictionary of security headers
    """
    return {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Content-Security-Policy": (
            "default-src 'self'; style-src 'self' 'unsafe-inline'; "
            "script-src 'self' 'unsafe-inline'"
        ),
        "Referrer-Policy": "strict-origin-when-cross-origin"
    }
