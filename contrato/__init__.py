"""Contrato Fácil - plain-language contract explanations powered by Gemini."""

from contrato.models import (
    ATTENTION_LEVELS,
    AttentionPoint,
    ContractAnalysis,
    ChatMessage,
    HistoryItem,
    HistorySummary,
)

from contrato.logging_config import (
    setup_logging,
    get_session_logger,
    log_agent_execution,
    log_tool_execution,
)

from contrato.error_handling import (
    ContractExplainerError,
    DocumentParsingError,
    UnsupportedFormatError,
    AnalysisError,
    AnalysisRequestError,
    AnalysisParseError,
    HistoryError,
    handle_errors,
)

__version__ = "0.1.0"

__all__ = [
    # Models
    "ATTENTION_LEVELS",
    "AttentionPoint",
    "ContractAnalysis",
    "ChatMessage",
    "HistoryItem",
    "HistorySummary",
    # Logging
    "setup_logging",
    "get_session_logger",
    "log_agent_execution",
    "log_tool_execution",
    # Error Handling
    "ContractExplainerError",
    "DocumentParsingError",
    "UnsupportedFormatError",
    "AnalysisError",
    "AnalysisRequestError",
    "AnalysisParseError",
    "HistoryError",
    "handle_errors",
]
