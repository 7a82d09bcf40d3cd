"""Gemini agents for contract analysis and follow-up chat."""

from contrato.agents.analysis_agent import ContractAnalysisAgent, parse_analysis
from contrato.agents.chat_agent import (
    ContractChatAgent,
    ContractChatSession,
    build_point_question,
)

__all__ = [
    "ContractAnalysisAgent",
    "parse_analysis",
    "ContractChatAgent",
    "ContractChatSession",
    "build_point_question",
]
