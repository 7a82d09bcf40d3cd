"""
Data Models - msgspec Structs for efficient serialization.

These models define the analysis record returned by Gemini, the chat
transcript and the history entries kept in local storage. Attribute names
are English; the JSON names exchanged with the model are the Portuguese keys
the analysis prompt and schema use.
"""

from datetime import datetime
from typing import List, Literal
from msgspec import Struct, field


AttentionLevel = Literal["baixo", "medio", "alto"]
ATTENTION_LEVELS = ("baixo", "medio", "alto")

ChatRole = Literal["user", "model"]


class AttentionPoint(Struct, frozen=True):
    """A clause flagged for the reader's scrutiny."""
    title: str = field(name="titulo")
    contract_excerpt: str = field(name="trecho_do_contrato")
    why_it_matters: str = field(name="porque_importa")
    attention_level: AttentionLevel = field(name="nivel_de_atencao")


class ContractAnalysis(Struct, frozen=True):
    """Plain-language analysis of a whole contract."""
    contract_type: str = field(name="tipo_de_contrato")
    quick_summary: str = field(name="resumo_rapido")
    overall_attention_level: AttentionLevel = field(name="nivel_de_atencao_geral")
    main_points: List[str] = field(name="pontos_principais")
    attention_points: List[AttentionPoint] = field(name="pontos_de_atencao")
    pre_signing_actions: List[str] = field(name="o_que_fazer_antes_de_assinar")
    important_notice: str = field(name="aviso_importante")


class ChatMessage(Struct):
    """One turn of a contract chat transcript."""
    role: ChatRole
    text: str


class HistoryItem(Struct, kw_only=True):
    """A past analysis with its chat transcript, persisted locally."""
    id: str
    created_at: datetime
    contract_type: str
    contract_text: str
    analysis: ContractAnalysis
    messages: List[ChatMessage] = []


class HistorySummary(Struct):
    """Sidebar view of a history item."""
    id: str
    created_at: datetime
    contract_type: str
    message_count: int
