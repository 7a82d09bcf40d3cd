"""Registry of live chat sessions keyed by contract text."""

import hashlib
from typing import Dict, List, Optional, TYPE_CHECKING
from loguru import logger

from contrato.models import ChatMessage

if TYPE_CHECKING:
    from contrato.agents.chat_agent import ContractChatAgent, ContractChatSession


def contract_key(contract_text: str) -> str:
    """SHA-256 of the contract text, used as the session key."""
    return hashlib.sha256(contract_text.encode("utf-8")).hexdigest()


class ChatSessionRegistry:
    """Explicit mapping from contract text hash to chat session.

    Sessions are created with get_or_create and released with dispose or
    dispose_all; nothing is created behind the caller's back.
    """

    def __init__(self, chat_agent: "ContractChatAgent", restore_context: bool = False):
        """Initialize the registry.

        Args:
            chat_agent: Agent used to open new sessions
            restore_context: Replay resumed transcripts to the model
        """
        self.chat_agent = chat_agent
        self.restore_context = restore_context
        self._sessions: Dict[str, "ContractChatSession"] = {}

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    def get(self, contract_text: str) -> Optional["ContractChatSession"]:
        return self._sessions.get(contract_key(contract_text))

    def get_or_create(
        self,
        contract_text: str,
        messages: Optional[List[ChatMessage]] = None,
        session_id: str = "workspace"
    ) -> "ContractChatSession":
        """Return the session for a contract, opening one if needed."""
        key = contract_key(contract_text)
        session = self._sessions.get(key)
        if session is None:
            session = self.chat_agent.create_session(
                contract_text,
                messages=messages,
                restore_context=self.restore_context,
                session_id=session_id
            )
            self._sessions[key] = session
            logger.debug(f"Chat session registered: {key[:12]}")
        return session

    def dispose(self, contract_text: str) -> bool:
        session = self._sessions.pop(contract_key(contract_text), None)
        return session is not None

    def dispose_all(self) -> int:
        count = len(self._sessions)
        self._sessions.clear()
        if count:
            logger.debug(f"Disposed {count} chat sessions")
        return count
