"""
Contract Workspace - view state for the single-user assistant.

Holds what the browser UI shows (contract text, analysis, transcript,
loading flags, error banner) and coordinates the components behind it:

    Upload -> TextExtractor -> ContractAnalysisAgent -> HistoryStore
                                                     -> ChatSessionRegistry

Loading flags are checked and set before the first await, so a second
analysis or an overlapping chat turn started while one is pending is
rejected rather than interleaved.
"""

import asyncio
import os
import uuid
from datetime import datetime, timezone
from typing import List, Optional
from loguru import logger

from contrato.models import ChatMessage, ContractAnalysis, HistoryItem
from contrato.error_handling import AnalysisError, DocumentParsingError, HistoryError
from contrato.agents.analysis_agent import ContractAnalysisAgent
from contrato.agents.chat_agent import ContractChatAgent, ContractChatSession, build_point_question
from memory.history_store import HistoryStore, SQLiteKeyValueStorage, DEFAULT_STORAGE_KEY
from memory.session_registry import ChatSessionRegistry
from tools.file_extractor import TextExtractor


ANALYSIS_ERROR_MESSAGE = (
    "Ops! Houve um erro ao processar seu contrato. "
    "Verifique sua conexão e tente novamente."
)
FILE_ERROR_MESSAGE = "Erro ao ler o arquivo."


class ContractWorkspace:
    """
    State machine behind the input screen, the report and the chat panel.

    Blank state: no contract text, no analysis, no messages, no active
    history item. An analysis or a resumed history item moves it to the
    report state; reset() returns it to blank.
    """

    def __init__(
        self,
        analysis_agent: ContractAnalysisAgent,
        chat_agent: ContractChatAgent,
        history: HistoryStore,
        extractor: Optional[TextExtractor] = None,
        restore_chat_context: bool = False
    ):
        """Initialize the workspace.

        Args:
            analysis_agent: Agent producing ContractAnalysis
            chat_agent: Agent opening chat sessions
            history: Persisted history of analyses
            extractor: Upload text extractor
            restore_chat_context: Replay resumed transcripts to the model
        """
        self.analysis_agent = analysis_agent
        self.history = history
        self.extractor = extractor or TextExtractor()
        self.sessions = ChatSessionRegistry(chat_agent, restore_context=restore_chat_context)

        self.contract_text = ""
        self.analysis: Optional[ContractAnalysis] = None
        self.messages: List[ChatMessage] = []
        self.error: Optional[str] = None
        self.is_loading = False
        self.is_processing_file = False
        self.chat_session: Optional[ContractChatSession] = None
        # Bumped whenever the displayed contract changes or is cleared
        self._view_generation = 0

        logger.info(
            "ContractWorkspace initialized",
            history_items=len(history.items),
            restore_chat_context=restore_chat_context
        )

    @property
    def active_id(self) -> Optional[str]:
        return self.history.active_id

    @property
    def is_chat_loading(self) -> bool:
        return self.chat_session is not None and self.chat_session.is_pending

    @property
    def can_analyze(self) -> bool:
        return bool(self.contract_text.strip()) and not self.is_loading and not self.is_processing_file

    def set_contract_text(self, text: str) -> None:
        if self.is_loading:
            return
        self.contract_text = text

    async def import_file(self, filename: str, data: bytes) -> bool:
        """Replace the contract text with the content of an uploaded file.

        Returns:
            True if the text was extracted
        """
        if self.is_processing_file or self.is_loading:
            logger.warning("File import rejected: another operation is in progress")
            return False

        self.is_processing_file = True
        self.error = None
        try:
            text = await asyncio.to_thread(self.extractor.extract, filename, data)
        except DocumentParsingError as e:
            self.error = str(e) or FILE_ERROR_MESSAGE
            return False
        finally:
            self.is_processing_file = False

        self.contract_text = text
        return True

    async def analyze(self) -> bool:
        """Analyze the current contract text.

        Returns:
            True if an analysis is now displayed
        """
        if not self.contract_text.strip():
            return False
        if self.is_loading:
            logger.warning("Analysis rejected: another analysis is in flight")
            return False

        self.is_loading = True
        self.error = None
        contract_text = self.contract_text
        generation = self._view_generation
        try:
            analysis = await self.analysis_agent.analyze(contract_text)
        except AnalysisError as e:
            logger.error(f"Analysis failed: {type(e).__name__}")
            if generation == self._view_generation:
                self.error = ANALYSIS_ERROR_MESSAGE
            return False
        finally:
            self.is_loading = False

        if generation != self._view_generation:
            logger.info("Discarding analysis result: the view changed while it was running")
            return False

        item = HistoryItem(
            id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            contract_type=analysis.contract_type,
            contract_text=contract_text,
            analysis=analysis,
            messages=[],
        )
        try:
            self.history.add(item)
        except HistoryError:
            logger.error(f"Analysis {item.id} is shown but could not be saved to history")
            self.history.deactivate()
        self._show(contract_text, analysis, [], session_id=item.id)
        return True

    def _show(
        self,
        contract_text: str,
        analysis: ContractAnalysis,
        messages: List[ChatMessage],
        session_id: str
    ) -> None:
        self._view_generation += 1
        self.contract_text = contract_text
        self.analysis = analysis
        self.messages = list(messages)
        self.error = None

        self._close_chat()
        self.chat_session = self.sessions.get_or_create(
            contract_text,
            messages=self.messages,
            session_id=session_id
        )
        self.chat_session.on_update = self._on_messages_update

    def _close_chat(self) -> None:
        # A reply still in flight must not write into whatever is shown next
        session = self.chat_session
        if session is not None:
            session.on_update = None
            if session.is_pending:
                self._drop_unanswered_turn(session)
        self.chat_session = None
        self.sessions.dispose_all()

    def _drop_unanswered_turn(self, session: ContractChatSession) -> None:
        """Remove the trailing question whose reply will never be recorded."""
        messages = session.messages
        if not messages or messages[-1].role != "user":
            return
        try:
            self.history.update_messages(session.session_id, messages[:-1])
        except HistoryError as e:
            logger.error(f"Could not drop unanswered chat turn: {e}")

    def _on_messages_update(self, messages: List[ChatMessage]) -> None:
        self.messages = list(messages)
        try:
            self.history.update_active_messages(self.messages)
        except HistoryError as e:
            logger.error(f"Chat transcript not saved to history: {e}")

    async def send_message(self, text: str) -> bool:
        """Send a chat question about the displayed contract.

        Returns:
            True if the turn was accepted
        """
        if self.analysis is None or self.chat_session is None:
            return False
        reply = await self.chat_session.send_message(text)
        return reply is not None

    async def ask_about_point(self, point: str) -> bool:
        return await self.send_message(build_point_question(point))

    def reset(self) -> None:
        """Return to the blank state. Calling it repeatedly is harmless."""
        self._view_generation += 1
        self.contract_text = ""
        self.analysis = None
        self.messages = []
        self.error = None
        self._close_chat()
        self.history.deactivate()

    def load_history(self, item_id: str) -> HistoryItem:
        """Resume a past analysis and its transcript.

        Raises:
            HistoryError: If the item does not exist
        """
        item = self.history.load(item_id)
        self._show(item.contract_text, item.analysis, item.messages, session_id=item.id)
        return item

    def delete_history(self, item_id: str) -> bool:
        """Delete a history item, resetting the view if it was displayed.

        Returns:
            True if the deleted item was active
        """
        was_active = self.history.remove(item_id)
        if was_active:
            self.reset()
        return was_active

    def clear_history(self) -> None:
        self.history.clear()
        self.reset()


def create_workspace(
    db_path: Optional[str] = None,
    storage_key: Optional[str] = None,
    api_key: Optional[str] = None
) -> ContractWorkspace:
    """Factory function to create a workspace from environment configuration.

    Args:
        db_path: SQLite file for the history (defaults to HISTORY_DB_PATH)
        storage_key: History slot name (defaults to HISTORY_STORAGE_KEY)
        api_key: Google API key (defaults to GOOGLE_API_KEY)

    Returns:
        ContractWorkspace instance
    """
    storage = SQLiteKeyValueStorage(db_path or os.getenv("HISTORY_DB_PATH", "contrato_facil.db"))
    history = HistoryStore(
        storage,
        storage_key=storage_key or os.getenv("HISTORY_STORAGE_KEY", DEFAULT_STORAGE_KEY)
    )
    restore = os.getenv("RESTORE_CHAT_CONTEXT", "false").lower() == "true"

    return ContractWorkspace(
        analysis_agent=ContractAnalysisAgent(api_key=api_key),
        chat_agent=ContractChatAgent(api_key=api_key),
        history=history,
        restore_chat_context=restore
    )
