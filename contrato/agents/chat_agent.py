"""Contract Chat Agent for follow-up questions about one contract.

Each ContractChatSession wraps a Gemini chat whose system instruction embeds
the full contract text. Turns are strictly sequential, and a failed turn is
answered in-line with an apology instead of raising.
"""

import os
from typing import Callable, List, Optional
from loguru import logger

from google import genai
from google.genai import types

from contrato.models import ChatMessage
from contrato.logging_config import get_session_logger


CHAT_ERROR_MESSAGE = "Houve um erro ao tentar obter uma resposta. Tente novamente."
EMPTY_REPLY_MESSAGE = "Desculpe, não consegui processar sua pergunta."
POINT_QUESTION_TEMPLATE = 'Pode me explicar melhor este ponto: "{point}"?'

CHAT_SYSTEM_INSTRUCTION_TEMPLATE = """
Você é um assistente inteligente especializado em explicar contratos para pessoas comuns.
Você já leu e compreendeu completamente o contrato enviado pelo usuário.
Seu único objetivo é responder perguntas sobre o conteúdo deste contrato.

Você NÃO é advogado.
Você NÃO fornece aconselhamento jurídico definitivo.
Você apenas explica o que está escrito no contrato.

REGRAS DE CONVERSA:
- Responda sempre em português
- Use linguagem simples, clara e direta
- Explique como se estivesse falando com alguém sem conhecimento jurídico
- Seja educado e objetivo
- Nunca invente informações
- Se a resposta não estiver claramente no contrato, diga isso
- Se o contrato for ambíguo, explique a ambiguidade
- Evite termos jurídicos complexos
- Não cite leis, artigos ou códigos
- Não diga que algo é ilegal ou inválido

BASE DE CONHECIMENTO FIXA (CONTRATO):
\"\"\"
{contract_text}
\"\"\"

COMO RESPONDER CADA PERGUNTA:
1. Baseie-se exclusivamente no texto do contrato
2. Diga claramente o que o contrato permite, obriga ou limita
3. Quando possível, mencione o trecho relevante (sem copiar textos longos)
4. Use exemplos simples se ajudar na compreensão
5. Seja conciso

AVISO FIXO (NÃO REPETIR A CADA RESPOSTA):
Esta conversa é apenas explicativa e não substitui a análise de um advogado.
"""

MessagesListener = Callable[[List[ChatMessage]], None]


def build_chat_instruction(contract_text: str) -> str:
    """Build the chat system instruction with the contract embedded verbatim."""
    return CHAT_SYSTEM_INSTRUCTION_TEMPLATE.format(contract_text=contract_text)


def build_point_question(point: str) -> str:
    """Build the quick question asked when a main point is clicked."""
    return POINT_QUESTION_TEMPLATE.format(point=point)


class ContractChatSession:
    """A sequential conversation about one contract.

    The transcript is append-only. Every change is pushed to the optional
    listener so the caller can mirror it into the history store.
    """

    def __init__(
        self,
        chat,
        contract_text: str,
        messages: Optional[List[ChatMessage]] = None,
        on_update: Optional[MessagesListener] = None,
        session_id: str = "workspace"
    ):
        self._chat = chat
        self.contract_text = contract_text
        self.messages: List[ChatMessage] = list(messages or [])
        self.on_update = on_update
        self.is_pending = False
        self.session_id = session_id
        self.session_logger = get_session_logger(session_id, "ContractChatSession")

    def _append(self, message: ChatMessage) -> None:
        self.messages = [*self.messages, message]
        if self.on_update:
            self.on_update(list(self.messages))

    async def _ask_model(self, text: str) -> str:
        if self._chat is None:
            raise RuntimeError("Gemini client is not configured (GOOGLE_API_KEY missing)")
        response = await self._chat.send_message(text)
        return response.text or EMPTY_REPLY_MESSAGE

    async def send_message(self, text: str) -> Optional[ChatMessage]:
        """Send one user turn and append the model's reply.

        Args:
            text: User question

        Returns:
            The model turn appended to the transcript, or None when the
            message was blank or another reply is still pending
        """
        text = (text or "").strip()
        if not text:
            return None

        if self.is_pending:
            self.session_logger.warning("Chat message rejected: a reply is still pending")
            return None

        self.is_pending = True
        try:
            self._append(ChatMessage(role="user", text=text))
            self.session_logger.info("Sending chat message", message_length=len(text))

            try:
                reply_text = await self._ask_model(text)
            except Exception as e:
                self.session_logger.error(
                    "Chat turn failed, answering with fallback message",
                    error=str(e),
                    error_type=type(e).__name__
                )
                reply_text = CHAT_ERROR_MESSAGE

            reply = ChatMessage(role="model", text=reply_text)
            self._append(reply)
            return reply
        finally:
            self.is_pending = False


class ContractChatAgent:
    """Factory for Gemini chat sessions bound to a contract text."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        client: Optional[genai.Client] = None
    ):
        """Initialize the Contract Chat Agent.

        Args:
            api_key: Google API key for Gemini (defaults to GOOGLE_API_KEY env var)
            model_name: Gemini model (defaults to CHAT_MODEL env var)
            client: Preconfigured client, mainly for tests
        """
        self.api_key = api_key or os.getenv("GOOGLE_API_KEY")
        self.model_name = model_name or os.getenv("CHAT_MODEL", "gemini-3-flash-preview")

        if client is None and self.api_key:
            client = genai.Client(api_key=self.api_key)
        elif client is None:
            logger.warning("No API key provided - chat answers will fall back to an error message")
        self.client = client

        logger.info("Contract Chat Agent initialized", model=self.model_name)

    def create_session(
        self,
        contract_text: str,
        messages: Optional[List[ChatMessage]] = None,
        restore_context: bool = False,
        session_id: str = "workspace"
    ) -> ContractChatSession:
        """Open a chat session about a contract.

        Args:
            contract_text: Contract embedded in the system instruction
            messages: Transcript to display (resumed history)
            restore_context: Also replay the transcript to the model
            session_id: Session identifier for logging

        Returns:
            New ContractChatSession
        """
        history = None
        if restore_context and messages:
            history = [
                types.Content(role=message.role, parts=[types.Part(text=message.text)])
                for message in messages
            ]

        chat = None
        if self.client is not None:
            chat = self.client.aio.chats.create(
                model=self.model_name,
                config=types.GenerateContentConfig(
                    system_instruction=build_chat_instruction(contract_text),
                ),
                history=history,
            )

        get_session_logger(session_id, "ContractChatAgent").info(
            "Chat session created",
            text_length=len(contract_text),
            resumed_turns=len(messages or []),
            context_restored=history is not None
        )

        return ContractChatSession(
            chat,
            contract_text,
            messages=messages,
            session_id=session_id
        )
