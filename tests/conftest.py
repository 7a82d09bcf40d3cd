import asyncio
import copy
import json
import os
import tempfile
from types import SimpleNamespace

import pytest

# api.main configures file logging at import time
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="contrato-logs-"))

from contrato.agents.analysis_agent import ContractAnalysisAgent  # noqa: E402
from contrato.agents.chat_agent import ContractChatAgent  # noqa: E402
from contrato.workspace import ContractWorkspace  # noqa: E402
from memory.history_store import HistoryStore, InMemoryKeyValueStorage  # noqa: E402


RENTAL_CONTRACT = "Aluguel mensal de R$1000, multa de 10% por atraso"

RENTAL_ANALYSIS = {
    "tipo_de_contrato": "Contrato de Locação Residencial",
    "resumo_rapido": "Você paga R$1000 por mês e há multa se atrasar.",
    "nivel_de_atencao_geral": "alto",
    "pontos_principais": [
        "Aluguel mensal de R$1000",
        "Multa de 10% em caso de atraso",
    ],
    "pontos_de_atencao": [
        {
            "titulo": "Multa por atraso",
            "trecho_do_contrato": "multa de 10% por atraso",
            "porque_importa": "Atrasar um dia já custa R$100 a mais.",
            "nivel_de_atencao": "alto",
        }
    ],
    "o_que_fazer_antes_de_assinar": ["Confirme a data de vencimento do aluguel"],
    "aviso_importante": "Esta análise é explicativa e não substitui um advogado.",
}


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModels:
    """Scripted stand-in for client.aio.models."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        await asyncio.sleep(0)
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return FakeResponse(result)


class FakeChat:
    def __init__(self, replies, model, config, history):
        self.replies = replies
        self.model = model
        self.config = config
        self.history = history
        self.sent = []

    async def send_message(self, message):
        self.sent.append(message)
        await asyncio.sleep(0)
        reply = self.replies.pop(0) if self.replies else "Resposta."
        if isinstance(reply, Exception):
            raise reply
        return FakeResponse(reply)


class FakeChats:
    """Scripted stand-in for client.aio.chats; replies are shared by all chats."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.created = []

    def create(self, *, model, config=None, history=None):
        chat = FakeChat(self.replies, model, config, history)
        self.created.append(chat)
        return chat


class FakeGenAIClient:
    def __init__(self, analysis_responses=(), chat_replies=()):
        self.aio = SimpleNamespace(
            models=FakeModels(analysis_responses),
            chats=FakeChats(chat_replies),
        )


@pytest.fixture
def analysis_payload():
    return copy.deepcopy(RENTAL_ANALYSIS)


@pytest.fixture
def analysis_json(analysis_payload):
    return json.dumps(analysis_payload, ensure_ascii=False)


@pytest.fixture
def storage():
    return InMemoryKeyValueStorage()


@pytest.fixture
def make_workspace(storage):
    """Build a workspace whose Gemini client is scripted."""

    def factory(analysis_responses=(), chat_replies=(), restore_chat_context=False):
        client = FakeGenAIClient(analysis_responses, chat_replies)
        workspace = ContractWorkspace(
            analysis_agent=ContractAnalysisAgent(client=client, model_name="test-analysis"),
            chat_agent=ContractChatAgent(client=client, model_name="test-chat"),
            history=HistoryStore(storage),
            restore_chat_context=restore_chat_context,
        )
        return workspace, client

    return factory
