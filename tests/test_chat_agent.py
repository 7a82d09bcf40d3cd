import asyncio

from contrato.agents.chat_agent import (
    CHAT_ERROR_MESSAGE,
    EMPTY_REPLY_MESSAGE,
    ContractChatAgent,
    ContractChatSession,
    build_chat_instruction,
    build_point_question,
)
from contrato.models import ChatMessage
from memory.session_registry import ChatSessionRegistry, contract_key

from conftest import RENTAL_CONTRACT, FakeGenAIClient


def make_agent(chat_replies=()):
    client = FakeGenAIClient(chat_replies=chat_replies)
    return ContractChatAgent(client=client, model_name="test-chat"), client


def test_instruction_embeds_contract_verbatim():
    contract = 'Cláusula {1}: "multa" de 10%\n\nCláusula 2: prazo de 30 dias'

    instruction = build_chat_instruction(contract)

    assert contract in instruction
    assert "Responda sempre em português" in instruction


def test_session_is_created_with_contract_instruction():
    agent, client = make_agent()

    agent.create_session(RENTAL_CONTRACT)

    chat = client.aio.chats.created[0]
    assert chat.model == "test-chat"
    assert RENTAL_CONTRACT in chat.config.system_instruction
    assert chat.history is None


def test_send_message_appends_user_and_model_turns():
    agent, client = make_agent(chat_replies=["A multa é de 10% do aluguel."])
    session = agent.create_session(RENTAL_CONTRACT)
    updates = []
    session.on_update = updates.append

    reply = asyncio.run(session.send_message("  Qual é a multa?  "))

    assert reply == ChatMessage(role="model", text="A multa é de 10% do aluguel.")
    assert session.messages == [
        ChatMessage(role="user", text="Qual é a multa?"),
        ChatMessage(role="model", text="A multa é de 10% do aluguel."),
    ]
    assert [len(update) for update in updates] == [1, 2]
    assert client.aio.chats.created[0].sent == ["Qual é a multa?"]
    assert session.is_pending is False


def test_service_failure_becomes_fallback_turn():
    agent, _ = make_agent(chat_replies=[TimeoutError("sem rede"), "Agora funcionou."])
    session = agent.create_session(RENTAL_CONTRACT)

    reply = asyncio.run(session.send_message("Posso rescindir?"))

    assert reply.text == CHAT_ERROR_MESSAGE
    assert [m.role for m in session.messages] == ["user", "model"]

    asyncio.run(session.send_message("E agora?"))
    assert session.messages[-1].text == "Agora funcionou."


def test_empty_reply_gets_default_text():
    agent, _ = make_agent(chat_replies=[""])
    session = agent.create_session(RENTAL_CONTRACT)

    reply = asyncio.run(session.send_message("Oi"))

    assert reply.text == EMPTY_REPLY_MESSAGE


def test_blank_message_is_ignored():
    agent, client = make_agent()
    session = agent.create_session(RENTAL_CONTRACT)

    assert asyncio.run(session.send_message("   ")) is None
    assert session.messages == []
    assert client.aio.chats.created[0].sent == []


def test_overlapping_send_is_rejected():
    class SlowChat:
        def __init__(self):
            self.release = None
            self.sent = []

        async def send_message(self, message):
            self.sent.append(message)
            await self.release.wait()
            return type("Response", (), {"text": "Resposta lenta."})()

    async def scenario():
        chat = SlowChat()
        chat.release = asyncio.Event()
        session = ContractChatSession(chat, RENTAL_CONTRACT)

        first = asyncio.create_task(session.send_message("Primeira"))
        await asyncio.sleep(0)
        assert session.is_pending

        second = await session.send_message("Segunda")
        chat.release.set()
        await first
        return session, chat, second

    session, chat, second = asyncio.run(scenario())

    assert second is None
    assert chat.sent == ["Primeira"]
    assert [m.text for m in session.messages] == ["Primeira", "Resposta lenta."]


def test_missing_client_answers_with_fallback(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    session = ContractChatAgent().create_session(RENTAL_CONTRACT)

    reply = asyncio.run(session.send_message("Qual o prazo?"))

    assert reply.text == CHAT_ERROR_MESSAGE


def test_restore_context_replays_transcript():
    agent, client = make_agent()
    transcript = [
        ChatMessage(role="user", text="Qual a multa?"),
        ChatMessage(role="model", text="10%."),
    ]

    session = agent.create_session(RENTAL_CONTRACT, messages=transcript, restore_context=True)

    history = client.aio.chats.created[0].history
    assert [content.role for content in history] == ["user", "model"]
    assert history[1].parts[0].text == "10%."
    assert session.messages == transcript


def test_point_question_quotes_the_point():
    assert build_point_question("Multa de 10%") == 'Pode me explicar melhor este ponto: "Multa de 10%"?'


def test_registry_reuses_and_disposes_sessions():
    agent, client = make_agent()
    registry = ChatSessionRegistry(agent)

    first = registry.get_or_create(RENTAL_CONTRACT)
    again = registry.get_or_create(RENTAL_CONTRACT)
    other = registry.get_or_create("Outro contrato")

    assert first is again
    assert other is not first
    assert registry.active_count == 2
    assert len(client.aio.chats.created) == 2
    assert registry.get(RENTAL_CONTRACT) is first

    assert registry.dispose(RENTAL_CONTRACT) is True
    assert registry.dispose(RENTAL_CONTRACT) is False
    assert registry.dispose_all() == 1
    assert registry.active_count == 0


def test_contract_key_is_stable_hash():
    assert contract_key(RENTAL_CONTRACT) == contract_key(RENTAL_CONTRACT)
    assert contract_key(RENTAL_CONTRACT) != contract_key(RENTAL_CONTRACT + " ")
    assert len(contract_key(RENTAL_CONTRACT)) == 64
