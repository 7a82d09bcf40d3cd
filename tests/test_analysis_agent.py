import asyncio
import json

import pytest
from google.genai import types

from contrato.agents.analysis_agent import (
    ANALYSIS_FIELDS,
    ATTENTION_POINT_FIELDS,
    ContractAnalysisAgent,
    build_analysis_schema,
    parse_analysis,
)
from contrato.error_handling import AnalysisParseError, AnalysisRequestError
from contrato.models import ATTENTION_LEVELS

from conftest import RENTAL_CONTRACT, FakeGenAIClient


def test_parse_recovers_every_field(analysis_json):
    analysis = parse_analysis(analysis_json)

    assert analysis.contract_type == "Contrato de Locação Residencial"
    assert analysis.quick_summary
    assert analysis.overall_attention_level == "alto"
    assert analysis.overall_attention_level in ATTENTION_LEVELS
    assert analysis.main_points == ["Aluguel mensal de R$1000", "Multa de 10% em caso de atraso"]
    assert analysis.attention_points[0].title == "Multa por atraso"
    assert analysis.attention_points[0].attention_level == "alto"
    assert analysis.pre_signing_actions == ["Confirme a data de vencimento do aluguel"]
    assert analysis.important_notice


@pytest.mark.parametrize("missing", ANALYSIS_FIELDS)
def test_missing_top_level_field_fails(analysis_payload, missing):
    del analysis_payload[missing]

    with pytest.raises(AnalysisParseError):
        parse_analysis(json.dumps(analysis_payload))


@pytest.mark.parametrize("missing", ATTENTION_POINT_FIELDS)
def test_missing_attention_point_field_fails(analysis_payload, missing):
    del analysis_payload["pontos_de_atencao"][0][missing]

    with pytest.raises(AnalysisParseError):
        parse_analysis(json.dumps(analysis_payload))


def test_attention_level_outside_enum_fails(analysis_payload):
    analysis_payload["nivel_de_atencao_geral"] = "critico"

    with pytest.raises(AnalysisParseError):
        parse_analysis(json.dumps(analysis_payload))


@pytest.mark.parametrize("text", ["", "   ", "isto não é json", "[1, 2, 3]"])
def test_non_analysis_payload_fails(text):
    with pytest.raises(AnalysisParseError):
        parse_analysis(text)


def test_markdown_fence_is_tolerated(analysis_json):
    analysis = parse_analysis(f"```json\n{analysis_json}\n```")

    assert analysis.contract_type == "Contrato de Locação Residencial"


def test_schema_requires_every_field_and_restricts_levels():
    schema = build_analysis_schema()

    assert schema.required == ANALYSIS_FIELDS
    assert schema.properties["nivel_de_atencao_geral"].enum == list(ATTENTION_LEVELS)

    point = schema.properties["pontos_de_atencao"].items
    assert point.required == ATTENTION_POINT_FIELDS
    assert point.properties["nivel_de_atencao"].enum == list(ATTENTION_LEVELS)


def test_analyze_sends_instruction_schema_and_contract(analysis_json):
    client = FakeGenAIClient(analysis_responses=[analysis_json])
    agent = ContractAnalysisAgent(client=client, model_name="test-analysis")

    analysis = asyncio.run(agent.analyze(RENTAL_CONTRACT))

    assert analysis.overall_attention_level == "alto"
    call = client.aio.models.calls[0]
    assert call["model"] == "test-analysis"
    assert call["contents"].endswith(RENTAL_CONTRACT)
    config = call["config"]
    assert isinstance(config, types.GenerateContentConfig)
    assert config.response_mime_type == "application/json"
    assert config.system_instruction is not None
    assert "Nunca invente cláusulas" in agent.instruction
    assert config.response_schema.required == ANALYSIS_FIELDS


def test_service_failure_raises_request_error():
    client = FakeGenAIClient(analysis_responses=[ConnectionError("offline")])
    agent = ContractAnalysisAgent(client=client)

    with pytest.raises(AnalysisRequestError):
        asyncio.run(agent.analyze(RENTAL_CONTRACT))

    assert len(client.aio.models.calls) == 1


def test_invalid_response_raises_parse_error():
    client = FakeGenAIClient(analysis_responses=['{"tipo_de_contrato": "Locação"}'])
    agent = ContractAnalysisAgent(client=client)

    with pytest.raises(AnalysisParseError):
        asyncio.run(agent.analyze(RENTAL_CONTRACT))


def test_blank_text_is_rejected_before_any_call():
    client = FakeGenAIClient()
    agent = ContractAnalysisAgent(client=client)

    with pytest.raises(AnalysisRequestError):
        asyncio.run(agent.analyze("   \n"))

    assert client.aio.models.calls == []


def test_missing_api_key_fails_as_request_error(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    agent = ContractAnalysisAgent()

    with pytest.raises(AnalysisRequestError):
        asyncio.run(agent.analyze(RENTAL_CONTRACT))
