"""Contract Analysis Agent for plain-language contract explanations.

This agent sends the contract text to Gemini with a fixed persona
instruction and a JSON response schema, and decodes the answer into a
ContractAnalysis with msgspec.
"""

import os
from typing import Optional
from loguru import logger

from google import genai
from google.genai import types
import msgspec

from contrato.models import ATTENTION_LEVELS, ContractAnalysis
from contrato.error_handling import (
    AnalysisParseError,
    AnalysisRequestError,
    handle_errors
)
from contrato.logging_config import log_agent_execution, get_session_logger


ANALYSIS_SYSTEM_INSTRUCTION = """
Você é um assistente inteligente especializado em leitura e interpretação de contratos.
Seu objetivo é ajudar pessoas comuns a entender contratos de forma clara, simples e direta.
Você não é advogado e não oferece aconselhamento jurídico definitivo.
Explique tudo como se estivesse falando com alguém sem conhecimento jurídico.

MISSÃO:
Ler o contrato enviado pelo usuário e explicar:
- O que é esse contrato
- Quais são os principais pontos
- Onde a pessoa deve ter atenção
- Quais trechos podem representar risco
- Um resumo fácil de entender

REGRAS DE COMPORTAMENTO:
- Use linguagem simples, sem juridiquês
- Não cite leis, artigos ou termos técnicos complexos
- Não diga que algo é ilegal ou inválido
- Use expressões como "vale ficar atento", "pode dar dor de cabeça", "merece cuidado"
- Nunca invente cláusulas que não estejam no texto
- Se o contrato estiver incompleto ou confuso, avise
- Se não houver riscos claros, diga isso
- Seja objetivo e empático
- Não substitua um advogado
"""

ANALYSIS_PROMPT_TEMPLATE = "Analise o seguinte contrato:\n\n{contract_text}"

ATTENTION_POINT_FIELDS = [
    "titulo",
    "trecho_do_contrato",
    "porque_importa",
    "nivel_de_atencao",
]

ANALYSIS_FIELDS = [
    "tipo_de_contrato",
    "resumo_rapido",
    "nivel_de_atencao_geral",
    "pontos_principais",
    "pontos_de_atencao",
    "o_que_fazer_antes_de_assinar",
    "aviso_importante",
]


def build_analysis_schema() -> types.Schema:
    """Build the response schema that mirrors ContractAnalysis.

    Returns:
        Gemini schema requiring every analysis and attention point field
    """
    def string() -> types.Schema:
        return types.Schema(type=types.Type.STRING)

    def attention_level() -> types.Schema:
        return types.Schema(type=types.Type.STRING, enum=list(ATTENTION_LEVELS))

    def string_list() -> types.Schema:
        return types.Schema(type=types.Type.ARRAY, items=string())

    attention_point = types.Schema(
        type=types.Type.OBJECT,
        properties={
            "titulo": string(),
            "trecho_do_contrato": string(),
            "porque_importa": string(),
            "nivel_de_atencao": attention_level(),
        },
        required=ATTENTION_POINT_FIELDS,
    )

    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "tipo_de_contrato": string(),
            "resumo_rapido": string(),
            "nivel_de_atencao_geral": attention_level(),
            "pontos_principais": string_list(),
            "pontos_de_atencao": types.Schema(type=types.Type.ARRAY, items=attention_point),
            "o_que_fazer_antes_de_assinar": string_list(),
            "aviso_importante": string(),
        },
        required=ANALYSIS_FIELDS,
    )


_analysis_decoder = msgspec.json.Decoder(ContractAnalysis)


def parse_analysis(response_text: Optional[str]) -> ContractAnalysis:
    """Decode a Gemini JSON answer into a ContractAnalysis.

    Args:
        response_text: Raw response text

    Returns:
        Validated ContractAnalysis

    Raises:
        AnalysisParseError: If the text is not JSON or misses/mistypes a field
    """
    if not response_text or not response_text.strip():
        raise AnalysisParseError("Empty analysis response")

    # Clean response text (remove markdown code blocks if present)
    cleaned_text = response_text.strip()
    if cleaned_text.startswith("```json"):
        cleaned_text = cleaned_text[7:]
    if cleaned_text.startswith("```"):
        cleaned_text = cleaned_text[3:]
    if cleaned_text.endswith("```"):
        cleaned_text = cleaned_text[:-3]
    cleaned_text = cleaned_text.strip()

    try:
        return _analysis_decoder.decode(cleaned_text.encode("utf-8"))
    except msgspec.DecodeError as e:
        raise AnalysisParseError(f"Failed to parse analysis response: {str(e)}") from e


class ContractAnalysisAgent:
    """Agent responsible for the structured contract analysis.

    This agent:
    1. Sends the contract text with the persona instruction to Gemini
    2. Constrains the answer to the ContractAnalysis JSON schema
    3. Validates the answer with msgspec

    No retry is attempted; a failed request must be reissued by the caller.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        client: Optional[genai.Client] = None
    ):
        """Initialize the Contract Analysis Agent.

        Args:
            api_key: Google API key for Gemini (defaults to GOOGLE_API_KEY env var)
            model_name: Gemini model (defaults to ANALYSIS_MODEL env var)
            client: Preconfigured client, mainly for tests
        """
        self.api_key = api_key or os.getenv("GOOGLE_API_KEY")
        self.model_name = model_name or os.getenv("ANALYSIS_MODEL", "gemini-3-pro-preview")

        # Initialize Gemini client (only if API key is available)
        if client is None and self.api_key:
            client = genai.Client(api_key=self.api_key)
        elif client is None:
            logger.warning("No API key provided - analysis requests will fail")
        self.client = client

        self.instruction = ANALYSIS_SYSTEM_INSTRUCTION
        self.response_schema = build_analysis_schema()

        logger.info("Contract Analysis Agent initialized", model=self.model_name)

    def _build_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=self.instruction,
            response_mime_type="application/json",
            response_schema=self.response_schema,
        )

    @log_agent_execution("ContractAnalysisAgent")
    @handle_errors(AnalysisRequestError)
    async def analyze(self, contract_text: str, session_id: str = "workspace") -> ContractAnalysis:
        """Analyze a contract.

        Args:
            contract_text: Contract text as pasted or extracted
            session_id: Session identifier for logging

        Returns:
            ContractAnalysis produced by Gemini

        Raises:
            AnalysisRequestError: If the text is blank or the request fails
            AnalysisParseError: If the answer does not match the schema
        """
        session_logger = get_session_logger(session_id, "ContractAnalysisAgent")

        if not contract_text or not contract_text.strip():
            raise AnalysisRequestError("Empty contract text provided")

        if self.client is None:
            raise AnalysisRequestError("Gemini client is not configured (GOOGLE_API_KEY missing)")

        session_logger.info("Calling Gemini for contract analysis", text_length=len(contract_text))

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=ANALYSIS_PROMPT_TEMPLATE.format(contract_text=contract_text),
                config=self._build_config(),
            )
        except Exception as e:
            session_logger.error(f"Gemini analysis request failed: {type(e).__name__}")
            raise AnalysisRequestError(f"Analysis request failed: {str(e)}") from e

        response_text = response.text
        session_logger.info("Received analysis response", response_length=len(response_text or ""))

        try:
            analysis = parse_analysis(response_text)
        except AnalysisParseError:
            session_logger.debug("Unparseable analysis response", response_preview=(response_text or "")[:500])
            raise

        session_logger.info(
            "Contract analysis complete",
            contract_type=analysis.contract_type,
            overall_attention_level=analysis.overall_attention_level,
            attention_point_count=len(analysis.attention_points)
        )
        return analysis
