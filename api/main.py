"""
FastAPI application for Contrato Fácil.

Serves the browser UI for a single local user:
- Contract paste/upload and analysis
- Analysis report with a follow-up chat about the contract
- History sidebar (resume, delete, clear)

Architecture:
    Browser -> FastAPI -> ContractWorkspace -> Gemini agents / HistoryStore
"""

import os
from datetime import datetime
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from loguru import logger
from pydantic import BaseModel

from contrato.error_handling import HistoryError
from contrato.logging_config import setup_logging
from contrato.workspace import ContractWorkspace, create_workspace
from api.security import get_security_headers, validate_environment_security
from api.views import render_page

load_dotenv()


# =============================================================================
# Workspace Singleton
# =============================================================================

workspace: Optional[ContractWorkspace] = None


def get_workspace() -> ContractWorkspace:
    """Lazy initialization of the process-wide workspace."""
    global workspace
    if workspace is None:
        workspace = create_workspace()
        logger.info("Workspace initialized")
    return workspace


def set_workspace(instance: Optional[ContractWorkspace]) -> None:
    """Install a preconfigured workspace (used by tests)."""
    global workspace
    workspace = instance


# =============================================================================
# FastAPI Application Setup
# =============================================================================

def create_app(configure_logging: bool = True) -> FastAPI:
    """Build the FastAPI application.

    Args:
        configure_logging: Install the Loguru file sinks

    Returns:
        FastAPI application
    """
    if configure_logging:
        setup_logging(
            log_dir=os.getenv("LOG_DIR", "logs"),
            level=os.getenv("LOG_LEVEL", "INFO"),
        )

        security = validate_environment_security()
        for error in security["errors"]:
            logger.error(f"Configuration error: {error}")
        for warning in security["warnings"]:
            logger.warning(f"Configuration warning: {warning}")

    application = FastAPI(
        title="Contrato Fácil",
        description="Plain-language contract explanations with a follow-up chat",
        version="0.1.0",
    )

    @application.middleware("http")
    async def add_security_headers(request, call_next):
        """Inject security headers (CSP, X-Frame-Options, etc.) into all responses."""
        response = await call_next(request)
        for header, value in get_security_headers().items():
            response.headers[header] = value
        return response

    application.include_router(router)
    return application


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check payload."""

    status: str
    timestamp: str
    history_items: int


class HistorySummaryResponse(BaseModel):
    """One entry of the history listing."""

    id: str
    created_at: datetime
    contract_type: str
    message_count: int
    active: bool


# =============================================================================
# Routes
# =============================================================================


router = APIRouter()


def _back_home() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=303)


@router.get("/", response_class=HTMLResponse)
async def index():
    """Render the input screen or the analysis report."""
    return HTMLResponse(render_page(get_workspace()))


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now().isoformat(),
        history_items=len(get_workspace().history.items),
    )


@router.get("/api/history", response_model=List[HistorySummaryResponse])
async def list_history():
    """History listing, newest first."""
    ws = get_workspace()
    return [
        HistorySummaryResponse(
            id=summary.id,
            created_at=summary.created_at,
            contract_type=summary.contract_type,
            message_count=summary.message_count,
            active=summary.id == ws.active_id,
        )
        for summary in ws.history.list_summaries()
    ]


@router.post("/contract/text")
async def update_contract_text(contract_text: str = Form("")):
    """Keep the pasted text without analyzing it."""
    get_workspace().set_contract_text(contract_text)
    return _back_home()


@router.post("/contract/upload")
async def upload_contract(file: UploadFile = File(...)):
    """Import a pdf, docx or txt file into the text area.

    Extraction errors are shown on the input screen.
    """
    data = await file.read()
    logger.info("Received upload request", filename=file.filename, size_bytes=len(data))
    await get_workspace().import_file(file.filename or "", data)
    return _back_home()


@router.post("/contract/analyze")
async def analyze_contract(contract_text: Optional[str] = Form(None)):
    """Analyze the submitted (or previously stored) contract text."""
    ws = get_workspace()
    if contract_text is not None:
        ws.set_contract_text(contract_text)
    await ws.analyze()
    return _back_home()


@router.post("/chat/send")
async def send_chat_message(message: str = Form("")):
    """Ask a question about the displayed contract."""
    await get_workspace().send_message(message)
    return RedirectResponse(url="/#chat", status_code=303)


@router.post("/chat/point")
async def ask_about_point(point: str = Form(...)):
    """Ask for a closer explanation of one of the main points."""
    await get_workspace().ask_about_point(point)
    return RedirectResponse(url="/#chat", status_code=303)


@router.post("/reset")
async def reset_workspace():
    """Return to the blank input screen."""
    get_workspace().reset()
    return _back_home()


@router.post("/history/clear")
async def clear_history():
    """Delete every saved analysis."""
    get_workspace().clear_history()
    return _back_home()


@router.post("/history/{item_id}/load")
async def load_history_item(item_id: str):
    """Resume a saved analysis."""
    try:
        get_workspace().load_history(item_id)
    except HistoryError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _back_home()


@router.post("/history/{item_id}/delete")
async def delete_history_item(item_id: str):
    """Delete a saved analysis."""
    get_workspace().delete_history(item_id)
    return _back_home()


app = create_app()
