"""
Chat REST API Endpoints.

This module provides the REST endpoint the chat UI posts messages to, plus a
health check.
"""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from wbschat.analytics.assembler import PromptAssembler, RequestContext
from wbschat.analytics.orchestrator import PipelineOrchestrator
from wbschat.analytics.safety import SQLSafetyValidator
from wbschat.config.prompts import PromptConfig
from wbschat.config.settings import Settings, get_settings
from wbschat.db.session import DatabaseExecutor
from wbschat.llm import create_llm_client

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


class ChatRequest(BaseModel):
    """Chat message request."""

    message: str = Field(..., min_length=1, description="Natural language message")
    project_id: Optional[str] = Field(None, description="Currently selected project")
    user_id: Optional[str] = Field(None, description="User sending the message")
    persona_prompt: Optional[str] = Field(
        None, description="Persona placed in front of the analysis prompt"
    )


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    components: dict = Field(default_factory=dict)


_executors: dict[str, DatabaseExecutor] = {}


def get_executor(settings: Settings = Depends(get_settings)) -> DatabaseExecutor:
    """
    Return the database executor for the configured url, one engine per url.

    Raises:
        HTTPException: If no database is configured
    """
    if settings.database is None or not settings.database.url:
        raise HTTPException(status_code=400, detail="No database url is configured")

    url = settings.database.url
    if url not in _executors:
        _executors[url] = DatabaseExecutor.from_settings(settings.database)
    return _executors[url]


async def get_orchestrator(
    settings: Settings = Depends(get_settings),
    executor: DatabaseExecutor = Depends(get_executor),
) -> PipelineOrchestrator:
    """
    Create the pipeline orchestrator for a request.

    Args:
        settings: Application settings
        executor: Database executor

    Returns:
        Configured PipelineOrchestrator
    """
    try:
        llm = create_llm_client(settings.llm)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    safety = settings.safety
    return PipelineOrchestrator(
        llm=llm,
        execute_query=executor.execute_query,
        validator=SQLSafetyValidator(
            writable_tables=safety.writable_tables if safety else None,
            identifying_columns=safety.identifying_columns if safety else None,
        ),
        assembler=PromptAssembler(
            match_threshold=settings.schema_hints.match_threshold
            if settings.schema_hints
            else 0.85
        ),
    )


@router.post("")
async def chat(
    request: ChatRequest,
    settings: Settings = Depends(get_settings),
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """
    Answer a chat message.

    The pipeline never raises; failures come back as a normal answer whose
    content explains what went wrong.

    Args:
        request: Chat request
        settings: Application settings
        orchestrator: Pipeline orchestrator dependency

    Returns:
        Response with camelCase keys; unset fields are omitted
    """
    logger.info(
        "chat_message_received",
        project_id=request.project_id,
        user_id=request.user_id,
    )

    response = await orchestrator.process_message(
        request.message,
        RequestContext(user_id=request.user_id, project_id=request.project_id),
        PromptConfig.from_settings(settings.prompts, request.persona_prompt),
    )
    return response.to_dict()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    settings: Settings = Depends(get_settings),
) -> HealthCheckResponse:
    """
    Chat API health check.

    Returns:
        HealthCheckResponse with configuration status
    """
    llm_ok = settings.llm is not None and bool(settings.llm.api_key)
    db_ok = settings.database is not None and bool(settings.database.url)
    return HealthCheckResponse(
        status="healthy" if llm_ok and db_ok else "degraded",
        components={
            "llm": "ok" if llm_ok else "not configured",
            "database": "ok" if db_ok else "not configured",
        },
    )


__all__ = ["router"]
