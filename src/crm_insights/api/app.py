"""HTTP boundary: chat and dashboard endpoints over the shared CRM snapshot."""

import logging
from typing import Literal, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError
from starlette.concurrency import run_in_threadpool

from crm_insights.agent import ChatAgent
from crm_insights.config import Settings
from crm_insights.dashboard import build_dashboard, filter_opportunities, paginate_opportunities
from crm_insights.llm import BaseReasoningService, ReasoningServiceRegistry
from crm_insights.models.chat import ChatMessage
from crm_insights.models.dashboard import DashboardView, OpportunityPage
from crm_insights.query import QueryEngine
from crm_insights.store import CRMDataStore, DataLoadError

logger = logging.getLogger(__name__)

NO_MESSAGES_ERROR = "No messages provided"
CHAT_FAILURE_ERROR = "Failed to get a response. Please try again."
DATA_FAILURE_ERROR = "CRM data is unavailable."


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(..., min_length=1)


class ChatResponse(BaseModel):
    reply: str


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CRMDataStore] = None,
    service: Optional[BaseReasoningService] = None,
) -> FastAPI:
    """
    Build the API. store and service are injectable for tests;
    by default they come from settings (data_dir, provider).
    """
    settings = settings or Settings.from_env()
    store = store or CRMDataStore(settings.data_dir)
    app = FastAPI(title="CRM Insights API", version="0.1.0")
    app.state.settings = settings
    app.state.store = store
    app.state.service = service

    def _service() -> BaseReasoningService:
        if app.state.service is None:
            app.state.service = ReasoningServiceRegistry.for_settings(settings)
        return app.state.service

    @app.exception_handler(DataLoadError)
    async def _data_load_failed(request: Request, exc: DataLoadError) -> JSONResponse:
        logger.error("CRM data load failed: %s", exc)
        return JSONResponse({"error": DATA_FAILURE_ERROR}, status_code=500)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.post("/api/chat", response_model=ChatResponse)
    async def chat(request: Request):
        try:
            body = ChatRequest.model_validate(await request.json())
        except (ValueError, ValidationError):
            return JSONResponse({"error": NO_MESSAGES_ERROR}, status_code=400)

        def _answer(messages: list[ChatMessage]):
            agent = ChatAgent.from_settings(settings, _service(), QueryEngine(store.load()))
            return agent.reply(messages)

        try:
            result = await run_in_threadpool(_answer, body.messages)
        except Exception:
            logger.exception("Chat API error")
            return JSONResponse({"error": CHAT_FAILURE_ERROR}, status_code=500)
        logger.info("Chat answered in %d rounds (%s)", result.rounds, result.state.value)
        return ChatResponse(reply=result.text)

    @app.get("/api/dashboard", response_model=DashboardView)
    def dashboard(
        stage: Optional[list[str]] = Query(default=None, description="Selected stages (repeatable)"),
        clicked_stage: Optional[str] = None,
        clicked_month: Optional[str] = None,
    ) -> DashboardView:
        return build_dashboard(
            store.load(),
            selected_stages=stage,
            clicked_stage=clicked_stage,
            clicked_month=clicked_month,
        )

    @app.get("/api/opportunities", response_model=OpportunityPage)
    def opportunities(
        stage: Optional[list[str]] = Query(default=None),
        clicked_stage: Optional[str] = None,
        clicked_month: Optional[str] = None,
        search: str = "",
        sort: Optional[Literal["amount", "closeDate"]] = None,
        sort_dir: Literal["asc", "desc"] = Query(default="desc", alias="dir"),
        page: int = Query(default=1, ge=1),
    ) -> OpportunityPage:
        data = store.load()
        rows = filter_opportunities(
            data.opportunities,
            stages=stage if stage is not None else data.stages,
            stage=clicked_stage,
            month=clicked_month,
        )
        return paginate_opportunities(rows, search=search, sort_key=sort, sort_dir=sort_dir, page=page)

    return app
