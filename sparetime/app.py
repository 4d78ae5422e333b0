from __future__ import annotations

import os
import time

from fastapi import Depends, FastAPI, HTTPException, Request
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_event
from .auth.dependencies import get_trip_session, require_admin, require_user
from .auth.models import LoginRequest
from .auth.users import authenticate
from .catalog.models import (
    CategorySummary,
    Source,
    SourceCreate,
    TripImportRequest,
    TripImportResponse,
)
from .catalog.store import generate_source_id
from .chat.dispatch import handle_message
from .chat.models import ChatRequest, ChatResponse
from .exclusions.ledger import ExclusionVerification
from .exclusions.models import CategoryRequest, ExclusionResponse
from .recommendations.engine import build_suggest_response
from .recommendations.models import SessionSuggestRequest, SuggestRequest, SuggestResponse
from .sessions.state import TripSession, record_suggest_event

app = FastAPI(title="Sparetime Suggestion API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "sparetime-secret-change-in-production"),
)


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Stateless suggestion contract ────────────────────────────────────────


@app.post("/suggest", response_model=SuggestResponse)
def suggest(
    body: SuggestRequest,
    user: dict = Depends(require_user),
) -> SuggestResponse:
    start_time = time.time()
    response = build_suggest_response(
        body.sources,
        body.excluded_categories,
        body.anchor_id,
        body.free_time_min,
        body.message,
    )
    record_suggest_event(response, body.anchor_id, body.free_time_min, start_time)
    return response


# ── Source catalog ───────────────────────────────────────────────────────


@app.get("/sources", response_model=list[Source])
def list_sources(
    category: str | None = None,
    session: TripSession = Depends(get_trip_session),
) -> list[Source]:
    if category:
        return session.catalog.list_by_category(category)
    return session.catalog.list_sources()


@app.post("/sources", response_model=Source, status_code=201)
def add_source(
    body: SourceCreate,
    session: TripSession = Depends(get_trip_session),
) -> Source:
    source = Source(id=body.id or generate_source_id(), **body.model_dump(exclude={"id"}))
    try:
        return session.add_source(source)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.delete("/sources/{source_id}", response_model=Source)
def remove_source(
    source_id: str,
    session: TripSession = Depends(get_trip_session),
) -> Source:
    removed = session.remove_source(source_id)
    if removed is None:
        raise HTTPException(status_code=404, detail=f"Unknown source: {source_id}")
    return removed


@app.post("/sources/import", response_model=TripImportResponse)
def import_sources(
    body: TripImportRequest,
    session: TripSession = Depends(get_trip_session),
) -> TripImportResponse:
    try:
        return session.import_trip(body)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.get("/sources/categories", response_model=list[CategorySummary])
def source_categories(session: TripSession = Depends(get_trip_session)) -> list[CategorySummary]:
    return session.category_summaries()


# ── Exclusions ───────────────────────────────────────────────────────────


def _resuggest_last(session: TripSession) -> SuggestResponse | None:
    if session.last_request is None:
        return None
    return session.suggest(session.last_request)


@app.get("/exclusions")
def list_exclusions(session: TripSession = Depends(get_trip_session)) -> dict:
    return {"excluded_categories": session.ledger.list_categories()}


@app.post("/exclusions/forget", response_model=ExclusionResponse)
def forget_category(
    body: CategoryRequest,
    session: TripSession = Depends(get_trip_session),
) -> ExclusionResponse:
    outcome = session.forget_category(body.category)
    return ExclusionResponse(
        category=outcome.category,
        changed=outcome.changed,
        excluded_categories=session.ledger.list_categories(),
        affected_sources=outcome.affected_sources,
        results=_resuggest_last(session),
    )


@app.post("/exclusions/restore", response_model=ExclusionResponse)
def restore_category(
    body: CategoryRequest,
    session: TripSession = Depends(get_trip_session),
) -> ExclusionResponse:
    changed = session.restore_category(body.category)
    return ExclusionResponse(
        category=body.category,
        changed=changed,
        excluded_categories=session.ledger.list_categories(),
        affected_sources=[s.name for s in session.catalog.list_by_category(body.category)],
        results=_resuggest_last(session),
    )


@app.get("/exclusions/verify", response_model=ExclusionVerification)
def verify_exclusions(session: TripSession = Depends(get_trip_session)) -> ExclusionVerification:
    return session.ledger.verify(list(session.catalog.category_counts()))


# ── Session ──────────────────────────────────────────────────────────────


@app.post("/session/suggest", response_model=SuggestResponse)
def session_suggest(
    body: SessionSuggestRequest,
    session: TripSession = Depends(get_trip_session),
) -> SuggestResponse:
    return session.suggest(body)


@app.put("/session/context", response_model=SessionSuggestRequest)
def set_gap_context(
    body: SessionSuggestRequest,
    session: TripSession = Depends(get_trip_session),
) -> SessionSuggestRequest:
    session.gap_context = body.model_copy(update={"message": None})
    return session.gap_context


@app.post("/session/reset")
def reset_session(session: TripSession = Depends(get_trip_session)) -> dict:
    session.reset()
    return {"status": "reset"}


# ── Chat endpoint ────────────────────────────────────────────────────────


@app.post("/chat", response_model=ChatResponse)
def chat(
    body: ChatRequest,
    session: TripSession = Depends(get_trip_session),
) -> ChatResponse:
    response = handle_message(body.message, session)
    record_event("chat", {
        "action": response.action.value,
        "response_type": response.type.value,
        "category": response.category,
    })
    return response


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())
