"""FastAPI front end for a single in-process map session."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from eventures.config import settings
from eventures.core.models import AggregatedPoint, MapUpdate
from eventures.core.paging import NO_PAGE
from eventures.core.session import MapSession
from eventures.providers.combined import build_source
from eventures.tools.make_map import render_map_html

log = logging.getLogger(__name__)

app = FastAPI(title="Eventures", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Module-level session singleton
# ---------------------------------------------------------------------------
_session: Optional[MapSession] = None


def get_session() -> MapSession:
    global _session
    if _session is None:
        _session = MapSession(build_source(settings.default_source))
    return _session


def set_session(session: Optional[MapSession]) -> None:
    """Swap the process-wide session (tests, alternative sources)."""
    global _session
    _session = session


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class SearchRequest(BaseModel):
    query: str = ""
    page: int = Field(default=0, ge=0)
    filters: Dict[str, str] = Field(default_factory=dict)


class StateOut(BaseModel):
    state: str
    query: str
    page: int
    points: List[AggregatedPoint]
    focus_index: Optional[int] = None
    focus: Optional[AggregatedPoint] = None


class PagesOut(BaseModel):
    page: int
    next_page: Optional[int] = None
    previous_page: Optional[int] = None


def _state_out(session: MapSession, update: Optional[MapUpdate] = None) -> StateOut:
    update = update or session.snapshot()
    return StateOut(
        state=session.state.value,
        query=session.query,
        page=session.page,
        points=update.points,
        focus_index=update.focus_index,
        focus=update.focus,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
def health():
    return {"status": "ok", "source": settings.default_source}


@app.get("/state", response_model=StateOut)
def state():
    return _state_out(get_session())


@app.post("/search", response_model=StateOut)
def search(req: SearchRequest):
    session = get_session()
    if not session.search(req.query, page=req.page, filters=req.filters):
        raise HTTPException(status_code=502, detail="Event source unavailable; previous markers kept")
    return _state_out(session)


@app.post("/step/{direction}", response_model=StateOut)
def step(direction: str):
    session = get_session()
    d = direction.lower()
    if d == "next":
        session.step_next()
    elif d in ("previous", "prev"):
        session.step_previous()
    else:
        raise HTTPException(status_code=400, detail=f"Unknown direction '{direction}' (next | previous)")
    return _state_out(session)


@app.post("/click/{marker_id}", response_model=StateOut)
def click(marker_id: int):
    # Stale ids are a normal race with re-rendering: answer with the unchanged state
    session = get_session()
    session.resolve_click(marker_id)
    return _state_out(session)


@app.get("/pages", response_model=PagesOut)
def pages():
    session = get_session()
    nxt = session.next_page()
    prev = session.previous_page()
    return PagesOut(
        page=session.page,
        next_page=None if nxt == NO_PAGE else nxt,
        previous_page=None if prev == NO_PAGE else prev,
    )


@app.get("/map", response_class=HTMLResponse)
def map_page():
    return HTMLResponse(render_map_html(get_session().snapshot()))
