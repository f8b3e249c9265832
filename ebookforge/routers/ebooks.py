# ebookforge/routers/ebooks.py
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response
from fastapi.responses import HTMLResponse

from ebookforge.errors import ExportBusyError, ExportNotReadyError, RenderFailureError, RunInProgressError
from ebookforge.models import GenerateRequest, RunState
from ebookforge.services.export import export_pdf
from ebookforge.services.renderer import render_ebook
from ebookforge.services.sessions import SessionStore

logger = logging.getLogger(__name__)

TOPIC_REQUIRED = "Por favor, insira um tema para o e-book."

# -------- Session store (process-wide, in memory) --------
STORE = SessionStore()


def get_store() -> SessionStore:
    return STORE


def _current_state(store: SessionStore, session_id: str) -> RunState:
    session = store.peek(session_id)
    return session.state if session else RunState()


# -------- Router --------
router = APIRouter()


@router.post("/sessions/{session_id}/generate", response_model=RunState, status_code=202, tags=["Ebooks"])
async def generate_ebook(
    session_id: str,
    req: GenerateRequest,
    background_tasks: BackgroundTasks,
    store: SessionStore = Depends(get_store),
):
    topic = (req.topic or "").strip()
    if not topic:
        raise HTTPException(status_code=400, detail=TOPIC_REQUIRED)
    try:
        run = store.start(session_id, req.api_key)
    except RunInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))

    background_tasks.add_task(run.run, topic)
    logger.info("📝 Generation queued session=%s topic=%r", session_id, topic)
    return store.get(session_id).state


@router.get("/sessions/{session_id}", response_model=RunState, tags=["Ebooks"])
def read_session(session_id: str, store: SessionStore = Depends(get_store)):
    return _current_state(store, session_id)


@router.delete("/sessions/{session_id}", status_code=204, tags=["Ebooks"])
def discard_session(session_id: str, store: SessionStore = Depends(get_store)):
    # unknown ids are fine: the page may already have been swept
    store.discard(session_id)
    return Response(status_code=204)


@router.get("/sessions/{session_id}/view",response_class=HTMLResponse, tags=["Ebooks"])
def view_session(session_id: str, store: SessionStore = Depends(get_store)):
    state = _current_state(store, session_id)
    return HTMLResponse(render_ebook(state, export_url=f"/sessions/{session_id}/export"))


@router.get("/sessions/{session_id}/export", tags=["Ebooks"])
def export_session(session_id: str, store: SessionStore = Depends(get_store)):
    session = store.peek(session_id)
    state = session.state if session else RunState()
    if session is None or not state.can_export:
        raise HTTPException(status_code=409, detail=str(ExportNotReadyError()))
    try:
        session.begin_export()
    except ExportBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    try:
        exported = export_pdf(state.ebook)
    finally:
        session.end_export()

    if exported is None:
        raise HTTPException(status_code=500, detail=str(RenderFailureError()))
    return Response(
        content=exported.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
