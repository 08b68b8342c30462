#!/usr/bin/env python3
"""
Hands-free Navigation - FastAPI control server
Accepts voice transcripts and gesture events over HTTP and reports the
navigation state of the controlled page
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Callable, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from .config import Cfg, load_config
from .main import NavigationApp, navigation_session
from .types import GestureLabel, GestureSample, intent_kind
from .viewer import NotAPdfError

logger = logging.getLogger(__name__)

# Request/Response models
class TranscriptRequest(BaseModel):
    transcript: str


class ListenRequest(BaseModel):
    listening: bool


class DocumentRequest(BaseModel):
    path: str


class GestureRequest(BaseModel):
    label: GestureLabel
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)


class CommandResponse(BaseModel):
    matched: bool
    kind: Optional[str] = None
    text: Optional[str] = None


class TargetModel(BaseModel):
    number: int
    kind: str
    label: str
    href: Optional[str] = None
    focused: bool


class DocumentModel(BaseModel):
    source: Optional[str] = None
    page_count: int
    current_page: int


class StatusResponse(BaseModel):
    listening: bool
    transcript: str
    gesture_state: str
    gesture_status: str
    gesture_label: Optional[str] = None
    gesture_confidence: float
    last_command: str
    last_kind: str
    links_visible: bool
    zoom: float
    cursor: Optional[int] = None
    targets: List[TargetModel]
    document: Optional[DocumentModel] = None


def _default_session(config: Cfg):
    use_mock = os.getenv("HANDSFREE_MOCK", "").lower() in ("1", "true", "yes")
    use_camera = os.getenv("HANDSFREE_CAMERA", "1").lower() not in ("0", "false", "no")
    return navigation_session(config, use_mock=use_mock, use_camera=use_camera)


def create_app(config: Optional[Cfg] = None, session_factory: Optional[Callable] = None) -> FastAPI:
    """
    Build the control server.

    Args:
        config: Configuration, loaded from file when None
        session_factory: Callable taking the config and returning an async
            context manager that yields a started NavigationApp
    """
    factory = session_factory or _default_session

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the navigation session on startup, tear it down on shutdown"""
        cfg = config or load_config()
        logger.info("🚀 Starting Hands-free Navigation Server...")
        async with factory(cfg) as nav:
            app.state.nav = nav
            logger.info("✅ All components initialized successfully!")
            yield
        logger.info("🧹 Server shut down")

    app = FastAPI(title="Hands-free Navigation", lifespan=lifespan)

    def get_nav(request: Request) -> NavigationApp:
        nav = getattr(request.app.state, "nav", None)
        if nav is None:
            raise HTTPException(status_code=503, detail="Navigation session not initialized")
        return nav

    @app.post("/voice", response_model=CommandResponse)
    async def voice(body: TranscriptRequest, request: Request):
        """Feed one transcript emission to the voice session"""
        nav = get_nav(request)
        if not nav.voice.is_listening:
            logger.info("⚠️ Transcript ignored, not listening")
            return CommandResponse(matched=False)

        results = await nav.transcripts.push(body.transcript)
        intent = next((result for result in results if result is not None), None)
        if intent is None:
            return CommandResponse(matched=False)
        return CommandResponse(matched=True, kind=intent_kind(intent), text=intent.text)

    @app.post("/voice/listen", response_model=StatusResponse)
    async def listen(body: ListenRequest, request: Request):
        nav = get_nav(request)
        if body.listening:
            nav.voice.start()
        else:
            nav.voice.stop()
        return StatusResponse(**nav.status())

    @app.post("/gesture", response_model=StatusResponse)
    async def gesture(body: GestureRequest, request: Request):
        """Inject a detected gesture as if the camera loop had produced it"""
        nav = get_nav(request)
        await nav.on_gesture(GestureSample(label=body.label, confidence=body.confidence,
                                           timestamp=time.monotonic()))
        return StatusResponse(**nav.status())

    @app.post("/gestures/toggle", response_model=StatusResponse)
    async def toggle_gestures(request: Request):
        nav = get_nav(request)
        await nav.toggle_gestures()
        return StatusResponse(**nav.status())

    @app.post("/document", response_model=StatusResponse)
    async def open_document(body: DocumentRequest, request: Request):
        """Show a PDF from the server's file system"""
        nav = get_nav(request)
        if not body.path.lower().endswith(".pdf"):
            raise HTTPException(status_code=415, detail="Please select a PDF file")
        if nav.documents is None:
            raise HTTPException(status_code=503, detail="Document viewer not available")
        if not await nav.open_document(body.path):
            raise HTTPException(status_code=404, detail=f"Failed to load document: {body.path}")
        return StatusResponse(**nav.status())

    @app.post("/document/upload", response_model=StatusResponse)
    async def upload_document(request: Request, filename: str = "upload.pdf"):
        """Show a PDF sent as the raw request body (Content-Type: application/pdf)"""
        nav = get_nav(request)
        if nav.documents is None:
            raise HTTPException(status_code=503, detail="Document viewer not available")
        data = await request.body()
        try:
            loaded = await nav.upload_document(filename, data, request.headers.get("content-type"))
        except NotAPdfError as e:
            raise HTTPException(status_code=415, detail=f"Please select a PDF file: {e}")
        if not loaded:
            raise HTTPException(status_code=422, detail=f"Failed to load document: {filename}")
        return StatusResponse(**nav.status())

    @app.post("/document/close", response_model=StatusResponse)
    async def close_document(request: Request):
        nav = get_nav(request)
        await nav.close_document()
        return StatusResponse(**nav.status())

    @app.post("/focus/next", response_model=StatusResponse)
    async def focus_next(request: Request):
        nav = get_nav(request)
        await nav.focus.focus_next()
        return StatusResponse(**nav.status())

    @app.post("/focus/previous", response_model=StatusResponse)
    async def focus_previous(request: Request):
        nav = get_nav(request)
        await nav.focus.focus_previous()
        return StatusResponse(**nav.status())

    @app.get("/status", response_model=StatusResponse)
    async def status(request: Request):
        return StatusResponse(**get_nav(request).status())

    @app.get("/")
    async def root():
        return {"message": "Hands-free Navigation Server", "status": "running"}

    return app


if __name__ == "__main__":
    import uvicorn

    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    cfg = load_config()
    uvicorn.run(create_app(cfg), host=cfg.server.host, port=cfg.server.port)
