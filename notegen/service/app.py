"""FastAPI application serving the notegen single-page UI."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, List, Literal, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from jinja2 import Environment, FileSystemLoader
from pydantic import BaseModel

from .. import __version__
from ..config import load_config
from ..errors import NoteGenError
from ..export import GITHUB_NEW_REPOSITORY_URL, GITHUB_URL, UPLOAD_NOTE, UPLOAD_STEPS
from ..loader import InMemoryFile
from ..logging import get_logger
from ..prompting.constants import DEFAULT_TONE, MAX_REFERENCE_FILES, TONE_LABELS, TONES
from ..session import VIEWS, SessionController, build_session

logger = get_logger("service")

ToneName = Literal["casual", "professional", "storytelling", "essay"]

VIEW_LABELS = {
    "upload": "Files",
    "settings": "Settings",
    "result": "Result",
    "export": "GitHub",
}


class HealthResponse(BaseModel):
    status: str


class NoticeModel(BaseModel):
    kind: str
    message: str


class ReferenceModel(BaseModel):
    id: str
    name: str


class PrimaryModel(BaseModel):
    file_name: str
    length: int


class StateResponse(BaseModel):
    view: str
    busy: bool
    notice: Optional[NoticeModel] = None
    folder: str
    references: List[ReferenceModel]
    primary: Optional[PrimaryModel] = None
    title_hint: str
    tone: str
    result: Optional[str] = None
    export_name: str
    has_export_file: bool


def _default_session() -> SessionController:
    return build_session(load_config(Path.cwd()))


def create_app(
    session_factory: Callable[[], SessionController] = _default_session,
    *,
    templates_dir: Path | None = None,
) -> FastAPI:
    """Create the FastAPI application bound to a single session."""

    app = FastAPI(title="notegen", version=__version__)
    app.state.session = session_factory()
    env = _create_env(templates_dir)

    async def get_session() -> SessionController:
        return app.state.session

    def _back() -> RedirectResponse:
        return RedirectResponse(url="/", status_code=303)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/", response_class=HTMLResponse)
    async def index(session: SessionController = Depends(get_session)) -> HTMLResponse:
        template = env.get_template("index.html.j2")
        return HTMLResponse(
            template.render(
                session=session,
                views=[(view, VIEW_LABELS[view]) for view in VIEWS],
                tones=[(tone, TONE_LABELS[tone]) for tone in TONES],
                max_references=MAX_REFERENCE_FILES,
                github_new_url=GITHUB_NEW_REPOSITORY_URL,
                github_url=GITHUB_URL,
                upload_steps=UPLOAD_STEPS,
                upload_note=UPLOAD_NOTE,
            )
        )

    @app.get("/api/state", response_model=StateResponse)
    async def state(session: SessionController = Depends(get_session)) -> StateResponse:
        return StateResponse(**session.snapshot())

    @app.get("/view/{view}")
    async def navigate(
        view: str, session: SessionController = Depends(get_session)
    ) -> RedirectResponse:
        if view not in VIEWS:
            raise HTTPException(status_code=404, detail=f"Unknown view: {view}")
        session.navigate(view)
        return _back()

    @app.post("/references/vault")
    async def load_vault(
        files: List[UploadFile] = File(default=[]),
        session: SessionController = Depends(get_session),
    ) -> RedirectResponse:
        session.load_vault(await _read_uploads(files))
        return _back()

    @app.post("/references/files")
    async def add_references(
        files: List[UploadFile] = File(default=[]),
        session: SessionController = Depends(get_session),
    ) -> RedirectResponse:
        handles = await _read_uploads(files)
        if handles:
            session.add_references(handles)
        return _back()

    @app.post("/references/clear")
    async def clear_references(
        session: SessionController = Depends(get_session),
    ) -> RedirectResponse:
        session.clear_references()
        return _back()

    @app.post("/references/{document_id}/remove")
    async def remove_reference(
        document_id: str, session: SessionController = Depends(get_session)
    ) -> RedirectResponse:
        session.remove_reference(document_id)
        return _back()

    @app.post("/primary")
    async def load_primary(
        file: Optional[UploadFile] = File(default=None),
        session: SessionController = Depends(get_session),
    ) -> RedirectResponse:
        handles = await _read_uploads([file] if file is not None else [])
        session.load_primary(handles[0] if handles else None)
        return _back()

    @app.post("/primary/clear")
    async def clear_primary(session: SessionController = Depends(get_session)) -> RedirectResponse:
        session.clear_primary()
        return _back()

    @app.post("/settings")
    async def update_settings(
        title_hint: str = Form(default=""),
        tone: ToneName = Form(default=DEFAULT_TONE),
        session: SessionController = Depends(get_session),
    ) -> RedirectResponse:
        session.update_settings(title_hint=title_hint, tone=tone)
        return _back()

    @app.post("/generate")
    async def generate(
        title_hint: Optional[str] = Form(default=None),
        tone: Optional[ToneName] = Form(default=None),
        session: SessionController = Depends(get_session),
    ) -> RedirectResponse:
        if not session.busy:
            session.update_settings(title_hint=title_hint, tone=tone)
        # Admission runs on the event loop so the busy flag gates concurrent clicks.
        pending = session.start_generation()
        if pending is not None:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, session.complete_generation, pending)
        return _back()

    @app.post("/generate/cancel")
    async def cancel_generation(
        session: SessionController = Depends(get_session),
    ) -> RedirectResponse:
        session.cancel_generation()
        return _back()

    @app.post("/result/copy")
    async def copy_result(session: SessionController = Depends(get_session)) -> RedirectResponse:
        session.copy_result()
        return _back()

    @app.post("/export/file")
    async def load_export_file(
        file: Optional[UploadFile] = File(default=None),
        session: SessionController = Depends(get_session),
    ) -> RedirectResponse:
        handles = await _read_uploads([file] if file is not None else [])
        session.load_export_file(handles[0] if handles else None)
        return _back()

    @app.post("/export/download")
    async def download(
        file_name: Optional[str] = Form(default=None),
        session: SessionController = Depends(get_session),
    ) -> Response:
        if file_name is not None:
            session.set_export_name(file_name)
        artifact = session.export_artifact()
        if artifact is None:
            return _back()
        logger.info("Serving download %s (%d bytes)", artifact.file_name, len(artifact.data))
        return Response(
            content=artifact.data,
            media_type=artifact.media_type,
            headers={"Content-Disposition": artifact.content_disposition()},
        )

    @app.exception_handler(NoteGenError)
    async def notegen_error_handler(
        _: Request, exc: NoteGenError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


async def _read_uploads(uploads: List[UploadFile]) -> List[InMemoryFile]:
    handles: List[InMemoryFile] = []
    for upload in uploads:
        # Empty pickers still submit one part with a blank file name.
        if not upload.filename:
            continue
        handles.append(InMemoryFile(name=upload.filename, data=await upload.read()))
    return handles


def _create_env(templates_dir: Path | None) -> Environment:
    directories = []
    if templates_dir:
        directories.append(str(templates_dir))
    directories.append(str(Path(__file__).with_name("templates")))
    loader = FileSystemLoader(directories)
    return Environment(loader=loader, autoescape=True, trim_blocks=True, lstrip_blocks=True)


def run_service(
    host: str = "127.0.0.1",
    port: int = 8000,
    *,
    session_factory: Callable[[], SessionController] = _default_session,
    log_level: str = "info",
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(session_factory)
    logger.info("Serving notegen on http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=log_level)


__all__ = ["StateResponse", "create_app", "run_service"]
