"""FastAPI application for the noot local JSON API."""

import secrets
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from .. import __version__
from ..adapters.html_reducer import html_to_markdown
from ..adapters.html_renderer import markdown_to_html
from ..adapters.inline_images import inline_local_images
from ..adapters.markdown_parser import parse_document
from ..core.model import Note
from ..core.utils import parse_note_id


class NotePayload(BaseModel):
    """Either canonical text or editor HTML; HTML is reduced before saving."""
    content: str | None = None
    html: str | None = None


class MarkdownPayload(BaseModel):
    content: str


class HtmlPayload(BaseModel):
    html: str


def create_app(runtime: Any, token: str | None = None, enable_cors: bool = False) -> FastAPI:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime instance with vault, index and notebook
        token: Bearer token for authentication (None to disable auth)
        enable_cors: Enable CORS middleware

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Noot API",
        description="Local JSON API for noot notes",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or credentials.credentials != token:
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    def render(content: str) -> str:
        html = markdown_to_html(content)
        if runtime.config.editor.inline_images:
            html = inline_local_images(html, runtime.config.attachments.root)
        return html

    def load(note_id: str) -> Note:
        nid = parse_note_id(note_id)
        note = runtime.vault.get(nid) if nid is not None else None
        if note is None:
            raise HTTPException(status_code=404, detail=f"Note {note_id} not found")
        return note

    def canonical(body: NotePayload) -> str:
        if body.content is not None:
            return body.content
        if body.html is not None:
            return html_to_markdown(body.html)
        raise HTTPException(status_code=422, detail="Provide either 'content' or 'html'")

    @app.get("/health")
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.post("/notes", status_code=201)
    async def create_note(body: NotePayload, auth: None = Depends(verify_token)) -> dict[str, Any]:
        note = runtime.notebook.capture(canonical(body))
        return note.as_dict()

    @app.get("/notes/{note_id}")
    async def get_note(note_id: str, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Get a note with its rendered HTML."""
        note = load(note_id)
        result = note.as_dict()
        result["html"] = render(note.content)
        return result

    @app.put("/notes/{note_id}")
    async def update_note(
        note_id: str, body: NotePayload, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        note = load(note_id)
        note = runtime.notebook.capture(canonical(body), note_id=note.id)
        return note.as_dict()

    @app.get("/notes/{note_id}/references")
    async def references(note_id: str, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Outgoing links, backlinks and attachments of a note."""
        note = load(note_id)
        return {
            "links_out": [str(ref.target_id) for ref in runtime.index.links_out(note.id)],
            "links_in": [str(ref.source_id) for ref in runtime.index.links_in(note.id)],
            "attachments": [rec.as_dict() for rec in runtime.index.attachments(note.id)],
        }

    @app.post("/convert/render")
    async def convert_render(
        payload: MarkdownPayload, auth: None = Depends(verify_token)
    ) -> dict[str, str]:
        return {"html": render(payload.content)}

    @app.post("/convert/reduce")
    async def convert_reduce(
        payload: HtmlPayload, auth: None = Depends(verify_token)
    ) -> dict[str, str]:
        return {"content": html_to_markdown(payload.html)}

    @app.post("/convert/parse")
    async def convert_parse(
        payload: MarkdownPayload, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        return {"elements": [el.as_dict() for el in parse_document(payload.content)]}

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
