"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, Response

from mineral_scanner.api.models import SessionView
from mineral_scanner.app_logging import configure_logging
from mineral_scanner.containers import AppContainer
from mineral_scanner.services.capture import CaptureUnavailable
from mineral_scanner.services.inference import InferenceFailure
from mineral_scanner.services.scan_session import InvalidTransition, ScanSessionService


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        if state_container.settings.auto_start_capture:
            try:
                await state_container.scan_session.start_capture()
            except CaptureUnavailable:
                logger.exception("Failed to start camera on startup")
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(InvalidTransition)
    async def invalid_transition_handler(
        request: Request, exc: InvalidTransition
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.exception_handler(CaptureUnavailable)
    async def capture_unavailable_handler(
        request: Request, exc: CaptureUnavailable
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": _session(request).notice or str(exc)},
        )

    @app.exception_handler(InferenceFailure)
    async def inference_failure_handler(
        request: Request, exc: InferenceFailure
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        """Single-screen capture UI that consumes the session API."""
        return HTMLResponse(_INDEX_HTML)

    @app.get("/session")
    async def get_session(request: Request) -> SessionView:
        """Return the current session state."""
        return SessionView.from_snapshot(_session(request).view())

    @app.post("/session/capture")
    async def start_capture(request: Request) -> SessionView:
        """Open the camera stream."""
        session = _session(request)
        await session.start_capture()
        return SessionView.from_snapshot(session.view())

    @app.post("/session/snapshot")
    async def snapshot(request: Request) -> SessionView:
        """Take a still image from the live stream."""
        session = _session(request)
        await session.snapshot()
        return SessionView.from_snapshot(session.view())

    @app.post("/session/retake")
    async def retake(request: Request) -> SessionView:
        """Discard the captured image and reopen the camera."""
        session = _session(request)
        await session.retake()
        return SessionView.from_snapshot(session.view())

    @app.post("/session/inference")
    async def run_inference(request: Request) -> SessionView:
        """Analyze the captured image and extract mineral readings."""
        session = _session(request)
        await session.run_inference()
        return SessionView.from_snapshot(session.view())

    @app.get("/session/image")
    async def session_image(request: Request) -> Response:
        """Return the captured image, or a live frame while capturing."""
        session = _session(request)
        image = session.view().image
        if image is not None:
            return Response(content=image.content, media_type=image.mime_type)
        frame = await session.preview_frame()
        if frame is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return Response(content=frame, media_type="image/jpeg")

    return app


def _session(request: Request) -> ScanSessionService:
    state_container: AppContainer = request.app.state.container
    return state_container.scan_session


_INDEX_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Water Mineral Scanner</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem auto;
             max-width: 640px; text-align: center; }
      img { width: 100%; max-height: 480px; object-fit: contain; background: #f0f0f0; }
      button { padding: 0.5rem 1rem; margin: 0.5rem 0.25rem; }
      pre { background: #f6f6f6; padding: 1rem; text-align: left;
            white-space: pre-wrap; max-height: 200px; overflow: auto; }
      .notice { color: #b00020; }
      .hidden { display: none; }
    </style>
  </head>
  <body>
    <h1>Water Mineral Scanner</h1>
    <p id="notice" class="notice"></p>
    <img id="preview" alt="Camera preview" />
    <div>
      <button id="start" onclick="act('/session/capture')">Start camera</button>
      <button id="capture" onclick="act('/session/snapshot')">Capture Image</button>
      <button id="retake" onclick="act('/session/retake')">Retake</button>
      <button id="analyze" onclick="act('/session/inference')">Analyze</button>
    </div>
    <div id="results" class="hidden">
      <h3>Extracted Minerals</h3>
      <div id="readings"></div>
      <h3>Raw Text</h3>
      <pre id="raw"></pre>
    </div>
    <script>
      let stage = null;

      function show(id, visible) {
        document.getElementById(id).classList.toggle('hidden', !visible);
      }

      function render(view) {
        stage = view.stage;
        document.getElementById('notice').textContent = view.notice || '';
        show('start', stage === 'idle');
        show('capture', stage === 'capturing');
        show('retake', ['captured', 'processing', 'done'].includes(stage));
        show('analyze', ['captured', 'processing'].includes(stage));
        const analyze = document.getElementById('analyze');
        analyze.disabled = stage === 'processing';
        analyze.textContent = stage === 'processing' ? 'Processing...' : 'Analyze';
        show('preview', stage !== 'idle');
        if (stage !== 'idle') {
          document.getElementById('preview').src = '/session/image?t=' + Date.now();
        }
        show('results', stage === 'done');
        const readings = document.getElementById('readings');
        readings.innerHTML = '';
        for (const [name, value] of Object.entries(view.readings || {})) {
          const row = document.createElement('div');
          const label = name.charAt(0).toUpperCase() + name.slice(1);
          row.textContent = label + ': ' + (value === null ? 'Not found' : value + ' mg');
          readings.appendChild(row);
        }
        document.getElementById('raw').textContent = view.raw_text || '';
      }

      async function refresh() {
        const res = await fetch('/session');
        render(await res.json());
      }

      async function act(path) {
        if (path === '/session/inference') {
          render({ ...(await (await fetch('/session')).json()), stage: 'processing' });
        }
        const res = await fetch(path, { method: 'POST' });
        if (!res.ok) {
          let detail = 'Request failed (' + res.status + ')';
          try {
            detail = (await res.json()).detail || detail;
          } catch (err) {
            // non-JSON error body
          }
          await refresh();
          document.getElementById('notice').textContent = detail;
          return;
        }
        render(await res.json());
      }

      refresh();
      setInterval(() => { if (stage === 'capturing') refresh(); }, 500);
    </script>
  </body>
</html>
"""
