# !!!
# TO RUN THE SERVER: uvicorn bandprint.api:app --host 0.0.0.0 --port 8000
# !!!

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .audio import read_pcm
from .config import INDEX_PATH, TOP_RESULTS
from .db import load_index
from .logging_utils import log_detail, log_section, log_success, setup_logging
from .recognizer import Recognizer

log = logging.getLogger(__name__)


def load_default_recognizer(index_path: str = INDEX_PATH) -> Recognizer:
    """Recognizer over the snapshot at `index_path`, or an empty index if there is none."""
    log_section("🎵 bandprint API Server")
    log_detail("Index path", index_path)
    if not Path(index_path).is_file():
        log.warning("No index snapshot at %s, serving an empty index", index_path)
        return Recognizer()
    recognizer = Recognizer(index=load_index(index_path))
    log_success(f"Loaded {recognizer.num_indexed_songs} songs")
    return recognizer


def _recognize_upload(recognizer: Recognizer, path: str, limit: int):
    pcm = read_pcm(path, recognizer.pcm_format)
    if pcm is None:
        return None
    return recognizer.recognize(pcm, top=limit)


def create_app(recognizer: Optional[Recognizer] = None) -> FastAPI:
    if recognizer is None:
        recognizer = load_default_recognizer()

    app = FastAPI(title="bandprint API", version="1.0")
    app.state.recognizer = recognizer

    @app.get("/health")
    def health() -> Dict[str, str]:
        log.debug("Health check requested")
        return {"status": "ok"}

    @app.get("/songs")
    def songs() -> Dict[str, Any]:
        return {"songs": [{"id": song_id, "name": name}
                          for song_id, name in app.state.recognizer.index.songs()]}

    @app.post("/recognize")
    async def recognize(
        file: UploadFile = File(...),
        limit: int = Form(TOP_RESULTS),
    ) -> JSONResponse:
        log.info("🎧 New recognition request: %s", file.filename or "unknown")
        if limit < 1:
            raise HTTPException(status_code=400, detail="limit must be at least 1.")

        content = await file.read()
        if not content:
            log.warning("Empty file upload rejected")
            raise HTTPException(status_code=400, detail="Empty upload.")

        # Save to a temp file, the decoder wants a path
        suffix = Path(file.filename or "").suffix or ".mp3"
        with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
            tmp_path = tmp.name
            tmp.write(content)
        try:
            matches = await run_in_threadpool(
                _recognize_upload, app.state.recognizer, tmp_path, limit)
        finally:
            try:
                os.remove(tmp_path)
            except OSError as e:
                log.warning("Could not remove temporary file %s: %s", tmp_path, e)

        if matches is None:
            raise HTTPException(status_code=400, detail="Could not decode the uploaded audio.")

        if matches:
            log.info("Best match: '%s' (%d aligned hits)",
                     matches[0].song_name, matches[0].match_strength)
        else:
            log.warning("No match found")

        return JSONResponse({
            "filename": file.filename,
            "results": [
                {
                    "song_id": m.song_id,
                    "name": m.song_name,
                    "match_strength": m.match_strength,
                    "offset": m.offset,
                }
                for m in matches
            ],
        })

    return app


def __getattr__(name):
    # `app` is built on first access (uvicorn bandprint.api:app), not on import
    if name == "app":
        setup_logging()
        app = create_app()
        globals()["app"] = app
        return app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
