"""
Redirect Trace Web API
FastAPI backend for the redirect checker UI
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from . import __version__
from .config import Settings, load_settings
from .normalize import normalize_url
from .status import annotate
from .tracer import RedirectTracer
from .user_agents import resolve_user_agent

log = logging.getLogger(__name__)

app = FastAPI(
    title="Redirect Trace",
    description="Hop-by-hop HTTP redirect chain checker",
    version=__version__,
)


class CheckOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_agent: Optional[str] = Field(None, alias="userAgent")
    timeout_ms: Optional[int] = Field(None, alias="timeoutMs", gt=0)
    follow_redirects: Optional[bool] = Field(None, alias="followRedirects")
    max_redirects: Optional[int] = Field(None, alias="maxRedirects", ge=0)


class CheckRequest(BaseModel):
    url: Optional[str] = None
    options: Optional[CheckOptions] = None


@lru_cache
def get_settings() -> Settings:
    return load_settings()


def get_tracer() -> RedirectTracer:
    return RedirectTracer()


@app.exception_handler(RequestValidationError)
async def _invalid_request(request: Request, exc: RequestValidationError):
    detail = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
    return JSONResponse(status_code=400, content={"error": "Invalid request", "detail": detail})


@app.get("/api/health")
async def health():
    """Health check endpoint"""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# Plain def: FastAPI runs it in its threadpool, so the event loop stays free
# while hops are in flight.
@app.post("/api/check-url")
def check_url(
    request: CheckRequest,
    settings: Settings = Depends(get_settings),
    tracer: RedirectTracer = Depends(get_tracer),
):
    """Trace one URL. Trace failures are reported in the body, not the status."""
    if not request.url or not request.url.strip():
        return JSONResponse(status_code=400, content={"error": "URL is required"})

    try:
        overrides = request.options.model_dump() if request.options else {}
        if overrides.get("user_agent"):
            overrides["user_agent"] = resolve_user_agent(overrides["user_agent"])
        options = settings.trace_options().merged(overrides)

        result = tracer.trace(normalize_url(request.url), options)
        return annotate(result.to_dict())
    except Exception as e:
        log.exception("check-url failed for %r", request.url)
        return JSONResponse(status_code=500, content={"error": str(e) or "An unknown error occurred"})


def run() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
