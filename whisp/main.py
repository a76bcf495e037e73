from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from whisp.api.routes import notify
from whisp.config import get_settings
from whisp.core.exceptions import global_exception_handler, http_exception_handler, request_validation_exception_handler
from whisp.core.lifespan import lifespan
from whisp.core.middleware import RequestLoggingMiddleware

__version__ = "0.1.0"

settings = get_settings()

app = FastAPI(title="Whisp Notify", version=__version__, lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials="*" not in settings.allowed_origins, allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type", "authorization"])

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
  return "Whisp Notify Server Running"


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(notify.router, tags=["notifications"])

# Attachments are served straight from the upload directory.
app.mount(settings.upload_url_prefix, StaticFiles(directory=Path(settings.upload_dir), check_dir=False), name="uploads")
