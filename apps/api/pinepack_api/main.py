"""FastAPI entrypoint for Pinepack."""

from __future__ import annotations

import logging
import os
import sys

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from packages.pinepack_core.errors import HashCollisionError, PinepackError

from .routers.assets import router as assets_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("pinepack_api")

app = FastAPI(title="Pinepack API", version="0.1.0")

_cors_origins = [o.strip() for o in os.environ.get("PINEPACK_CORS_ORIGINS", "*").split(",")]
_cors_allow_credentials = "*" not in _cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=_cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(assets_router)


@app.exception_handler(HashCollisionError)
async def _hash_collision_handler(request: Request, exc: HashCollisionError):
    logger.warning("[API] %s", exc)
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "error_code": exc.error_code,
            "key": exc.key,
            "names": [exc.name, exc.existing_name],
        },
    )


@app.exception_handler(PinepackError)
async def _pinepack_error_handler(request: Request, exc: PinepackError):
    return JSONResponse(status_code=400, content={"detail": str(exc), "error_code": exc.error_code})


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}
