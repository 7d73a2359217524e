#!/usr/bin/env python3
"""HQ dashboard API -- FastAPI app serving the JSON-document modules.

Run with:
    python3 -m uvicorn hq.dashboard.app:app --host 127.0.0.1 --port 3000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hq.common.config import load_env_local
from hq.dashboard import routes
from hq.store.registry import DOCUMENTS

logger = logging.getLogger("hq.dashboard")


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    # Configuration errors are fatal: fail before serving anything.
    load_env_local()
    cfg = routes._cfg()
    logger.info("HQ data directory: %s", cfg["data_dir"])
    yield
    routes._services.clear()


app = FastAPI(title="HQ", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes.router)


@app.get("/api/health")
async def api_health() -> JSONResponse:
    svc = routes._service()
    return JSONResponse({
        "ok": True,
        "documents": sorted(DOCUMENTS),
        "calendar": svc.calendar_status(),
        "telegram": svc.sender is not None,
    })
