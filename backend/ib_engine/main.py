from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ib_engine.core.config import settings
from ib_engine.engine import create_engine_app

app = FastAPI(title="IB Engine Host")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

engine = create_engine_app()

app.mount(settings.ib_mount_path, engine)
