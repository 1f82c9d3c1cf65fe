# gamenight/main.py
# Главная точка входа FastAPI: группы, инвайты, вступление, партии.

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gamenight.db import engine  # noqa: F401  инициализация БД/пула соединений
from gamenight.routers.group_invites import router as group_invites_router
from gamenight.routers.game_sessions import router as game_sessions_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]

app = FastAPI(
    title="Gamenight Backend",
    description="Группы настольных игр: инвайты по коду и токену, вступление, журнал партий.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()] or DEFAULT_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(group_invites_router, prefix="/api/groups", tags=["Группы и инвайты"])
app.include_router(game_sessions_router, prefix="/api/groups", tags=["Партии"])


@app.get("/")
def root():
    """Простой healthcheck."""
    return {"message": "Gamenight backend работает!", "docs": "/docs"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("gamenight.main:app", host="0.0.0.0", port=8000, reload=False)
