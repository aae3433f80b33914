"""
FastAPI application for the Mindful companion.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, WebSocket

# Configure logging to show INFO from mindful modules
logging.basicConfig(level=logging.INFO, format="%(name)s - %(levelname)s - %(message)s")
logging.getLogger("mindful").setLevel(logging.INFO)
from fastapi.middleware.cors import CORSMiddleware

from .routes import router
from .websocket import exercise_endpoint

app = FastAPI(
    title="Mindful Companion",
    description="Persona-driven wellbeing chat with multi-provider fallback and guided exercises",
    version="0.1.0",
)

# CORS for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(router)


@app.get("/")
async def root():
    return {"message": "Mindful Companion API", "docs": "/docs"}


@app.websocket("/ws/exercise/{exercise_key}")
async def ws_exercise(websocket: WebSocket, exercise_key: str):
    """WebSocket endpoint for a live breathing exercise."""
    await exercise_endpoint(websocket, exercise_key)
