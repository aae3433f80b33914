"""
WebSocket handler for live guided-breathing sessions.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Dict

from fastapi import WebSocket, WebSocketDisconnect

from ..content.exercises import get_exercise
from ..core.timer import AsyncioScheduler, ExerciseTimer, PhaseEvent

logger = logging.getLogger(__name__)


async def exercise_endpoint(websocket: WebSocket, exercise_key: str):
    """
    Run one breathing exercise and stream its phases to the client.

    Protocol:
        Client -> Server:
            {"type": "stop"}       cancel the run
            {"type": "restart"}    start again from the first phase
            {"type": "progress"}   ask for the current progress

        Server -> Client:
            {"type": "phase", "cycle": 0, "phase_index": 0, "label": "...",
             "instruction": "...", "progress": 0.0}
            {"type": "progress", "progress": 42.0, "phase_progress": 80.0, "status": "..."}
            {"type": "complete", "progress": 100.0}
            {"type": "cancelled", "progress": 37.5}
            {"type": "error", "message": "..."}
    """
    await websocket.accept()

    try:
        definition = get_exercise(exercise_key)
    except KeyError:
        await websocket.send_json({"type": "error", "message": f"Exercise {exercise_key} not found"})
        await websocket.close()
        return

    events: asyncio.Queue = asyncio.Queue()
    timer = ExerciseTimer(AsyncioScheduler())

    def on_phase(event: PhaseEvent) -> None:
        events.put_nowait({"type": "phase", **event.to_dict(), "progress": timer.progress()})

    def on_complete() -> None:
        events.put_nowait({"type": "complete", "progress": 100.0})

    timer.add_phase_listener(on_phase)
    timer.add_complete_listener(on_complete)

    async def pump():
        while True:
            event: Dict[str, Any] = await events.get()
            try:
                await websocket.send_json(event)
            except (WebSocketDisconnect, RuntimeError):
                # Client went away mid-send; the receive loop handles cleanup
                logger.info(f"[WS] Client left during {exercise_key}, dropping {event['type']} event")
                return

    pump_task = asyncio.create_task(pump())
    timer.start(definition)

    try:
        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                events.put_nowait({"type": "error", "message": "Expected a JSON object"})
                continue
            msg_type = data.get("type", "")

            if msg_type == "stop":
                if timer.is_active:
                    timer.stop()
                    events.put_nowait({"type": "cancelled", "progress": timer.progress()})

            elif msg_type == "restart":
                timer.start(definition)

            elif msg_type == "progress":
                events.put_nowait({
                    "type": "progress",
                    "progress": timer.progress(),
                    "phase_progress": timer.phase_progress(),
                    "status": timer.status,
                })

    except WebSocketDisconnect:
        pass
    finally:
        timer.stop()
        pump_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump_task
