"""WebSocket endpoint for live pipeline snapshots.

The stream is process-wide: a client may connect while the pipeline is idle
and stays subscribed across runs, resets and settings swaps until it
disconnects.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from backend.pipeline.pipeline_manager import pipeline_manager

router = APIRouter()


async def _until_disconnect(websocket: WebSocket) -> None:
    # Inbound frames carry nothing; only the disconnect matters
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/api/ws/pipeline")
async def ws_pipeline(websocket: WebSocket) -> None:
    await websocket.accept()

    queue = pipeline_manager.subscribe()
    closed = asyncio.ensure_future(_until_disconnect(websocket))
    try:
        # Current state first so the client never renders from nothing
        await websocket.send_json({"type": "snapshot", **pipeline_manager.snapshot().to_dict()})
        while True:
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait(
                {getter, closed}, return_when=asyncio.FIRST_COMPLETED
            )
            if closed in done:
                getter.cancel()
                break
            await websocket.send_json(getter.result())
    except WebSocketDisconnect:
        pass
    finally:
        closed.cancel()
        pipeline_manager.unsubscribe(queue)
        try:
            await websocket.close()
        except RuntimeError:
            pass
