import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from medianode.modules.realtime.sessions import session_registry

router = APIRouter()
log = logging.getLogger(__name__)

@router.websocket("/ws/progress/{session_id}")
async def progress_socket(websocket: WebSocket, session_id: str):
    await websocket.accept()
    session_registry.register(session_id, websocket)
    log.info(f"Progress session {session_id} connected")
    try:
        # the channel is push-only; reading just keeps the connection open
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        log.info(f"Progress session {session_id} disconnected")
    finally:
        session_registry.unregister(session_id, websocket)
