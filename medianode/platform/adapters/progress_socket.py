import logging
from fastapi import WebSocket
from medianode.platform.ports.progress import ProgressNotifier
from medianode.platform.adapters.progress_log import LogNotifier

log = logging.getLogger("progress.socket")

class SocketNotifier(ProgressNotifier):
    def __init__(self, websocket: WebSocket, session_id: str):
        self.websocket = websocket
        self.session_id = session_id
        self._fallback = LogNotifier()

    async def emit(self, event: str, data: dict) -> None:
        try:
            await self.websocket.send_json({"event": event, "data": data})
        except Exception as e:
            # client went away mid-pipeline; keep going and leave a trace in the log
            log.warning(f"Progress session {self.session_id} unavailable: {e}")
            await self._fallback.emit(event, data)
