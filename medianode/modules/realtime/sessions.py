from fastapi import WebSocket
from medianode.platform.ports.progress import ProgressNotifier
from medianode.platform.adapters.progress_log import LogNotifier
from medianode.platform.adapters.progress_socket import SocketNotifier


class SessionRegistry:
    """Live progress sockets keyed by the client-chosen session id."""
    def __init__(self):
        self._sockets: dict[str, WebSocket] = {}

    def register(self, session_id: str, websocket: WebSocket) -> None:
        self._sockets[session_id] = websocket

    def unregister(self, session_id: str, websocket: WebSocket | None = None) -> None:
        # a reconnect may already have replaced the socket under this id
        if websocket is None or self._sockets.get(session_id) is websocket:
            self._sockets.pop(session_id, None)

    def get(self, session_id: str | None) -> WebSocket | None:
        if not session_id:
            return None
        return self._sockets.get(session_id)

    def notifier_for(self, session_id: str | None) -> ProgressNotifier:
        websocket = self.get(session_id)
        if websocket is None:
            return LogNotifier()
        return SocketNotifier(websocket, session_id)


session_registry = SessionRegistry()
