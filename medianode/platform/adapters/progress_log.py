import json
import logging
from medianode.platform.ports.progress import ProgressNotifier

log = logging.getLogger("progress.log")

class LogNotifier(ProgressNotifier):
    """Sink for progress events when no client connection is listening."""

    async def emit(self, event: str, data: dict) -> None:
        log.info(f"[NO SESSION] event={event} data={json.dumps(data)}")
