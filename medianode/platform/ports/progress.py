from typing import Protocol, runtime_checkable

UPLOAD_PROGRESS = "uploadProgress"


def progress_event(
    message: str,
    *,
    last: bool = False,
    done: int | None = None,
    part: bool | None = None,
    parts: int | None = None,
) -> dict:
    """Build an uploadProgress payload, omitting the optional fields that are unset."""
    event = {"message": message, "last": last}
    if done is not None:
        event["done"] = done
    if part is not None:
        event["part"] = part
    if parts is not None:
        event["parts"] = parts
    return event


@runtime_checkable
class ProgressNotifier(Protocol):
    async def emit(self, event: str, data: dict) -> None: ...
