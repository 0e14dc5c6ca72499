from typing import Protocol, runtime_checkable


class PinningError(Exception):
    pass


@runtime_checkable
class PinningServicePort(Protocol):
    async def pin_by_hash(self, cid: str, name: str) -> dict: ...
    async def unpin(self, cid: str) -> str: ...
