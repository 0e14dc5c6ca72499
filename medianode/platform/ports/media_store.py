from typing import Protocol, runtime_checkable

@runtime_checkable
class MediaStorePort(Protocol):
    """Registry of playable media and their decryption keys, keyed by CID."""
    async def add_media(self, cid: str, data: dict) -> None: ...
    async def remove_media(self, cid: str) -> None: ...
    async def get_media(self, cid: str) -> dict | None: ...
