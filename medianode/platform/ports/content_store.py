from typing import Protocol, runtime_checkable


class ContentStoreError(Exception):
    """The content-addressed store rejected or failed a request."""


class ManifestNotFoundError(ContentStoreError):
    def __init__(self, cid: str, reason: str = ""):
        self.cid = cid
        self.reason = reason
        super().__init__(
            f"Cannot retrieve rair.json manifest for {cid}. "
            f"Check the CID is correct and is a folder containing a manifest. {reason}".rstrip()
        )


@runtime_checkable
class ContentStorePort(Protocol):
    async def add_folder(self, path: str, name: str) -> str: ...
    async def pin(self, cid: str) -> None: ...
    async def unpin(self, cid: str) -> list[str]: ...
    async def cat(self, path: str) -> bytes: ...
    async def read_manifest(self, cid: str) -> dict: ...
