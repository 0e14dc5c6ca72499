import json
import logging
import os
from contextlib import ExitStack
from urllib.parse import quote

import httpx

from medianode.core.config import settings
from medianode.platform.ports.content_store import ContentStorePort, ContentStoreError, ManifestNotFoundError

log = logging.getLogger("store.ipfs")

MANIFEST_NAME = "rair.json"

class IpfsContentStore(ContentStorePort):
    """
    Talks to a Kubo node over its HTTP RPC API (/api/v0). Every RPC is a POST.
    """
    def __init__(self, api_url: str | None = None, *, timeout: float | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.api_url = (api_url or settings.IPFS_API_URL).rstrip("/")
        self.timeout = timeout or settings.IPFS_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=f"{self.api_url}/api/v0", timeout=self.timeout, transport=self._transport)

    async def _rpc(self, command: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                res = await client.post(command, **kwargs)
        except httpx.HTTPError as e:
            raise ContentStoreError(f"IPFS {command} failed: {e}") from e
        if res.status_code >= 400:
            raise ContentStoreError(f"IPFS {command} returned {res.status_code}: {_error_message(res)}")
        return res

    async def add_folder(self, path: str, name: str) -> str:
        """Add a directory tree without pinning it and return the root CID."""
        root = os.path.abspath(path)
        with ExitStack() as stack:
            parts = [("file", (quote(name, safe=""), b"", "application/x-directory"))]
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames.sort()
                rel_dir = os.path.relpath(dirpath, root)
                prefix = name if rel_dir == "." else f"{name}/{rel_dir.replace(os.sep, '/')}"
                for d in dirnames:
                    parts.append(("file", (quote(f"{prefix}/{d}", safe="/"), b"", "application/x-directory")))
                for f in sorted(filenames):
                    fh = stack.enter_context(open(os.path.join(dirpath, f), "rb"))
                    parts.append(("file", (quote(f"{prefix}/{f}", safe="/"), fh, "application/octet-stream")))

            res = await self._rpc("add", params={"recursive": "true", "pin": "false", "quieter": "false"}, files=parts)

        root_cid = None
        for line in res.text.splitlines():
            if not line.strip():
                continue
            entry = json.loads(line)
            if entry.get("Name") == name:
                root_cid = entry.get("Hash")
        if not root_cid:
            raise ContentStoreError(f"IPFS add returned no root entry for {name}")
        log.info(f"Added {name} as {root_cid}")
        return root_cid

    async def pin(self, cid: str) -> None:
        await self._rpc("pin/add", params={"arg": cid})

    async def unpin(self, cid: str) -> list[str]:
        res = await self._rpc("pin/rm", params={"arg": cid})
        try:
            return res.json().get("Pins", [])
        except ValueError as e:
            raise ContentStoreError(f"IPFS pin/rm returned an unreadable response for {cid}: {e}") from e

    async def cat(self, path: str) -> bytes:
        res = await self._rpc("cat", params={"arg": path})
        return res.content

    async def read_manifest(self, cid: str) -> dict:
        try:
            raw = await self.cat(f"{cid}/{MANIFEST_NAME}")
            manifest = json.loads(raw)
        except (ContentStoreError, ValueError) as e:
            raise ManifestNotFoundError(cid, str(e)) from e
        if not isinstance(manifest, dict):
            raise ManifestNotFoundError(cid, "manifest is not a JSON object")
        return manifest


def _error_message(res: httpx.Response) -> str:
    try:
        return res.json().get("Message", res.text)
    except ValueError:
        return res.text
