"""In-memory stand-ins for IPFS, the pin mirror and the progress channel."""

from __future__ import annotations

import json
import os

from medianode.platform.ports.content_store import ContentStoreError, ManifestNotFoundError
from medianode.platform.ports.pinning import PinningError


class FakeContentStore:
    def __init__(self, files: dict[str, bytes] | None = None, *, cid: str = "bafyfakeroot") -> None:
        self.files = dict(files or {})
        self.cid = cid
        self.pinned: list[str] = []
        self.unpinned: list[str] = []
        self.added: list[tuple[str, str]] = []
        self.fail_add = False
        self.fail_unpin = False

    async def add_folder(self, path: str, name: str) -> str:
        if self.fail_add:
            raise ContentStoreError("node unreachable")
        self.added.append((path, name))
        for dirpath, _, filenames in os.walk(path):
            for f in filenames:
                full = os.path.join(dirpath, f)
                rel = os.path.relpath(full, path).replace(os.sep, "/")
                with open(full, "rb") as fh:
                    self.files[f"{self.cid}/{rel}"] = fh.read()
        return self.cid

    async def pin(self, cid: str) -> None:
        self.pinned.append(cid)

    async def unpin(self, cid: str) -> list[str]:
        if self.fail_unpin:
            raise ContentStoreError(f"not pinned: {cid}")
        self.unpinned.append(cid)
        return [cid]

    async def cat(self, path: str) -> bytes:
        if path not in self.files:
            raise ContentStoreError(f"no link named {path}")
        return self.files[path]

    async def read_manifest(self, cid: str) -> dict:
        try:
            return json.loads(await self.cat(f"{cid}/rair.json"))
        except ContentStoreError as exc:
            raise ManifestNotFoundError(cid, str(exc)) from exc


class FakePinning:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.pinned: list[tuple[str, str]] = []
        self.unpinned: list[str] = []

    async def pin_by_hash(self, cid: str, name: str) -> dict:
        if self.fail:
            raise PinningError("rate limited")
        self.pinned.append((cid, name))
        return {"IpfsHash": cid}

    async def unpin(self, cid: str) -> str:
        if self.fail:
            raise PinningError("unknown pin")
        self.unpinned.append(cid)
        return "OK"


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    async def emit(self, event: str, data: dict) -> None:
        self.events.append((event, data))

    @property
    def messages(self) -> list[str]:
        return [data["message"] for _, data in self.events]


class FakeTranscoder:
    """Writes placeholder outputs where ffmpeg would."""

    def __init__(self, segments: int = 3, *, fail_stream: bool = False) -> None:
        self.segments = segments
        self.fail_stream = fail_stream
        self.calls: list[str] = []

    async def make_thumbnail(self, source: str, dest: str, upload_id: str) -> bool:
        self.calls.append("thumbnail")
        with open(os.path.join(dest, "Thumbnails", f"{upload_id}.png"), "wb") as fh:
            fh.write(b"png")
        return True

    async def make_preview(self, source: str, dest: str, upload_id: str) -> bool:
        self.calls.append("preview")
        with open(os.path.join(dest, "Thumbnails", f"{upload_id}.gif"), "wb") as fh:
            fh.write(b"gif")
        return True

    async def make_stream(self, source: str, dest: str, upload_id: str) -> bool:
        self.calls.append("stream")
        if self.fail_stream:
            return False
        root = os.path.join(dest, f"stream{upload_id}")
        playlist = ["#EXTM3U"]
        for i in range(self.segments):
            with open(os.path.join(root, f"stream{i}.ts"), "wb") as fh:
                fh.write(segment_payload(i))
            playlist.append(f"stream{i}.ts")
        with open(os.path.join(root, "stream.m3u8"), "w") as fh:
            fh.write("\n".join(playlist))
        return True


def segment_payload(index: int) -> bytes:
    return f"segment-{index}-".encode() * (37 + index)
