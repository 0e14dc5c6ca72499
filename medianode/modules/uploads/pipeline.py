import json
import logging
import os
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from medianode.core.config import settings
from medianode.core.db import SessionLocal
from medianode.modules.media.repository import MediaRepository
from medianode.modules.uploads.encryptor import encrypt_segments, ENCRYPTION_TYPE
from medianode.modules.uploads.transcoder import Transcoder, stream_dir, thumbnails_dir, STREAM_MANIFEST
from medianode.platform.ports.content_store import ContentStorePort
from medianode.platform.ports.media_store import MediaStorePort
from medianode.platform.ports.pinning import PinningServicePort
from medianode.platform.ports.progress import ProgressNotifier, UPLOAD_PROGRESS, progress_event
from medianode.platform.provider_registry import registry

log = logging.getLogger(__name__)

MANIFEST_FILENAME = "rair.json"


class UploadState(str, Enum):
    RECEIVED = "received"
    DIRECTORY_PREPARED = "directory_prepared"
    THUMBNAILS_GENERATED = "thumbnails_generated"
    STREAM_TRANSCODED = "stream_transcoded"
    SEGMENTS_ENCRYPTED = "segments_encrypted"
    MANIFEST_WRITTEN = "manifest_written"
    SOURCE_DELETED = "source_deleted"
    CONTENT_ADDRESSED = "content_addressed"
    PINNED_LOCALLY = "pinned_locally"
    METADATA_PERSISTED = "metadata_persisted"
    MIRRORED = "mirrored"
    COMPLETE = "complete"

ORDER = list(UploadState)


class PipelineError(Exception):
    def __init__(self, state: UploadState, cause: BaseException):
        self.state = state
        self.cause = cause
        super().__init__(f"Upload failed while reaching {state.value}: {cause}")


@dataclass
class UploadContext:
    upload_id: str
    source_path: str
    dest: str
    original_name: str
    title: str
    author: str
    description: str | None = None
    contract_address: str | None = None

    @property
    def stream_root(self) -> str:
        return stream_dir(self.dest, self.upload_id)

    @property
    def folder_name(self) -> str:
        return f"stream{self.upload_id}"


class UploadPipeline:
    """
    One upload, moved through UploadState strictly in order. Each call to
    advance() performs a single transition. Some steps only log their failures
    and let the upload continue; the others stop the pipeline with PipelineError.
    """
    def __init__(
        self,
        ctx: UploadContext,
        notifier: ProgressNotifier,
        *,
        transcoder: Transcoder | None = None,
        content_store: ContentStorePort | None = None,
        pinning: PinningServicePort | None = None,
        media_store: MediaStorePort | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        self.ctx = ctx
        self.notifier = notifier
        self.transcoder = transcoder or Transcoder()
        self.content_store = content_store or registry.content_store()
        self.pinning = pinning or registry.pinning()
        self.media_store = media_store or registry.media_store()
        self.session_factory = session_factory or SessionLocal

        self.state = UploadState.RECEIVED
        self.failed_state: UploadState | None = None
        self.error: BaseException | None = None
        self.cid: str | None = None
        self.key: bytes | None = None
        self._announced = False

        self._steps = {
            UploadState.DIRECTORY_PREPARED: self._prepare_directory,
            UploadState.THUMBNAILS_GENERATED: self._generate_thumbnails,
            UploadState.STREAM_TRANSCODED: self._transcode_stream,
            UploadState.SEGMENTS_ENCRYPTED: self._encrypt_segments,
            UploadState.MANIFEST_WRITTEN: self._write_manifest,
            UploadState.SOURCE_DELETED: self._delete_source,
            UploadState.CONTENT_ADDRESSED: self._add_to_content_store,
            UploadState.PINNED_LOCALLY: self._pin_locally,
            UploadState.METADATA_PERSISTED: self._persist_metadata,
            UploadState.MIRRORED: self._mirror,
            UploadState.COMPLETE: self._complete,
        }

    @property
    def uri(self) -> str | None:
        return f"{settings.IPFS_GATEWAY.rstrip('/')}/{self.cid}" if self.cid else None

    async def _emit(self, message: str, **kwargs) -> None:
        await self.notifier.emit(UPLOAD_PROGRESS, progress_event(message, **kwargs))

    async def advance(self) -> UploadState:
        if self.failed_state is not None:
            raise PipelineError(self.failed_state, self.error)
        if self.state is UploadState.COMPLETE:
            return self.state
        if not self._announced:
            self._announced = True
            log.info(f"Processing: {self.ctx.original_name}")
            await self._emit("File uploaded, processing data...", done=5)

        target = ORDER[ORDER.index(self.state) + 1]
        try:
            await self._steps[target]()
        except Exception as e:
            self.failed_state = target
            self.error = e
            log.error(f"{self.ctx.original_name}: upload failed at {target.value}: {e}")
            await self._emit(f"{self.ctx.original_name} upload failed: {e}", last=True)
            raise PipelineError(target, e) from e
        self.state = target
        log.debug(f"{self.ctx.upload_id} -> {target.value}")
        return target

    async def run(self, until: UploadState | None = None) -> UploadState:
        stop = ORDER.index(until or UploadState.COMPLETE)
        while ORDER.index(self.state) < stop:
            await self.advance()
        return self.state

    # ---- steps ----

    async def _prepare_directory(self):
        try:
            os.makedirs(self.ctx.stream_root, exist_ok=True)
            os.makedirs(thumbnails_dir(self.ctx.dest), exist_ok=True)
        except OSError as e:
            log.error(f"{self.ctx.original_name}: could not prepare {self.ctx.stream_root}: {e}")

    async def _generate_thumbnails(self):
        log.info(f"{self.ctx.original_name} generating thumbnails")
        await self.transcoder.make_thumbnail(self.ctx.source_path, self.ctx.dest, self.ctx.upload_id)
        await self.transcoder.make_preview(self.ctx.source_path, self.ctx.dest, self.ctx.upload_id)
        await self._emit(f"{self.ctx.original_name} generating thumbnails", done=10)

    async def _transcode_stream(self):
        log.info(f"{self.ctx.original_name} converting to stream")
        await self._emit(f"{self.ctx.original_name} converting to stream", done=11)
        await self.transcoder.make_stream(self.ctx.source_path, self.ctx.dest, self.ctx.upload_id)

    async def _encrypt_segments(self):
        self.key = await encrypt_segments(self.ctx.stream_root, self.notifier)

    async def _write_manifest(self):
        manifest = {
            "title": self.ctx.title,
            "mainManifest": STREAM_MANIFEST,
            "author": self.ctx.author,
            "encryptionType": ENCRYPTION_TYPE,
        }
        if self.ctx.description:
            manifest["description"] = self.ctx.description
        with open(os.path.join(self.ctx.stream_root, MANIFEST_FILENAME), "w") as f:
            json.dump(manifest, f, indent=4)

    async def _delete_source(self):
        try:
            os.remove(self.ctx.source_path)
        except OSError as e:
            log.error(f"{self.ctx.original_name}: could not delete raw upload: {e}")
            return
        log.info(f"{self.ctx.original_name} raw deleted")
        await self._emit(f"{self.ctx.original_name} raw deleted")

    async def _add_to_content_store(self):
        log.info(f"{self.ctx.original_name} pinning to ipfs")
        await self._emit(f"{self.ctx.original_name} pinning to ipfs")
        self.cid = await self.content_store.add_folder(self.ctx.stream_root, self.ctx.folder_name)
        log.info(f"{self.ctx.original_name} ipfs done: {self.cid}")
        await self._emit("ipfs done.", done=90)

    async def _pin_locally(self):
        await self.content_store.pin(self.cid)
        await self._emit("Pinning to ipfs.", done=93)

    def metadata(self) -> dict:
        meta = {
            "mainManifest": STREAM_MANIFEST,
            "author": self.ctx.author,
            "encryptionType": ENCRYPTION_TYPE,
            "title": self.ctx.title,
            "thumbnail": self.ctx.upload_id,
            "currentOwner": self.ctx.author,
            "contractAddress": self.ctx.contract_address,
        }
        if self.ctx.description:
            meta["description"] = self.ctx.description
        return meta

    async def _persist_metadata(self):
        meta = self.metadata()
        await self.media_store.add_media(self.cid, {"key": self.key, **meta, "uri": self.uri})
        async with self.session_factory() as session:
            await MediaRepository(session).create(
                self.cid,
                key=self.key,
                title=self.ctx.title,
                description=self.ctx.description,
                author=self.ctx.author,
                main_manifest=STREAM_MANIFEST,
                encryption_type=ENCRYPTION_TYPE,
                contract_address=self.ctx.contract_address,
                thumbnail=self.ctx.upload_id,
                current_owner=self.ctx.author,
                uri=self.uri,
            )
            await session.commit()
        await self._emit("Stored to DB", done=96)

    async def _mirror(self):
        try:
            response = await self.pinning.pin_by_hash(self.cid, self.ctx.title)
        except Exception as e:
            log.error(f"External pinning failed for {self.cid}: {e}")
            await self._emit("Upload complete, external pinning failed.", last=True, done=100)
            return
        log.info(f"External pinning response: {response}")
        await self._emit("Pinned to external pinning service.", last=True, done=100)

    async def _complete(self):
        log.info(f"{self.ctx.original_name} published as {self.cid}")


async def finish_upload(pipeline: UploadPipeline) -> None:
    """Background continuation after the HTTP response has been sent."""
    try:
        await pipeline.run()
    except PipelineError:
        # already logged and reported on the progress channel
        return
