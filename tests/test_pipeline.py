"""Upload orchestration: state order, progress reporting and failure handling."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from medianode.modules.media.repository import MediaRepository
from medianode.modules.uploads import encryptor
from medianode.modules.uploads.encryptor import decrypt_segment
from medianode.modules.uploads.pipeline import (
    ORDER,
    PipelineError,
    UploadContext,
    UploadPipeline,
    UploadState,
    finish_upload,
)
from medianode.platform.adapters.pinning_pinata import PinataPinningService
from tests.fakes.fake_platform import FakePinning, FakeTranscoder, segment_payload

AUTHOR = "0x" + "c3" * 20 + ":polygon"


@pytest.fixture
def upload(tmp_path: Path) -> UploadContext:
    source = tmp_path / "abc123"
    source.write_bytes(b"raw video")
    return UploadContext(
        upload_id="abc123",
        source_path=str(source),
        dest=str(tmp_path),
        original_name="holiday.mp4",
        title="Holiday",
        author=AUTHOR,
        description="Beach day",
        contract_address="0xcontract",
    )


def _pipeline(upload, notifier, content_store, pinning, media_store, session_factory, transcoder=None):
    return UploadPipeline(
        upload,
        notifier,
        transcoder=transcoder or FakeTranscoder(segments=3),
        content_store=content_store,
        pinning=pinning,
        media_store=media_store,
        session_factory=session_factory,
    )


@pytest.mark.asyncio
async def test_full_run_publishes_encrypted_stream(upload, notifier, content_store, pinning, media_store, session_factory) -> None:
    pipeline = _pipeline(upload, notifier, content_store, pinning, media_store, session_factory)

    state = await pipeline.run()

    assert state is UploadState.COMPLETE
    assert pipeline.cid == content_store.cid
    assert content_store.added == [(upload.stream_root, "streamabc123")]
    assert content_store.pinned == [pipeline.cid]
    assert pinning.pinned == [(pipeline.cid, "Holiday")]
    assert not Path(upload.source_path).exists()

    manifest = json.loads(content_store.files[f"{pipeline.cid}/rair.json"])
    assert manifest == {
        "title": "Holiday",
        "mainManifest": "stream.m3u8",
        "author": AUTHOR,
        "encryptionType": "aes-128-cbc",
        "description": "Beach day",
    }
    published = content_store.files[f"{pipeline.cid}/stream1.ts"]
    assert decrypt_segment(published, pipeline.key, 1) == segment_payload(1)

    stored = await media_store.get_media(pipeline.cid)
    assert stored["key"] == pipeline.key
    assert stored["currentOwner"] == AUTHOR
    assert stored["thumbnail"] == "abc123"
    assert stored["uri"].endswith(f"/{pipeline.cid}")

    async with session_factory() as session:
        row = await MediaRepository(session).get(pipeline.cid)
    assert row.key == pipeline.key
    assert row.current_owner == AUTHOR
    assert row.contract_address == "0xcontract"


@pytest.mark.asyncio
async def test_progress_percentages_rise_to_a_final_event(upload, notifier, content_store, pinning, media_store, session_factory) -> None:
    await _pipeline(upload, notifier, content_store, pinning, media_store, session_factory).run()

    done = [data["done"] for _, data in notifier.events if "done" in data]
    assert done == [5, 10, 11, 15, 90, 93, 96, 100]
    assert notifier.events[-1][1]["last"] is True
    assert [data["last"] for _, data in notifier.events[:-1]] == [False] * (len(notifier.events) - 1)


@pytest.mark.asyncio
async def test_advances_one_state_at_a_time(upload, notifier, content_store, pinning, media_store, session_factory) -> None:
    pipeline = _pipeline(upload, notifier, content_store, pinning, media_store, session_factory)

    visited = []
    while pipeline.state is not UploadState.COMPLETE:
        visited.append(await pipeline.advance())

    assert visited == ORDER[1:]
    assert await pipeline.advance() is UploadState.COMPLETE


@pytest.mark.asyncio
async def test_run_until_thumbnails_stops_before_transcoding(upload, notifier, content_store, pinning, media_store, session_factory) -> None:
    transcoder = FakeTranscoder()
    pipeline = _pipeline(upload, notifier, content_store, pinning, media_store, session_factory, transcoder)

    state = await pipeline.run(until=UploadState.THUMBNAILS_GENERATED)

    assert state is UploadState.THUMBNAILS_GENERATED
    assert transcoder.calls == ["thumbnail", "preview"]
    assert (Path(upload.dest) / "Thumbnails" / "abc123.png").exists()
    assert Path(upload.stream_root).is_dir()

    await finish_upload(pipeline)
    assert pipeline.state is UploadState.COMPLETE


@pytest.mark.asyncio
async def test_mirror_failure_does_not_fail_upload(upload, notifier, content_store, media_store, session_factory) -> None:
    pipeline = _pipeline(upload, notifier, content_store, FakePinning(fail=True), media_store, session_factory)

    assert await pipeline.run() is UploadState.COMPLETE
    final = notifier.events[-1][1]
    assert final["last"] is True
    assert final["done"] == 100
    assert "external pinning failed" in final["message"]


@pytest.mark.asyncio
async def test_unreadable_mirror_reply_does_not_fail_upload(upload, notifier, content_store, media_store, session_factory) -> None:
    pinata = PinataPinningService(
        "http://pinata.test", "jwt-token", transport=httpx.MockTransport(lambda request: httpx.Response(200, text="OK"))
    )
    pipeline = _pipeline(upload, notifier, content_store, pinata, media_store, session_factory)

    assert await pipeline.run() is UploadState.COMPLETE
    assert pipeline.failed_state is None
    assert notifier.events[-1][1] == {
        "message": "Upload complete, external pinning failed.", "last": True, "done": 100,
    }


@pytest.mark.asyncio
async def test_transcode_failure_is_logged_and_pipeline_continues(upload, notifier, content_store, pinning, media_store, session_factory) -> None:
    pipeline = _pipeline(
        upload, notifier, content_store, pinning, media_store, session_factory,
        FakeTranscoder(fail_stream=True),
    )

    assert await pipeline.run() is UploadState.COMPLETE
    assert f"{pipeline.cid}/stream0.ts" not in content_store.files


@pytest.mark.asyncio
async def test_encryption_failure_stops_before_publishing(
    upload, notifier, content_store, pinning, media_store, session_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _broken(path: str, key: bytes, index: int) -> str:
        raise OSError("read error")

    monkeypatch.setattr(encryptor, "_encrypt_to_staging", _broken)
    pipeline = _pipeline(upload, notifier, content_store, pinning, media_store, session_factory)

    with pytest.raises(PipelineError) as exc:
        await pipeline.run()

    assert exc.value.state is UploadState.SEGMENTS_ENCRYPTED
    assert pipeline.state is UploadState.STREAM_TRANSCODED
    assert pipeline.failed_state is UploadState.SEGMENTS_ENCRYPTED
    assert content_store.added == []
    assert notifier.events[-1][1]["last"] is True
    assert Path(upload.source_path).exists()

    with pytest.raises(PipelineError):
        await pipeline.advance()


@pytest.mark.asyncio
async def test_content_store_failure_is_fatal(upload, notifier, content_store, pinning, media_store, session_factory) -> None:
    content_store.fail_add = True
    pipeline = _pipeline(upload, notifier, content_store, pinning, media_store, session_factory)

    with pytest.raises(PipelineError) as exc:
        await pipeline.run()

    assert exc.value.state is UploadState.CONTENT_ADDRESSED
    assert await media_store.get_media(content_store.cid) is None


@pytest.mark.asyncio
async def test_finish_upload_swallows_reported_failures(upload, notifier, content_store, pinning, media_store, session_factory) -> None:
    content_store.fail_add = True
    pipeline = _pipeline(upload, notifier, content_store, pinning, media_store, session_factory)

    await finish_upload(pipeline)

    assert pipeline.failed_state is UploadState.CONTENT_ADDRESSED
    assert "upload failed" in notifier.messages[-1]
