import asyncio
import logging
import os
from medianode.core.config import settings

log = logging.getLogger(__name__)

THUMBNAILS_DIR = "Thumbnails"
STREAM_MANIFEST = "stream.m3u8"
THUMBNAIL_WIDTH = 144


def stream_dir(dest: str, upload_id: str) -> str:
    return os.path.join(dest, f"stream{upload_id}")


def thumbnails_dir(dest: str) -> str:
    return os.path.join(dest, THUMBNAILS_DIR)


class Transcoder:
    """
    Drives ffmpeg for one upload: a still thumbnail, a short animated preview
    and a segmented HLS stream. A failed run is logged and reported as False;
    callers decide whether to keep going.
    """
    def __init__(self, binary: str | None = None, hls_time: int | None = None):
        self.binary = binary or settings.FFMPEG_BINARY
        self.hls_time = hls_time or settings.HLS_SEGMENT_SECONDS

    async def _run(self, label: str, *args: str) -> bool:
        cmd = [self.binary, "-hide_banner", "-y", *args]
        log.debug(f"{label}: {' '.join(cmd)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            log.error(f"{label}: could not start {self.binary}: {e}")
            return False
        _, stderr = await proc.communicate()
        if proc.returncode != 0:
            tail = (stderr or b"").decode(errors="replace").strip().splitlines()[-5:]
            log.error(f"{label}: {self.binary} exited with {proc.returncode}: {' | '.join(tail)}")
            return False
        return True

    async def make_thumbnail(self, source: str, dest: str, upload_id: str) -> bool:
        out = os.path.join(thumbnails_dir(dest), f"{upload_id}.png")
        return await self._run(
            "thumbnail",
            "-ss", "3", "-i", source,
            "-vf", f"scale={THUMBNAIL_WIDTH}:-1",
            "-vsync", "vfr", "-frames:v", "1",
            out,
        )

    async def make_preview(self, source: str, dest: str, upload_id: str) -> bool:
        out = os.path.join(thumbnails_dir(dest), f"{upload_id}.gif")
        return await self._run(
            "preview",
            "-i", source,
            "-vf", f"scale={THUMBNAIL_WIDTH}:-1",
            "-ss", "00:10", "-t", "00:03",
            out,
        )

    async def make_stream(self, source: str, dest: str, upload_id: str) -> bool:
        out = os.path.join(stream_dir(dest, upload_id), STREAM_MANIFEST)
        return await self._run(
            "stream",
            "-i", source,
            "-profile:v", "baseline", "-level", "3.0",
            "-start_number", "0",
            "-hls_time", str(self.hls_time),
            "-hls_list_size", "0",
            "-f", "hls",
            out,
        )
