import logging
from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from medianode.core.db import get_session
from medianode.core.security import get_principal, Principal
from medianode.modules.media.repository import MediaRepository
from medianode.modules.uploads.encryptor import decrypt_segment, segment_index
from medianode.platform.ports.content_store import ContentStoreError
from medianode.platform.provider_registry import registry

router = APIRouter()
log = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/mp2t",
    ".json": "application/json",
}

def content_type_for(path: str) -> str:
    for ext, ctype in CONTENT_TYPES.items():
        if path.endswith(ext):
            return ctype
    return "application/octet-stream"

async def lookup_key(media_id: str, session: AsyncSession) -> tuple[bool, bytes | None]:
    """(known, key) for a media id, preferring the media store over the database."""
    entry = await registry.media_store().get_media(media_id)
    if entry is not None:
        return True, entry.get("key")
    obj = await MediaRepository(session).get(media_id)
    if obj is None:
        return False, None
    return True, obj.key

@router.get("/stream/{media_id}/{path:path}")
async def stream_file(
    media_id: str = Path(..., pattern=r"^\w+$", max_length=128),
    path: str = Path(...),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    """Serve a file of a registered stream, decrypting segments on the way out."""
    if ".." in path.split("/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid path")
    known, key = await lookup_key(media_id, session)
    if not known:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Media {media_id} is not registered")

    try:
        data = await registry.content_store().cat(f"{media_id}/{path}")
    except ContentStoreError as e:
        log.warning(f"Could not fetch {media_id}/{path}: {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{path} not found in {media_id}")

    index = segment_index(path)
    if key and index is not None:
        try:
            data = decrypt_segment(data, key, index)
        except ValueError as e:
            log.error(f"Could not decrypt {media_id}/{path}: {e}")
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Could not decrypt {path}")
    return Response(content=data, media_type=content_type_for(path))
