import os
import uuid
from fastapi import UploadFile

CHUNK_SIZE = 1024 * 1024

class UploadTooLargeError(Exception):
    pass

def new_upload_id() -> str:
    return uuid.uuid4().hex

async def save_upload(file: UploadFile, dest: str, upload_id: str, *, max_bytes: int) -> str:
    """Write the multipart body to <dest>/<upload_id>, enforcing max_bytes."""
    os.makedirs(dest, exist_ok=True)
    path = os.path.join(dest, upload_id)
    written = 0
    try:
        with open(path, "wb") as f:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLargeError(f"File too large (>{max_bytes} bytes)")
                f.write(chunk)
    except UploadTooLargeError:
        os.remove(path)
        raise
    return path
