"""
Encrypt-at-rest for HLS output.

Every transcoded segment is encrypted with AES-128-CBC under one key per asset.
The IV is the segment's own index, little-endian in 16 bytes, so the ciphertext
can be written back under the original filename and the playlists stay valid.
Key reuse across assets would make those IVs repeat, so a fresh key is
generated on every call.
"""
import asyncio
import logging
import os
import re
import secrets

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from medianode.platform.ports.progress import ProgressNotifier, UPLOAD_PROGRESS, progress_event

log = logging.getLogger(__name__)

ENCRYPTION_TYPE = "aes-128-cbc"
KEY_FILENAME = ".key"
KEY_BYTES = 16
IV_BYTES = 16
STAGING_SUFFIX = ".encrypted"
SEGMENT_PATTERN = re.compile(r"(\d+)\.ts$")


class EncryptionError(Exception):
    pass


def derive_iv(index: int) -> bytes:
    """16-byte little-endian encoding of a segment index."""
    if index < 0 or index >= 1 << (IV_BYTES * 8):
        raise ValueError(f"Segment index out of range for a {IV_BYTES}-byte IV: {index}")
    return index.to_bytes(IV_BYTES, "little")


def segment_index(filename: str) -> int | None:
    match = SEGMENT_PATTERN.search(filename)
    return int(match.group(1)) if match else None


def generate_key() -> bytes:
    return secrets.token_bytes(KEY_BYTES)


def encrypt_segment(data: bytes, key: bytes, index: int) -> bytes:
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(data) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(derive_iv(index))).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def decrypt_segment(data: bytes, key: bytes, index: int) -> bytes:
    decryptor = Cipher(algorithms.AES(key), modes.CBC(derive_iv(index))).decryptor()
    padded = decryptor.update(data) + decryptor.finalize()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    return unpadder.update(padded) + unpadder.finalize()


def find_segments(root: str) -> list[tuple[str, int]]:
    """All (path, index) pairs below root whose filename looks like a numbered segment."""
    found = []
    for dirpath, _, filenames in os.walk(root):
        for name in sorted(filenames):
            index = segment_index(name)
            if index is not None:
                found.append((os.path.join(dirpath, name), index))
    return found


def check_unique_indexes(root: str, segments: list[tuple[str, int]]) -> None:
    """Every segment shares the asset key, so two segments with one index would share an IV."""
    seen: dict[int, str] = {}
    for path, index in segments:
        if index in seen:
            raise EncryptionError(
                f"Segment index {index} appears twice under {root}: "
                f"{os.path.relpath(seen[index], root)} and {os.path.relpath(path, root)}"
            )
        seen[index] = path


def _encrypt_to_staging(path: str, key: bytes, index: int) -> str:
    staged = path + STAGING_SUFFIX
    with open(path, "rb") as src:
        data = src.read()
    with open(staged, "wb") as dest:
        dest.write(encrypt_segment(data, key, index))
    return staged


def _discard(paths) -> None:
    for p in paths:
        try:
            os.remove(p)
        except FileNotFoundError:
            pass


async def encrypt_segments(root: str, notifier: ProgressNotifier) -> bytes:
    """
    Encrypt every numbered segment under ``root`` in place and return the raw key.

    Segments are encrypted concurrently into staging files next to the originals.
    Only when all of them succeed are the originals replaced, so a failure leaves
    the directory as plaintext with no key file rather than half-encrypted.
    """
    log.info(f"Encrypting segments in {root}")
    segments = find_segments(root)
    check_unique_indexes(root, segments)

    key = generate_key()
    key_path = os.path.join(root, KEY_FILENAME)
    with open(key_path, "wb") as f:
        f.write(key)

    async def _one(path: str, index: int) -> str:
        staged = await asyncio.to_thread(_encrypt_to_staging, path, key, index)
        rel = os.path.relpath(path, root)
        log.debug(f"finished encrypting {rel}")
        await notifier.emit(UPLOAD_PROGRESS, progress_event(f"finished encrypting {rel}", part=True))
        return staged

    tasks = [asyncio.ensure_future(_one(path, index)) for path, index in segments]
    log.info(f"Done scheduling encryptions, {len(tasks)} segments in {root}")
    await notifier.emit(
        UPLOAD_PROGRESS,
        progress_event(f"Done scheduling encryptions, {len(tasks)} segments", done=15, parts=len(tasks)),
    )

    results = await asyncio.gather(*tasks, return_exceptions=True)
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        _discard([path + STAGING_SUFFIX for path, _ in segments] + [key_path])
        log.error(f"Could not encrypt {len(failures)} of {len(segments)} segments in {root}: {failures[0]}")
        raise EncryptionError(f"Could not encrypt {len(failures)} of {len(segments)} segments: {failures[0]}") from failures[0]

    for path, _ in segments:
        os.replace(path + STAGING_SUFFIX, path)

    log.info(f"Encrypted {len(segments)} segments; {root} is ready to be added to IPFS")
    return key
