import logging
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from medianode.core.paging import page_offset
from medianode.core.security import is_owner
from medianode.modules.media.models import MediaAsset
from medianode.modules.media.repository import MediaRepository
from medianode.modules.media.schemas import MediaManifest, MediaOut
from medianode.platform.ports.content_store import ContentStorePort, ContentStoreError, ManifestNotFoundError
from medianode.platform.ports.media_store import MediaStorePort
from medianode.platform.ports.pinning import PinningServicePort, PinningError
from medianode.platform.provider_registry import registry

log = logging.getLogger(__name__)

class MediaExistsError(Exception):
    pass

class NotOwnerError(Exception):
    pass

def to_media_out(obj: MediaAsset, caller: str | None) -> MediaOut:
    return MediaOut(
        id=obj.id,
        title=obj.title,
        description=obj.description,
        author=obj.author,
        main_manifest=obj.main_manifest,
        encryption_type=obj.encryption_type,
        contract_address=obj.contract_address,
        thumbnail=obj.thumbnail,
        current_owner=obj.current_owner,
        uri=obj.uri,
        creation_date=obj.created_at,
        encrypted=obj.key is not None,
        is_owner=is_owner(caller, obj.author),
    )

class MediaService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        content_store: ContentStorePort | None = None,
        pinning: PinningServicePort | None = None,
        media_store: MediaStorePort | None = None,
    ):
        self.repo = MediaRepository(session)
        self.session = session
        self.content_store = content_store or registry.content_store()
        self.pinning = pinning or registry.pinning()
        self.media_store = media_store or registry.media_store()

    async def register(self, media_id: str, key: bytes | None = None) -> MediaAsset:
        """
        Register an already-published folder by CID. The folder must carry a
        rair.json manifest; the optional key is the segment decryption key.
        """
        raw = await self.content_store.read_manifest(media_id)
        try:
            manifest = MediaManifest.model_validate(raw)
        except ValidationError as e:
            raise ManifestNotFoundError(media_id, f"Manifest is invalid: {e.error_count()} field error(s)") from e

        if await self.repo.get(media_id):
            raise MediaExistsError(f"Media {media_id} is already registered")

        await self.media_store.add_media(media_id, {"key": key, **manifest.model_dump(by_alias=True, exclude_none=True)})
        obj = await self.repo.create(
            media_id,
            key=key,
            title=manifest.title,
            description=manifest.description,
            author=manifest.author,
            main_manifest=manifest.main_manifest,
            encryption_type=manifest.encryption_type,
        )
        await self.session.commit()
        await self.content_store.pin(media_id)
        return obj

    async def remove(self, media_id: str, caller: str | None) -> bool:
        obj = await self.repo.get(media_id)
        if obj is not None and not is_owner(caller, obj.author):
            raise NotOwnerError(f"Only the owner can remove {media_id}")

        await self.media_store.remove_media(media_id)
        deleted = await self.repo.delete(media_id)
        await self.session.commit()

        try:
            pins = await self.content_store.unpin(media_id)
            log.info(f"Unpin IPFS: {pins}")
        except ContentStoreError as e:
            log.warning(f"Could not remove IPFS pin {media_id}, {e}")
        try:
            result = await self.pinning.unpin(media_id)
            log.info(f"Unpin mirror: {result}")
        except PinningError as e:
            log.warning(f"Could not remove mirror pin {media_id}, {e}")
        return deleted

    async def get(self, media_id: str) -> MediaAsset | None:
        return await self.repo.get(media_id)

    async def list(
        self, caller: str | None, *, page_num: int = 1, files_per_page: int = 10,
        sort_by: str = "creationDate", sort: int = -1, search: str | None = None,
    ) -> dict[str, MediaOut]:
        rows = await self.repo.list(
            limit=files_per_page,
            offset=page_offset(page_num, files_per_page),
            sort_by=sort_by,
            descending=sort < 0,
            search=search,
        )
        # dicts keep insertion order, so the mapping preserves the sort
        return {row.id: to_media_out(row, caller) for row in rows}
