from typing import Sequence
from sqlalchemy import select, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from medianode.modules.media.models import MediaAsset

SORTABLE_FIELDS = {
    "creationDate": MediaAsset.created_at,
    "title": MediaAsset.title,
    "author": MediaAsset.author,
    "contractAddress": MediaAsset.contract_address,
}

class MediaRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, media_id: str, **data) -> MediaAsset:
        obj = MediaAsset(id=media_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, media_id: str) -> MediaAsset | None:
        res = await self.session.execute(select(MediaAsset).where(MediaAsset.id == media_id))
        return res.scalar_one_or_none()

    async def delete(self, media_id: str) -> bool:
        res = await self.session.execute(delete(MediaAsset).where(MediaAsset.id == media_id))
        return res.rowcount > 0

    async def list(
        self, *, limit: int = 10, offset: int = 0,
        sort_by: str = "creationDate", descending: bool = True,
        search: str | None = None,
    ) -> Sequence[MediaAsset]:
        column = SORTABLE_FIELDS[sort_by]
        q = select(MediaAsset)
        if search:
            q = q.where(self._search_clause(search))
        order = column.desc() if descending else column.asc()
        q = q.order_by(order, MediaAsset.id.asc()).limit(limit).offset(offset)
        res = await self.session.execute(q)
        return res.scalars().all()

    def _search_clause(self, search: str):
        if self.session.bind is not None and self.session.bind.dialect.name == "postgresql":
            document = func.to_tsvector("english", func.concat_ws(" ", MediaAsset.title, MediaAsset.description))
            return document.op("@@")(func.plainto_tsquery("english", search))
        like = f"%{search}%"
        return or_(MediaAsset.title.ilike(like), MediaAsset.description.ilike(like))
