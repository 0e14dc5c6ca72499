from medianode.platform.ports.media_store import MediaStorePort

class InMemoryMediaStore(MediaStorePort):
    def __init__(self):
        self._media: dict[str, dict] = {}

    async def add_media(self, cid: str, data: dict) -> None:
        self._media[cid] = dict(data)

    async def remove_media(self, cid: str) -> None:
        self._media.pop(cid, None)

    async def get_media(self, cid: str) -> dict | None:
        data = self._media.get(cid)
        return dict(data) if data is not None else None
