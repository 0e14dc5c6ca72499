import json
import logging
from medianode.core.config import settings
from medianode.core.redis import redis_manager
from medianode.platform.ports.media_store import MediaStorePort

log = logging.getLogger("store.redis")

class RedisMediaStore(MediaStorePort):
    """
    Each media entry is a hash: the raw key bytes under "key" and everything
    else JSON-encoded under "meta".
    """
    def __init__(self, redis=None, prefix: str | None = None):
        self._redis = redis
        self.prefix = prefix or settings.REDIS_MEDIA_PREFIX

    @property
    def redis(self):
        r = self._redis or redis_manager.redis
        if r is None:
            raise RuntimeError("Redis is not connected; set REDIS_URL")
        return r

    def _name(self, cid: str) -> str:
        return f"{self.prefix}{cid}"

    async def add_media(self, cid: str, data: dict) -> None:
        meta = {k: v for k, v in data.items() if k != "key"}
        mapping = {"meta": json.dumps(meta)}
        if data.get("key"):
            mapping["key"] = bytes(data["key"])
        pipe = self.redis.pipeline()
        pipe.delete(self._name(cid))
        pipe.hset(self._name(cid), mapping=mapping)
        await pipe.execute()
        log.debug(f"[REDIS STORE] HSET {self._name(cid)}")

    async def remove_media(self, cid: str) -> None:
        await self.redis.delete(self._name(cid))

    async def get_media(self, cid: str) -> dict | None:
        raw = await self.redis.hgetall(self._name(cid))
        if not raw:
            return None
        # responses are not decoded, so field names come back as bytes
        fields = {(k.decode() if isinstance(k, bytes) else k): v for k, v in raw.items()}
        data = json.loads(fields.get("meta") or "{}")
        data["key"] = fields.get("key")
        return data
