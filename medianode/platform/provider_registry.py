from medianode.core.config import settings
from medianode.platform.ports.content_store import ContentStorePort
from medianode.platform.adapters.content_store_ipfs import IpfsContentStore
from medianode.platform.ports.pinning import PinningServicePort
from medianode.platform.adapters.pinning_pinata import PinataPinningService
from medianode.platform.adapters.pinning_noop import NoopPinningService
from medianode.platform.ports.media_store import MediaStorePort
from medianode.platform.adapters.media_store_memory import InMemoryMediaStore
from medianode.platform.adapters.media_store_redis import RedisMediaStore

class ProviderRegistry:
    _content_store: ContentStorePort | None = None
    _pinning: PinningServicePort | None = None
    _media_store: MediaStorePort | None = None

    @classmethod
    def content_store(cls) -> ContentStorePort:
        if cls._content_store is None:
            cls._content_store = IpfsContentStore(settings.IPFS_API_URL)
        return cls._content_store

    @classmethod
    def pinning(cls) -> PinningServicePort:
        if cls._pinning is None:
            prov = (settings.PINNING_PROVIDER or "noop").lower()
            if prov == "pinata":
                cls._pinning = PinataPinningService()
            else:
                cls._pinning = NoopPinningService()
        return cls._pinning

    @classmethod
    def media_store(cls) -> MediaStorePort:
        if cls._media_store is None:
            prov = (settings.MEDIA_STORE_PROVIDER or "memory").lower()
            if prov == "redis":
                cls._media_store = RedisMediaStore()
            else:
                cls._media_store = InMemoryMediaStore()
        return cls._media_store

    @classmethod
    def override(cls, *, content_store: ContentStorePort | None = None, pinning: PinningServicePort | None = None, media_store: MediaStorePort | None = None) -> None:
        """Swap adapters in place (tests, alternative deployments)."""
        cls._content_store = content_store
        cls._pinning = pinning
        cls._media_store = media_store

registry = ProviderRegistry()
