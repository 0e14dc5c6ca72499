import logging
import httpx
from medianode.core.config import settings
from medianode.platform.ports.pinning import PinningServicePort, PinningError

log = logging.getLogger("pinning.pinata")

class PinataPinningService(PinningServicePort):
    def __init__(self, api_url: str | None = None, jwt: str | None = None, *, transport: httpx.AsyncBaseTransport | None = None):
        self.api_url = (api_url or settings.PINATA_API_URL).rstrip("/")
        self.jwt = jwt or settings.PINATA_JWT
        if not self.jwt:
            raise RuntimeError("PINATA_JWT not configured")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_url,
            headers={"Authorization": f"Bearer {self.jwt}"},
            timeout=30.0,
            transport=self._transport,
        )

    async def pin_by_hash(self, cid: str, name: str) -> dict:
        body = {"hashToPin": cid, "pinataMetadata": {"name": name}}
        try:
            async with self._client() as client:
                res = await client.post("/pinning/pinByHash", json=body)
                res.raise_for_status()
            return res.json()
        except httpx.HTTPError as e:
            raise PinningError(f"Pinata pinByHash failed for {cid}: {e}") from e
        except ValueError as e:
            raise PinningError(f"Pinata pinByHash returned an unreadable response for {cid}: {e}") from e

    async def unpin(self, cid: str) -> str:
        try:
            async with self._client() as client:
                res = await client.delete(f"/pinning/unpin/{cid}")
                res.raise_for_status()
        except httpx.HTTPError as e:
            raise PinningError(f"Pinata unpin failed for {cid}: {e}") from e
        return res.text
