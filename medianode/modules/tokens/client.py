import logging
import httpx
from medianode.core.config import settings

log = logging.getLogger(__name__)

class MarketplaceError(Exception):
    pass

class MarketplaceClient:
    """Client for the marketplace's NFT endpoints."""
    def __init__(self, base_url: str | None = None, *, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = (base_url or settings.MARKETPLACE_API_URL).rstrip("/")
        self._transport = transport

    async def _request(self, method: str, path: str, *, params: dict | None = None, json: dict | None = None, headers: dict | None = None) -> dict:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=30.0, transport=self._transport) as client:
                res = await client.request(method, path, params=params, json=json, headers=headers)
                res.raise_for_status()
                return res.json()
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Marketplace request {path} failed: {e}")
            raise MarketplaceError(f"Marketplace request failed: {e}") from e

    async def token_numbers(self, blockchain: str, contract: str, product: str) -> list[int]:
        data = await self._request("GET", f"/api/nft/network/{blockchain}/{contract}/{product}/tokenNumbers")
        return [int(n) for n in data.get("tokens") or []]

    async def tokens_in_range(self, blockchain: str, contract: str, product: str, from_token: int, to_token: int, limit: int = 100) -> list[dict]:
        data = await self._request(
            "GET", f"/api/nft/network/{blockchain}/{contract}/{product}",
            params={"fromToken": from_token, "toToken": to_token, "limit": limit},
        )
        return (data.get("result") or {}).get("tokens") or []

    async def update_token_metadata(self, blockchain: str, contract: str, product: str, token: int, metadata: dict, authorization: str | None = None) -> dict:
        data = await self._request(
            "PATCH", f"/api/nft/network/{blockchain}/{contract}/{product}/{token}/metadata",
            json=metadata,
            headers={"Authorization": authorization} if authorization else None,
        )
        return data.get("metadata") or metadata
