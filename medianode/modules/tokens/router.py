from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from medianode.core.config import settings
from medianode.core.security import get_principal, Principal
from medianode.modules.tokens.client import MarketplaceClient, MarketplaceError
from medianode.modules.tokens.ranges import available_ranges, build_ranges
from medianode.modules.tokens.schemas import TokenMetadataOut, TokenMetadataUpdate, TokenRangesOut, TokenPageOut

router = APIRouter()

def get_client() -> MarketplaceClient:
    return MarketplaceClient()

@router.get("/{blockchain}/{contract}/{product}/ranges", response_model=TokenRangesOut)
async def list_ranges(
    blockchain: str, contract: str, product: str,
    total_count: int = Query(0, alias="totalCount", ge=0),
    client: MarketplaceClient = Depends(get_client),
):
    size = settings.TOKEN_RANGE_SIZE
    try:
        numbers = await client.token_numbers(blockchain, contract, product)
    except MarketplaceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return {"success": True, "ranges": build_ranges(total_count, available_ranges(numbers, size), size)}

@router.get("/{blockchain}/{contract}/{product}/ranges/{start}", response_model=TokenPageOut)
async def get_range(
    blockchain: str, contract: str, product: str, start: int,
    client: MarketplaceClient = Depends(get_client),
):
    size = settings.TOKEN_RANGE_SIZE
    if start < 0 or start % size:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Range start must be a multiple of {size}")
    try:
        numbers = await client.token_numbers(blockchain, contract, product)
        if start not in available_ranges(numbers, size):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No tokens between {start} and {start + size - 1}")
        # the marketplace treats toToken as exclusive
        tokens = await client.tokens_in_range(blockchain, contract, product, start, start + size, limit=size)
    except MarketplaceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return {"success": True, "start": start, "end": start + size - 1, "tokens": tokens}

@router.patch("/{blockchain}/{contract}/{product}/{token}/metadata", response_model=TokenMetadataOut)
async def update_metadata(
    blockchain: str, contract: str, product: str, token: int,
    body: TokenMetadataUpdate,
    principal: Principal = Depends(get_principal),
    authorization: str | None = Header(None),
    client: MarketplaceClient = Depends(get_client),
):
    if not principal.can_publish:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to update token metadata")
    changes = body.model_dump(mode="json", exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Nothing to update")
    try:
        metadata = await client.update_token_metadata(blockchain, contract, product, token, changes, authorization)
    except MarketplaceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return {"success": True, "token": token, "metadata": metadata}
