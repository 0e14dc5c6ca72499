import re
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel
from medianode.core.config import settings

http_bearer = HTTPBearer(auto_error=False)

# <0x-prefixed 20 byte address>:<namespace token>
ADMIN_NFT_PATTERN = re.compile(r"^0x\w{40}:\w+$")

class Principal(BaseModel):
    public_address: str | None = None
    admin_nft: str | None = None

    @property
    def can_publish(self) -> bool:
        return is_valid_identity(self.admin_nft)

def is_valid_identity(value: str | None) -> bool:
    return bool(value) and ADMIN_NFT_PATTERN.match(value) is not None

def is_owner(caller: str | None, author: str | None) -> bool:
    """True only for a well-formed caller identity that equals the record's author."""
    return is_valid_identity(caller) and caller == author

def _decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG], audience=settings.REQUIRED_AUDIENCE)
        return payload
    except JWTError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}")

async def get_principal(creds: HTTPAuthorizationCredentials | None = Depends(http_bearer)) -> Principal:
    # In local/dev, allow missing token and use the configured identity
    if creds is None and settings.ENV == "local":
        return Principal(public_address=None, admin_nft=settings.LOCAL_ADMIN_NFT)
    if creds is None:
        raise HTTPException(status_code=401, detail="Missing token")

    data = _decode_token(creds.credentials)
    return Principal(
        public_address=data.get("publicAddress") or data.get("sub"),
        admin_nft=data.get("adminNFT"),
    )
