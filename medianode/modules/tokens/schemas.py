from typing import Any
from pydantic import AnyUrl, BaseModel, ConfigDict

class TokenRangeOut(BaseModel):
    start: int
    end: int
    label: str
    available: bool

class TokenRangesOut(BaseModel):
    success: bool = True
    ranges: list[TokenRangeOut]

class TokenPageOut(BaseModel):
    success: bool = True
    start: int
    end: int
    tokens: list[dict[str, Any]]

class TokenAttribute(BaseModel):
    model_config = ConfigDict(extra="forbid")
    trait_type: str
    value: str

class TokenMetadataUpdate(BaseModel):
    """Partial update of a token's public metadata; only the fields sent are forwarded."""
    model_config = ConfigDict(extra="forbid")
    name: str | None = None
    description: str | None = None
    artist: str | None = None
    external_url: AnyUrl | None = None
    image: AnyUrl | None = None
    animation_url: AnyUrl | None = None
    attributes: list[TokenAttribute] | None = None

class TokenMetadataOut(BaseModel):
    success: bool = True
    token: int
    metadata: dict[str, Any]
