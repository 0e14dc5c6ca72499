from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

class MediaManifest(BaseModel):
    """The rair.json document at the root of every published media folder."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(..., min_length=1)
    main_manifest: str = Field(..., min_length=1)
    author: str
    encryption_type: str | None = None
    description: str | None = None

class MediaOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    description: str | None = None
    author: str
    main_manifest: str
    encryption_type: str | None = None
    contract_address: str | None = None
    thumbnail: str | None = None
    current_owner: str | None = None
    uri: str | None = None
    creation_date: datetime | None = None
    encrypted: bool = False
    is_owner: bool = False

class MediaListOut(BaseModel):
    success: bool = True
    list: dict[str, MediaOut]

class SuccessOut(BaseModel):
    success: bool = True
