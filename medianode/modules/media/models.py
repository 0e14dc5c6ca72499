from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, LargeBinary
from medianode.core.base import Base, TimestampedMixin

class MediaAsset(Base, TimestampedMixin):
    # The id is the content address (CID) of the asset's root folder.
    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    title: Mapped[str] = mapped_column(String(512))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    author: Mapped[str] = mapped_column(String(128), index=True)  # 0x<address>:<namespace>
    main_manifest: Mapped[str] = mapped_column(String(256))
    encryption_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    key: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    contract_address: Mapped[str | None] = mapped_column(String(128), nullable=True)
    thumbnail: Mapped[str | None] = mapped_column(String(256), nullable=True)
    current_owner: Mapped[str | None] = mapped_column(String(128), nullable=True)
    uri: Mapped[str | None] = mapped_column(String(1024), nullable=True)
