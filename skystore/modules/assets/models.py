from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, BigInteger, ForeignKey, TIMESTAMP, text
from skystore.core.base import Base, new_uuid, utcnow

class Asset(Base):
    __tablename__ = "assets"

    # The table keys on "uuid"; the attribute is the asset id everywhere else.
    id: Mapped[str] = mapped_column("uuid", String(36), primary_key=True, default=new_uuid)
    imported_path: Mapped[str] = mapped_column(Text)
    imported_filename: Mapped[str] = mapped_column(Text)
    # The "stored_path" is the object key relative to the bucket.
    stored_path: Mapped[str] = mapped_column(Text)
    stored_url: Mapped[str] = mapped_column(Text)  # presigned at ingestion, may expire
    size_bytes: Mapped[int] = mapped_column(BigInteger)
    stored_filename: Mapped[str] = mapped_column(Text)
    extension: Mapped[str] = mapped_column(String(32))
    mime_type: Mapped[str] = mapped_column(String(128), default="application/octet-stream")
    content_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, server_default=text("CURRENT_TIMESTAMP")
    )

    meta: Mapped["AssetMetaBase | None"] = relationship(
        back_populates="asset", uselist=False, lazy="selectin", passive_deletes="all"
    )

class AssetMetaBase(Base):
    __tablename__ = "asset_meta_base"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    asset_type: Mapped[str] = mapped_column(Text)
    asset_class: Mapped[str] = mapped_column(Text)
    asset_location_name: Mapped[str] = mapped_column(Text)
    asset_camera: Mapped[str] = mapped_column(Text)
    asset_date_label: Mapped[str] = mapped_column(Text)
    # unique: an asset carries at most one metadata row
    asset_id: Mapped[str] = mapped_column(
        ForeignKey("assets.uuid", ondelete="RESTRICT", onupdate="CASCADE"), unique=True
    )

    asset: Mapped[Asset] = relationship(back_populates="meta")
