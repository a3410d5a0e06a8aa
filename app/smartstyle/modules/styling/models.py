from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.smartstyle.models import Base, new_id


class Persona(Base):
    """A client being styled."""

    __tablename__ = "personas"
    __table_args__ = (Index("idx_personas_display_name", "display_name"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)  # external auth identity, not enforced

    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    coloring: Mapped[str | None] = mapped_column(String(16), nullable=True, default="unknown")
    undertone: Mapped[str | None] = mapped_column(String(16), nullable=True, default="unknown")
    eye_color: Mapped[str | None] = mapped_column(String(64), nullable=True)
    hair_color: Mapped[str | None] = mapped_column(String(64), nullable=True)
    skin_tone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    body_shape: Mapped[str | None] = mapped_column(String(64), nullable=True)
    style_keywords: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    brand_prefs: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class PersonaMeasurement(Base):
    __tablename__ = "persona_measurements"
    __table_args__ = (Index("idx_persona_measurements_persona", "persona_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    persona_id: Mapped[str] = mapped_column(ForeignKey("personas.id", ondelete="CASCADE"), nullable=False)

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    value_cm: Mapped[float] = mapped_column(Numeric(8, 2, asdecimal=False), nullable=False)
    taken_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class PersonaPreference(Base):
    __tablename__ = "persona_preferences"
    __table_args__ = (Index("idx_persona_preferences_persona", "persona_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    persona_id: Mapped[str] = mapped_column(ForeignKey("personas.id", ondelete="CASCADE"), nullable=False)

    pref_key: Mapped[str] = mapped_column(String(128), nullable=False)
    pref_value: Mapped[Any] = mapped_column(JSON, nullable=False)
    priority: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Wardrobe(Base):
    __tablename__ = "wardrobes"
    __table_args__ = (Index("idx_wardrobes_persona", "persona_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    persona_id: Mapped[str] = mapped_column(ForeignKey("personas.id", ondelete="CASCADE"), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class WardrobeItem(Base):
    __tablename__ = "wardrobe_items"
    __table_args__ = (
        Index("idx_wardrobe_items_wardrobe", "wardrobe_id"),
        Index("idx_wardrobe_items_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    wardrobe_id: Mapped[str] = mapped_column(ForeignKey("wardrobes.id", ondelete="CASCADE"), nullable=False)
    product_id: Mapped[str | None] = mapped_column(ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    variant_id: Mapped[str | None] = mapped_column(ForeignKey("product_variants.id", ondelete="SET NULL"), nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="owned")  # owned, wishlist, donated, ...
    acquired_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    purchase_price: Mapped[float | None] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(8), nullable=True)
    condition: Mapped[str | None] = mapped_column(String(64), nullable=True)
    fit_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-5
    tailor_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    style_tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class Outfit(Base):
    __tablename__ = "outfits"
    __table_args__ = (Index("idx_outfits_persona", "persona_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    persona_id: Mapped[str] = mapped_column(ForeignKey("personas.id", ondelete="CASCADE"), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class OutfitItem(Base):
    __tablename__ = "outfit_items"
    __table_args__ = (Index("idx_outfit_items_outfit", "outfit_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    outfit_id: Mapped[str] = mapped_column(ForeignKey("outfits.id", ondelete="CASCADE"), nullable=False)
    wardrobe_item_id: Mapped[str] = mapped_column(ForeignKey("wardrobe_items.id", ondelete="CASCADE"), nullable=False)

    role: Mapped[str | None] = mapped_column(String(64), nullable=True)  # e.g. "top", "outer", "shoe"
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
