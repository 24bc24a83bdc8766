"""Database models for the spelling drill."""
from sqlalchemy import Column, String, Text

from spelldrill.models.base import Base, TimestampMixin


class StorageSlot(Base, TimestampMixin):
    """A named slot holding one JSON document of the in-progress game."""

    __tablename__ = "storage_slots"

    name = Column(String, primary_key=True)
    payload = Column(Text, nullable=False)
