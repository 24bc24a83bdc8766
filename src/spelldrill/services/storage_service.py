"""Service for reading and writing named storage slots."""
import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from spelldrill.models.models import StorageSlot

logger = logging.getLogger(__name__)


class SlotStore:
    """Key/value store of JSON documents backed by the ``storage_slots`` table."""

    def __init__(self, db: Session):
        """Initialize the store with a database session."""
        self.db = db

    def get(self, name: str) -> Optional[str]:
        """Get the payload of a slot, or None if the slot is empty."""
        slot = self.db.get(StorageSlot, name)
        return slot.payload if slot else None

    def get_many(self, names: Iterable[str]) -> Dict[str, Optional[str]]:
        return {name: self.get(name) for name in names}

    def put_many(self, payloads: Dict[str, str], delete: Iterable[str] = ()) -> None:
        """Write several slots and delete others in one commit."""
        try:
            for name in delete:
                slot = self.db.get(StorageSlot, name)
                if slot:
                    self.db.delete(slot)
            for name, payload in payloads.items():
                slot = self.db.get(StorageSlot, name)
                if slot:
                    slot.payload = payload
                else:
                    self.db.add(StorageSlot(name=name, payload=payload))
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error("Failed to write slots %s", sorted(payloads))
            raise

    def clear(self) -> None:
        """Delete every slot."""
        self.db.query(StorageSlot).delete()
        self.db.commit()
