"""Data access layer for persisted credentials"""

from typing import Dict, Iterable, Optional
from sqlalchemy.orm import Session
from firstlend_core.infrastructure.database.models import CredentialEntry


class CredentialRepository:
    """Key/value access to the credential_entry table"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        entry = self.db.get(CredentialEntry, key)
        return entry.value if entry else None

    def get_many(self, keys: Iterable[str]) -> Dict[str, str]:
        """Fetch several keys at once; missing keys are absent from the result"""
        entries = self.db.query(CredentialEntry).filter(CredentialEntry.key.in_(list(keys))).all()
        return {entry.key: entry.value for entry in entries}

    def put(self, key: str, value: str) -> None:
        entry = self.db.get(CredentialEntry, key)
        if entry is None:
            self.db.add(CredentialEntry(key=key, value=value))
        else:
            entry.value = value
        self.db.flush()

    def delete(self, keys: Iterable[str]) -> int:
        """Remove keys, returning how many rows were deleted"""
        return (
            self.db.query(CredentialEntry)
            .filter(CredentialEntry.key.in_(list(keys)))
            .delete(synchronize_session=False)
        )
