"""Archive data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True, frozen=True)
class ArchiveRecord:
    id: str
    name: str
    uploaded_at: datetime
    expires_at: datetime
    delete_token: str


@dataclass(slots=True, frozen=True)
class UploadReceipt:
    """What the uploader gets back: where to download and how to delete."""

    record: ArchiveRecord
    file_url: str
    advisory: str | None = None

    @property
    def delete_token(self) -> str:
        return self.record.delete_token
