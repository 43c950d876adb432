"""Response bodies for the archive endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .archive_models import UploadReceipt


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "File uploaded successfully"
    file_url: str = Field(alias="fileUrl")
    upload: datetime
    expires_at: datetime = Field(alias="expiresAt")
    delete_token: str = Field(alias="deleteToken")
    alert: str | None = None

    @classmethod
    def from_receipt(cls, receipt: UploadReceipt) -> "UploadResponse":
        return cls(
            file_url=receipt.file_url,
            upload=receipt.record.uploaded_at,
            expires_at=receipt.record.expires_at,
            delete_token=receipt.delete_token,
            alert=receipt.advisory,
        )


class DeleteResponse(BaseModel):
    message: str = "File deleted successfully"


class ErrorResponse(BaseModel):
    error: str
