"""Pydantic models for file transfer."""

import os
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TransferStatus(str, Enum):
    """Per-file states. Transitions only move forward."""
    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = (TransferStatus.COMPLETED, TransferStatus.FAILED)


class TransferJob(BaseModel):
    """Client-side view of one file in a batch."""
    file_name: str
    byte_size: int
    status: TransferStatus = TransferStatus.PENDING
    progress_percent: float = 0.0
    target_id: int
    target_name: str
    error_message: str | None = None


class OutgoingFile(BaseModel):
    """A file queued for sending, held in memory."""
    name: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str) -> "OutgoingFile":
        with open(path, "rb") as f:
            return cls(name=os.path.basename(path), data=f.read())


class UploadReceipt(BaseModel):
    """Response body of POST /api/transfer/upload."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    file_path: str = Field(alias="filePath")
    file_name: str = Field(alias="fileName")
    file_size: int = Field(alias="fileSize")
    timestamp: str
