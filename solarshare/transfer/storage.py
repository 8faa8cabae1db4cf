"""Sender-keyed file storage for received uploads."""

import logging
import os
import shutil
from typing import BinaryIO

from solarshare.config import DEFAULT_SAVE_DIR, SENDER_DIR_PREFIX

logger = logging.getLogger(__name__)


class FileStore:
    """
    Writes received files under one directory per sender.

    Layout: <root>/from_user_<sender_id>/<file name>. A second file with the
    same name from the same sender replaces the first.
    """

    def __init__(self, root: str = DEFAULT_SAVE_DIR) -> None:
        self._root = root

    @property
    def root(self) -> str:
        return self._root

    def bucket_for(self, sender_id: int) -> str:
        # Sender ids are integers; anything else could name a path outside the root
        if isinstance(sender_id, bool) or not isinstance(sender_id, int):
            raise ValueError(f"Invalid sender id: {sender_id!r}")
        return os.path.join(self._root, f"{SENDER_DIR_PREFIX}{sender_id}")

    def save(self, sender_id: int, file_name: str, source: BinaryIO) -> str:
        """Copy `source` into the sender's bucket and return the written path."""
        # Only the base name is kept so a name cannot point outside the bucket
        safe_name = os.path.basename(file_name.replace("\\", "/"))
        if not safe_name or safe_name in (".", ".."):
            raise ValueError(f"Invalid file name: {file_name!r}")

        bucket = self.bucket_for(sender_id)
        os.makedirs(bucket, exist_ok=True)

        file_path = os.path.join(bucket, safe_name)
        with open(file_path, "wb") as f:
            shutil.copyfileobj(source, f)

        logger.debug(f"Stored {safe_name} in {bucket}")
        return file_path
