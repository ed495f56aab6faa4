# infrastructure/file_storage.py
import asyncio
import logging
import os
from pathlib import Path
from typing import Union

from core.domain import StoredBlob
from core.interfaces import IFileStorage
from config import settings
from utils.common import sanitize_filename

logger = logging.getLogger(settings.LOGGER_NAME)

class LocalFileStorage(IFileStorage):
    """Stores uploaded PDFs on the local disk as `{file_id}_{name}`."""

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path)
        # Create the directory if it doesn't exist
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Upload directory ensured at: {self.base_path}")
        except Exception as e:
            logger.error(f"Could not create upload directory at {self.base_path}: {e}")
            raise

    async def save(self, content: bytes, original_name: str, file_id: str) -> StoredBlob:
        file_name = f"{file_id}_{sanitize_filename(original_name)}"
        file_path = self.base_path / file_name
        try:
            await asyncio.to_thread(file_path.write_bytes, content)
            logger.info(f"Successfully saved file to {file_path}")
        except Exception as e:
            logger.error(f"Failed to save file to {file_path}: {e}")
            raise
        return StoredBlob(
            file_id=file_id,
            file_name=file_name,
            original_name=original_name,
            blob_url=file_path.resolve().as_uri(),
            size=len(content),
        )

    async def delete(self, file_name: str) -> bool:
        """Deletes a file from the upload directory."""
        try:
            file_path = self.base_path / file_name
            if file_path.exists():
                os.unlink(file_path)
                logger.info(f"Successfully deleted file: {file_path}")
                return True
            logger.warning(f"Attempted to delete non-existent file: {file_path}")
            return False
        except Exception as e:
            logger.error(f"Error deleting file {file_name}: {e}")
            return False
