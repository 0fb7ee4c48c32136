# infrastructure/file_storage.py
import asyncio
import os
import logging
from pathlib import Path
from typing import Optional, Union

from core.interfaces import IFileStorage

from config import settings

logger = logging.getLogger(settings.LOGGER_NAME)

class LocalFileStorage(IFileStorage):
    """Concrete implementation for storing uploaded files on the local disk."""

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path)
        # Create the directory if it doesn't exist
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Upload directory ensured at: {self.base_path}")
        except OSError as e:
            logger.error(f"Could not create upload directory at {self.base_path}: {e}")
            raise

    def _resolve(self, filename: str) -> Path:
        # Stored names are flat; never follow directory components
        return self.base_path / Path(filename).name

    def _write(self, file_path: Path, content: bytes) -> None:
        with open(file_path, "wb") as buffer:
            buffer.write(content)

    async def save(self, content: bytes, filename: str) -> str:
        """Saves file content to the configured upload directory."""
        file_path = self._resolve(filename)
        try:
            await asyncio.to_thread(self._write, file_path, content)
            logger.info(f"Successfully saved file to {file_path}")
            return str(file_path)
        except OSError as e:
            logger.error(f"Failed to save file to {file_path}: {e}")
            raise

    async def get_path(self, filename: str) -> Optional[str]:
        """Gets the full path of a file if it exists."""
        file_path = self._resolve(filename)
        if file_path.exists():
            return str(file_path)
        return None

    async def delete(self, filename: str) -> bool:
        """Deletes a file from the upload directory."""
        try:
            file_path = self._resolve(filename)
            if file_path.exists():
                os.unlink(file_path)
                logger.info(f"Successfully deleted file: {file_path}")
                return True
            logger.warning(f"Attempted to delete non-existent file: {file_path}")
            return False
        except OSError as e:
            logger.error(f"Error deleting file {filename}: {e}")
            return False
