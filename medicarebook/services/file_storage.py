import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

from werkzeug.utils import secure_filename

from ..core.config import settings
from ..core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class StoredDocument:
    filename: str
    path: str


class LocalFileStorage:
    """Keeps uploaded appointment documents in a local directory."""

    def __init__(self, upload_dir: str):
        self.upload_dir = Path(upload_dir)

    def save(self, original_name: str, content: BinaryIO) -> StoredDocument:
        name = secure_filename(original_name or "")
        if not name:
            raise ValidationError("Invalid document filename")

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{int(datetime.now().timestamp() * 1000)}-{name}"

        with open(self.upload_dir / filename, "wb") as out:
            shutil.copyfileobj(content, out)

        logger.info(f"Stored document {filename}")
        return StoredDocument(filename=filename, path=f"/uploads/{filename}")

    def resolve(self, path: str) -> Path:
        """Map a stored document path back to the file on disk."""
        file_path = self.upload_dir / os.path.basename(path)
        if not file_path.is_file():
            raise NotFoundError("Document file not found")
        return file_path

    def delete(self, path: str) -> None:
        """Remove a stored document; a file that is already gone is ignored."""
        file_path = self.upload_dir / os.path.basename(path)
        if file_path.is_file():
            file_path.unlink()
            logger.info(f"Removed document {file_path.name}")


def get_file_storage() -> LocalFileStorage:
    return LocalFileStorage(settings.UPLOAD_DIR)
