import logging
import secrets
import time
from pathlib import Path
from typing import Iterable, Optional

import aiofiles
from fastapi import UploadFile

from noken.config import settings
from noken.exceptions import BadRequestError, PayloadTooLargeError

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


class StoredFile:
    def __init__(self, filename: str, path: Path, url: str, size: int, content_type: str, original_name: str):
        self.filename = filename
        self.path = path
        self.url = url
        self.size = size
        self.content_type = content_type
        self.original_name = original_name

    def __repr__(self):
        return f"<StoredFile({self.url}, {self.size} octets)>"


def upload_root() -> Path:
    return Path(settings.UPLOAD_DIR)


def upload_dir(subdir: str) -> Path:
    directory = upload_root() / subdir
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def file_extension(filename: Optional[str]) -> str:
    return Path(filename or "").suffix.lower()


def unique_filename(extension: str, prefix: str = "") -> str:
    stamp = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"{prefix}{stamp}{extension}"


def public_url(subdir: str, filename: str) -> str:
    return f"{settings.APP_BASE_URL.rstrip('/')}/uploads/{subdir}/{filename}"


def local_path_from_url(url: Optional[str]) -> Optional[Path]:
    """Chemin disque d'un fichier servi sous /uploads/, sinon None."""
    if not url or "/uploads/" not in url:
        return None
    relative = url.split("/uploads/", 1)[1]
    return upload_root() / relative


def is_allowed(file: UploadFile, mime_types: Iterable[str], extensions: Iterable[str]) -> bool:
    return (file.content_type or "") in set(mime_types) or file_extension(file.filename) in set(extensions)


async def save_upload(
    file: UploadFile,
    subdir: str,
    mime_types: Iterable[str],
    extensions: Iterable[str],
    prefix: str = "",
    max_size: Optional[int] = None,
) -> StoredFile:
    """Valide puis écrit un fichier uploadé sous UPLOAD_DIR/subdir."""
    if not file.filename:
        raise BadRequestError("Nom de fichier manquant")

    if not is_allowed(file, mime_types, extensions):
        raise BadRequestError(f"Type de fichier non autorisé: {file.content_type}")

    content = await file.read()
    limit = max_size or settings.MAX_FILE_SIZE
    if len(content) > limit:
        raise PayloadTooLargeError(f"Fichier trop volumineux. Taille maximale: {limit // (1024 * 1024)}MB")

    extension = file_extension(file.filename)
    filename = unique_filename(extension, prefix)
    path = upload_dir(subdir) / filename

    async with aiofiles.open(path, "wb") as out_file:
        await out_file.write(content)

    logger.info(f"📁 Fichier enregistré: {path} ({len(content)} octets)")
    return StoredFile(
        filename=filename,
        path=path,
        url=public_url(subdir, filename),
        size=len(content),
        content_type=file.content_type or "application/octet-stream",
        original_name=file.filename,
    )


def remove_file(path: Optional[Path]) -> None:
    if path is None:
        return
    try:
        if path.exists():
            path.unlink()
            logger.info(f"Fichier supprimé: {path}")
    except OSError as e:
        logger.warning(f"Erreur lors de la suppression du fichier {path}: {e}")
