"""Stockage des images de formation dans Cloud Storage."""

from typing import BinaryIO, Optional
import logging
import time

from firebase_admin import storage

logger = logging.getLogger(__name__)


def image_path(filename: str, now_ms: Optional[int] = None) -> str:
    """Chemin préfixé par l'horodatage : formations/{epoch_ms}_{nom}."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"formations/{stamp}_{filename}"


class FirebaseBlobStore:
    """Upload d'un fichier unique, retourne une URL publique."""

    def __init__(self, bucket_name: Optional[str] = None):
        self.bucket_name = bucket_name
        self._bucket = None

    @property
    def bucket(self):
        if self._bucket is None:
            self._bucket = storage.bucket(self.bucket_name)
        return self._bucket

    def upload(self, fileobj: BinaryIO, filename: str, content_type: Optional[str] = None) -> str:
        path = image_path(filename)
        blob = self.bucket.blob(path)
        blob.upload_from_file(fileobj, content_type=content_type)
        blob.make_public()
        logger.info("Uploaded %s", path)
        return blob.public_url
