import os
import shutil
import time
import logging
from typing import Dict, Optional

import requests
from supabase import create_client, Client
from app.core.config import settings

logger = logging.getLogger(__name__)

class StorageService:
    def __init__(self):
        self.provider = settings.STORAGE_PROVIDER
        self.bucket_name = settings.MEDIA_BUCKET
        self.supabase: Optional[Client] = None

        if self.provider == "supabase":
            if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
                logger.error("Supabase credentials missing. Falling back to local storage.")
                self.provider = "local"
            else:
                try:
                    self.supabase = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
                except Exception as e:
                    logger.error(f"Failed to initialize Supabase client: {e}")
                    self.provider = "local"

    @staticmethod
    def build_object_key(file_name: str) -> str:
        """Storage key for an upload: '<epoch-millis>-<file name>'."""
        safe_name = os.path.basename(file_name.replace("\\", "/"))
        return f"{int(time.time() * 1000)}-{safe_name}"

    def _local_path(self, key: str) -> str:
        target_dir = os.path.join(settings.DATA_DIR, "uploads", self.bucket_name)
        os.makedirs(target_dir, exist_ok=True)
        return os.path.join(target_dir, key)

    @property
    def supports_signed_uploads(self) -> bool:
        # Local storage has no URL a client could upload to; use the /upload route instead.
        return self.provider == "supabase"

    def create_upload_url(self, key: str, content_type: str) -> Dict[str, str]:
        """
        Prepares a direct upload for `key` (Supabase only).
        Returns the URL the client uploads to and the media URL that will serve it.
        """
        if not self.supports_signed_uploads:
            raise RuntimeError(f"Signed upload URLs are not available with the '{self.provider}' storage provider")

        signed = self.supabase.storage.from_(self.bucket_name).create_signed_upload_url(key)
        upload_url = signed.get("signed_url") or signed.get("signedUrl")
        media_url = self.supabase.storage.from_(self.bucket_name).get_public_url(key)
        logger.info(f"Created signed upload URL for {key} ({content_type})")
        return {"upload_url": upload_url, "media_url": media_url, "key": key}

    def upload_file(self, file_path: str, destination_path: str = None) -> str:
        """
        Uploads a file to the configured storage provider.
        Returns a URL (or local path) to access the file.
        """
        dest_path = destination_path or os.path.basename(file_path)

        if self.provider == "supabase":
            with open(file_path, 'rb') as f:
                file_content = f.read()
            try:
                self.supabase.storage.from_(self.bucket_name).upload(
                    path=dest_path,
                    file=file_content,
                    file_options={"upsert": "true"}
                )
            except Exception as e:
                logger.error(f"Supabase upload failed: {e}.")
                raise
            public_url = self.supabase.storage.from_(self.bucket_name).get_public_url(dest_path)
            logger.info(f"Uploaded to Supabase: {public_url}")
            return public_url

        final_path = self._local_path(dest_path)
        # Ensure distinct paths before copying
        if os.path.abspath(file_path) != os.path.abspath(final_path):
            shutil.copy2(file_path, final_path)
        logger.info(f"Stored locally: {final_path}")
        return final_path

    def delete_file(self, key: str):
        """Removes a stored object. Missing objects are ignored."""
        if self.provider == "supabase":
            self.supabase.storage.from_(self.bucket_name).remove([key])
        else:
            local_path = self._local_path(key)
            if os.path.exists(local_path):
                os.remove(local_path)
        logger.info(f"Deleted stored object {key}")

    def get_public_url(self, key: str) -> str:
        if self.provider == "supabase":
            return self.supabase.storage.from_(self.bucket_name).get_public_url(key)
        # Return absolute path for local files
        return self._local_path(key)

    @staticmethod
    def is_remote(media_ref: str) -> bool:
        return media_ref.startswith(("http://", "https://"))

    def open_stream(self, media_ref: str, range_header: Optional[str] = None) -> requests.Response:
        """Opens a streaming GET on remote media, forwarding the client's Range header."""
        headers = {"Range": range_header} if range_header else {}
        response = requests.get(
            media_ref,
            headers=headers,
            stream=True,
            timeout=settings.STREAM_TIMEOUT_SECONDS,
        )
        return response
