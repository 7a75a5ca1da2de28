"""Read-only client for the legacy Appwrite storage bucket, used by the R2 migration"""

import logging
from typing import Any, Optional

import httpx

from ..config import APPWRITE_API_KEY, APPWRITE_ENDPOINT, APPWRITE_FILES_BUCKET_ID, APPWRITE_PROJECT_ID

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class AppwriteStorageService:
    """Lists and downloads files through the Appwrite REST API"""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        project_id: Optional[str] = None,
        api_key: Optional[str] = None,
        bucket_id: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.endpoint = (endpoint or APPWRITE_ENDPOINT).rstrip("/")
        self.project_id = project_id or APPWRITE_PROJECT_ID
        self.api_key = api_key or APPWRITE_API_KEY
        self.bucket_id = bucket_id or APPWRITE_FILES_BUCKET_ID
        self.client = http_client or httpx.Client(timeout=60.0)

    def _headers(self) -> dict[str, str]:
        return {
            "X-Appwrite-Project": self.project_id or "",
            "X-Appwrite-Key": self.api_key or "",
        }

    def _files_url(self) -> str:
        return f"{self.endpoint}/storage/buckets/{self.bucket_id}/files"

    def list_files(self) -> list[dict[str, Any]]:
        """Return every file document in the bucket, following offset pagination"""
        files: list[dict[str, Any]] = []
        offset = 0

        while True:
            response = self.client.get(
                self._files_url(),
                headers=self._headers(),
                params=[("queries[]", f"limit({PAGE_SIZE})"), ("queries[]", f"offset({offset})")],
            )
            if response.status_code != 200:
                logger.error(f"❌ Appwrite list files failed: {response.status_code} {response.text}")
            response.raise_for_status()

            payload = response.json()
            page = payload.get("files", [])
            files.extend(page)
            offset += len(page)

            if not page or offset >= payload.get("total", 0):
                break

        logger.info(f"📊 Found {len(files)} files in Appwrite bucket {self.bucket_id}")
        return files

    def download_file(self, file_id: str) -> bytes:
        """Download a file's original bytes"""
        response = self.client.get(f"{self._files_url()}/{file_id}/download", headers=self._headers())
        response.raise_for_status()
        return response.content

    def close(self):
        self.client.close()
