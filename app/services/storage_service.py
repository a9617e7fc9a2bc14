"""Storage service for statement files kept in Supabase storage."""

import asyncio
from typing import Any, Dict, Optional

import httpx

from app.config import settings
from app.core.exceptions import StorageError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageService:
    """Service for managing statement files in Supabase storage."""

    def __init__(
        self,
        url: Optional[str] = None,
        service_role_key: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.url = (url if url is not None else settings.supabase_url).rstrip("/")
        self.service_role_key = (
            service_role_key if service_role_key is not None else settings.supabase_service_role_key
        )
        self.timeout = timeout or settings.http_timeout
        self.base_api_url = f"{self.url}/storage/v1"
        self.headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }

    async def _read_content(self, file: Any) -> bytes:
        if hasattr(file, "read"):
            content = file.read()
            if asyncio.iscoroutine(content):
                content = await content
            return content
        return file

    async def _rewind(self, file: Any) -> None:
        if hasattr(file, "seek"):
            result = file.seek(0)
            if asyncio.iscoroutine(result):
                await result

    async def upload_file(
        self,
        file: Any,
        bucket: str,
        path: str,
        content_type: str = "application/octet-stream"
    ) -> Dict[str, Any]:
        """Upload a file to Supabase storage.

        Args:
            file: Upload, file-like object or raw bytes.
            bucket: Target bucket name.
            path: Target path within the bucket.
            content_type: Fallback MIME type when the file carries none.

        Returns:
            Dict containing the upload result.

        Raises:
            StorageError: If the upload fails.
        """
        upload_url = f"{self.base_api_url}/object/{bucket}/{path}"

        try:
            content = await self._read_content(file)

            final_content_type = content_type
            if getattr(file, "content_type", None):
                final_content_type = file.content_type

            async with httpx.AsyncClient() as client:
                response = await client.post(
                    upload_url,
                    headers={**self.headers, "Content-Type": final_content_type},
                    content=content,
                    timeout=self.timeout
                )

            if response.status_code != 200:
                LOGGER.error(
                    f"Failed to upload file to storage: {response.text}",
                    extra={"bucket": bucket, "path": path, "status_code": response.status_code}
                )
                raise StorageError(f"Upload failed: {response.text}")

            return response.json()
        except StorageError:
            raise
        except Exception as e:
            LOGGER.error(f"Error uploading file to storage: {str(e)}", exc_info=True)
            raise StorageError(f"Storage upload error: {str(e)}", original_error=e)
        finally:
            await self._rewind(file)

    async def delete_file(self, bucket: str, path: str) -> None:
        """Remove a file from Supabase storage.

        A file that is already gone counts as deleted.

        Raises:
            StorageError: If the storage backend rejects the request.
        """
        url = f"{self.base_api_url}/object/{bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.delete(url, headers=self.headers, timeout=self.timeout)
        except Exception as e:
            LOGGER.error(f"Error deleting file from storage: {str(e)}", exc_info=True)
            raise StorageError(f"Storage delete error: {str(e)}", original_error=e)

        if response.status_code == 404:
            LOGGER.warning("File already missing from storage", extra={"bucket": bucket, "path": path})
            return
        if response.status_code not in (200, 204):
            LOGGER.error(
                f"Failed to delete file from storage: {response.text}",
                extra={"bucket": bucket, "path": path, "status_code": response.status_code}
            )
            raise StorageError(f"Delete failed: {response.text}")

    async def get_signed_url(
        self,
        bucket: str,
        path: str,
        expires_in: int = 3600
    ) -> str:
        """Generate a signed download URL.

        Args:
            bucket: Bucket name.
            path: Object path.
            expires_in: Expiration time in seconds.

        Returns:
            Absolute signed URL.

        Raises:
            StorageError: If URL generation fails.
        """
        url = f"{self.base_api_url}/object/sign/{bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    url,
                    headers=self.headers,
                    json={"expiresIn": expires_in},
                    timeout=self.timeout
                )
        except Exception as e:
            LOGGER.error(f"Error generating signed URL: {str(e)}", exc_info=True)
            raise StorageError(f"Signed URL error: {str(e)}", original_error=e)

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to generate signed URL: {response.text}",
                extra={"bucket": bucket, "path": path, "status_code": response.status_code}
            )
            raise StorageError(f"Signed URL generation failed: {response.text}")

        signed_path = response.json().get("signedURL")
        if not signed_path:
            raise StorageError("Storage response did not contain signedURL")

        # Relative to the project URL or to the storage API, depending on version
        if signed_path.startswith("/storage/"):
            return f"{self.url}{signed_path}"
        if signed_path.startswith("/"):
            return f"{self.base_api_url}{signed_path}"
        return signed_path
