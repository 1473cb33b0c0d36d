"""Cloudinary image upload client."""

from dataclasses import dataclass

import httpx

from rail_journal.errors import UploadError
from rail_journal.services.entries import ImageUploader

CLOUDINARY_API_URL = "https://api.cloudinary.com/v1_1"
DISPLAY_TRANSFORMATION = "w_800,c_limit,q_auto,f_auto"


@dataclass
class CloudinaryImageUploader(ImageUploader):
    """Unsigned Cloudinary uploads using an upload preset."""

    cloud_name: str
    upload_preset: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, cloud_name: str, upload_preset: str) -> "CloudinaryImageUploader":
        """Create an uploader with a managed httpx session."""
        return cls(
            cloud_name=cloud_name,
            upload_preset=upload_preset,
            http_client=httpx.AsyncClient(),
        )

    async def upload(self, image_bytes: bytes, mime_type: str) -> str:
        """Upload image bytes and return the secure delivery URL."""
        url = f"{CLOUDINARY_API_URL}/{self.cloud_name}/image/upload"
        try:
            response = await self.http_client.post(
                url,
                data={"upload_preset": self.upload_preset},
                files={"file": ("upload", image_bytes, mime_type)},
                timeout=60,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UploadError(f"Cloudinary upload failed: {exc}") from exc
        secure_url = payload.get("secure_url") if isinstance(payload, dict) else None
        if not secure_url:
            raise UploadError("Cloudinary response did not include a secure_url")
        return str(secure_url)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def optimized_url(url: str | None) -> str | None:
    """Return a display-sized variant of a Cloudinary URL.

    Non-Cloudinary references, including local data URLs, are returned as is.
    """
    if not url or "cloudinary.com" not in url or "/upload/" not in url:
        return url
    prefix, rest = url.split("/upload/", 1)
    return f"{prefix}/upload/{DISPLAY_TRANSFORMATION}/{rest}"
