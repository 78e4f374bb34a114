import base64
import hashlib
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from docvault.core.config import settings

logger = logging.getLogger(__name__)


class MediaStorageError(Exception):
    pass


@dataclass
class MediaAsset:
    public_id: str
    secure_url: str
    resource_type: str
    bytes: int
    format: Optional[str] = None


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """
    Signature expected by the media host: SHA-1 over the sorted
    ``key=value`` pairs joined with ``&``, followed by the API secret.
    """
    to_sign = "&".join(
        f"{key}={params[key]}"
        for key in sorted(params)
        if params[key] is not None and params[key] != ""
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class MediaStorageClient:
    def __init__(
        self,
        cloud_name: str = settings.MEDIA_CLOUD_NAME,
        api_key: str = settings.MEDIA_API_KEY,
        api_secret: str = settings.MEDIA_API_SECRET,
        base_folder: str = settings.MEDIA_BASE_FOLDER,
        api_url: str = settings.MEDIA_API_URL,
        delivery_url: str = settings.MEDIA_DELIVERY_URL,
        timeout: float = settings.MEDIA_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_folder = base_folder
        self.api_url = api_url.rstrip("/")
        self.delivery_url = delivery_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _endpoint(self, resource_type: str, action: str) -> str:
        return f"{self.api_url}/{self.cloud_name}/{resource_type}/{action}"

    def _signed(self, params: dict[str, Any]) -> dict[str, Any]:
        params = {key: value for key, value in params.items() if value is not None}
        params["timestamp"] = int(time.time())
        params["signature"] = sign_params(params, self.api_secret)
        params["api_key"] = self.api_key
        return params

    def _post(self, url: str, data: dict[str, Any], files=None) -> dict[str, Any]:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(url, data=data, files=files)
        except httpx.RequestError as e:
            raise MediaStorageError(f"Failed to reach media host: {e}") from e

        if resp.status_code not in (200, 201):
            raise MediaStorageError(
                f"Media host returned {resp.status_code}: {resp.text}"
            )
        return resp.json()

    def upload(
        self,
        data: bytes,
        filename: str,
        folder: Optional[str] = None,
        resource_type: str = "auto",
        public_id: Optional[str] = None,
        overwrite: bool = False,
    ) -> MediaAsset:
        target_folder = f"{self.base_folder}/{folder}" if folder else self.base_folder
        params = self._signed(
            {
                "folder": target_folder,
                "public_id": public_id,
                "use_filename": "true",
                "unique_filename": "true",
                "overwrite": "true" if overwrite else "false",
            }
        )
        body = self._post(
            self._endpoint(resource_type, "upload"),
            data=params,
            files={"file": (filename, data)},
        )
        logger.info("Uploaded %s to media host as %s", filename, body.get("public_id"))
        return MediaAsset(
            public_id=body["public_id"],
            secure_url=body["secure_url"],
            resource_type=body.get("resource_type", resource_type),
            bytes=body.get("bytes", len(data)),
            format=body.get("format"),
        )

    def upload_avatar(self, data: bytes, user_id: str, filename: str) -> MediaAsset:
        return self.upload(
            data,
            filename,
            folder="avatars",
            resource_type="image",
            public_id=f"avatar_{user_id}_{int(time.time())}",
        )

    def download_url(
        self,
        public_id: str,
        resource_type: str = "raw",
        filename: Optional[str] = None,
    ) -> str:
        """
        Signed delivery URL that serves the asset as an attachment.

        The signature is the first 8 characters of the URL-safe base64 SHA-1 of
        ``<transformation>/<public_id>`` followed by the API secret.
        """
        flag = "fl_attachment"
        if filename:
            stem = re.sub(r"[^\w-]", "_", filename.rsplit(".", 1)[0])
            if stem:
                flag = f"fl_attachment:{stem}"

        to_sign = f"{flag}/{public_id}"
        digest = hashlib.sha1(f"{to_sign}{self.api_secret}".encode("utf-8")).digest()
        signature = base64.urlsafe_b64encode(digest).decode("ascii")[:8]
        return (
            f"{self.delivery_url}/{self.cloud_name}/{resource_type}/upload/"
            f"s--{signature}--/{to_sign}"
        )

    def delete(self, public_id: str, resource_type: str = "image") -> bool:
        body = self._post(
            self._endpoint(resource_type, "destroy"),
            data=self._signed({"public_id": public_id}),
        )
        return body.get("result") == "ok"


def get_media_client() -> MediaStorageClient:
    return MediaStorageClient()
