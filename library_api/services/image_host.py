import httpx
from flask import current_app

from library_api.errors import UpstreamError


class ImageHostClient:
    """Uploads base64 images to imgBB and returns the hosted URL."""

    @staticmethod
    def _timeout() -> httpx.Timeout:
        seconds = float(current_app.config.get("IMGBB_TIMEOUT", 15))
        return httpx.Timeout(timeout=seconds, connect=5.0)

    @staticmethod
    def upload(base64_image: str) -> str:
        api_key = current_app.config.get("IMGBB_API_KEY")
        if not api_key:
            raise UpstreamError("Image upload is not configured")

        # strip a data URL prefix ("data:image/png;base64,...")
        if base64_image.startswith("data:") and "," in base64_image:
            base64_image = base64_image.split(",", 1)[1]

        url = current_app.config.get("IMGBB_UPLOAD_URL", "https://api.imgbb.com/1/upload")
        try:
            with httpx.Client(timeout=ImageHostClient._timeout(), follow_redirects=True) as client:
                response = client.post(url, params={"key": api_key}, data={"image": base64_image})
            response.raise_for_status()
            hosted = (response.json().get("data") or {}).get("url")
        except (httpx.HTTPError, ValueError) as e:
            current_app.logger.warning(f"[imgbb] Upload failed: {e}")
            raise UpstreamError("Could not upload the image")

        if not hosted:
            current_app.logger.warning("[imgbb] Upload response carried no url")
            raise UpstreamError("Could not upload the image")
        return hosted
