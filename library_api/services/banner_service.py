from flask import current_app

from library_api.errors import NotFoundError, ValidationError
from library_api.models.banner import BANNER_ACTIVE, BANNER_STATUSES, Banner
from library_api.repositories.banner_repo import BannerRepo
from library_api.services.image_host import ImageHostClient
from library_api.utils.helpers import clean_str, parse_int


def _image_url(value):
    """Hosted URLs are kept as-is; anything else is treated as base64 and uploaded."""
    value = clean_str(value)
    if not value:
        return None
    if value.startswith(("http://", "https://")):
        return value
    return ImageHostClient.upload(value)


class BannerService:
    @staticmethod
    def list_active():
        return BannerRepo.list_active()

    @staticmethod
    def get_banner(banner_id: int) -> Banner:
        banner = BannerRepo.get(banner_id)
        if not banner:
            raise NotFoundError("Banner not found")
        return banner

    @staticmethod
    def create_banner(data: dict) -> Banner:
        title = clean_str(data.get("title"))
        if not title:
            raise ValidationError("title is required")
        order = data.get("order")

        banner = Banner(
            title=title,
            subtitle=clean_str(data.get("subtitle")),
            description=clean_str(data.get("description")),
            link=clean_str(data.get("link")),
            status=BANNER_ACTIVE,
            display_order=parse_int(order, "order") if order not in (None, "") else 0,
        )
        banner.image = _image_url(data.get("image"))
        BannerRepo.create(banner)
        current_app.logger.info(f"[banners] Created banner {banner.id}")
        return banner

    @staticmethod
    def update_banner(banner_id: int, data: dict) -> Banner:
        banner = BannerService.get_banner(banner_id)
        for k in ["title", "subtitle", "description", "link"]:
            value = clean_str(data.get(k))
            if value:
                setattr(banner, k, value)
        if data.get("order") not in (None, ""):
            banner.display_order = parse_int(data["order"], "order")
        if clean_str(data.get("image")):
            banner.image = _image_url(data["image"])
        BannerRepo.update()
        return banner

    @staticmethod
    def set_status(banner_id: int, status) -> Banner:
        status = (clean_str(status) or "").lower()
        if status not in BANNER_STATUSES:
            raise ValidationError("status must be 'active' or 'inactive'")
        banner = BannerService.get_banner(banner_id)
        banner.status = status
        BannerRepo.update()
        return banner

    @staticmethod
    def delete_banner(banner_id: int) -> None:
        BannerRepo.delete(BannerService.get_banner(banner_id))
        current_app.logger.info(f"[banners] Deleted banner {banner_id}")
