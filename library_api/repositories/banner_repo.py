from library_api.extensions import db
from library_api.models.banner import BANNER_ACTIVE, Banner


class BannerRepo:
    @staticmethod
    def list_active():
        return (
            Banner.query.filter(Banner.status == BANNER_ACTIVE)
            .order_by(Banner.display_order.asc(), Banner.created_at.desc(), Banner.id.desc())
            .all()
        )

    @staticmethod
    def get(banner_id: int):
        return db.session.get(Banner, banner_id)

    @staticmethod
    def create(banner: Banner):
        db.session.add(banner)
        db.session.commit()
        return banner

    @staticmethod
    def update():
        db.session.commit()

    @staticmethod
    def delete(banner: Banner):
        db.session.delete(banner)
        db.session.commit()
