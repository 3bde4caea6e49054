from library_api.models.user import User
from library_api.models.book import Book
from library_api.models.library_card import LibraryCard
from library_api.models.borrow import BorrowRecord, BorrowLine
from library_api.models.book_renewal import BookRenewal
from library_api.models.collection import Collection, collection_books
from library_api.models.banner import Banner
from library_api.models.notification_log import NotificationLog

__all__ = [
    "User",
    "Book",
    "LibraryCard",
    "BorrowRecord",
    "BorrowLine",
    "BookRenewal",
    "Collection",
    "collection_books",
    "Banner",
    "NotificationLog",
]
