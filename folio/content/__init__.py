from folio.content.client import ContentClient
from folio.content.models import Book, ContentRecord

__all__ = ["Book", "ContentClient", "ContentRecord"]
