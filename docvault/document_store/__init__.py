from docvault.document_store.service import DocumentStore, StoredFile
from docvault.document_store.storage import FileStorage

__all__ = ["DocumentStore", "StoredFile", "FileStorage"]
