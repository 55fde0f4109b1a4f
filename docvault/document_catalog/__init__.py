from docvault.document_catalog.service import DocumentTypeCatalog

__all__ = ["DocumentTypeCatalog"]
