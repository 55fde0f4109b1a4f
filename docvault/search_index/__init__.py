from docvault.search_index.service import SearchIndex

__all__ = ["SearchIndex"]
