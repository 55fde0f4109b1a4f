from docvault.migration_tool.legacy_source import LegacyDocumentSource
from docvault.migration_tool.service import MigrationResult, MigrationStatus, MigrationTool

__all__ = ["LegacyDocumentSource", "MigrationResult", "MigrationStatus", "MigrationTool"]
