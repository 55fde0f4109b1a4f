from docvault.entity_registry.service import EntityRegistry

__all__ = ["EntityRegistry"]
