from docvault.audit_trail.service import AccessLogger, Actor, AuditLogger, emit_best_effort

__all__ = ["AccessLogger", "Actor", "AuditLogger", "emit_best_effort"]
