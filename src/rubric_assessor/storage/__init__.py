"""
Storage module.

Local key-value persistence for saved assessments.
"""

from .store import AssessmentStore, JsonFileStore, MemoryStore, open_store

__all__ = ["AssessmentStore", "JsonFileStore", "MemoryStore", "open_store"]
