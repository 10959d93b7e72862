"""
SQLAlchemy models.
"""
from memory_palace.models.memory import Memory

__all__ = ["Memory"]
