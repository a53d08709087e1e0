"""Repository modules - Data access layer"""
from .base import QAPRepository
from .memory_repo import InMemoryQAPRepository
from .qap_repo import MongoQAPRepository

__all__ = [
    "QAPRepository",
    "InMemoryQAPRepository",
    "MongoQAPRepository",
]
