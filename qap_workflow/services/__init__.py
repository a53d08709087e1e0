"""Service modules - Business logic layer"""
from .qap_service import QAPService

__all__ = [
    "QAPService",
]
