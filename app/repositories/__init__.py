"""
app/repositories package marker.
"""

from app.repositories.batch_writer import BatchWriter

__all__ = [
    "BatchWriter",
]
