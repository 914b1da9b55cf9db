"""
Chunk splitting and integrity hashing.
"""

from .hasher import ChunkHasher
from .splitter import chunk_range, iter_ranges, range_of, split

__all__ = [
    "ChunkHasher",
    "chunk_range",
    "iter_ranges",
    "range_of",
    "split",
]
