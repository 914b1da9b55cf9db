"""
Chunk splitting for chunked uploads.

Chunk ``i`` always covers ``[i * chunk_size, min((i + 1) * chunk_size, size))``.
"""

from typing import Iterable, Iterator, Optional, Tuple

from ...core.domain.upload import ChunkRange


def _check_sizes(source_size: int, chunk_size: int) -> None:
    if source_size <= 0:
        raise ValueError(f"Source size must be positive, got {source_size}")
    if chunk_size <= 0:
        raise ValueError(f"Chunk size must be positive, got {chunk_size}")


def split(source_size: int, chunk_size: int) -> int:
    """Return the number of chunks needed to cover ``source_size`` bytes."""
    _check_sizes(source_size, chunk_size)
    return (source_size + chunk_size - 1) // chunk_size


def range_of(index: int, source_size: int, chunk_size: int) -> Tuple[int, int]:
    """
    Get the byte range of a chunk.

    Args:
        index: 0-based chunk index
        source_size: Total byte length of the source
        chunk_size: Fixed chunk length

    Returns:
        ``(start, end)`` with ``end`` exclusive
    """
    total = split(source_size, chunk_size)
    if not 0 <= index < total:
        raise ValueError(f"Chunk index {index} out of range [0, {total})")
    start = index * chunk_size
    return start, min(start + chunk_size, source_size)


def chunk_range(index: int, source_size: int, chunk_size: int) -> ChunkRange:
    start, end = range_of(index, source_size, chunk_size)
    return ChunkRange(index=index, start=start, end=end)


def iter_ranges(
    source_size: int,
    chunk_size: int,
    indices: Optional[Iterable[int]] = None
) -> Iterator[ChunkRange]:
    """Yield chunk ranges in ascending index order."""
    if indices is None:
        indices = range(split(source_size, chunk_size))
    for index in sorted(set(indices)):
        yield chunk_range(index, source_size, chunk_size)
