"""
Chunk checksums for transfer-integrity verification.

The checksum catches corruption in transit; it is not an authentication
mechanism. When the requested algorithm is not provided by the runtime
(for example MD5 on a FIPS-restricted OpenSSL build) the hasher reports
itself unavailable and uploads proceed without checksums.
"""

import hashlib
import logging
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "md5"


class ChunkHasher:
    """Hex digest of chunk bytes with a capability flag resolved once."""

    def __init__(self, algorithm: Optional[str] = DEFAULT_ALGORITHM):
        self._algorithm = algorithm.lower() if algorithm else None
        self._available = self._probe(self._algorithm)

    @staticmethod
    def _probe(algorithm: Optional[str]) -> bool:
        if algorithm is None:
            return False
        try:
            hashlib.new(algorithm)
        except ValueError:
            logger.warning(f"Hash algorithm '{algorithm}' unavailable, chunks will be sent without checksums")
            return False
        return True

    @property
    def algorithm(self) -> Optional[str]:
        return self._algorithm

    @property
    def available(self) -> bool:
        return self._available

    def digest(self, data: bytes) -> Optional[str]:
        """
        Compute the checksum of ``data``.

        Returns:
            Hex digest, or None when hashing is unavailable
        """
        if not self._available:
            return None
        return hashlib.new(self._algorithm, data).hexdigest()  # type: ignore[arg-type]
