"""
Centralized checksum operations for box artifacts.
"""

from pathlib import Path

from cryptography.hazmat.primitives import hashes

CHUNK_SIZE = 1024 * 1024


def sha256_file(path: Path) -> str:
    """Returns the hex SHA-256 digest of a file's full contents."""
    digest = hashes.Hash(hashes.SHA256())
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.finalize().hex()
