"""Content file hashing (internal)."""

import hashlib
from pathlib import Path
from typing import Optional, Union

from chiastamp.kernel.hash_utils import hex_to_bytes

_CHUNK_SIZE = 1024 * 1024


def hash_file(path: Union[str, Path], salt_hex: Optional[str] = None) -> str:
    """Compute the digest of a file's contents without loading it whole.

    The salt (if any) is appended after the last content chunk, giving the
    same bytes as kernel.hash_utils.salted_digest.

    Raises:
        InvalidHexError: If salt_hex is not valid hex
        OSError: If the file cannot be read
    """
    salt_bytes = hex_to_bytes(salt_hex) if salt_hex else b""
    hasher = hashlib.sha256()
    with open(Path(path), "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    hasher.update(salt_bytes)
    return hasher.hexdigest()
