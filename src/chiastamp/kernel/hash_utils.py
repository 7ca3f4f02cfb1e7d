"""Digest utilities with explicit byte composition rules for reproducible hashing.

This module provides the content digests a proof anchors and the hex codec
used everywhere a digest crosses a text boundary.

Key rules:
- SHA-256 over raw bytes, lowercase hex output
- Salted digest = SHA-256(content bytes ++ salt bytes), in that order
- Salt is decoded from hex before concatenation
- Odd-length or non-hex input is a hard error (InvalidHexError)

The hash primitive and the random source are plain callables so tests can
substitute deterministic versions without touching production paths.
"""

import hashlib
import secrets
from typing import Callable, Union

HashFn = Callable[[bytes], bytes]
RandomSource = Callable[[int], bytes]

DEFAULT_SALT_LENGTH = 32
_HEX_CHARS = frozenset("0123456789abcdefABCDEF")


class InvalidHexError(ValueError):
    """Raised when a string cannot be decoded as hex."""
    pass


def sha256(data: bytes) -> bytes:
    """Default hash primitive: raw 32-byte SHA-256 digest."""
    return hashlib.sha256(data).digest()


def hex_to_bytes(value: str) -> bytes:
    """Decode a hex string to bytes.

    Unlike bytes.fromhex, whitespace is not tolerated: the digest must be
    reproduced byte-for-byte, so any non-hex character is rejected.

    Raises:
        InvalidHexError: If the string has odd length or non-hex characters
    """
    if len(value) % 2 != 0:
        raise InvalidHexError(
            f"Hex string has odd length ({len(value)}): {value!r}"
        )
    bad = [c for c in value if c not in _HEX_CHARS]
    if bad:
        raise InvalidHexError(
            f"Hex string contains non-hex character {bad[0]!r}: {value!r}"
        )
    return bytes.fromhex(value)


def bytes_to_hex(data: bytes) -> str:
    """Encode bytes as lowercase hex, two characters per byte."""
    return data.hex()


def _as_bytes(data: Union[str, bytes]) -> bytes:
    if isinstance(data, str):
        return data.encode('utf-8')
    return data


def generate_salt(
    length_bytes: int = DEFAULT_SALT_LENGTH,
    random_source: RandomSource = secrets.token_bytes,
) -> str:
    """Generate a random salt from a cryptographically secure source.

    Args:
        length_bytes: Number of random bytes (default 32)
        random_source: Callable returning that many bytes

    Returns:
        Salt as lowercase hex string (2 * length_bytes characters)
    """
    if length_bytes < 1:
        raise ValueError(f"Salt length must be positive, got {length_bytes}")
    salt_bytes = random_source(length_bytes)
    if len(salt_bytes) != length_bytes:
        raise ValueError(
            f"Random source returned {len(salt_bytes)} bytes, expected {length_bytes}"
        )
    return bytes_to_hex(salt_bytes)


def digest(data: Union[str, bytes], hash_fn: HashFn = sha256) -> str:
    """Compute the plain SHA-256 digest of content.

    Args:
        data: Content as bytes (str is UTF-8 encoded)
        hash_fn: Hash primitive

    Returns:
        Digest as lowercase hex string
    """
    return bytes_to_hex(hash_fn(_as_bytes(data)))


def salted_digest(
    data: Union[str, bytes],
    salt_hex: str,
    hash_fn: HashFn = sha256,
) -> str:
    """Compute SHA-256 over content bytes followed by salt bytes.

    Args:
        data: Content as bytes (str is UTF-8 encoded)
        salt_hex: Salt as hex string
        hash_fn: Hash primitive

    Returns:
        Digest as lowercase hex string

    Raises:
        InvalidHexError: If salt_hex is not valid hex
    """
    salt_bytes = hex_to_bytes(salt_hex)
    return bytes_to_hex(hash_fn(_as_bytes(data) + salt_bytes))


def hash_pair(left: bytes, right: bytes, hash_fn: HashFn = sha256) -> bytes:
    """Hash two child nodes into their parent: H(left ++ right)."""
    return hash_fn(left + right)

