"""Per-chunk content checksums."""

import hashlib


def calculate_checksum(data: bytes) -> str:
    """Return the lowercase MD5 hex digest of ``data``.

    The digest travels with the chunk bytes so the server can verify them; it
    is computed from the bytes actually sent on every attempt.
    """
    return hashlib.md5(data).hexdigest()
