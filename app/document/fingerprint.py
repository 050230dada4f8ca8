import hashlib


def fingerprint(content: bytes) -> str:
    """Hex SHA-256 of the raw file bytes; equal digests mean identical files."""
    return hashlib.sha256(content).hexdigest()
