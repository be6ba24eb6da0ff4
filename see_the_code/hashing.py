"""Content fingerprints for source location records."""

import hashlib

FINGERPRINT_LENGTH = 16


def compute_content_hash(content: str) -> str:
    """Compute SHA256 hash of content.

    Args:
        content: String content to hash.

    Returns:
        SHA256 hex digest.
    """
    return hashlib.sha256(content.encode()).hexdigest()


def selector_fingerprint(content: str, selector: str, line: int) -> str:
    """Fingerprint a selector occurrence within a file.

    Changes whenever the file text changes, so a stale code map record can
    be told apart from a fresh one.

    Args:
        content: Raw text of the source file.
        selector: Selector key emitted for the element.
        line: Line of the element that emitted the key.

    Returns:
        Truncated SHA256 hex digest.
    """
    return compute_content_hash(f"{content}{selector}{line}")[:FINGERPRINT_LENGTH]
