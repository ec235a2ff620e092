"""Helpers for deriving seeds, outcome digests and match digits."""

from __future__ import annotations

import hashlib
import string

HEX_ALPHABET = string.digits + "abcdef"
DIGEST_HEX_LENGTH = 64


def normalize_digest(value: str) -> str:
    """Validate a 256-bit hex digest and return it lower-cased without ``0x``.

    Parameters
    ----------
    value : str
        Hex string as produced by an entropy source or stored on a row.
    """

    if value is None:
        raise ValueError("digest must not be None")
    if not isinstance(value, str):
        raise TypeError("digest must be a string")
    normalized = value.strip().lower()
    if normalized.startswith("0x"):
        normalized = normalized[2:]
    if len(normalized) != DIGEST_HEX_LENGTH or any(
        ch not in HEX_ALPHABET for ch in normalized
    ):
        raise ValueError(f"digest must be {DIGEST_HEX_LENGTH} hex characters")
    return normalized


def _word(value: int) -> bytes:
    """Encode a non-negative integer as a 32-byte big-endian word."""
    if value < 0:
        raise ValueError("integer fields must be non-negative")
    return value.to_bytes(32, "big")


def _text(value: str) -> bytes:
    """Encode a text field with a length prefix so adjacent fields cannot collide."""
    payload = value.encode("utf-8")
    return _word(len(payload)) + payload


def derive_entry_seed(
    *,
    timestamp: int,
    block_entropy: str,
    account: str,
    sequence: int,
    previous_outcome: str,
    engine_id: str,
) -> str:
    """Derive the 256-bit seed of an entry.

    Parameters
    ----------
    timestamp : int
        Clock reading when the entry was accepted.
    block_entropy : str
        Entropy value supplied for this submission (64 hex chars).
    account : str
        Identity of the entrant.
    sequence : int
        Position of the entry in the account's history.
    previous_outcome : str
        Outcome digest of the last completed drawing.
    engine_id : str
        Identity of the engine instance.

    Returns
    -------
    str
        SHA-256 hex digest over the packed inputs.

    Notes
    -----
    Mixing in the account, its sequence number and the engine identity keeps
    seeds from being trivially predictable across entrants. It does nothing
    against a biased or observable entropy source.
    """

    packed = b"".join(
        (
            _word(timestamp),
            bytes.fromhex(normalize_digest(block_entropy)),
            _text(account),
            _word(sequence),
            bytes.fromhex(normalize_digest(previous_outcome)),
            _text(engine_id),
        )
    )
    return hashlib.sha256(packed).hexdigest()


def derive_outcome_digest(*, block_entropy: str, period_key: int, engine_id: str) -> str:
    """Derive the winning outcome digest of a period from one entropy value."""

    packed = b"".join(
        (
            bytes.fromhex(normalize_digest(block_entropy)),
            _word(period_key),
            _text(engine_id),
        )
    )
    return hashlib.sha256(packed).hexdigest()


def extract_match_digits(digest: str, length: int) -> str:
    """Return the low ``length`` hex digits of ``digest``, zero-padded.

    The digest is read as a 256-bit integer, reduced modulo ``16**length`` and
    rendered with digits ``0-9`` then ``a-f``.
    """

    if length <= 0:
        raise ValueError("length must be positive")
    value = int(normalize_digest(digest), 16) % (16**length)
    return format(value, "x").zfill(length)


def count_matches(left: str, right: str) -> int:
    """Count the positions where ``left`` and ``right`` hold the same digit."""

    if len(left) != len(right):
        raise ValueError("match digits must have the same length")
    return sum(1 for a, b in zip(left, right) if a == b)


__all__ = [
    "DIGEST_HEX_LENGTH",
    "HEX_ALPHABET",
    "count_matches",
    "derive_entry_seed",
    "derive_outcome_digest",
    "extract_match_digits",
    "normalize_digest",
]
