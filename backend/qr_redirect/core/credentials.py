"""Credential Verifier — constant-time PIN check against a stored SHA-256 hex digest.

Invariants:
    - Raw PINs are never stored or logged; only hash_pin() output is persisted
    - verify_pin() compares fixed-length digests with hmac.compare_digest
    - Length mismatch or a malformed stored hash is a non-match, never an exception

Design Decisions:
    - SHA-256 hex matches the digest the admin surface already writes
    - Digest bytes compared (not hex strings) so both sides have a known fixed length
"""

import hashlib
import hmac

DIGEST_SIZE = hashlib.sha256().digest_size


def hash_pin(pin: str) -> str:
    """One-way digest of a PIN, as stored in password_hash."""
    return hashlib.sha256(pin.encode("utf-8")).hexdigest()


def verify_pin(supplied_pin: str, stored_hash: str) -> bool:
    """True when supplied_pin hashes to stored_hash. Constant-time."""
    supplied_digest = hashlib.sha256(supplied_pin.encode("utf-8")).digest()
    try:
        stored_digest = bytes.fromhex(stored_hash)
    except ValueError:
        # Compare against a dummy so malformed rows cost the same as a miss
        stored_digest = b"\x00" * DIGEST_SIZE
        hmac.compare_digest(supplied_digest, stored_digest)
        return False
    # compare_digest returns False on length mismatch without inspecting content
    return hmac.compare_digest(supplied_digest, stored_digest)
