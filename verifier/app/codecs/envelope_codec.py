"""
Escrow PDF envelope codec.

Subject field format (bit-exact):

    "zenland:escrow_pdf:v1:" + base64url(utf8(canonicalJSON(envelope)))

Padding is omitted on encode and restored on decode.

Decoding is total: any input that is not a well-formed envelope yields
``None``. A PDF that is not a Zenland escrow document is normal input,
so "absent" and "malformed" are deliberately indistinguishable to the
caller.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from verifier.app.schemas.envelope import EscrowPdfEnvelope
from verifier.app.utils.canonical_json import canonical_json_bytes

logger = logging.getLogger(__name__)


ENVELOPE_SUBJECT_PREFIX = "zenland:escrow_pdf:v1:"


# ------------------------------------------------------------------
# base64url
# ------------------------------------------------------------------


def base64url_encode(data: bytes) -> str:
    """RFC 4648 base64url without padding."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def base64url_decode(text: str) -> bytes:
    """
    Strict base64url decode.

    Missing ``=`` padding is restored. Characters outside the base64url
    alphabet raise ``binascii.Error``.
    """
    padded = text + "=" * ((4 - len(text) % 4) % 4)
    return base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {token}")


# ------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------


def encode_envelope(envelope: EscrowPdfEnvelope) -> str:
    """Encode an envelope into its PDF Subject representation."""
    payload = canonical_json_bytes(envelope.to_json_dict())
    return ENVELOPE_SUBJECT_PREFIX + base64url_encode(payload)


def decode_envelope(subject: Optional[str]) -> Optional[EscrowPdfEnvelope]:
    """
    Decode a PDF Subject field into an envelope.

    Returns ``None`` when the subject is absent, carries a different
    prefix, or fails any decoding or shape check.
    """
    if not subject or not subject.startswith(ENVELOPE_SUBJECT_PREFIX):
        return None

    encoded = subject[len(ENVELOPE_SUBJECT_PREFIX):]

    try:
        raw = base64url_decode(encoded)
    except (binascii.Error, ValueError) as exc:
        logger.debug("Envelope base64url decoding failed: %s", exc)
        return None

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.debug("Envelope is not valid UTF-8: %s", exc)
        return None

    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except (json.JSONDecodeError, ValueError, RecursionError) as exc:
        logger.debug("Envelope is not valid JSON: %s", exc)
        return None

    if not isinstance(data, dict):
        logger.debug("Envelope JSON is %s, expected object", type(data).__name__)
        return None

    try:
        return EscrowPdfEnvelope.model_validate(data)
    except ValidationError as exc:
        logger.debug(
            "Envelope does not match the expected shape (%d errors)",
            exc.error_count(),
        )
        return None
