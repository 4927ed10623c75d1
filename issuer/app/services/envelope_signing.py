"""
Escrow envelope signing.

Produces the signed metadata envelope embedded in escrow agreement PDFs.

The signature is an EIP-191 personal-message signature over the UTF-8
bytes of the canonical JSON of the unsigned metadata. Verifiers recompute
exactly that string, so the unsigned metadata MUST be serialized through
the shared canonical JSON helper and nothing else.

Trust boundary:
- ``signing.signer`` is filled in for convenience only. Verifiers recover
  the signer from the signature and ignore this field.
"""

from __future__ import annotations

from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct

from verifier.app.schemas.envelope import (
    EnvelopeSignature,
    EscrowPdfEnvelope,
    UnsignedEscrowMetadata,
)
from verifier.app.utils.canonical_json import stringify_canonical_json


class EnvelopeSigningError(RuntimeError):
    """Raised when an envelope cannot be signed."""


def sign_envelope(
    unsigned: UnsignedEscrowMetadata,
    private_key: str,
    kid: Optional[str] = None,
) -> EscrowPdfEnvelope:
    """
    Sign unsigned escrow metadata.

    Args:
        unsigned:
            The metadata to attest. Every field is covered.
        private_key:
            Hex-encoded secp256k1 private key.
        kid:
            Optional key identifier carried in the signature block.

    Raises:
        EnvelopeSigningError:
            If the private key is malformed or the metadata has no
            canonical JSON form.
    """
    try:
        payload = unsigned.to_json_dict()
        payload.pop("signing", None)
        message = stringify_canonical_json(payload)
        account = Account.from_key(private_key)
        signed = account.sign_message(encode_defunct(text=message))
    except (ValueError, TypeError) as exc:
        raise EnvelopeSigningError(f"Failed to sign escrow envelope: {exc}") from exc

    signing = EnvelopeSignature(
        alg="secp256k1",
        scheme="eip191",
        kid=kid,
        signer=account.address,
        sig="0x" + bytes(signed.signature).hex(),
    )

    return EscrowPdfEnvelope.model_validate(
        {**payload, "signing": signing.model_dump(by_alias=True, exclude_none=True)}
    )
