"""
Escrow PDF envelope schema.

Defines the authoritative structure of the signed metadata envelope
embedded in the Subject field of Zenland escrow agreement PDFs.

The envelope is produced once, at PDF generation time, and is immutable
thereafter. Verifiers consume it read-only.

Wire format notes:
- JSON keys are camelCase; Python attributes are snake_case.
- Unknown keys are preserved. The signature covers the canonical JSON of
  whatever the signer emitted, so dropping a key would break
  verification of otherwise authentic documents.
- Scalar fields are strict. A value that would need coercion cannot be
  reproduced byte for byte and is rejected at parse time.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Optional

from eth_utils import is_hex_address
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic import StrictBool, StrictInt, StrictStr
from pydantic.alias_generators import to_camel


ZENLAND_ESCROW_PDF_SCHEMA_V1 = "zenland.escrow_pdf.v1"


def _require_address(value: str) -> str:
    if not is_hex_address(value):
        raise ValueError(f"Not a valid address: {value!r}")
    return value


Address = Annotated[StrictStr, AfterValidator(_require_address)]
Seconds = Annotated[StrictInt, Field(ge=0)]


_ENVELOPE_MODEL_CONFIG = ConfigDict(
    frozen=True,
    extra="allow",
    populate_by_name=True,
    alias_generator=to_camel,
)


# ---------------------------------------------------------------------------
# Escrow parameters
# ---------------------------------------------------------------------------


class EscrowTimeouts(BaseModel):
    """Escrow timeout configuration, all values in seconds."""

    buyer_protection_time: Seconds
    seller_accept_time: Seconds
    agent_response_time: Seconds

    model_config = _ENVELOPE_MODEL_CONFIG


class EscrowToken(BaseModel):
    address: Address
    symbol: StrictStr

    model_config = _ENVELOPE_MODEL_CONFIG


class EscrowDetails(BaseModel):
    """
    Escrow parameters attested by the envelope.

    ``amount`` is the token amount in base units, as a decimal string.
    Addresses keep the exact casing the signer emitted.
    """

    escrow_address: Address
    chain_id: StrictInt
    network: StrictStr
    is_locked: StrictBool
    buyer: Address
    seller: Address
    agent: Optional[Address]
    token: EscrowToken
    amount: Annotated[StrictStr, Field(pattern=r"^[0-9]+(\.[0-9]+)?$")]
    timeouts: EscrowTimeouts

    model_config = _ENVELOPE_MODEL_CONFIG


# ---------------------------------------------------------------------------
# Signed payload
# ---------------------------------------------------------------------------


class UnsignedEscrowMetadata(BaseModel):
    """
    The signed payload: everything in the envelope except ``signing``.

    ``schema`` is a plain string here. Exact version matching is the
    verifier's job so that an unknown version is reported as such.
    """

    schema_id: StrictStr = Field(..., alias="schema")
    created_at: StrictInt
    escrow: EscrowDetails

    model_config = _ENVELOPE_MODEL_CONFIG

    def to_json_dict(self) -> Dict[str, Any]:
        """JSON-compatible dict using wire (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True)


class EnvelopeSignature(BaseModel):
    """
    Signature block.

    ``signer`` is informational only. It is whatever the document claims
    and MUST NOT be used for any trust decision.
    """

    alg: Literal["secp256k1"] = "secp256k1"
    scheme: Literal["eip191"] = "eip191"
    kid: Optional[StrictStr] = None
    signer: StrictStr = ""
    sig: Optional[StrictStr] = None

    model_config = _ENVELOPE_MODEL_CONFIG


class EscrowPdfEnvelope(UnsignedEscrowMetadata):
    """Unsigned escrow metadata plus its signature block."""

    signing: Optional[EnvelopeSignature] = None

    def to_json_dict(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json", by_alias=True)

        # Optional signature-block fields are omitted rather than nulled.
        signing = payload.get("signing")
        if signing is None:
            payload.pop("signing", None)
        else:
            for key in ("kid", "sig"):
                if signing.get(key) is None:
                    signing.pop(key, None)

        return payload

    def unsigned_payload(self) -> Dict[str, Any]:
        """
        The exact JSON object the signature covers.

        All fields except ``signing`` are kept, including unknown ones.
        """
        payload = self.to_json_dict()
        payload.pop("signing", None)
        return payload
