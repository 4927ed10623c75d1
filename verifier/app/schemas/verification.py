"""
Verification result schemas.

Defines the structured outcomes produced by the verifier:

- EnvelopeVerificationResult: the signature verification pipeline result
- OnChainStatus: comparison of the PDF terms hash with contract state
- WalletInstructions: role-aware guidance for the connected wallet
- PdfVerificationReport: the aggregate returned to callers

Verification never raises for adversarial input. Every failure is
represented here with a human-readable reason.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from verifier.app.schemas.envelope import EscrowPdfEnvelope


# ---------------------------------------------------------------------------
# Enumerations (FROZEN CONTRACTS)
# ---------------------------------------------------------------------------


class VerificationStep(str, Enum):
    """
    Pipeline step at which verification stopped.

    Ordering is the execution order and MUST remain stable.
    """

    EXTRACT = "extract"
    SCHEMA = "schema"
    SIGNATURE = "signature"
    RECOVERY = "recovery"
    TRUST = "trust"


class OnChainStatusKind(str, Enum):
    NOT_DEPLOYED = "not_deployed"
    HASH_MATCH = "hash_match"
    HASH_MISMATCH = "hash_mismatch"
    ERROR = "error"


class EscrowRole(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    AGENT = "agent"
    NONE = "none"


class InstructionVariant(str, Enum):
    INFO = "info"
    ACTION = "action"
    COMPLETED = "completed"
    WARNING = "warning"


# ---------------------------------------------------------------------------
# Signature verification
# ---------------------------------------------------------------------------


class EnvelopeVerificationResult(BaseModel):
    """
    Outcome of envelope signature verification.

    ``signer`` is the cryptographically recovered address, never the
    address embedded in the envelope.
    """

    ok: bool = Field(..., description="Whether the envelope is authentic")

    signer: Optional[str] = Field(
        None,
        description="Recovered, allow-listed signer (checksum address)",
    )

    envelope: Optional[EscrowPdfEnvelope] = Field(
        None,
        description="The verified envelope (present only when ok is true)",
    )

    reason: Optional[str] = Field(
        None,
        description="Human-readable failure reason",
    )

    failed_step: Optional[VerificationStep] = Field(
        None,
        description="Pipeline step that stopped verification",
    )

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _consistent_outcome(self) -> "EnvelopeVerificationResult":
        if self.ok:
            if self.signer is None or self.envelope is None:
                raise ValueError("A successful result requires signer and envelope")
            if self.reason is not None or self.failed_step is not None:
                raise ValueError("A successful result cannot carry a failure reason")
        elif self.reason is None or self.failed_step is None:
            raise ValueError("A failed result requires reason and failed_step")
        return self

    @classmethod
    def failure(
        cls, step: VerificationStep, reason: str
    ) -> "EnvelopeVerificationResult":
        return cls(ok=False, reason=reason, failed_step=step)

    @classmethod
    def success(
        cls, signer: str, envelope: EscrowPdfEnvelope
    ) -> "EnvelopeVerificationResult":
        return cls(ok=True, signer=signer, envelope=envelope)


# ---------------------------------------------------------------------------
# On-chain comparison
# ---------------------------------------------------------------------------


class OnChainStatus(BaseModel):
    """
    Result of comparing the PDF terms hash with the escrow contract.

    ``state`` is the raw contract state value and is present for
    hash_match and hash_mismatch.
    """

    status: OnChainStatusKind
    state: Optional[int] = None
    on_chain_hash: Optional[str] = None
    pdf_hash: Optional[str] = None
    message: Optional[str] = None

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Wallet guidance
# ---------------------------------------------------------------------------


class WalletInstructions(BaseModel):
    """Instruction shown to the connected wallet next to a result."""

    title: str
    description: str
    variant: InstructionVariant

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Aggregate report
# ---------------------------------------------------------------------------


class PdfVerificationReport(BaseModel):
    """Aggregate verification report for one PDF artifact."""

    verification_id: str
    signature: EnvelopeVerificationResult
    pdf_hash: str = Field(
        ...,
        description="keccak-256 of the PDF bytes (0x-prefixed)",
    )
    on_chain: Optional[OnChainStatus] = Field(
        None,
        description=(
            "On-chain terms hash comparison. Absent when signature "
            "verification failed or on-chain verification is disabled."
        ),
    )
    role: Optional[EscrowRole] = Field(
        None,
        description="Role of the connected wallet in the verified escrow",
    )
    instructions: Optional[WalletInstructions] = Field(
        None,
        description=(
            "Role-aware guidance. Present only when the on-chain state "
            "of an authentic envelope could be determined."
        ),
    )

    model_config = ConfigDict(frozen=True)
