"""
Runtime configuration for the envelope issuer.

The issuer holds the PDF signing key. Its address must appear in every
verifier's allow-list for issued documents to verify.
"""

from __future__ import annotations

import os
from typing import Optional

from eth_account import Account
from pydantic import BaseModel, Field, SecretStr, field_validator


class IssuerConfig(BaseModel):
    """Issuer configuration, loaded once at startup."""

    PDF_SIGNING_PRIVATE_KEY: SecretStr = Field(
        ...,
        description="Hex-encoded secp256k1 key used to sign escrow envelopes",
    )

    SIGNING_KID: Optional[str] = Field(
        None,
        description="Optional key identifier written into signature blocks",
    )

    @field_validator("PDF_SIGNING_PRIVATE_KEY")
    @classmethod
    def validate_private_key(cls, v: SecretStr) -> SecretStr:
        try:
            Account.from_key(v.get_secret_value())
        except (ValueError, TypeError) as exc:
            raise ValueError("PDF_SIGNING_PRIVATE_KEY is not a valid private key.") from exc
        return v

    @property
    def signer_address(self) -> str:
        return Account.from_key(self.PDF_SIGNING_PRIVATE_KEY.get_secret_value()).address

    @classmethod
    def from_env(cls) -> "IssuerConfig":
        key = os.getenv("ISSUER_PDF_SIGNING_PRIVATE_KEY")
        if not key:
            raise RuntimeError("ISSUER_PDF_SIGNING_PRIVATE_KEY is not set")

        return cls(
            PDF_SIGNING_PRIVATE_KEY=key,
            SIGNING_KID=os.getenv("ISSUER_SIGNING_KID") or None,
        )

    model_config = {
        "frozen": True,
    }
