"""
Runtime configuration for the Verifier service.

This module centralizes environment-driven configuration: the pinned
signer trust anchor, resource limits, and optional on-chain verification
endpoints.

Configuration is read-only at runtime. The trust anchor in particular is
process-wide static configuration and is NEVER derived from a document
under verification.
"""

from __future__ import annotations

import os
from typing import Dict, Tuple

from eth_utils import is_hex_address
from pydantic import BaseModel, Field, ValidationInfo, field_validator

from verifier.app.schemas.envelope import ZENLAND_ESCROW_PDF_SCHEMA_V1


# Production signer derived from the PDF service signing key. Anyone
# verifying must already know this address from a trusted source.
ZENLAND_PDF_ALLOWED_SIGNERS: Tuple[str, ...] = (
    "0x04311E018004AF0a8Ab3e74ABf75675D88Bd2549",
)

MAINNET_CHAIN_ID = 1
SEPOLIA_CHAIN_ID = 11155111


class VerifierConfig(BaseModel):
    """
    Runtime configuration for the Verifier service.

    Configuration is environment-driven, read-only at runtime, and must
    not introduce non-deterministic behavior into verification outcomes.
    """

    # ------------------------------------------------------------------
    # Trust anchor
    # ------------------------------------------------------------------

    ALLOWED_SIGNERS: Tuple[str, ...] = Field(
        ZENLAND_PDF_ALLOWED_SIGNERS,
        description=(
            "Addresses allowed to sign escrow PDF envelopes. Compared "
            "case-insensitively against the recovered signer."
        ),
    )

    EXPECTED_SCHEMA: str = Field(
        ZENLAND_ESCROW_PDF_SCHEMA_V1,
        description="Exact envelope schema version accepted by the verifier",
    )

    # ------------------------------------------------------------------
    # Safety and resource limits
    # ------------------------------------------------------------------

    MAX_PDF_SIZE_MB: int = Field(
        25,
        description="Maximum allowed PDF size in megabytes",
    )

    # ------------------------------------------------------------------
    # On-chain terms hash verification
    # ------------------------------------------------------------------

    ENABLE_ONCHAIN_VERIFICATION: bool = Field(
        False,
        description="Compare the PDF terms hash with the escrow contract",
    )

    RPC_URL_MAINNET: str = Field(
        "",
        description="JSON-RPC endpoint for Ethereum mainnet",
    )

    RPC_URL_SEPOLIA: str = Field(
        "",
        description="JSON-RPC endpoint for the Sepolia testnet",
        validate_default=True,
    )

    RPC_TIMEOUT_SECONDS: float = Field(
        10.0,
        description="Per-request JSON-RPC timeout",
    )

    # ------------------------------------------------------------------
    # Validators (Pydantic v2)
    # ------------------------------------------------------------------

    @field_validator("ALLOWED_SIGNERS")
    @classmethod
    def validate_allowed_signers(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if not v:
            raise ValueError("ALLOWED_SIGNERS must contain at least one address.")
        invalid = [s for s in v if not is_hex_address(s)]
        if invalid:
            raise ValueError(f"ALLOWED_SIGNERS contains invalid addresses: {invalid}")
        return v

    @field_validator("MAX_PDF_SIZE_MB")
    @classmethod
    def validate_max_pdf_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("MAX_PDF_SIZE_MB must be positive.")
        return v

    @field_validator("RPC_URL_SEPOLIA")
    @classmethod
    def rpc_required_if_onchain_enabled(
        cls, v: str, info: ValidationInfo
    ) -> str:
        if info.data.get("ENABLE_ONCHAIN_VERIFICATION"):
            if not (v or info.data.get("RPC_URL_MAINNET")):
                raise ValueError(
                    "ENABLE_ONCHAIN_VERIFICATION is true but no RPC URL "
                    "is configured."
                )
        return v

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def rpc_urls(self) -> Dict[int, str]:
        urls: Dict[int, str] = {}
        if self.RPC_URL_MAINNET:
            urls[MAINNET_CHAIN_ID] = self.RPC_URL_MAINNET
        if self.RPC_URL_SEPOLIA:
            urls[SEPOLIA_CHAIN_ID] = self.RPC_URL_SEPOLIA
        return urls

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "VerifierConfig":
        """
        Load configuration from environment variables.

        All values are parsed once at startup and must remain immutable.
        """

        def env_bool(name: str, default: bool) -> bool:
            raw = os.getenv(name)
            if raw is None:
                return default
            return raw.lower() in {"1", "true", "yes", "on"}

        signers_env = os.getenv("VERIFIER_ALLOWED_SIGNERS")

        return cls(
            ALLOWED_SIGNERS=(
                tuple(s.strip() for s in signers_env.split(",") if s.strip())
                if signers_env
                else ZENLAND_PDF_ALLOWED_SIGNERS
            ),
            MAX_PDF_SIZE_MB=int(
                os.getenv("VERIFIER_MAX_PDF_SIZE_MB", "25")
            ),
            ENABLE_ONCHAIN_VERIFICATION=env_bool(
                "VERIFIER_ENABLE_ONCHAIN_VERIFICATION", False
            ),
            RPC_URL_MAINNET=os.getenv(
                "VERIFIER_RPC_URL_MAINNET", ""
            ),
            RPC_URL_SEPOLIA=os.getenv(
                "VERIFIER_RPC_URL_SEPOLIA", ""
            ),
            RPC_TIMEOUT_SECONDS=float(
                os.getenv("VERIFIER_RPC_TIMEOUT_SECONDS", "10")
            ),
        )

    model_config = {
        "frozen": True,
    }
