"""
Central verification coordinator.

Execution order:
    1. Envelope signature verification (deterministic, mandatory)
    2. Terms hash computation (deterministic, mandatory)
    3. On-chain terms hash comparison (optional, network-bound)
    4. Role-aware wallet instructions (only when the on-chain state is known)

Hard stop:
    On-chain comparison only runs for authentic envelopes. An envelope
    that failed verification carries no escrow address worth querying.

The coordinator enforces ordering and aggregates results. Of an
authentic envelope it reads only the escrow address, chain and parties.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from anyio import to_thread

from verifier.app.config import VerifierConfig
from verifier.app.coordinator.instructions import (
    determine_user_role,
    get_verification_instructions,
)
from verifier.app.coordinator.onchain_verification import (
    EscrowContractReader,
    Web3EscrowContractReader,
    verify_on_chain,
)
from verifier.app.coordinator.signature_verification import (
    EnvelopeSignatureVerifier,
)
from verifier.app.schemas.verification import (
    EscrowRole,
    OnChainStatus,
    OnChainStatusKind,
    PdfVerificationReport,
    WalletInstructions,
)
from verifier.app.utils.hashing import compute_terms_hash

logger = logging.getLogger(__name__)


class PdfVerificationCoordinator:
    """Verification coordinator for escrow agreement PDFs."""

    def __init__(
        self,
        signature_verifier: EnvelopeSignatureVerifier,
        contract_reader: Optional[EscrowContractReader] = None,
    ) -> None:
        """
        Direct constructor.

        Intended for tests and explicit wiring. Without a contract reader
        the on-chain comparison is skipped.
        """
        self._signature_verifier = signature_verifier
        self._contract_reader = contract_reader

    # ------------------------------------------------------------------
    # Integration constructor (composition root)
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, config: VerifierConfig) -> "PdfVerificationCoordinator":
        signature_verifier = EnvelopeSignatureVerifier(
            allowed_signers=config.ALLOWED_SIGNERS,
            expected_schema=config.EXPECTED_SCHEMA,
        )

        contract_reader = None
        if config.ENABLE_ONCHAIN_VERIFICATION:
            contract_reader = Web3EscrowContractReader(
                rpc_urls=config.rpc_urls,
                timeout_seconds=config.RPC_TIMEOUT_SECONDS,
            )

        return cls(
            signature_verifier=signature_verifier,
            contract_reader=contract_reader,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run_verification(
        self,
        pdf_bytes: bytes,
        verification_id: Optional[str] = None,
        connected_address: Optional[str] = None,
    ) -> PdfVerificationReport:
        verification_id = verification_id or str(uuid4())

        signature = self._signature_verifier.verify_pdf(pdf_bytes)
        pdf_hash = compute_terms_hash(pdf_bytes)

        on_chain: Optional[OnChainStatus] = None
        if signature.ok and self._contract_reader is not None:
            escrow = signature.envelope.escrow
            on_chain = verify_on_chain(
                self._contract_reader,
                escrow_address=escrow.escrow_address,
                chain_id=escrow.chain_id,
                pdf_hash=pdf_hash,
            )

        role: Optional[EscrowRole] = None
        instructions: Optional[WalletInstructions] = None
        if on_chain is not None and on_chain.status is not OnChainStatusKind.ERROR:
            escrow = signature.envelope.escrow
            role = determine_user_role(
                connected_address, escrow.buyer, escrow.seller, escrow.agent
            )
            instructions = get_verification_instructions(
                on_chain.state, role, is_connected=bool(connected_address)
            )

        logger.info(
            "Verification %s finished: signature_ok=%s on_chain=%s",
            verification_id,
            signature.ok,
            on_chain.status.value if on_chain else None,
        )

        return PdfVerificationReport(
            verification_id=verification_id,
            signature=signature,
            pdf_hash=pdf_hash,
            on_chain=on_chain,
            role=role,
            instructions=instructions,
        )

    async def run_verification_async(
        self,
        pdf_bytes: bytes,
        verification_id: Optional[str] = None,
        connected_address: Optional[str] = None,
    ) -> PdfVerificationReport:
        """Run :meth:`run_verification` in a worker thread."""
        return await to_thread.run_sync(
            self.run_verification, pdf_bytes, verification_id, connected_address
        )
