import pytest
from web3.exceptions import BadFunctionCallOutput

from verifier.app.codecs.envelope_codec import encode_envelope
from verifier.app.config import VerifierConfig
from verifier.app.coordinator.coordinator import PdfVerificationCoordinator
from verifier.app.coordinator.onchain_verification import (
    EscrowState,
    Web3EscrowContractReader,
)
from verifier.app.coordinator.signature_verification import (
    EnvelopeSignatureVerifier,
)
from verifier.app.schemas.verification import (
    EscrowRole,
    InstructionVariant,
    OnChainStatusKind,
    VerificationStep,
)
from verifier.app.utils.hashing import compute_terms_hash

from verifier.tests.fixtures.envelopes import (
    TRUSTED_SIGNER,
    UNTRUSTED_KEY,
    signed_envelope,
)
from verifier.tests.fixtures.pdf_factory import minimal_valid_pdf, pdf_with_subject


pytestmark = pytest.mark.anyio


class RecordingReader:
    def __init__(self, terms_hash: str, state: int = EscrowState.ACTIVE):
        self.terms_hash = terms_hash
        self.state = state
        self.calls = []

    def read_terms_hash(self, escrow_address, chain_id):
        self.calls.append((escrow_address, chain_id))
        return self.terms_hash

    def read_state(self, escrow_address, chain_id):
        return int(self.state)


@pytest.fixture
def verifier():
    return EnvelopeSignatureVerifier(allowed_signers=[TRUSTED_SIGNER])


@pytest.fixture
def authentic_pdf():
    return pdf_with_subject(encode_envelope(signed_envelope()))


async def test_authentic_pdf_without_reader_skips_on_chain(verifier, authentic_pdf):
    coordinator = PdfVerificationCoordinator(signature_verifier=verifier)

    report = await coordinator.run_verification_async(authentic_pdf, "v-1")

    assert report.verification_id == "v-1"
    assert report.signature.ok is True
    assert report.signature.signer == TRUSTED_SIGNER
    assert report.pdf_hash == compute_terms_hash(authentic_pdf)
    assert report.on_chain is None


async def test_on_chain_match_for_the_signed_escrow(verifier, authentic_pdf):
    reader = RecordingReader(terms_hash=compute_terms_hash(authentic_pdf))
    coordinator = PdfVerificationCoordinator(verifier, contract_reader=reader)

    report = await coordinator.run_verification_async(authentic_pdf)

    assert report.on_chain.status is OnChainStatusKind.HASH_MATCH
    assert report.on_chain.state == EscrowState.ACTIVE
    assert reader.calls == [("0x1111111111111111111111111111111111111111", 1)]
    assert report.verification_id


async def test_on_chain_mismatch_is_reported(verifier, authentic_pdf):
    reader = RecordingReader(terms_hash="0x" + "00" * 32)
    coordinator = PdfVerificationCoordinator(verifier, contract_reader=reader)

    report = await coordinator.run_verification_async(authentic_pdf)

    assert report.signature.ok is True
    assert report.on_chain.status is OnChainStatusKind.HASH_MISMATCH
    assert report.on_chain.pdf_hash == report.pdf_hash


async def test_failed_signature_stops_before_on_chain(verifier):
    pdf = pdf_with_subject(encode_envelope(signed_envelope(private_key=UNTRUSTED_KEY)))
    reader = RecordingReader(terms_hash=compute_terms_hash(pdf))
    coordinator = PdfVerificationCoordinator(verifier, contract_reader=reader)

    report = await coordinator.run_verification_async(pdf)

    assert report.signature.ok is False
    assert report.signature.failed_step is VerificationStep.TRUST
    assert report.on_chain is None
    assert reader.calls == []


def test_sync_run_on_plain_pdf(verifier):
    pdf = minimal_valid_pdf()

    report = PdfVerificationCoordinator(verifier).run_verification(pdf)

    assert report.signature.failed_step is VerificationStep.EXTRACT
    assert report.pdf_hash == compute_terms_hash(pdf)


def test_from_config_without_on_chain():
    config = VerifierConfig(ALLOWED_SIGNERS=(TRUSTED_SIGNER,))

    coordinator = PdfVerificationCoordinator.from_config(config)

    assert coordinator._contract_reader is None
    assert coordinator._signature_verifier.allowed_signers == {TRUSTED_SIGNER.lower()}


def test_from_config_with_on_chain():
    config = VerifierConfig(
        ALLOWED_SIGNERS=(TRUSTED_SIGNER,),
        ENABLE_ONCHAIN_VERIFICATION=True,
        RPC_URL_SEPOLIA="http://127.0.0.1:8545",
    )

    coordinator = PdfVerificationCoordinator.from_config(config)

    assert isinstance(coordinator._contract_reader, Web3EscrowContractReader)


# ---------------------------------------------------------------------------
# Wallet instructions
# ---------------------------------------------------------------------------

SELLER = "0x3333333333333333333333333333333333333333"


async def test_seller_gets_role_aware_instructions(verifier, authentic_pdf):
    reader = RecordingReader(terms_hash=compute_terms_hash(authentic_pdf))
    coordinator = PdfVerificationCoordinator(verifier, contract_reader=reader)

    report = await coordinator.run_verification_async(
        authentic_pdf, connected_address=SELLER
    )

    assert report.role is EscrowRole.SELLER
    assert report.instructions.title == "Safe to Deliver"
    assert report.instructions.variant is InstructionVariant.ACTION


def test_disconnected_viewer_is_asked_to_connect(verifier, authentic_pdf):
    reader = RecordingReader(terms_hash=compute_terms_hash(authentic_pdf))
    coordinator = PdfVerificationCoordinator(verifier, contract_reader=reader)

    report = coordinator.run_verification(authentic_pdf)

    assert report.role is EscrowRole.NONE
    assert report.instructions.title == "Connect Wallet"


def test_undeployed_escrow_instructions(verifier, authentic_pdf):
    reader = RecordingReader(terms_hash="")
    reader.read_terms_hash = _raise(BadFunctionCallOutput("no data"))
    coordinator = PdfVerificationCoordinator(verifier, contract_reader=reader)

    report = coordinator.run_verification(authentic_pdf, connected_address=SELLER)

    assert report.on_chain.status is OnChainStatusKind.NOT_DEPLOYED
    assert report.instructions.title == "Contract Not Found"


def test_no_instructions_without_on_chain_state(verifier, authentic_pdf):
    report = PdfVerificationCoordinator(verifier).run_verification(
        authentic_pdf, connected_address=SELLER
    )

    assert report.role is None
    assert report.instructions is None


def test_no_instructions_when_chain_read_errors(verifier, authentic_pdf):
    reader = RecordingReader(terms_hash="")
    reader.read_terms_hash = _raise(ConnectionError("connection refused"))
    coordinator = PdfVerificationCoordinator(verifier, contract_reader=reader)

    report = coordinator.run_verification(authentic_pdf, connected_address=SELLER)

    assert report.on_chain.status is OnChainStatusKind.ERROR
    assert report.instructions is None


def _raise(exc):
    def read(escrow_address, chain_id):
        raise exc

    return read
