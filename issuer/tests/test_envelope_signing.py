import pytest

from issuer.app.services.envelope_signing import EnvelopeSigningError, sign_envelope
from verifier.app.coordinator.signature_verification import EnvelopeSignatureVerifier
from verifier.app.schemas.envelope import UnsignedEscrowMetadata

from verifier.tests.fixtures.envelopes import (
    TRUSTED_KEY,
    TRUSTED_SIGNER,
    signed_envelope,
    unsigned_metadata_dict,
)


@pytest.fixture
def unsigned():
    return UnsignedEscrowMetadata.model_validate(unsigned_metadata_dict())


def test_signed_envelope_verifies(unsigned):
    envelope = sign_envelope(unsigned, TRUSTED_KEY)

    result = EnvelopeSignatureVerifier([TRUSTED_SIGNER]).verify_envelope(envelope)

    assert result.ok is True
    assert result.signer == TRUSTED_SIGNER


def test_signature_block_contents(unsigned):
    envelope = sign_envelope(unsigned, TRUSTED_KEY, kid="pdf-2025-01")

    assert envelope.signing.alg == "secp256k1"
    assert envelope.signing.scheme == "eip191"
    assert envelope.signing.kid == "pdf-2025-01"
    assert envelope.signing.signer == TRUSTED_SIGNER
    assert envelope.signing.sig.startswith("0x")
    assert len(envelope.signing.sig) == 2 + 65 * 2


def test_signing_does_not_alter_payload(unsigned):
    envelope = sign_envelope(unsigned, TRUSTED_KEY)
    assert envelope.unsigned_payload() == unsigned.to_json_dict()


def test_matches_independently_produced_signature(unsigned):
    # Signing is deterministic (RFC 6979).
    assert sign_envelope(unsigned, TRUSTED_KEY).signing.sig == signed_envelope().signing.sig


def test_resigning_replaces_existing_block(unsigned):
    first = sign_envelope(unsigned, TRUSTED_KEY, kid="old")

    second = sign_envelope(first, TRUSTED_KEY)

    assert second.signing.kid is None
    assert second.signing.sig == first.signing.sig


def test_unknown_fields_are_signed():
    data = unsigned_metadata_dict()
    data["issuer"] = {"build": "2025.01"}
    unsigned = UnsignedEscrowMetadata.model_validate(data)

    envelope = sign_envelope(unsigned, TRUSTED_KEY)

    assert envelope.unsigned_payload()["issuer"] == {"build": "2025.01"}
    assert EnvelopeSignatureVerifier([TRUSTED_SIGNER]).verify_envelope(envelope).ok


def test_malformed_key_raises(unsigned):
    with pytest.raises(EnvelopeSigningError):
        sign_envelope(unsigned, "0x1234")


def test_metadata_without_canonical_form_raises():
    data = unsigned_metadata_dict()
    data["ratio"] = 1e-7
    unsigned = UnsignedEscrowMetadata.model_validate(data)

    with pytest.raises(EnvelopeSigningError):
        sign_envelope(unsigned, TRUSTED_KEY)
