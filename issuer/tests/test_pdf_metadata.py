import pytest

from issuer.app.services.pdf_metadata import (
    PdfMetadataError,
    embed_envelope,
    embed_subject,
)
from verifier.app.checks.subject_extraction import extract_subject
from verifier.app.codecs.envelope_codec import decode_envelope
from verifier.app.schemas.envelope import EscrowPdfEnvelope

from verifier.tests.fixtures.envelopes import signed_envelope, signed_envelope_dict
from verifier.tests.fixtures.pdf_factory import minimal_valid_pdf, not_a_pdf


def test_subject_is_written():
    pdf = embed_subject(minimal_valid_pdf(), "hello subject")
    assert extract_subject(pdf) == "hello subject"


def test_envelope_survives_embedding():
    envelope = signed_envelope()

    pdf = embed_envelope(minimal_valid_pdf(), envelope)

    assert decode_envelope(extract_subject(pdf)) == envelope


def test_unsigned_envelope_is_refused():
    data = signed_envelope_dict()
    data.pop("signing")

    with pytest.raises(PdfMetadataError):
        embed_envelope(minimal_valid_pdf(), EscrowPdfEnvelope.model_validate(data))


def test_unparseable_pdf_raises():
    with pytest.raises(PdfMetadataError):
        embed_subject(not_a_pdf(), "x")
