"""
FastAPI entrypoint for the Verifier service.

Defines the public HTTP interface for escrow PDF verification and agent
contact string checks.

The service is stateless and zero-trust: the uploaded PDF is the sole
input, and the only trusted material is the signer allow-list loaded
from process configuration at startup.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional
from uuid import uuid4

from eth_utils import is_hex_address
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from starlette.responses import Response

from verifier.app.agents.contact_codec import (
    CONTACT_MAX_BYTES,
    build_contact_string,
    byte_length_utf8,
    parse_contact_string,
    parsed_entry_to_input,
    validate_contact_string_strict,
    validate_contact_submission,
)
from verifier.app.config import VerifierConfig
from verifier.app.coordinator.coordinator import PdfVerificationCoordinator
from verifier.app.schemas.contacts import (
    ContactParseReport,
    ContactParseRequest,
    ContactSubmissionRequest,
    ContactValidationReport,
    ParsedContact,
)
from verifier.app.schemas.verification import PdfVerificationReport

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Presentation helpers (presentation-only)
# ---------------------------------------------------------------------------

def pretty_json(data: Any) -> str:
    """
    Pretty-print JSON for human-readable output.

    PRESENTATION ONLY: never use this for signing or hashing. The
    canonical form lives in verifier.app.utils.canonical_json.
    """
    return json.dumps(
        data,
        ensure_ascii=False,
        allow_nan=False,
        indent=2,
        separators=(", ", ": "),
    )


class PrettyJSONResponse(Response):
    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        return pretty_json(content).encode("utf-8")


# ---------------------------------------------------------------------------
# Application setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Escrow PDF Verifier",
    description="Trust-anchored verification of Zenland escrow agreement PDFs",
    version="0.1.0",
)


@app.on_event("startup")
def startup_event() -> None:
    """
    Application startup hook.

    Configuration is loaded once and treated as immutable for the lifetime
    of the process.
    """
    config = VerifierConfig.from_env()

    app.state.config = config
    app.state.coordinator = PdfVerificationCoordinator.from_config(config)

    logger.info(
        "Verifier started with %d allowed signer(s), on-chain verification %s",
        len(config.ALLOWED_SIGNERS),
        "enabled" if config.ENABLE_ONCHAIN_VERIFICATION else "disabled",
    )


# ---------------------------------------------------------------------------
# PDF verification
# ---------------------------------------------------------------------------

@app.post(
    "/verify",
    response_model=PdfVerificationReport,
    response_class=PrettyJSONResponse,
    summary="Verify an escrow agreement PDF",
)
async def verify_document(
    pdf: UploadFile = File(..., description="Escrow agreement PDF to verify"),
    connected_address: Optional[str] = Form(
        None,
        description="Connected wallet address, for role-aware instructions",
    ),
) -> PdfVerificationReport:
    """
    Verify the signed envelope of an uploaded PDF.

    A PDF that is not a Zenland escrow document is not an error: the
    report says so with ``signature.ok == false``.
    """
    if connected_address is not None and not is_hex_address(connected_address):
        raise HTTPException(
            status_code=400,
            detail="connected_address is not a valid address",
        )

    if pdf.content_type != "application/pdf":
        raise HTTPException(
            status_code=400,
            detail="Only application/pdf content is supported",
        )

    try:
        pdf_bytes = await pdf.read()
    except Exception as exc:
        raise HTTPException(
            status_code=400,
            detail="Failed to read uploaded PDF",
        ) from exc

    if not pdf_bytes:
        raise HTTPException(
            status_code=400,
            detail="Uploaded PDF is empty",
        )

    # ------------------------------------------------------------------
    # Hard resource safety limits (NOT trust decisions)
    # ------------------------------------------------------------------
    config: VerifierConfig = app.state.config
    max_size_bytes = config.MAX_PDF_SIZE_MB * 1024 * 1024

    if len(pdf_bytes) > max_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=(
                f"PDF exceeds maximum allowed size of "
                f"{config.MAX_PDF_SIZE_MB} MB"
            ),
        )

    coordinator: PdfVerificationCoordinator = app.state.coordinator

    return await coordinator.run_verification_async(
        pdf_bytes=pdf_bytes,
        verification_id=str(uuid4()),
        connected_address=connected_address,
    )


# ---------------------------------------------------------------------------
# Agent contact strings
# ---------------------------------------------------------------------------

@app.post(
    "/contacts/validate",
    response_model=ContactValidationReport,
    summary="Build and validate an agent contact string",
)
def validate_contacts(request: ContactSubmissionRequest) -> ContactValidationReport:
    contact = build_contact_string(request.primary, request.secondary)
    errors = validate_contact_submission(request.primary, request.secondary)

    return ContactValidationReport(
        contact=contact,
        byte_length=byte_length_utf8(contact),
        max_bytes=CONTACT_MAX_BYTES,
        valid=not errors,
        errors=errors,
    )


@app.post(
    "/contacts/parse",
    response_model=ContactParseReport,
    summary="Parse an on-chain agent contact string",
)
def parse_contacts(request: ContactParseRequest) -> ContactParseReport:
    entries = [
        ParsedContact(entry=entry, input=parsed_entry_to_input(entry))
        for entry in parse_contact_string(request.contact)
    ]
    return ContactParseReport(
        entries=entries,
        errors=validate_contact_string_strict(request.contact, require_primary=False),
    )


# ---------------------------------------------------------------------------
# Health Check
# ---------------------------------------------------------------------------

@app.get(
    "/health",
    summary="Service health check",
)
def health_check() -> JSONResponse:
    """Simple health check endpoint."""
    return JSONResponse(
        content={
            "status": "ok",
            "service": "verifier",
        }
    )
