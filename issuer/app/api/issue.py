"""
Escrow PDF issuance endpoint.

Clients supply a rendered agreement PDF and the escrow metadata it
describes. Signing and binding are performed exclusively by this
service; the signing key never leaves it.

The X-Terms-Hash response header carries the keccak-256 of the returned
PDF bytes, ready to be committed on-chain when the escrow is created.
"""

import io
import logging

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from issuer.app.services.issuance import issue_escrow_pdf
from issuer.app.services.pdf_metadata import PdfMetadataError
from verifier.app.schemas.envelope import UnsignedEscrowMetadata

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    summary="Sign escrow metadata and bind it into a PDF",
)
async def issue_document(
    request: Request,
    pdf: UploadFile = File(..., description="Rendered agreement PDF"),
    metadata: str = Form(..., description="Unsigned escrow metadata (JSON)"),
) -> StreamingResponse:
    if pdf.content_type != "application/pdf":
        raise HTTPException(
            status_code=400,
            detail="Only application/pdf content is supported",
        )

    pdf_bytes = await pdf.read()
    if not pdf_bytes:
        raise HTTPException(status_code=400, detail="Uploaded PDF is empty")

    try:
        unsigned = UnsignedEscrowMetadata.model_validate_json(metadata)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    try:
        issued = issue_escrow_pdf(pdf_bytes, unsigned, request.app.state.config)
    except PdfMetadataError as exc:
        logger.warning("Escrow PDF issuance rejected: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return StreamingResponse(
        io.BytesIO(issued.pdf_bytes),
        media_type="application/pdf",
        headers={
            "Content-Disposition": 'inline; filename="escrow-agreement.pdf"',
            "X-Terms-Hash": issued.terms_hash,
            "X-Envelope-Signer": issued.envelope.signing.signer,
        },
    )
