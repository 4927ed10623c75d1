"""
Contact endpoint request/response schemas.

Thin transport wrappers around the contact codec types.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from verifier.app.agents.contact_codec import (
    ContactEntryInput,
    ContactValidationError,
    ParsedContactEntry,
)


class ContactSubmissionRequest(BaseModel):
    primary: Optional[ContactEntryInput] = None
    secondary: Optional[ContactEntryInput] = None

    model_config = ConfigDict(frozen=True)


class ContactValidationReport(BaseModel):
    contact: str = Field(..., description="Built on-chain contact string")
    byte_length: int = Field(..., description="UTF-8 byte length of contact")
    max_bytes: int
    valid: bool
    errors: List[ContactValidationError]

    model_config = ConfigDict(frozen=True)


class ContactParseRequest(BaseModel):
    contact: str

    model_config = ConfigDict(frozen=True)


class ParsedContact(BaseModel):
    entry: ParsedContactEntry
    input: ContactEntryInput

    model_config = ConfigDict(frozen=True)


class ContactParseReport(BaseModel):
    entries: List[ParsedContact]
    errors: List[ContactValidationError] = Field(
        default_factory=list,
        description="Strict-format violations of the stored string",
    )

    model_config = ConfigDict(frozen=True)
