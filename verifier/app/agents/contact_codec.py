"""
Agent contact string codec.

Agents publish their contact methods on-chain as a single string. The
agent registry contract caps that string at 50 bytes, so every encode
path must be checked against the UTF-8 byte length before submission.

Format:
    "<name>:<value>"  or  "<name>:<value>;<name>:<value>"

    telegram:@username
    email:someone@example.com
    discord:@username;forum:agent_42

Legacy compatibility (parse only):
    Older registrations stored free text, either a single value or two
    values joined by "|". Such entries parse as nameless and can be
    upgraded with a best-effort kind guess. Newly built strings never use
    the legacy form.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


CONTACT_MAX_BYTES = 50
CONTACT_ENTRY_SEPARATOR = ";"
LEGACY_ENTRY_SEPARATOR = "|"

MAX_EMAIL_LENGTH = 254
LEGACY_CUSTOM_NAME = "contact"

_HANDLE_RE = re.compile(r"@[A-Za-z0-9_]{3,32}")
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_CUSTOM_NAME_RE = re.compile(r"[a-z][a-z0-9_-]{0,14}")


class ContactKind(str, Enum):
    TELEGRAM = "telegram"
    DISCORD = "discord"
    EMAIL = "email"
    CUSTOM = "custom"


PREDEFINED_CONTACT_NAMES = frozenset(
    {ContactKind.TELEGRAM.value, ContactKind.DISCORD.value, ContactKind.EMAIL.value}
)


# ---------------------------------------------------------------------------
# Entry types
# ---------------------------------------------------------------------------


class PredefinedContact(BaseModel):
    """A telegram, discord or email contact. The kind is the on-chain name."""

    kind: Literal["telegram", "discord", "email"]
    value: str

    model_config = ConfigDict(frozen=True)


class CustomContact(BaseModel):
    """A free-form contact with its own short lowercase name."""

    kind: Literal["custom"] = "custom"
    name: str
    value: str

    model_config = ConfigDict(frozen=True)


ContactEntryInput = Annotated[
    Union[PredefinedContact, CustomContact],
    Field(discriminator="kind"),
]


class ParsedContactEntry(BaseModel):
    """
    One entry of a parsed contact string.

    ``name`` is empty for legacy free-text entries.
    """

    name: str
    value: str
    raw: str

    model_config = ConfigDict(frozen=True)


class ContactValidationError(BaseModel):
    field: Literal["name", "value", "combined"]
    message: str

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def byte_length_utf8(value: str) -> int:
    return len(value.encode("utf-8"))


def is_handle(value: str) -> bool:
    return _HANDLE_RE.fullmatch(value) is not None


def is_email(value: str) -> bool:
    return _EMAIL_RE.fullmatch(value) is not None


def _entry_name(entry: Union[PredefinedContact, CustomContact]) -> str:
    if isinstance(entry, CustomContact):
        return entry.name.strip().lower()
    return entry.kind


def _split_with_compat(contact: str) -> List[str]:
    trimmed = contact.strip()
    if not trimmed:
        return []

    if CONTACT_ENTRY_SEPARATOR in trimmed:
        separator = CONTACT_ENTRY_SEPARATOR
    elif LEGACY_ENTRY_SEPARATOR in trimmed:
        separator = LEGACY_ENTRY_SEPARATOR
    else:
        return [trimmed]

    return [part.strip() for part in trimmed.split(separator) if part.strip()]


# ---------------------------------------------------------------------------
# Parse / build
# ---------------------------------------------------------------------------


def parse_contact_string(contact: str) -> List[ParsedContactEntry]:
    """
    Parse an on-chain contact string.

    Splits on ";" when present, otherwise on the legacy "|". Each piece is
    split on its first ":" into name and value. A piece without ":" is a
    legacy free-text entry with an empty name.
    """
    entries: List[ParsedContactEntry] = []
    for raw in _split_with_compat(contact):
        name, sep, value = raw.partition(":")
        if not sep:
            entries.append(ParsedContactEntry(name="", value=raw, raw=raw))
        else:
            entries.append(
                ParsedContactEntry(name=name.strip(), value=value.strip(), raw=raw)
            )
    return entries


def build_contact_entry(entry: Union[PredefinedContact, CustomContact]) -> str:
    """``name:value`` for a complete entry, or "" if name or value is empty."""
    name = _entry_name(entry)
    value = entry.value.strip()
    if not name or not value:
        return ""
    return f"{name}:{value}"


def build_contact_string(
    primary: Optional[Union[PredefinedContact, CustomContact]] = None,
    secondary: Optional[Union[PredefinedContact, CustomContact]] = None,
) -> str:
    """Join up to two entries with ";". Empty entries are omitted."""
    built = [
        build_contact_entry(entry)
        for entry in (primary, secondary)
        if entry is not None
    ]
    return CONTACT_ENTRY_SEPARATOR.join(e for e in built if e)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_contact_entry(
    entry: Union[PredefinedContact, CustomContact],
) -> List[ContactValidationError]:
    """Return every violation found in a single entry."""
    errors: List[ContactValidationError] = []

    name = _entry_name(entry)
    value = entry.value.strip()

    if not name:
        errors.append(
            ContactValidationError(field="name", message="Contact type/name is required")
        )
        return errors

    if isinstance(entry, CustomContact):
        if _CUSTOM_NAME_RE.fullmatch(name) is None:
            errors.append(
                ContactValidationError(
                    field="name",
                    message=(
                        "Custom contact name must be lowercase and contain only "
                        "letters, numbers, '_' or '-' (max 15 chars)"
                    ),
                )
            )
        if name in PREDEFINED_CONTACT_NAMES:
            errors.append(
                ContactValidationError(
                    field="name",
                    message="Custom contact name cannot be telegram/discord/email",
                )
            )
    elif name not in PREDEFINED_CONTACT_NAMES:
        errors.append(
            ContactValidationError(field="name", message="Unsupported contact type")
        )

    if not value:
        errors.append(
            ContactValidationError(field="value", message="Contact value is required")
        )
        return errors

    if CONTACT_ENTRY_SEPARATOR in value:
        errors.append(
            ContactValidationError(
                field="value",
                message=f"Value cannot include '{CONTACT_ENTRY_SEPARATOR}'",
            )
        )

    if name in (ContactKind.TELEGRAM.value, ContactKind.DISCORD.value):
        if not is_handle(value):
            errors.append(
                ContactValidationError(
                    field="value",
                    message=(
                        "Must be in the format @username "
                        "(3-32 chars, letters/numbers/underscore)"
                    ),
                )
            )

    if name == ContactKind.EMAIL.value:
        if len(value) > MAX_EMAIL_LENGTH or not is_email(value):
            errors.append(
                ContactValidationError(field="value", message="Invalid email address")
            )

    return errors


def validate_contact_string(contact: str) -> List[ContactValidationError]:
    """Byte budget check on a combined contact string."""
    length = byte_length_utf8(contact.strip())
    if length > CONTACT_MAX_BYTES:
        return [
            ContactValidationError(
                field="combined",
                message=(
                    f"Total contact info exceeds {CONTACT_MAX_BYTES} bytes "
                    f"({length}/{CONTACT_MAX_BYTES})"
                ),
            )
        ]
    return []


def validate_contact_string_strict(
    contact: str,
    require_primary: bool,
) -> List[ContactValidationError]:
    """
    Validate an already combined string as it would be stored on-chain.

    Free-text legacy entries are rejected here.
    """
    errors: List[ContactValidationError] = []

    trimmed = contact.strip()
    if not trimmed:
        if require_primary:
            errors.append(
                ContactValidationError(field="combined", message="Contact is required")
            )
        return errors

    errors.extend(validate_contact_string(trimmed))

    parsed = parse_contact_string(trimmed)
    if require_primary and not parsed:
        errors.append(
            ContactValidationError(field="combined", message="Contact is required")
        )
        return errors

    for entry in parsed:
        if not entry.name:
            errors.append(
                ContactValidationError(
                    field="combined",
                    message="Contact must be in the format name:value",
                )
            )
            continue
        errors.extend(validate_contact_entry(_input_from_name(entry.name, entry.value)))

    return errors


def validate_contact_submission(
    primary: Optional[Union[PredefinedContact, CustomContact]],
    secondary: Optional[Union[PredefinedContact, CustomContact]] = None,
) -> List[ContactValidationError]:
    """
    Gate for registry submission.

    Collects per-entry errors and the byte budget of the combined string.
    An empty result means the built string may be submitted.
    """
    errors: List[ContactValidationError] = []

    if primary is None:
        errors.append(
            ContactValidationError(field="combined", message="Contact is required")
        )
    else:
        errors.extend(validate_contact_entry(primary))

    if secondary is not None:
        errors.extend(validate_contact_entry(secondary))

    errors.extend(validate_contact_string(build_contact_string(primary, secondary)))
    return errors


# ---------------------------------------------------------------------------
# Legacy upgrade
# ---------------------------------------------------------------------------


def kind_from_parsed_name(name: str) -> ContactKind:
    normalized = name.strip().lower()
    if normalized in PREDEFINED_CONTACT_NAMES:
        return ContactKind(normalized)
    return ContactKind.CUSTOM


def _input_from_name(name: str, value: str) -> Union[PredefinedContact, CustomContact]:
    kind = kind_from_parsed_name(name)
    if kind is ContactKind.CUSTOM:
        return CustomContact(name=name, value=value)
    return PredefinedContact(kind=kind.value, value=value)


def guess_contact_kind_from_legacy_value(value: str) -> ContactKind:
    """
    Best-effort kind for a legacy free-text value.

    Lossy by nature: a handle could equally be discord, and any custom
    value shaped like a handle is classified as telegram.
    """
    v = value.strip()
    if not v:
        return ContactKind.CUSTOM
    if is_handle(v):
        return ContactKind.TELEGRAM
    if is_email(v):
        return ContactKind.EMAIL
    return ContactKind.CUSTOM


def parsed_entry_to_input(
    entry: ParsedContactEntry,
) -> Union[PredefinedContact, CustomContact]:
    """Turn a parsed entry back into an editable input."""
    if not entry.name:
        kind = guess_contact_kind_from_legacy_value(entry.value)
        if kind is ContactKind.CUSTOM:
            return CustomContact(name=LEGACY_CUSTOM_NAME, value=entry.value)
        return PredefinedContact(kind=kind.value, value=entry.value)

    return _input_from_name(entry.name, entry.value)
