import pytest
from pydantic import TypeAdapter

from verifier.app.agents.contact_codec import (
    CONTACT_MAX_BYTES,
    ContactEntryInput,
    ContactKind,
    CustomContact,
    ParsedContactEntry,
    PredefinedContact,
    build_contact_entry,
    build_contact_string,
    byte_length_utf8,
    guess_contact_kind_from_legacy_value,
    is_email,
    is_handle,
    parse_contact_string,
    parsed_entry_to_input,
    validate_contact_entry,
    validate_contact_string,
    validate_contact_string_strict,
    validate_contact_submission,
)


def _messages(errors):
    return [e.message for e in errors]


# ---------------------------------------------------------------------------
# Build and parse
# ---------------------------------------------------------------------------


def test_build_two_entries():
    built = build_contact_string(
        PredefinedContact(kind="telegram", value="@alice"),
        CustomContact(name="forum", value="agent_42"),
    )
    assert built == "telegram:@alice;forum:agent_42"


def test_build_skips_empty_entries():
    assert build_contact_string(
        PredefinedContact(kind="email", value="a@b.co"),
        CustomContact(name="forum", value="   "),
    ) == "email:a@b.co"
    assert build_contact_string() == ""


def test_build_entry_normalizes_custom_name():
    assert build_contact_entry(CustomContact(name="  Forum ", value=" x ")) == "forum:x"


def test_parse_then_rebuild_is_stable():
    contact = "telegram:@alice;forum:agent_42"

    entries = parse_contact_string(contact)

    assert [(e.name, e.value) for e in entries] == [
        ("telegram", "@alice"),
        ("forum", "agent_42"),
    ]
    rebuilt = build_contact_string(*(parsed_entry_to_input(e) for e in entries))
    assert rebuilt == contact


def test_parse_splits_on_first_colon_only():
    (entry,) = parse_contact_string("site:https://example.com")
    assert entry.name == "site"
    assert entry.value == "https://example.com"


def test_parse_trims_and_drops_empty_pieces():
    entries = parse_contact_string("  telegram:@alice ; ;discord:@bob  ")
    assert [e.raw for e in entries] == ["telegram:@alice", "discord:@bob"]
    assert parse_contact_string("   ") == []


def test_legacy_pipe_separated_values():
    entries = parse_contact_string("@alice | alice@example.com")

    assert entries == [
        ParsedContactEntry(name="", value="@alice", raw="@alice"),
        ParsedContactEntry(name="", value="alice@example.com", raw="alice@example.com"),
    ]


def test_semicolon_wins_over_legacy_separator():
    entries = parse_contact_string("forum:a|b;telegram:@alice")
    assert [e.value for e in entries] == ["a|b", "@alice"]


# ---------------------------------------------------------------------------
# Legacy upgrade
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, kind",
    [
        ("@alice", ContactKind.TELEGRAM),
        ("alice@example.com", ContactKind.EMAIL),
        ("call me maybe", ContactKind.CUSTOM),
        ("", ContactKind.CUSTOM),
    ],
)
def test_guess_kind_from_legacy_value(value, kind):
    assert guess_contact_kind_from_legacy_value(value) is kind


def test_legacy_entries_become_editable_inputs():
    handle, email, other = (
        parsed_entry_to_input(e)
        for e in parse_contact_string("@alice|alice@example.com|ring twice")
    )

    assert handle == PredefinedContact(kind="telegram", value="@alice")
    assert email == PredefinedContact(kind="email", value="alice@example.com")
    assert other == CustomContact(name="contact", value="ring twice")


def test_named_entries_map_to_kind_by_name():
    (entry,) = parse_contact_string("Discord:@bob")
    assert parsed_entry_to_input(entry) == PredefinedContact(kind="discord", value="@bob")


# ---------------------------------------------------------------------------
# Value checks
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("value", ["@abc", "@user_name_99", "@" + "a" * 32])
def test_valid_handles(value):
    assert is_handle(value)


@pytest.mark.parametrize("value", ["abc", "@ab", "@" + "a" * 33, "@bad-name", "@abc "])
def test_invalid_handles(value):
    assert not is_handle(value)


def test_email_shape():
    assert is_email("a@b.co")
    assert not is_email("a@b")
    assert not is_email("a b@c.de")


def test_byte_length_counts_utf8_bytes():
    assert byte_length_utf8("abc") == 3
    assert byte_length_utf8("é") == 2
    assert byte_length_utf8("✓") == 3


# ---------------------------------------------------------------------------
# Entry validation
# ---------------------------------------------------------------------------


def test_valid_entries_have_no_errors():
    assert validate_contact_entry(PredefinedContact(kind="telegram", value="@alice")) == []
    assert validate_contact_entry(PredefinedContact(kind="email", value="a@b.co")) == []
    assert validate_contact_entry(CustomContact(name="forum", value="agent_42")) == []


def test_bad_handle_is_reported_on_value():
    errors = validate_contact_entry(PredefinedContact(kind="discord", value="bob"))

    assert [e.field for e in errors] == ["value"]
    assert errors[0].message.startswith("Must be in the format @username")


def test_email_length_limit():
    local = "a" * 250
    errors = validate_contact_entry(PredefinedContact(kind="email", value=f"{local}@b.co"))
    assert _messages(errors) == ["Invalid email address"]


def test_value_required():
    errors = validate_contact_entry(PredefinedContact(kind="telegram", value="  "))
    assert _messages(errors) == ["Contact value is required"]


def test_custom_name_required():
    errors = validate_contact_entry(CustomContact(name=" ", value="x"))
    assert _messages(errors) == ["Contact type/name is required"]


@pytest.mark.parametrize("name", ["1forum", "for um", "a" * 16, "für"])
def test_custom_name_shape(name):
    errors = validate_contact_entry(CustomContact(name=name, value="x"))
    assert [e.field for e in errors] == ["name"]


def test_custom_name_cannot_shadow_predefined_kind():
    errors = validate_contact_entry(CustomContact(name="email", value="x"))
    assert _messages(errors) == ["Custom contact name cannot be telegram/discord/email"]


def test_separator_cannot_be_injected_through_a_value():
    errors = validate_contact_entry(CustomContact(name="forum", value="x;telegram:@evil"))
    assert "Value cannot include ';'" in _messages(errors)


def test_discriminated_input_parsing():
    adapter = TypeAdapter(ContactEntryInput)

    assert isinstance(adapter.validate_python({"kind": "email", "value": "a@b.co"}), PredefinedContact)
    custom = adapter.validate_python({"kind": "custom", "name": "forum", "value": "x"})
    assert isinstance(custom, CustomContact)


# ---------------------------------------------------------------------------
# Byte budget
# ---------------------------------------------------------------------------


def test_exactly_fifty_bytes_is_accepted():
    contact = "forum:" + "x" * 44
    assert byte_length_utf8(contact) == CONTACT_MAX_BYTES
    assert validate_contact_string(contact) == []


def test_multibyte_values_count_bytes_not_characters():
    # 27 characters, 51 bytes.
    contact = "f:" + "é" * 24 + "x"

    errors = validate_contact_string(contact)

    assert byte_length_utf8(contact) == 51
    assert _messages(errors) == ["Total contact info exceeds 50 bytes (51/50)"]


def test_submission_checks_combined_length():
    errors = validate_contact_submission(
        PredefinedContact(kind="email", value="someone.long@example.com"),
        PredefinedContact(kind="telegram", value="@a_fairly_long_handle"),
    )

    assert [e.field for e in errors] == ["combined"]
    assert errors[0].message.startswith("Total contact info exceeds 50 bytes")


def test_submission_requires_primary():
    errors = validate_contact_submission(None)
    assert _messages(errors) == ["Contact is required"]


def test_valid_submission():
    assert validate_contact_submission(
        PredefinedContact(kind="telegram", value="@alice"),
        CustomContact(name="forum", value="agent_42"),
    ) == []


# ---------------------------------------------------------------------------
# Strict validation of stored strings
# ---------------------------------------------------------------------------


def test_strict_accepts_well_formed_string():
    assert validate_contact_string_strict("telegram:@alice;forum:agent_42", True) == []


def test_strict_rejects_legacy_free_text():
    errors = validate_contact_string_strict("@alice|alice@example.com", False)

    assert _messages(errors) == [
        "Contact must be in the format name:value",
        "Contact must be in the format name:value",
    ]


def test_strict_validates_each_entry():
    errors = validate_contact_string_strict("telegram:alice", False)
    assert [e.field for e in errors] == ["value"]


def test_strict_empty_string():
    assert _messages(validate_contact_string_strict("  ", True)) == ["Contact is required"]
    assert validate_contact_string_strict("", False) == []
