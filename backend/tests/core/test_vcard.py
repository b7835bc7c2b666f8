"""vCard Rendering — verifies structure, optional fields and escaping."""

from qr_redirect.core.domain_types import ContactDetails
from qr_redirect.core.vcard import escape_text, render_vcard


def _lines(card: str) -> list[str]:
    assert card.endswith("\r\n")
    return card[:-2].split("\r\n")


def test_minimal_card_has_required_properties():
    lines = _lines(render_vcard(ContactDetails(first_name="Ada", last_name="Lovelace")))
    assert lines[0] == "BEGIN:VCARD"
    assert lines[1] == "VERSION:3.0"
    assert "N:Lovelace;Ada;;;" in lines
    assert "FN:Ada Lovelace" in lines
    assert lines[-1] == "END:VCARD"
    assert len(lines) == 5


def test_full_card_includes_all_optional_properties():
    details = ContactDetails(
        first_name="Grace", last_name="Hopper",
        organization="US Navy", title="Rear Admiral",
        phone="+1 555 0100", email="grace@example.com",
        website="https://example.com", address="1 Main St",
    )
    lines = _lines(render_vcard(details))
    assert "ORG:US Navy" in lines
    assert "TITLE:Rear Admiral" in lines
    assert "TEL;TYPE=WORK,VOICE:+1 555 0100" in lines
    assert "EMAIL;TYPE=INTERNET:grace@example.com" in lines
    assert "URL:https://example.com" in lines
    assert "ADR;TYPE=WORK:;;1 Main St;;;;" in lines


def test_empty_optional_fields_are_omitted():
    card = render_vcard(ContactDetails(first_name="A", last_name="B", organization=""))
    assert "ORG" not in card


def test_fn_without_last_name_has_no_trailing_space():
    lines = _lines(render_vcard(ContactDetails(first_name="Cher", last_name="")))
    assert "FN:Cher" in lines


def test_special_characters_are_escaped():
    assert escape_text("a,b;c\\d\ne") == "a\\,b\\;c\\\\d\\ne"
    assert escape_text("x\ry\r\nz") == "x\\ny\\nz"


def test_bare_carriage_return_cannot_start_a_property():
    card = render_vcard(ContactDetails(
        first_name="Ada", last_name="Lovelace", title="CEO\rEMAIL:evil@x",
    ))
    assert "\r" not in card.replace("\r\n", "")
    assert "TITLE:CEO\\nEMAIL:evil@x" in _lines(card)
    assert not any(line.startswith("EMAIL") for line in _lines(card))


def test_escaping_applied_to_structured_name():
    card = render_vcard(ContactDetails(first_name="Jo;hn", last_name="Doe, Jr."))
    assert "N:Doe\\, Jr.;Jo\\;hn;;;" in card
