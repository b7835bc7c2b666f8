"""vCard Rendering — synthesizes a vCard 3.0 document from ContactDetails. Pure.

Invariants:
    - Output starts with BEGIN:VCARD, VERSION:3.0 and ends with END:VCARD
    - N and FN are always present; optional properties emitted only when non-empty
    - Text values escaped per RFC 2426 (backslash, comma, semicolon, newline)
    - Lines separated by CRLF
"""

from qr_redirect.core.domain_types import ContactDetails

VCARD_CONTENT_TYPE = "text/vcard; charset=utf-8"
_CRLF = "\r\n"


def escape_text(value: str) -> str:
    """Escape a vCard TEXT value."""
    return (
        value.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace(";", "\\;")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
        .replace("\r", "\\n")
    )


def render_vcard(details: ContactDetails) -> str:
    first = escape_text(details.first_name)
    last = escape_text(details.last_name)
    lines = [
        "BEGIN:VCARD",
        "VERSION:3.0",
        f"N:{last};{first};;;",
        f"FN:{' '.join(p for p in (first, last) if p)}",
    ]
    optional = (
        ("ORG", details.organization),
        ("TITLE", details.title),
        ("TEL;TYPE=WORK,VOICE", details.phone),
        ("EMAIL;TYPE=INTERNET", details.email),
        ("URL", details.website),
    )
    for prop, value in optional:
        if value:
            lines.append(f"{prop}:{escape_text(value)}")
    if details.address:
        # ADR components: PO box; extended; street — only street populated
        lines.append(f"ADR;TYPE=WORK:;;{escape_text(details.address)};;;;")
    lines.append("END:VCARD")
    return _CRLF.join(lines) + _CRLF
