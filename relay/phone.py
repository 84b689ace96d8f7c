"""
Phone Number Normalization

Converts between WhatsApp transport addresses ("5511999990000@c.us")
and public phone numbers ("+5511999990000").

No validation: malformed input passes through unchanged.
"""

TRANSPORT_SUFFIX = "@c.us"


def to_public_phone(address: str) -> str:
    """Strip the transport suffix and make sure the number starts with '+'."""
    phone = address.replace(TRANSPORT_SUFFIX, "", 1)
    return phone if phone.startswith("+") else f"+{phone}"


def to_transport_address(phone: str) -> str:
    """Drop the leading '+' and append the transport suffix."""
    return f"{phone.replace('+', '', 1)}{TRANSPORT_SUFFIX}"
