"""
Income row descriptions.

A gig's description is the first usable source in a fixed order:

    1. title            "Wedding reception"
    2. location/venue   "The Blue Room"
    3. notes            "Sub for regular keyboard player..." (truncated)
    4. city             "Gig in Nashville"
    5. generic          "Income"

Blank and whitespace-only values are skipped.
"""

from typing import Callable, Optional, Sequence, Tuple

GENERIC_INCOME_DESCRIPTION = "Income"

_ELLIPSIS = "..."


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = " ".join(value.split())
    return text or None


def truncate_note(note: str, max_length: int) -> str:
    """Shorten a note to max_length characters, ending in '...' when cut."""
    if len(note) <= max_length:
        return note
    cut = note[: max(max_length - len(_ELLIPSIS), 1)].rstrip()
    return cut + _ELLIPSIS


def resolve_income_description(
    title: Optional[str] = None,
    location: Optional[str] = None,
    notes: Optional[str] = None,
    city: Optional[str] = None,
    note_max_length: int = 60,
) -> str:
    """
    Describe an income row from the first non-empty source.

    Examples:
        >>> resolve_income_description(title="Gala", city="Austin")
        'Gala'
        >>> resolve_income_description(city="Austin")
        'Gig in Austin'
        >>> resolve_income_description()
        'Income'
    """
    candidates: Sequence[Tuple[Optional[str], Callable[[str], str]]] = (
        (_clean(title), lambda text: text),
        (_clean(location), lambda text: text),
        (_clean(notes), lambda text: truncate_note(text, note_max_length)),
        (_clean(city), lambda text: f"Gig in {text}"),
    )
    for value, render in candidates:
        if value:
            return render(value)
    return GENERIC_INCOME_DESCRIPTION


def invoice_payment_description(invoice_number: Optional[str]) -> str:
    number = _clean(invoice_number)
    return f"Invoice Payment {number}" if number else "Invoice Payment"
