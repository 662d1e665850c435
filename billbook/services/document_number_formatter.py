"""
Document number rendering.

TEMPLATE TOKENS:
    {CC}      Country code of the client, e.g. IN, US, UAE
    {FY}      Financial year code, e.g. 2425 for FY 2024-25
    {YYYY}    Four-digit calendar year of the issue date
    {MM}      Two-digit month of the issue date
    {SEQ}     Sequence number, zero-padded to 3
    {SEQ:n}   Sequence number, zero-padded to n

EXAMPLES:
    render("INV/{FY}/{SEQ:3}", ctx)      → INV/2425/007
    render("Q/{CC}{FY}/{SEQ:4}", ctx)    → Q/IN2425/0007
    render("INV-{YYYY}{MM}", ctx)        → INV-202406-7   (no {SEQ}: appended)

Everything here is pure: no I/O, no state.
"""
import re
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional


logger = logging.getLogger(__name__)


DEFAULT_SEQUENCE_PADDING = 3
DEFAULT_COUNTRY = "India"

SEQUENCE_PATTERN = re.compile(r"\{SEQ(?::(\d+))?\}")

COUNTRY_CODES = {
    "India": "IN",
    "United States": "US",
    "USA": "US",
    "United Arab Emirates": "UAE",
    "Saudi Arabia": "SA",
    "United Kingdom": "UK",
    "Canada": "CA",
    "Australia": "AU",
    "Singapore": "SG",
}


def fiscal_year_start(on: date) -> int:
    """Calendar year in which the financial year containing ``on`` began (April start)."""
    return on.year if on.month >= 4 else on.year - 1


def fiscal_year_code(on: date) -> str:
    """
    Financial year code used inside document numbers.

    - Jan 2025 → 2425
    - Apr 2025 → 2526
    """
    start = fiscal_year_start(on)
    return f"{start % 100:02d}{(start + 1) % 100:02d}"


def fiscal_year_scope(on: date) -> str:
    """
    Financial year string used as a counter scope key.

    - Jan 2025 → 24-25
    - Apr 2025 → 25-26
    """
    start = fiscal_year_start(on)
    return f"{start % 100:02d}-{(start + 1) % 100:02d}"


def country_code(country: Optional[str]) -> str:
    """Map a country name to the short code used in document numbers."""
    name = (country or "").strip() or DEFAULT_COUNTRY
    code = COUNTRY_CODES.get(name)
    if code:
        return code
    if len(name) <= 3:
        return name.upper()
    return name[:2].upper()


def has_sequence_placeholder(template: str) -> bool:
    return SEQUENCE_PATTERN.search(template) is not None


@dataclass(frozen=True)
class NumberContext:
    """Values substituted into a number template."""
    country_code: str
    fiscal_year: str
    year: int
    month: int
    sequence: int

    @classmethod
    def for_document(cls, issue_date: date, sequence: int, country: Optional[str] = None) -> "NumberContext":
        return cls(
            country_code=country_code(country),
            fiscal_year=fiscal_year_code(issue_date),
            year=issue_date.year,
            month=issue_date.month,
            sequence=sequence,
        )


def render(template: str, context: NumberContext) -> str:
    """Render a document number from a template and its context."""
    number = (
        template
        .replace("{CC}", context.country_code)
        .replace("{FY}", context.fiscal_year)
        .replace("{YYYY}", f"{context.year:04d}")
        .replace("{MM}", f"{context.month:02d}")
    )

    if not has_sequence_placeholder(number):
        logger.debug(f"Template '{template}' has no sequence placeholder, appending -{context.sequence}")
        return f"{number}-{context.sequence}"

    def _pad(match: re.Match) -> str:
        width = int(match.group(1)) if match.group(1) else DEFAULT_SEQUENCE_PADDING
        return str(context.sequence).zfill(width)

    return SEQUENCE_PATTERN.sub(_pad, number)
