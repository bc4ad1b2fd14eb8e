"""
Parser for quotation arguments.

Arguments are product codes, each optionally followed by a quantity:

    11050 3 10050 2      two codes with quantities
    11050, 3, 10050      commas and spaces are interchangeable
    11050 10050          quantities default to 1

A number after a code is a quantity only when it is at most
``max_quantity``; a bigger number is taken to be the next code.
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from .models import InvalidEntry, LineItem

logger = logging.getLogger(__name__)

INTEGER_RE = re.compile(r"^[+-]?\d+$")

REASON_NOT_A_CODE = "not a valid code"
REASON_UNKNOWN_CODE = "unknown code"


def parse_int(token: str) -> int | None:
    """Strict integer parse; None when the token is not an integer."""
    if INTEGER_RE.match(token):
        return int(token)
    return None


def normalize(raw_args: Iterable[str]) -> list[str]:
    """Join arguments, treat commas as spaces and drop empty tokens."""
    return " ".join(raw_args).replace(",", " ").split()


class ScanState(str, Enum):
    AWAITING_CODE = "awaiting_code"
    HAVE_CODE = "have_code"  # a known code, quantity may follow


@dataclass
class ParseResult:
    """Line items and rejected entries, both in input order."""

    items: list[LineItem] = field(default_factory=list)
    invalid: list[InvalidEntry] = field(default_factory=list)
    consumed: int = 0


class TokenParser:
    """Turns raw command arguments into line items."""

    def __init__(self, is_known_code: Callable[[str], bool], max_quantity: int = 1000):
        self.is_known_code = is_known_code
        self.max_quantity = max_quantity

    def parse(self, raw_args: Iterable[str]) -> ParseResult:
        tokens = normalize(raw_args)
        result = ParseResult()
        state = ScanState.AWAITING_CODE
        code = ""
        i = 0

        while i < len(tokens):
            token = tokens[i]

            if state is ScanState.AWAITING_CODE:
                if parse_int(token) is None:
                    result.invalid.append(InvalidEntry(token, REASON_NOT_A_CODE))
                elif not self.is_known_code(token):
                    result.invalid.append(InvalidEntry(token, REASON_UNKNOWN_CODE))
                else:
                    code = token
                    state = ScanState.HAVE_CODE
                i += 1
                result.consumed += 1
                continue

            # HAVE_CODE: ``token`` is the lookahead after ``code``
            quantity = parse_int(token)
            if quantity is None or quantity < 1:
                # The code and its bad quantity are both dropped
                result.invalid.append(InvalidEntry(code, f"invalid quantity: {token}"))
                i += 1
                result.consumed += 1
            elif quantity <= self.max_quantity:
                result.items.append(LineItem(code, quantity))
                i += 1
                result.consumed += 1
            else:
                # Too big for a quantity: it is the next code, re-read it
                result.items.append(LineItem(code, 1))
            state = ScanState.AWAITING_CODE

        if state is ScanState.HAVE_CODE:
            result.items.append(LineItem(code, 1))

        logger.debug(
            f"Parsed {len(tokens)} token(s): {len(result.items)} item(s), "
            f"{len(result.invalid)} invalid"
        )
        return result
