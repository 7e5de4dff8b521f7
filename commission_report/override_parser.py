"""Parser for commission overrides written into row notes"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional


class OverrideKind(Enum):
    RATIO = 'ratio'
    PERCENTAGE = 'percentage'
    FIXED_AMOUNT = 'fixed_amount'


@dataclass(frozen=True)
class ParsedOverride:
    """An override recognized in a note"""
    kind: OverrideKind
    value: float  # Share (0-1) for ratio/percentage, dollars for fixed amount
    source: str  # Matched text, e.g. "50/50" or "60"


def format_number(value: float) -> str:
    """Render a number without a trailing .0 (60.0 -> "60", 62.5 -> "62.5")."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class OverrideParser:
    """
    Reads commission overrides out of free-text notes.

    Recognized forms, tried in this order (first match wins):

        50/50 split          -> ratio, pays 50 / (50 + 50) of the commission
        pay 60%              -> percentage of the commission
        override $250        -> fixed payout replacing the commission
        payout 175              (only when "override" or "payout" appears)

    A note containing both a ratio and a percentage is read as a ratio.
    """

    RATIO_PATTERN = re.compile(r'(\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)')
    PERCENT_PATTERN = re.compile(r'(\d+(?:\.\d+)?)\s*%')
    AMOUNT_PATTERN = re.compile(r'\$?\s*(\d+(?:\.\d+)?)')

    FIXED_AMOUNT_KEYWORDS = ('override', 'payout')

    def __init__(self):
        self.matchers: List[Callable[[str], Optional[ParsedOverride]]] = [
            self.match_ratio,
            self.match_percentage,
            self.match_fixed_amount,
        ]

    def parse(self, note: Optional[str]) -> Optional[ParsedOverride]:
        if not note:
            return None
        text = note.lower()
        for matcher in self.matchers:
            parsed = matcher(text)
            if parsed is not None:
                return parsed
        return None

    def match_ratio(self, text: str) -> Optional[ParsedOverride]:
        match = self.RATIO_PATTERN.search(text)
        if not match:
            return None
        first = float(match.group(1))
        second = float(match.group(2))
        if first < 0 or second <= 0:
            return None
        return ParsedOverride(
            kind=OverrideKind.RATIO,
            value=first / (first + second),
            source=f"{match.group(1)}/{match.group(2)}",
        )

    def match_percentage(self, text: str) -> Optional[ParsedOverride]:
        match = self.PERCENT_PATTERN.search(text)
        if not match:
            return None
        return ParsedOverride(
            kind=OverrideKind.PERCENTAGE,
            value=float(match.group(1)) / 100,
            source=match.group(1),
        )

    def match_fixed_amount(self, text: str) -> Optional[ParsedOverride]:
        if not any(keyword in text for keyword in self.FIXED_AMOUNT_KEYWORDS):
            return None
        match = self.AMOUNT_PATTERN.search(text)
        if not match:
            return None
        return ParsedOverride(
            kind=OverrideKind.FIXED_AMOUNT,
            value=float(match.group(1)),
            source=match.group(1),
        )
