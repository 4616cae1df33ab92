"""Field strategies for weighing-ticket OCR text.

Every strategy is a pure callable taking the full OCR text and returning
a field value or ``None``. The extractor evaluates each field's strategies
in order and keeps the first non-``None`` value, so every fallback tier is
a separate strategy that can be tested on its own. Within a strategy the
earliest line or match in reading order wins; candidates are never scored.
"""

import re
from collections.abc import Sequence

from tiquete_scan.utils.config import CompanyAlias

from .text_utils import parse_amount, split_lines, strip_accents

_DATE_RE = re.compile(
    r"(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})|(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})",
    re.ASCII,
)
_GUIDE_NUMBER_RE = re.compile(r"\d{9,12}", re.ASCII)
_DIGIT_RUN_RE = re.compile(r"\d{5,}", re.ASCII)
_INTERNAL_CODE_RE = re.compile(r"\d{4,9}", re.ASCII)
_GROUPED_WEIGHT_RE = re.compile(r"\d+[,.]\d{3}", re.ASCII)
_PLAIN_NUMBER_RE = re.compile(r"\d+", re.ASCII)
_PRICE_RE = re.compile(r"\$?\s*(\d[\d.,]*)\s*(COP)?", re.ASCII | re.IGNORECASE)

# Markers after which a digit run is a tax ID or internal code, not a guide.
_GUIDE_STOP_WORDS = ("codigo", "nit")

_MIN_GUIDE_LENGTH = 9
_CONTEXT_BEFORE = 40
_CONTEXT_AFTER = 10


class CompanyMatcher:
    """Find the first known company mentioned in the text.

    Lines are scanned in reading order and each line is checked against
    every configured spelling, ignoring case and accents.

    Args:
        companies: Known companies with their recognized spellings.
    """

    def __init__(self, companies: Sequence[CompanyAlias]) -> None:
        self._needles = [
            (company.name, strip_accents(variant))
            for company in companies
            for variant in (company.variants or [company.name])
            if variant.strip()
        ]

    def __call__(self, text: str) -> str | None:
        for line in split_lines(text):
            haystack = strip_accents(line)
            for name, needle in self._needles:
                if needle in haystack:
                    return name
        return None


def date_from_lines(text: str) -> str | None:
    """Return the first ``D/M/YYYY`` or ``YYYY-M-D`` date as ``YYYY-MM-DD``."""
    for line in split_lines(text):
        match = _DATE_RE.search(line)
        if not match:
            continue
        if match.group(1):
            day, month, year = match.group(1), match.group(2), match.group(3)
        else:
            year, month, day = match.group(4), match.group(5), match.group(6)
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    return None


class GuideKeywordTicket:
    """Ticket tier A: a 9-12 digit run shortly after a guide keyword.

    Keywords are tried in order on the lowercased, accent-free text. For
    each one found, the window following its first occurrence is cut at
    ``codigo`` and then at ``nit`` before searching for the number, so an
    internal code or tax ID printed nearby is not taken instead.

    Args:
        keywords: "Guía", "transporte" and "vehículo" fragments, including
            common OCR misreadings.
        window: Characters examined after the keyword position.
    """

    def __init__(self, keywords: Sequence[str], window: int = 150) -> None:
        self.keywords = [strip_accents(k) for k in keywords if k]
        self.window = window

    def __call__(self, text: str) -> str | None:
        normalized = strip_accents(text)
        for keyword in self.keywords:
            index = normalized.find(keyword)
            if index == -1:
                continue
            span = normalized[index : index + self.window]
            for stop_word in _GUIDE_STOP_WORDS:
                span = span.split(stop_word, 1)[0]
            match = _GUIDE_NUMBER_RE.search(span)
            if match:
                return match.group(0)
        return None


def ticket_longest_number(text: str) -> str | None:
    """Ticket tier B: the longest digit run of 9+ digits not near ``NIT``.

    Runs of five or more digits are ordered longest first (ties keep
    reading order); the context checked for ``nit`` spans 40 characters
    before the run's first occurrence and 10 characters from its start.
    """
    runs = _DIGIT_RUN_RE.findall(text)
    for run in sorted(runs, key=len, reverse=True):
        if len(run) < _MIN_GUIDE_LENGTH:
            break
        index = text.find(run)
        context = text[max(0, index - _CONTEXT_BEFORE) : index + _CONTEXT_AFTER]
        if "nit" not in context.lower():
            return run
    return None


def ticket_internal_code(text: str) -> str | None:
    """Ticket tier C: a 4-9 digit run on a ``codigo``/``interno`` line."""
    for line in split_lines(text):
        normalized = strip_accents(line)
        if "codigo" not in normalized and "interno" not in normalized:
            continue
        match = _INTERNAL_CODE_RE.search(line)
        if match:
            return match.group(0)
    return None


def net_weight_from_lines(text: str) -> int | None:
    """Return the net weight in kilograms from the first ``neto`` line.

    A thousands-grouped number wins over a plain one and has its
    separator removed: ``PESO NETO: 4.590 KG`` gives 4590.
    """
    for line in split_lines(text):
        if "neto" not in line.lower():
            continue
        match = _GROUPED_WEIGHT_RE.search(line) or _PLAIN_NUMBER_RE.search(line)
        if not match:
            continue
        try:
            return int(re.sub(r"[,.]", "", match.group(0)))
        except ValueError:
            # Digit runs past the int conversion limit are OCR noise.
            continue
    return None


def unit_price_from_lines(text: str) -> float | None:
    """Return the unit price from the first ``valor``/``precio`` line.

    Accepts an optional leading ``$`` and trailing ``COP``; separators
    are resolved by :func:`parse_amount`.
    """
    for line in split_lines(text):
        lowered = line.lower()
        if "valor" not in lowered and "precio" not in lowered:
            continue
        match = _PRICE_RE.search(line)
        if not match:
            continue
        value = parse_amount(match.group(1))
        if value is not None:
            return value
    return None
