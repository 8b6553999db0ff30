"""
Heuristic parsing of OCR text into business card fields.

Each line of recognised text is offered to a fixed sequence of rules
(email, website, postal code, phone numbers, address, company, position,
department, phonetic name, name). The first rule that matches claims the
line; the first value found for a field wins, except address which
accumulates lines.
"""

import re
import unicodedata
from typing import Dict, List, Optional, Tuple

from ..models.ocr import ConfidenceLevel, ParsedCard, ParsedField

EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
WEBSITE_PATTERN = re.compile(
    r"(?i)(https?://[^\s,;]+|www\.[^\s,;]+)|(?:url|web)\s*[:：]?\s*([A-Za-z0-9.-]+\.[A-Za-z]{2,}[^\s,;]*)"
)
POSTAL_MARKED_PATTERN = re.compile(r"〒\s*(\d{3})\s*[-‐−ー]?\s*(\d{4})")
POSTAL_BARE_PATTERN = re.compile(r"^(\d{3})-(\d{4})(?![\d-])")
PHONE_NUMBER_PATTERN = re.compile(r"\+?\(?\d[\d\s().-]{7,}\d")
PHONE_LABEL_PATTERN = re.compile(
    r"(?i)(tel|phone|電話|fax|ファックス|mobile|cell|携帯|\b[tfm]\b)\s*[:：.]?\s*$"
)
MOBILE_PREFIX_PATTERN = re.compile(r"^(?:\+81[\s-]?[789]0|0[789]0)")

ADDRESS_JP_PATTERN = re.compile(r"[都道府県市区町村]")
ADDRESS_EN_PATTERN = re.compile(
    r"(?i)\d+\s+\w+.*\b(street|st\.|avenue|ave\.?|road|rd\.?|suite|blvd|boulevard|floor|drive|dr\.)"
)
COMPANY_PATTERN = re.compile(
    r"(株式会社|有限会社|合同会社|合資会社|合名会社|\bCorporation\b|\bCorp\b\.?|\bInc\b\.?|\bLtd\b\.?|\bCo\.|\bCompany\b)"
)
POSITION_PATTERN = re.compile(
    r"(代表取締役|取締役|社長|専務|常務|部長|課長|係長|主任|マネージャー|"
    r"(?i:\b(manager|director|president|ceo|cto|cio|cfo|coo|founder|engineer|officer)\b))"
)
DEPARTMENT_PATTERN = re.compile(r"([部課室局]|(?i:\b(department|division|dept\.?|section)\b))")
KANA_PATTERN = re.compile(r"^[\u3040-\u30FF\s・ー]+$")
NAME_EXCLUDE_PATTERN = re.compile(r"(株式会社|有限会社|Corporation|Corp|Inc|Ltd|@|[\d()-]{6,})")
FALLBACK_COMPANY_EXCLUDE = re.compile(r"[@\d()-]")

# Base confidence per rule
CONFIDENCE = {
    "email": 0.95,
    "website": 0.9,
    "postal_code": 0.9,
    "phone_labelled": 0.9,
    "phone": 0.8,
    "address": 0.75,
    "company_name": 0.9,
    "position": 0.8,
    "department": 0.7,
    "person_name_kana": 0.5,
    "person_name": 0.6,
    "company_fallback": 0.4,
}

FIELD_NAMES = [
    "company_name", "person_name", "person_name_kana", "department", "position",
    "email", "phone", "mobile", "fax", "postal_code", "address", "website",
]


def confidence_level(confidence: float) -> ConfidenceLevel:
    """Map a 0-1 confidence onto the UI's three colour bands."""
    if confidence >= 0.8:
        return ConfidenceLevel.HIGH
    if confidence >= 0.5:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def normalize_line(line: str) -> str:
    """NFKC folds full-width digits and letters; whitespace is collapsed."""
    line = unicodedata.normalize("NFKC", line)
    return re.sub(r"\s+", " ", line).strip()


def split_lines(text: str) -> List[str]:
    lines = (normalize_line(line) for line in text.splitlines())
    return [line for line in lines if line]


def digit_count(value: str) -> int:
    return sum(ch.isdigit() for ch in value)


def extract_phone_numbers(line: str) -> List[Tuple[str, str]]:
    """
    Find phone-like numbers with at least 10 digits and classify each as
    phone, fax or mobile from the label in front of it.

    Returns:
        List of (kind, number) pairs
    """
    numbers = []
    for match in PHONE_NUMBER_PATTERN.finditer(line):
        number = match.group(0).strip(" .")
        if not 10 <= digit_count(number) <= 15:
            continue

        label_match = PHONE_LABEL_PATTERN.search(line[:match.start()])
        label = label_match.group(1).lower() if label_match else ""

        if label in ("fax", "ファックス", "f"):
            kind = "fax"
        elif label in ("mobile", "cell", "携帯", "m"):
            kind = "mobile"
        elif label:
            kind = "phone_labelled"
        elif MOBILE_PREFIX_PATTERN.match(re.sub(r"[\s().-]", "", number)):
            kind = "mobile"
        else:
            kind = "phone"
        numbers.append((kind, number))
    return numbers


class _ParseState:
    """Accumulates fields while lines are offered to the rules."""

    def __init__(self, lines: List[str]):
        self.lines = lines
        self.fields: Dict[str, ParsedField] = {}
        self.unmatched: List[str] = []

    def has(self, name: str) -> bool:
        return name in self.fields

    def set(self, name: str, value: str, confidence: float, index: int) -> None:
        value = value.strip()
        if not value or name in self.fields:
            return
        self.fields[name] = ParsedField(
            value=value,
            confidence=confidence,
            level=confidence_level(confidence),
            source_line=index,
        )

    def append_address(self, value: str, confidence: float, index: int) -> None:
        value = value.strip(" ,")
        if not value:
            return
        current = self.fields.get("address")
        if current is None:
            self.set("address", value, confidence, index)
        else:
            current.value = f"{current.value}\n{value}"


def _match_email(state: _ParseState, line: str, index: int) -> bool:
    match = EMAIL_PATTERN.search(line)
    if not match:
        return False
    state.set("email", match.group(0), CONFIDENCE["email"], index)
    return True


def _match_website(state: _ParseState, line: str, index: int) -> bool:
    match = WEBSITE_PATTERN.search(line)
    if not match:
        return False
    state.set("website", match.group(1) or match.group(2), CONFIDENCE["website"], index)
    return True


def _match_postal_code(state: _ParseState, line: str, index: int) -> bool:
    match = POSTAL_MARKED_PATTERN.search(line) or POSTAL_BARE_PATTERN.search(line)
    if not match:
        return False

    state.set("postal_code", f"{match.group(1)}-{match.group(2)}", CONFIDENCE["postal_code"], index)

    # The rest of a postal line is normally the street address
    remainder = (line[:match.start()] + " " + line[match.end():]).replace("〒", "")
    state.append_address(normalize_line(remainder), 0.85, index)
    return True


def _match_phone(state: _ParseState, line: str, index: int) -> bool:
    numbers = extract_phone_numbers(line)
    if not numbers:
        return False

    for kind, number in numbers:
        if kind in ("fax", "mobile"):
            state.set(kind, number, 0.85, index)
        else:
            state.set("phone", number, CONFIDENCE[kind], index)
    return True


def _match_address(state: _ParseState, line: str, index: int) -> bool:
    if COMPANY_PATTERN.search(line):
        return False
    if not (ADDRESS_JP_PATTERN.search(line) or ADDRESS_EN_PATTERN.search(line)):
        return False
    state.append_address(line, CONFIDENCE["address"], index)
    return True


def _match_company(state: _ParseState, line: str, index: int) -> bool:
    if not COMPANY_PATTERN.search(line):
        return False
    state.set("company_name", line, CONFIDENCE["company_name"], index)
    return True


def _match_position(state: _ParseState, line: str, index: int) -> bool:
    if not POSITION_PATTERN.search(line):
        return False
    state.set("position", line, CONFIDENCE["position"], index)
    return True


def _match_department(state: _ParseState, line: str, index: int) -> bool:
    if not DEPARTMENT_PATTERN.search(line):
        return False
    state.set("department", line, CONFIDENCE["department"], index)
    return True


def _match_kana_name(state: _ParseState, line: str, index: int) -> bool:
    if state.has("person_name_kana") or not KANA_PATTERN.match(line):
        return False
    if not 2 <= len(line) <= 30:
        return False
    state.set("person_name_kana", line, CONFIDENCE["person_name_kana"], index)
    return True


def _match_name(state: _ParseState, line: str, index: int) -> bool:
    if index >= 3 or state.has("person_name"):
        return False
    if NAME_EXCLUDE_PATTERN.search(line) or not 2 <= len(line) <= 20:
        return False
    state.set("person_name", line, CONFIDENCE["person_name"], index)
    return True


RULES = [
    _match_email,
    _match_website,
    _match_postal_code,
    _match_phone,
    _match_address,
    _match_company,
    _match_position,
    _match_department,
    _match_kana_name,
    _match_name,
]


def parse_ocr_text(text: Optional[str]) -> ParsedCard:
    """
    Guess business card fields from raw OCR output.

    Args:
        text: Recognised text, one visual line per text line

    Returns:
        ParsedCard with the fields found and their confidences
    """
    lines = split_lines(text or "")
    state = _ParseState(lines)

    for index, line in enumerate(lines):
        if not any(rule(state, line, index) for rule in RULES):
            state.unmatched.append(line)

    if not state.has("company_name"):
        person = state.fields.get("person_name")
        for index, line in enumerate(lines):
            if person is not None and person.source_line == index:
                continue
            if len(line) > 3 and not FALLBACK_COMPANY_EXCLUDE.search(line):
                state.set("company_name", line, CONFIDENCE["company_fallback"], index)
                break

    return ParsedCard(fields=state.fields, lines=lines, unmatched_lines=state.unmatched)


def field_coverage(parsed: ParsedCard) -> float:
    """
    Confidence-weighted share of the key contact fields that were found.
    """
    key_fields = ["company_name", "person_name", "email", "phone", "address", "position"]
    total = sum(parsed.fields[name].confidence for name in key_fields if name in parsed.fields)
    return round(total / len(key_fields), 4)


def merge_into_form(existing: Dict[str, Optional[str]], parsed: ParsedCard) -> Dict[str, str]:
    """
    Fill only the form fields the user has not typed into yet.
    """
    merged = {name: value for name, value in existing.items() if value}
    for name, value in parsed.values().items():
        if name in FIELD_NAMES and not merged.get(name):
            merged[name] = value
    return merged
