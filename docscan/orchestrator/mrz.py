"""
Passport machine readable zone (ICAO 9303, TD3: 2 lines x 44 chars).

OCR output is noisy: lines come with stray spaces, lower case, and letters
read where digits belong. parse_mrz() normalizes that before slicing fields.
Check digit mismatches are reported in DocumentInfo.checks rather than
rejecting the document.
"""
import re
from datetime import date

from docscan.orchestrator.contracts import DocumentInfo

LINE_LEN = 44
MIN_LINE_LEN = 40

_FILLER_ALIASES = str.maketrans({"«": "<", "(": "<", "{": "<", "[": "<", "‹": "<"})
_NOT_MRZ = re.compile(r"[^A-Z0-9<]")
_TO_DIGIT = str.maketrans({"O": "0", "Q": "0", "D": "0", "I": "1", "L": "1",
                           "Z": "2", "S": "5", "G": "6", "B": "8"})
_WEIGHTS = (7, 3, 1)


def check_digit(value: str) -> int:
    total = 0
    for i, ch in enumerate(value):
        if ch.isdigit():
            n = int(ch)
        elif "A" <= ch <= "Z":
            n = ord(ch) - ord("A") + 10
        else:
            n = 0
        total += n * _WEIGHTS[i % 3]
    return total % 10


def normalize_line(line: str) -> str:
    line = line.upper().translate(_FILLER_ALIASES)
    line = re.sub(r"\s+", "", line)
    return _NOT_MRZ.sub("", line)


def find_mrz_lines(text: str) -> tuple[str, str] | None:
    """Return the last pair of consecutive MRZ-like lines, padded to 44."""
    lines = [normalize_line(l) for l in text.splitlines()]
    lines = [l for l in lines if l]
    for i in range(len(lines) - 2, -1, -1):
        first, second = lines[i], lines[i + 1]
        if len(first) >= MIN_LINE_LEN and len(second) >= MIN_LINE_LEN and first.startswith("P"):
            return _fit(first), _fit(second)
    return None


def _fit(line: str) -> str:
    return line[:LINE_LEN].ljust(LINE_LEN, "<")


def _digits(value: str) -> str:
    return value.translate(_TO_DIGIT)


def _name_part(value: str) -> str:
    return " ".join(p for p in value.split("<") if p)


def _parse_date(yymmdd: str, expiry: bool, today: date | None = None) -> date | None:
    if not yymmdd.isdigit():
        return None
    yy, mm, dd = int(yymmdd[:2]), int(yymmdd[2:4]), int(yymmdd[4:6])
    today = today or date.today()
    if expiry:
        # Expiry may be past (expired documents) but never more than 50 years ahead
        year = 2000 + yy
        if year > today.year + 50:
            year -= 100
    else:
        year = 1900 + yy if yy > today.year % 100 else 2000 + yy
    try:
        return date(year, mm, dd)
    except ValueError:
        return None


def _check(field: str, digit: str) -> bool:
    return digit.isdigit() and check_digit(field) == int(digit)


def parse_mrz(text: str, today: date | None = None) -> DocumentInfo | None:
    """Parse OCR text into DocumentInfo. None when no usable MRZ is found."""
    pair = find_mrz_lines(text)
    if pair is None:
        return None
    top, bottom = pair

    document_type = top[0:2].replace("<", "")
    country_code = top[2:5].replace("<", "")
    names = top[5:].split("<<", 1)
    surname = _name_part(names[0])
    given_names = _name_part(names[1]) if len(names) > 1 else ""

    number = bottom[0:9]
    number_cd = _digits(bottom[9])
    nationality = bottom[10:13].replace("<", "")
    birth = _digits(bottom[13:19])
    birth_cd = _digits(bottom[19])
    sex_ch = bottom[20]
    expiry = _digits(bottom[21:27])
    expiry_cd = _digits(bottom[27])
    personal = bottom[28:42]
    personal_cd = _digits(bottom[42])
    composite_cd = _digits(bottom[43])

    birth_date = _parse_date(birth, expiry=False, today=today)
    expiry_date = _parse_date(expiry, expiry=True, today=today)
    if birth_date is None or expiry_date is None:
        return None

    composite = number + number_cd + birth + birth_cd + expiry + expiry_cd + personal + personal_cd
    checks = {
        "document_number": _check(number, number_cd),
        "birth_date": _check(birth, birth_cd),
        "expiry_date": _check(expiry, expiry_cd),
        # An empty personal number may carry "<" as its check digit
        "personal_number": _check(personal, personal_cd) or (personal_cd == "<" and personal.strip("<") == ""),
        "composite": _check(composite, composite_cd),
    }

    sex = {"M": "male", "F": "female"}.get(sex_ch, "unspecified")

    return DocumentInfo(
        document_type=document_type,
        country_code=country_code,
        surname=surname,
        given_names=given_names,
        document_number=number.replace("<", ""),
        nationality=nationality,
        birth_date=birth_date,
        sex=sex,
        expiry_date=expiry_date,
        personal_number=personal.replace("<", ""),
        mrz_lines=(top, bottom),
        checks=checks,
    )
