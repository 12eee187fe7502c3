"""MRZ parsing of OCR text."""
from datetime import date

from docscan.orchestrator.mrz import check_digit, find_mrz_lines, parse_mrz

LINE1 = "P<UTOERIKSSON<<ANNA<MARIA".ljust(44, "<")
LINE2 = "L898902C36UTO7408122F1204159ZE184226B<<<<<10"
TODAY = date(2026, 10, 18)


def test_check_digit() -> None:
    assert check_digit("L898902C3") == 6
    assert check_digit("740812") == 2
    assert check_digit("120415") == 9
    assert check_digit("ZE184226B<<<<<") == 1


def test_specimen_passport() -> None:
    info = parse_mrz(f"{LINE1}\n{LINE2}\n", today=TODAY)
    assert info is not None
    assert info.document_type == "P"
    assert info.country_code == "UTO"
    assert info.surname == "ERIKSSON"
    assert info.given_names == "ANNA MARIA"
    assert info.document_number == "L898902C3"
    assert info.nationality == "UTO"
    assert info.birth_date == date(1974, 8, 12)
    assert info.sex == "female"
    assert info.expiry_date == date(2012, 4, 15)
    assert info.personal_number == "ZE184226B"
    assert info.is_valid
    assert info.mrz_lines == (LINE1, LINE2)


def test_noisy_ocr_text() -> None:
    noisy_top = "p<uto eriksson<<anna<maria «<<<<<<<<<<<<<<<<<"
    noisy_bottom = "L898902C36UTO74O8122F12O4159ZE184226B<<<<<1O"
    text = f"PASSPORT\n\nSurname / Nom\n{noisy_top}\n{noisy_bottom}\n"
    info = parse_mrz(text, today=TODAY)
    assert info is not None
    assert info.surname == "ERIKSSON"
    assert info.birth_date == date(1974, 8, 12)
    assert info.expiry_date == date(2012, 4, 15)
    assert info.is_valid


def test_bad_check_digit_is_reported_not_rejected() -> None:
    bottom = "L898902C35" + LINE2[10:]
    info = parse_mrz(f"{LINE1}\n{bottom}", today=TODAY)
    assert info is not None
    assert info.checks["document_number"] is False
    assert info.checks["birth_date"] is True
    assert not info.is_valid


def test_recent_birth_year_is_this_century() -> None:
    bottom = LINE2[:13] + "1501010" + LINE2[20:]
    info = parse_mrz(f"{LINE1}\n{bottom}", today=TODAY)
    assert info.birth_date == date(2015, 1, 1)


def test_no_mrz() -> None:
    assert parse_mrz("") is None
    assert parse_mrz("REPUBLIC OF UTOPIA\nPASSPORT\n") is None
    assert find_mrz_lines(LINE2 + "\n" + LINE2) is None


def test_impossible_date() -> None:
    bottom = LINE2[:13] + "741312" + LINE2[19:]
    assert parse_mrz(f"{LINE1}\n{bottom}", today=TODAY) is None


def test_long_expired_passport_is_last_century() -> None:
    bottom = LINE2[:21] + "9912315" + LINE2[28:]
    info = parse_mrz(f"{LINE1}\n{bottom}", today=TODAY)
    assert info.expiry_date == date(1999, 12, 31)
    assert info.checks["expiry_date"] is True


def test_future_expiry_stays_this_century() -> None:
    bottom = LINE2[:21] + "3601017" + LINE2[28:]
    info = parse_mrz(f"{LINE1}\n{bottom}", today=TODAY)
    assert info.expiry_date == date(2036, 1, 1)
