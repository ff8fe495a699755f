import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from form_autofill.dates import classify_date_input, looks_like_date_widget, split_date  # noqa: E402


def test_four_digit_first_part_is_year_month_day_without_range_checks():
    parts = split_date("2024-13-01")

    assert parts is not None
    assert (parts.year, parts.month, parts.day) == ("2024", "13", "01")


def test_four_digit_last_part_is_day_month_year():
    parts = split_date("7.8.1945")

    assert parts is not None
    assert (parts.day, parts.month, parts.year) == ("7", "8", "1945")
    assert parts.iso == "1945-08-07"


def test_ambiguous_or_short_dates_are_rejected():
    assert split_date("1-2-3") is None
    assert split_date("2024-01") is None
    assert split_date("2024-01-02-03") is None


def test_classify_prefers_aria_label_then_placeholder_then_type():
    assert classify_date_input("Hari", "", "text") == "day"
    assert classify_date_input("Bulan", "", "text") == "month"
    assert classify_date_input("Tahun", "", "text") == "year"
    assert classify_date_input("", "DD", "text") == "day"
    assert classify_date_input("", "MM", "text") == "month"
    assert classify_date_input("", "YYYY", "text") == "year"
    assert classify_date_input("", "", "date") == "composite"
    assert classify_date_input("Komentar", "Jawaban Anda", "text") is None


def test_native_date_input_is_composite_even_with_part_hints():
    assert classify_date_input("Tanggal Lahir", "", "date") == "composite"
    assert classify_date_input("", "dd/mm/yyyy", "DATE") == "composite"
    assert looks_like_date_widget([classify_date_input("Tanggal Lahir", "", "date")])


def test_widget_needs_native_date_or_three_parts():
    assert looks_like_date_widget(["composite"])
    assert looks_like_date_widget(["day", "month", "year"])
    assert not looks_like_date_widget(["day", None])
    assert not looks_like_date_widget([])
