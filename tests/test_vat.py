"""Tests for the quarterly VAT return."""

from datetime import date
from decimal import Decimal

import pytest

from ledger_core.journal import create_verification
from ledger_core.models import VatStatus
from ledger_core.tax import NET_VAT_BOX, VAT_BOXES, calculate_vat_report, parse_quarter, vat_due_date


def _sale(day, net, vat):
    return create_verification(day, "Försäljning", [
        {"account": "1510", "debit": net + vat},
        {"account": "3001", "credit": net},
        {"account": "2611", "credit": vat},
    ])


def _purchase(day, net, vat):
    return create_verification(day, "Inköp", [
        {"account": "5410", "debit": net},
        {"account": "2641", "debit": vat},
        {"account": "2440", "credit": net + vat},
    ])


class TestCalculateVatReport:
    """Tests for the VAT box table."""

    def test_boxes(self):
        report = calculate_vat_report([
            _sale(date(2024, 4, 10), Decimal("8000"), Decimal("2000")),
            _purchase(date(2024, 5, 3), Decimal("2000"), Decimal("500")),
        ], 2024, 2, today=date(2024, 7, 1))

        assert report.box("05") == Decimal("8000")
        assert report.output_vat == Decimal("2000")
        assert report.input_vat == Decimal("500")
        assert report.net_vat == Decimal("1500")

    def test_box_order(self):
        report = calculate_vat_report([], 2024, 1, today=date(2024, 4, 1))
        assert [b.field for b in report.boxes] == [d.field for d in VAT_BOXES] + [NET_VAT_BOX]
        assert all(b.value == 0 for b in report.boxes)

    def test_refund_is_negative(self):
        """Test that more input than output VAT gives money back."""
        report = calculate_vat_report(
            [_purchase(date(2024, 1, 20), Decimal("4000"), Decimal("1000"))],
            2024, 1, today=date(2024, 2, 1),
        )
        assert report.net_vat == Decimal("-1000")

    def test_credit_note_reduces_output_vat(self):
        """Test that a reversed sale nets against the original."""
        reversal = create_verification(date(2024, 2, 1), "Kreditfaktura", [
            {"account": "3001", "debit": Decimal("800")},
            {"account": "2611", "debit": Decimal("200")},
            {"account": "1510", "credit": Decimal("1000")},
        ])
        report = calculate_vat_report([
            _sale(date(2024, 1, 10), Decimal("4000"), Decimal("1000")),
            reversal,
        ], 2024, 1, today=date(2024, 2, 1))
        assert report.output_vat == Decimal("800")
        assert report.box("05") == Decimal("3200")

    def test_other_quarters_are_ignored(self):
        report = calculate_vat_report([
            _sale(date(2024, 3, 31), Decimal("400"), Decimal("100")),
            _sale(date(2024, 7, 1), Decimal("400"), Decimal("100")),
        ], 2024, 2, today=date(2024, 7, 2))
        assert report.output_vat == Decimal("0")

    def test_accepts_a_generator(self):
        entries = (v for v in [_sale(date(2024, 10, 5), Decimal("80"), Decimal("20"))])
        report = calculate_vat_report(entries, 2024, 4, today=date(2024, 12, 1))
        assert report.output_vat == Decimal("20")
        assert report.box("05") == Decimal("80")

    def test_status(self):
        on_due_date = calculate_vat_report([], 2024, 1, today=date(2024, 5, 12))
        after = calculate_vat_report([], 2024, 1, today=date(2024, 5, 13))
        assert on_due_date.status == VatStatus.UPCOMING
        assert after.status == VatStatus.OVERDUE

    def test_period_label(self):
        report = calculate_vat_report([], 2024, 4, today=date(2024, 12, 1))
        assert report.period == "Q4 2024"
        assert report.due_date == date(2025, 2, 12)

    def test_invalid_quarter(self):
        with pytest.raises(ValueError):
            calculate_vat_report([], 2024, 5)

    def test_unknown_box(self):
        report = calculate_vat_report([], 2024, 1, today=date(2024, 4, 1))
        with pytest.raises(KeyError):
            report.box("99")


@pytest.mark.parametrize("quarter, expected", [
    (1, date(2024, 5, 12)),
    (2, date(2024, 8, 17)),
    (3, date(2024, 11, 12)),
    (4, date(2025, 2, 12)),
])
def test_vat_due_date(quarter, expected):
    assert vat_due_date(2024, quarter) == expected


def test_parse_quarter():
    assert parse_quarter("Q4 2024") == (2024, 4)
    assert parse_quarter(" Q1 2025 ") == (2025, 1)
    with pytest.raises(ValueError):
        parse_quarter("Q5 2024")
    with pytest.raises(ValueError):
        parse_quarter("2024-Q1")
