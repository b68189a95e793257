"""
Tests for cash register reports.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from factory_api.core.errors import ValidationFailed
from factory_api.models.reports import CashRegister, DailySale, Withdrawal
from factory_api.services.reports import ReportService, history_window


@pytest.fixture
def seed_cash_data(db_session, seed_branches, seed_cashier):
    db_session.add_all(
        [
            CashRegister(branch_id=1, register_no=1, cashier_name="Ana",
                         cash=Decimal("100"), card=Decimal("50"), bank=Decimal("0"),
                         refunds=Decimal("5"), withdrawals=Decimal("20")),
            CashRegister(branch_id=2, register_no=1, cashier_name=None,
                         cash=Decimal("10"), card=Decimal("0"), bank=Decimal("30"),
                         refunds=Decimal("0"), withdrawals=Decimal("0")),
            DailySale(date=datetime(2024, 3, 4, 18), branch_id=1, register_no=1,
                      cash=Decimal("100"), card=Decimal("10"), bank=Decimal("0"),
                      withdrawals=Decimal("20"), net_cash=Decimal("80")),
            DailySale(date=datetime(2024, 3, 6, 18), branch_id=1, register_no=1,
                      cash=Decimal("50"), card=Decimal("0"), bank=Decimal("5"),
                      withdrawals=Decimal("0"), net_cash=Decimal("50")),
            DailySale(date=datetime(2024, 4, 1, 18), branch_id=2, register_no=1,
                      cash=Decimal("7"), card=Decimal("0"), bank=Decimal("0"),
                      withdrawals=Decimal("0"), net_cash=Decimal("7")),
            Withdrawal(branch_id=1, register_no=1, reason="Pago proveedor",
                       amount=Decimal("20"), seller_id=seed_cashier.id, date=datetime(2024, 3, 4, 12)),
            Withdrawal(branch_id=1, register_no=1, reason=None,
                       amount=Decimal("15.5"), seller_id=999, date=datetime(2024, 3, 5, 9)),
        ]
    )
    db_session.commit()


class TestHistoryWindow:

    def test_day(self):
        assert history_window("dia", day=date(2024, 3, 4)) == (
            datetime(2024, 3, 4), datetime(2024, 3, 5),
        )

    def test_week_starts_on_monday(self):
        assert history_window("semana", day=date(2024, 3, 7)) == (
            datetime(2024, 3, 4), datetime(2024, 3, 11),
        )

    def test_december_rolls_over(self):
        assert history_window("mes", month=12, year=2023) == (
            datetime(2023, 12, 1), datetime(2024, 1, 1),
        )

    def test_all_has_no_window(self):
        assert history_window("todo") is None

    @pytest.mark.parametrize(
        "args, code",
        [
            (("dia",), "MISSING_DATE"),
            (("mes", None, 13, 2024), "INVALID_MONTH"),
            (("anio",), "INVALID_RANGE"),
        ],
    )
    def test_invalid_arguments(self, args, code):
        with pytest.raises(ValidationFailed) as exc_info:
            history_window(*args)
        assert exc_info.value.code == code


class TestReportService:

    def test_cash_registers_totals(self, db_session, seed_cash_data):
        report = ReportService().cash_registers(db_session)
        assert [row["branch_name"] for row in report["details"]] == ["Centro", "Norte"]
        assert report["details"][0]["total_sales"] == Decimal("150")
        assert report["details"][1]["cashier_name"] == ""
        assert report["totals"]["total_sales"] == Decimal("190")
        assert report["totals"]["total_bank"] == Decimal("30")

    def test_history_by_week(self, db_session, seed_cash_data):
        report = ReportService().history(db_session, "semana", day=date(2024, 3, 6))
        assert len(report["details"]) == 1
        row = report["details"][0]
        assert row["cash"] == Decimal("150")
        assert row["total_sales"] == Decimal("165")
        assert report["totals"]["total_net_cash"] == Decimal("130")

    def test_history_all(self, db_session, seed_cash_data):
        report = ReportService().history(db_session, "todo")
        assert [(r["branch_id"], r["register_no"]) for r in report["details"]] == [(1, 1), (2, 1)]

    def test_withdrawals(self, db_session, seed_cash_data):
        rows = ReportService().withdrawals(db_session, 1, 1, date(2024, 3, 4), date(2024, 3, 5))
        assert [r["seller_name"] for r in rows] == ["Vendedor 999", "cajero"]
        assert rows[0]["reason"] == ""
        assert rows[0]["amount"] == Decimal("15.50")

    def test_withdrawals_inverted_range(self, db_session):
        with pytest.raises(ValidationFailed):
            ReportService().withdrawals(db_session, 1, 1, date(2024, 3, 5), date(2024, 3, 4))


class TestReportEndpoints:

    def test_requires_permission(self, client, cashier_headers):
        assert client.get("/api/v1/reports/cash-registers", headers=cashier_headers).status_code == 403

    def test_cash_registers(self, client, auth_headers, seed_cash_data):
        response = client.get("/api/v1/reports/cash-registers", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["totals"]["total_sales"] == 190.0

    def test_history_by_month(self, client, auth_headers, seed_cash_data):
        response = client.get(
            "/api/v1/reports/history",
            headers=auth_headers,
            params={"range": "mes", "month": 4, "year": 2024},
        )
        assert response.status_code == 200
        assert response.json()["totals"]["total_cash"] == 7.0

    def test_history_missing_date(self, client, auth_headers):
        response = client.get("/api/v1/reports/history", headers=auth_headers, params={"range": "dia"})
        assert response.status_code == 400
        assert response.json()["error"] == "MISSING_DATE"

    def test_withdrawals(self, client, auth_headers, seed_cash_data):
        response = client.get(
            "/api/v1/reports/withdrawals",
            headers=auth_headers,
            params={"branch_id": 1, "register_no": 1, "start": "2024-03-04", "end": "2024-03-04"},
        )
        assert response.status_code == 200
        assert response.json()[0]["amount"] == 20.0
