# factory_api/services/reports.py
"""Reportes de caja. Todos los filtros viajan como parámetros de la consulta."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from factory_api.core.errors import ValidationFailed
from factory_api.models.auth import User
from factory_api.models.platform import Branch
from factory_api.models.reports import CashRegister, DailySale, Withdrawal

ZERO = Decimal("0")


def _money(value) -> Decimal:
    return Decimal(value or 0)


def _branch_label(name: Optional[str], branch_id: int) -> str:
    return name or f"SUC {branch_id}"


def history_window(
    range_kind: str,
    day: Optional[date] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> Optional[Tuple[datetime, datetime]]:
    """
    Intervalo [inicio, fin) para el histórico: 'dia', 'semana' (ISO, de lunes
    a domingo), 'mes' o 'todo' (sin filtro).
    """
    if range_kind == "todo":
        return None
    if range_kind in ("dia", "semana"):
        if day is None:
            raise ValidationFailed("MISSING_DATE", "Se requiere la fecha para el rango solicitado.")
        if range_kind == "dia":
            start = datetime.combine(day, time.min)
            return start, start + timedelta(days=1)
        monday = day - timedelta(days=day.weekday())
        start = datetime.combine(monday, time.min)
        return start, start + timedelta(days=7)
    if range_kind == "mes":
        if not month or not year or not 1 <= month <= 12:
            raise ValidationFailed("INVALID_MONTH", "Mes y año inválidos.")
        start = datetime(year, month, 1)
        end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
        return start, end
    raise ValidationFailed("INVALID_RANGE", f"Rango desconocido: {range_kind}")


class ReportService:
    def cash_registers(self, db: Session) -> dict:
        rows = db.execute(
            select(CashRegister, Branch.name)
            .outerjoin(Branch, Branch.id == CashRegister.branch_id)
            .order_by(CashRegister.branch_id, CashRegister.register_no)
        ).all()

        details = []
        totals = {"total_sales": ZERO, "total_cash": ZERO, "total_card": ZERO, "total_bank": ZERO}
        for register, branch_name in rows:
            cash, card, bank = _money(register.cash), _money(register.card), _money(register.bank)
            details.append(
                {
                    "branch_name": _branch_label(branch_name, register.branch_id),
                    "branch_id": register.branch_id,
                    "register_no": register.register_no,
                    "cashier_name": register.cashier_name or "",
                    "total_sales": cash + card + bank,
                    "cash": cash,
                    "card": card,
                    "bank": bank,
                    "refunds": _money(register.refunds),
                    "withdrawals": _money(register.withdrawals),
                }
            )
            totals["total_sales"] += cash + card + bank
            totals["total_cash"] += cash
            totals["total_card"] += card
            totals["total_bank"] += bank
        return {"details": details, "totals": totals}

    def history(
        self,
        db: Session,
        range_kind: str,
        day: Optional[date] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> dict:
        window = history_window(range_kind, day, month, year)

        cash = func.sum(func.coalesce(DailySale.cash, 0))
        card = func.sum(func.coalesce(DailySale.card, 0))
        bank = func.sum(func.coalesce(DailySale.bank, 0))
        withdrawals = func.sum(func.coalesce(DailySale.withdrawals, 0))
        net_cash = func.sum(func.coalesce(DailySale.net_cash, 0))

        stmt = (
            select(
                DailySale.branch_id, DailySale.register_no, Branch.name,
                cash, card, bank, withdrawals, net_cash,
            )
            .outerjoin(Branch, Branch.id == DailySale.branch_id)
            .group_by(DailySale.branch_id, DailySale.register_no, Branch.name)
            .order_by(DailySale.branch_id, DailySale.register_no)
        )
        if window is not None:
            start, end = window
            stmt = stmt.where(DailySale.date >= start, DailySale.date < end)

        details = []
        totals = {"total_cash": ZERO, "total_card": ZERO, "total_bank": ZERO, "total_net_cash": ZERO}
        for branch_id, register_no, branch_name, c, k, b, w, n in db.execute(stmt).all():
            c, k, b, w, n = (_money(v) for v in (c, k, b, w, n))
            details.append(
                {
                    "branch_name": _branch_label(branch_name, branch_id),
                    "branch_id": branch_id,
                    "register_no": register_no,
                    "cash": c,
                    "card": k,
                    "bank": b,
                    "withdrawals": w,
                    "net_cash": n,
                    "total_sales": c + k + b,
                }
            )
            totals["total_cash"] += c
            totals["total_card"] += k
            totals["total_bank"] += b
            totals["total_net_cash"] += n
        return {"details": details, "totals": totals}

    def withdrawals(
        self, db: Session, branch_id: int, register_no: int, start: date, end: date
    ) -> list:
        if end < start:
            raise ValidationFailed("INVALID_RANGE", "La fecha final es anterior a la inicial.")
        rows = db.execute(
            select(Withdrawal, User.username)
            .outerjoin(User, User.id == Withdrawal.seller_id)
            .where(
                Withdrawal.branch_id == branch_id,
                Withdrawal.register_no == register_no,
                Withdrawal.date >= datetime.combine(start, time.min),
                Withdrawal.date < datetime.combine(end + timedelta(days=1), time.min),
            )
            .order_by(Withdrawal.id.desc())
        ).all()
        return [
            {
                "reason": withdrawal.reason or "",
                "amount": _money(withdrawal.amount).quantize(Decimal("0.01")),
                "seller_name": username or f"Vendedor {withdrawal.seller_id}",
                "date": withdrawal.date,
            }
            for withdrawal, username in rows
        ]
