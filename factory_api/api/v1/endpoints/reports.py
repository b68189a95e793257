# factory_api/api/v1/endpoints/reports.py
# type: ignore

from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from factory_api.api.deps import get_report_service
from factory_api.api.v1.endpoints.auth import require_permission
from factory_api.database import get_db
from factory_api.models.auth import User
from factory_api.schemas.reports import CashRegisterReport, HistoryReport, WithdrawalRow
from factory_api.services.reports import ReportService

router = APIRouter()


# ***************************************************************
# 1. Corte vigente de cajas
# ***************************************************************
@router.get("/cash-registers", response_model=CashRegisterReport, tags=["Reports"])
def read_cash_registers(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("reportes.ver")),
    reports: ReportService = Depends(get_report_service),
):
    return reports.cash_registers(db)


# ***************************************************************
# 2. Histórico de ventas por caja
# ***************************************************************
@router.get("/history", response_model=HistoryReport, tags=["Reports"])
def read_history(
    range_kind: Literal["dia", "semana", "mes", "todo"] = Query("dia", alias="range"),
    day: Optional[date] = Query(None, description="Fecha base para 'dia' y 'semana'"),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000),
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("reportes.ver")),
    reports: ReportService = Depends(get_report_service),
):
    return reports.history(db, range_kind, day=day, month=month, year=year)


# ***************************************************************
# 3. Detalle de retiros de una caja
# ***************************************************************
@router.get("/withdrawals", response_model=List[WithdrawalRow], tags=["Reports"])
def read_withdrawals(
    branch_id: int = Query(..., ge=1),
    register_no: int = Query(..., ge=1),
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("reportes.ver")),
    reports: ReportService = Depends(get_report_service),
):
    return reports.withdrawals(db, branch_id, register_no, start, end)
