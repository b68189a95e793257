# factory_api/schemas/reports.py

from datetime import datetime
from typing import List

from pydantic import BaseModel


class CashRegisterRow(BaseModel):
    branch_name: str
    branch_id: int
    register_no: int
    cashier_name: str
    total_sales: float
    cash: float
    card: float
    bank: float
    refunds: float
    withdrawals: float


class CashRegisterTotals(BaseModel):
    total_sales: float
    total_cash: float
    total_card: float
    total_bank: float


class CashRegisterReport(BaseModel):
    details: List[CashRegisterRow]
    totals: CashRegisterTotals


class HistoryRow(BaseModel):
    branch_name: str
    branch_id: int
    register_no: int
    cash: float
    card: float
    bank: float
    withdrawals: float
    net_cash: float
    total_sales: float


class HistoryTotals(BaseModel):
    total_cash: float
    total_card: float
    total_bank: float
    total_net_cash: float


class HistoryReport(BaseModel):
    details: List[HistoryRow]
    totals: HistoryTotals


class WithdrawalRow(BaseModel):
    reason: str
    amount: float
    seller_name: str
    date: datetime
