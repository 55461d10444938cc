"""
Expense endpoints
=================

POST   /api/v1/expenses              -- record fuel, charging, tolls, ...
GET    /api/v1/expenses              -- list expenses
DELETE /api/v1/expenses/{expense_id} -- remove an expense
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from src.api.dependencies import get_operations, get_store
from src.api.middleware import limiter
from src.api.schemas import ExpenseCreate, ExpenseResponse
from src.config import settings
from src.domain import fleet
from src.domain.enums import ExpenseType
from src.services.operations import OperationsService
from src.services.store import FleetStore

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post(
    "",
    status_code=201,
    response_model=ExpenseResponse,
    summary="Record an expense",
)
@limiter.limit(settings.rate_limit)
async def add_expense(
    request: Request,
    body: ExpenseCreate,
    ops: OperationsService = Depends(get_operations),
):
    transition = await ops.run(fleet.add_expense, body.model_dump())
    return ExpenseResponse.build(transition.record, transition.snapshot)


@router.get("", response_model=list[ExpenseResponse], summary="List expenses")
@limiter.limit(settings.rate_limit)
async def list_expenses(
    request: Request,
    vehicle_id: Optional[str] = None,
    expense_type: Optional[ExpenseType] = None,
    store: FleetStore = Depends(get_store),
):
    snapshot = store.snapshot
    return [
        ExpenseResponse.build(e, snapshot)
        for e in snapshot.expenses
        if (vehicle_id is None or e.vehicle_id == vehicle_id)
        and (expense_type is None or e.expense_type == expense_type)
    ]


@router.delete("/{expense_id}", status_code=204, summary="Delete an expense")
@limiter.limit(settings.rate_limit)
async def delete_expense(
    request: Request,
    expense_id: str,
    ops: OperationsService = Depends(get_operations),
):
    await ops.run(fleet.delete_expense, expense_id)
    return Response(status_code=204)
