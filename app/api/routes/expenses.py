import math
from datetime import date as date_type, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import CurrentSession, require_admin, require_permission
from app.db.database import get_db
from app.ledger import STATEMENT_STREAMS, normalize_name
from app.models.ledger import ExpenseAccount, ExpenseTransaction, TransactionType
from app.schemas.ledger import (
    ExpenseCreate,
    ExpenseListOut,
    ExpenseTransactionOut,
    ExpenseUpdate,
    PaginationOut,
    StatementOut,
)
from app.services.ledgers import reconcile_streams, record_transaction

router = APIRouter(tags=["Expenses"])


def _day_start(value: date_type) -> datetime:
    return datetime.combine(value, time.min)


def _day_end(value: date_type) -> datetime:
    return datetime.combine(value, time.max)


@router.post("/expenses", response_model=ExpenseTransactionOut, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreate,
    _: CurrentSession = Depends(require_permission("expenses:write")),
    db: Session = Depends(get_db),
):
    expense = ExpenseTransaction(
        date=payload.date,
        amount=payload.amount,
        account=payload.account,
        type=payload.type,
        name=payload.name,
        name_key=normalize_name(payload.name),
    )
    expense, _ = record_transaction(db, STATEMENT_STREAMS.name, expense)
    return expense


@router.get("/expenses", response_model=ExpenseListOut)
def list_expenses(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    account: ExpenseAccount | None = None,
    type: TransactionType | None = None,
    name: str | None = None,
    start_date: date_type | None = Query(default=None),
    end_date: date_type | None = Query(default=None),
    _: CurrentSession = Depends(require_permission("expenses:view")),
    db: Session = Depends(get_db),
):
    filters = []
    if account is not None:
        filters.append(ExpenseTransaction.account == account)
    if type is not None:
        filters.append(ExpenseTransaction.type == type)
    if name is not None and name.strip():
        filters.append(ExpenseTransaction.name_key.contains(normalize_name(name)))
    if start_date is not None:
        filters.append(ExpenseTransaction.date >= _day_start(start_date))
    if end_date is not None:
        filters.append(ExpenseTransaction.date <= _day_end(end_date))

    total = db.scalar(select(func.count()).select_from(ExpenseTransaction).where(*filters)) or 0
    query = (
        select(ExpenseTransaction)
        .where(*filters)
        .order_by(ExpenseTransaction.date.desc(), ExpenseTransaction.created_at.desc(), ExpenseTransaction.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    unique_names = db.scalars(select(ExpenseTransaction.name).distinct().order_by(ExpenseTransaction.name)).all()

    return ExpenseListOut(
        transactions=list(db.scalars(query).all()),
        pagination=PaginationOut(total=total, page=page, limit=limit, total_pages=math.ceil(total / limit)),
        unique_names=list(unique_names),
    )


@router.patch("/expenses/{expense_id}", response_model=ExpenseTransactionOut)
def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    expense = db.get(ExpenseTransaction, expense_id)
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")

    old_stream = expense.name_key

    if payload.date is not None:
        expense.date = payload.date
    if payload.amount is not None:
        expense.amount = payload.amount
    if payload.account is not None:
        expense.account = payload.account
    if payload.type is not None:
        expense.type = payload.type
    if payload.name is not None:
        cleaned = payload.name.strip()
        if not cleaned:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name must not be blank")
        expense.name = cleaned
        expense.name_key = normalize_name(cleaned)

    db.commit()
    reconcile_streams(db, STATEMENT_STREAMS.name, [expense.name_key, old_stream])
    db.refresh(expense)
    return expense


@router.delete("/expenses/{expense_id}", response_model=ExpenseTransactionOut)
def delete_expense(
    expense_id: int,
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    expense = db.get(ExpenseTransaction, expense_id)
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")

    result = ExpenseTransactionOut.model_validate(expense)
    stream = expense.name_key
    db.delete(expense)
    db.commit()
    reconcile_streams(db, STATEMENT_STREAMS.name, [stream])
    return result


@router.get("/statements", response_model=StatementOut)
def get_statement(
    name: str = Query(min_length=1),
    start_date: date_type | None = Query(default=None),
    end_date: date_type | None = Query(default=None),
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    stream = normalize_name(name)
    if not stream:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")

    query = select(ExpenseTransaction).where(ExpenseTransaction.name_key == stream)
    if start_date is not None:
        query = query.where(ExpenseTransaction.date >= _day_start(start_date))
    if end_date is not None:
        query = query.where(ExpenseTransaction.date <= _day_end(end_date))
    query = query.order_by(ExpenseTransaction.date.asc(), ExpenseTransaction.created_at.asc(), ExpenseTransaction.id.asc())
    transactions = list(db.scalars(query).all())

    total_balance = sum(STATEMENT_STREAMS.signed_quantity(row) for row in transactions)
    closing_balance = transactions[-1].running_balance if transactions else 0.0
    return StatementOut(
        name=name.strip(),
        transactions=transactions,
        total_balance=total_balance,
        closing_balance=closing_balance,
    )
