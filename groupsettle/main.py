"""
Group Settle - FastAPI Web Backend

This module exposes the settlement engine over HTTP using FastAPI.

Features:
    - Stateless calculation from expenses posted in the request body
    - Settlement of a stored group (Firebase Firestore backend)
    - Recording of settle-up payments

Endpoints:
    POST /settlements/calculate          - Calculate from posted expenses
    GET  /groups/{group_id}/settlements  - Calculate from stored expenses
    POST /groups/{group_id}/settlements  - Record a settle-up payment
    GET  /health                         - Health check

Usage:
    uvicorn groupsettle.main:app --reload
"""

import logging
from typing import Optional
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from groupsettle import expense_store
from groupsettle.balances import aggregate_member_balances, balance_total
from groupsettle.models import ExpenseRecord, SettlementPayment, Share, round_money
from groupsettle.settlement import simplify
from groupsettle.shares import validate_expense


logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class ShareIn(BaseModel):
    """Request model for one member's share of an expense."""
    member_id: str = Field(..., min_length=1, description="Member ID")
    member_name: str = Field("", description="Member display name")
    amount: float = Field(..., ge=0, description="Share amount (must be >= 0)")
    is_paid: bool = False


class ExpenseIn(BaseModel):
    """Request model for an expense."""
    expense_id: str = Field("", description="Expense ID")
    group_id: str = Field("", description="Group ID")
    amount: float = Field(..., ge=0, description="Expense amount (must be >= 0)")
    paid_by: str = Field(..., min_length=1, description="Member ID of payer")
    paid_by_name: str = Field("", description="Payer display name")
    shares: list[ShareIn] = Field(default_factory=list)
    description: str = ""
    category: str = "other"
    date: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$", description="Expense date (YYYY-MM-DD)")


class PaymentIn(BaseModel):
    """Request model for a recorded settle-up payment."""
    payer_id: str = Field(..., min_length=1, description="Member who paid")
    payee_id: str = Field(..., min_length=1, description="Member who was paid")
    amount: float = Field(..., gt=0, description="Payment amount (must be > 0)")
    payer_name: str = ""
    payee_name: str = ""
    payment_method: str = "cash"


class CalculateRequest(BaseModel):
    """Request model for a stateless calculation."""
    expenses: list[ExpenseIn] = Field(default_factory=list)
    payments: list[PaymentIn] = Field(default_factory=list)
    strict: bool = Field(False, description="Reject expenses whose shares do not sum to the amount")


class SettlementResponse(BaseModel):
    """Response model for calculation results."""
    balances: dict
    debts: list
    summaries: list
    unbalanced_total: float


class PaymentResponse(BaseModel):
    """Response model for a recorded payment."""
    payment_id: str
    group_id: str
    payer_id: str
    payee_id: str
    amount: float
    message: str


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="Group Settle",
    description="Shared expense balances and minimal settle-up payments",
    version="1.0.0"
)


# =============================================================================
# Helper Functions
# =============================================================================

def _expense_from_request(group_id: str, expense: ExpenseIn) -> ExpenseRecord:
    """Convert a request expense into an ExpenseRecord."""
    return ExpenseRecord(
        expense_id=expense.expense_id,
        group_id=expense.group_id or group_id,
        amount=expense.amount,
        paid_by=expense.paid_by,
        paid_by_name=expense.paid_by_name,
        shares=[
            Share(
                member_id=s.member_id,
                member_name=s.member_name,
                amount=s.amount,
                is_paid=s.is_paid
            )
            for s in expense.shares
        ],
        description=expense.description,
        category=expense.category,
        date=expense.date
    )


def _payment_from_request(group_id: str, payment: PaymentIn) -> SettlementPayment:
    """Convert a request payment into a SettlementPayment."""
    return SettlementPayment(
        payment_id="",
        group_id=group_id,
        payer_id=payment.payer_id,
        payee_id=payment.payee_id,
        amount=payment.amount,
        payer_name=payment.payer_name,
        payee_name=payment.payee_name,
        payment_method=payment.payment_method
    )


def _settle(expenses: list[ExpenseRecord], payments: list[SettlementPayment]) -> SettlementResponse:
    """
    Run the engine and build the response payload.

    Request flow:
        1. Aggregate member balances
        2. Simplify into debts and summaries
        3. Report the conservation residue (non-zero for malformed shares)
    """
    member_balances = aggregate_member_balances(expenses, payments)
    result = simplify(member_balances)

    net_balances = {m_id: b.net_balance for m_id, b in member_balances.items()}
    residue = balance_total(net_balances)
    if residue != 0:
        logger.warning("Balances do not sum to zero (residue %s)", residue)

    return SettlementResponse(
        balances={m_id: b.to_dict() for m_id, b in member_balances.items()},
        debts=[d.to_dict() for d in result.debts],
        summaries=[s.to_dict() for s in result.summaries],
        unbalanced_total=round_money(residue)
    )


# =============================================================================
# API Endpoints
# =============================================================================

@app.post("/settlements/calculate", response_model=SettlementResponse)
async def calculate_settlements(request: CalculateRequest):
    """
    Calculate balances and debts from the posted expenses.

    Nothing is read from or written to storage.
    """
    try:
        expenses = [_expense_from_request("", e) for e in request.expenses]
        if request.strict:
            for expense in expenses:
                validate_expense(expense)
        payments = [_payment_from_request("", p) for p in request.payments]
        return _settle(expenses, payments)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Calculation failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/groups/{group_id}/settlements", response_model=SettlementResponse)
async def get_group_settlements(group_id: str):
    """
    Calculate who owes whom for a stored group.

    Request flow:
        1. Fetch expenses from Firestore
        2. Fetch recorded settlements from Firestore
        3. Aggregate and simplify
        4. Return balances, debts and summaries
    """
    try:
        expenses = expense_store.get_group_expenses(group_id)
        payments = expense_store.get_group_payments(group_id)
        return _settle(expenses, payments)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("Calculation failed for group %s", group_id)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/groups/{group_id}/settlements", response_model=PaymentResponse, status_code=201)
async def record_group_settlement(group_id: str, payment: PaymentIn):
    """Record that one member paid another to settle up."""
    try:
        recorded = expense_store.record_settlement(
            group_id=group_id,
            payer_id=payment.payer_id,
            payee_id=payment.payee_id,
            amount=payment.amount,
            payer_name=payment.payer_name,
            payee_name=payment.payee_name,
            payment_method=payment.payment_method
        )

        return PaymentResponse(
            payment_id=recorded.payment_id,
            group_id=recorded.group_id,
            payer_id=recorded.payer_id,
            payee_id=recorded.payee_id,
            amount=round_money(recorded.amount),
            message="Settlement recorded successfully"
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("Recording settlement failed for group %s", group_id)
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": "Group Settle"}


# =============================================================================
# Run with: python -m groupsettle.main
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run("groupsettle.main:app", host="127.0.0.1", port=8000, reload=True)
