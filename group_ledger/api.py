"""
Group Ledger - FastAPI Web Backend

This module exposes the ledger engine over HTTP. It is stateless: the
caller sends the group's member list and expense records with every
request and stores whatever it gets back.

Endpoints:
    GET  /health                               - Health check
    POST /splits                               - Compute a new expense record
    POST /settlements/record                   - Build a settlement record
    POST /balances                             - Net balances for a snapshot
    POST /settlements/plan                     - Balances plus settlement plan
    POST /members/{member_id}/explanation      - Breakdown for one member

Usage:
    uvicorn group_ledger.api:app --reload
"""

import logging
from typing import Optional, Union

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .balances import balances_to_list, compute_member_totals
from .config import configure_logging, get_api_title, validate_settings
from .errors import ValidationError
from .models import ExpenseRecord, RecordKind, SplitPolicy
from .report import build_settlement_report, explain_member_share, summarize_balances
from .splitter import build_settlement_record, compute_splits

configure_logging()
validate_settings()
logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class ShareModel(BaseModel):
    """One member's owed amount within a record."""
    member_id: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)


class RecordModel(BaseModel):
    """Expense or settlement record, as stored by the host."""
    record_id: Optional[str] = None
    description: str = ""
    amount: float = Field(..., gt=0)
    payer: str = Field(..., min_length=1)
    policy: SplitPolicy
    kind: RecordKind = RecordKind.EXPENSE
    date: Optional[str] = None
    splits: list[ShareModel]


class SplitRequest(BaseModel):
    """Request model for computing a new expense record."""
    amount: Union[float, str] = Field(..., description="Declared total (must be > 0)")
    payer: str = Field(..., description="Member id of payer")
    members: list[str] = Field(..., description="Members sharing the expense")
    policy: SplitPolicy
    values: Optional[dict[str, Union[float, str, None]]] = Field(
        None, description="Exact amounts or percentages per member"
    )
    group_members: Optional[list[str]] = Field(None, description="Full group membership")
    remainder: Optional[str] = Field(None, description="Equal-split residue handling: none or payer")
    description: str = ""
    record_id: Optional[str] = None
    date: Optional[str] = None


class SettlementRecordRequest(BaseModel):
    """Request model for recording a settlement payment."""
    payer: str = Field(..., min_length=1, description="Member who paid")
    recipient: str = Field(..., min_length=1, description="Member who received")
    amount: Union[float, str]
    group_members: Optional[list[str]] = None
    description: Optional[str] = None
    record_id: Optional[str] = None
    date: Optional[str] = None


class LedgerSnapshot(BaseModel):
    """A group's members and its full record history."""
    members: list[str]
    records: list[RecordModel] = Field(default_factory=list)


class BalanceEntry(BaseModel):
    member_id: str
    amount: float


class BalancesResponse(BaseModel):
    """Response model for balance queries."""
    balances: list[BalanceEntry]
    totals: dict
    summary: dict


class SettlementPlanResponse(BaseModel):
    """Response model for the full settlement report."""
    balances: list[BalanceEntry]
    totals: dict
    settlements: list[dict]
    summary: dict


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title=get_api_title(),
    description="Split shared expenses and compute who owes whom",
    version="1.0.0"
)


# =============================================================================
# Helper Functions
# =============================================================================

def _records_from_snapshot(snapshot: LedgerSnapshot) -> list[ExpenseRecord]:
    """Convert request records into engine records."""
    return [ExpenseRecord.from_dict(r.model_dump(mode="json")) for r in snapshot.records]


def _validation_error(e: ValidationError) -> HTTPException:
    return HTTPException(status_code=400, detail=e.to_dict())


# =============================================================================
# API Endpoints
# =============================================================================

@app.post("/splits", response_model=RecordModel, status_code=201)
async def create_split(request: SplitRequest):
    """
    Compute a new expense record.

    Request flow:
        1. Validate request shape using Pydantic model
        2. Call compute_splits() from splitter.py
        3. Return the record for the host to append to its history
    """
    try:
        record = compute_splits(
            total=request.amount,
            payer=request.payer,
            members=request.members,
            policy=request.policy,
            raw_values=request.values,
            group_members=request.group_members,
            remainder=request.remainder,
            description=request.description,
            record_id=request.record_id,
            date=request.date
        )
        return record.to_dict()

    except ValidationError as e:
        raise _validation_error(e)
    except Exception as e:
        logger.exception("Failed to compute split")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/settlements/record", response_model=RecordModel, status_code=201)
async def create_settlement_record(request: SettlementRecordRequest):
    """
    Build the record for a settlement payment between two members.

    Request flow:
        1. Validate request shape using Pydantic model
        2. Call build_settlement_record() from splitter.py
        3. Return the record for the host to append to its history
    """
    try:
        record = build_settlement_record(
            payer=request.payer,
            recipient=request.recipient,
            amount=request.amount,
            group_members=request.group_members,
            description=request.description,
            record_id=request.record_id,
            date=request.date
        )
        return record.to_dict()

    except ValidationError as e:
        raise _validation_error(e)
    except Exception as e:
        logger.exception("Failed to build settlement record")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/balances", response_model=BalancesResponse)
async def get_balances(snapshot: LedgerSnapshot):
    """
    Calculate net balances for a snapshot of the group's history.

    Request flow:
        1. Convert records to engine records
        2. Accumulate per-member totals (balances.py)
        3. Return balances, totals and group summary
    """
    try:
        records = _records_from_snapshot(snapshot)
        totals = compute_member_totals(snapshot.members, records)
        balances = {member: entry["net_balance"] for member, entry in totals.items()}

        return BalancesResponse(
            balances=balances_to_list(balances),
            totals=totals,
            summary=summarize_balances(balances)
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "invalid", "message": str(e)})
    except Exception as e:
        logger.exception("Failed to compute balances")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/settlements/plan", response_model=SettlementPlanResponse)
async def get_settlement_plan(snapshot: LedgerSnapshot):
    """
    Calculate balances and the minimal settlement plan.

    Request flow:
        1. Convert records to engine records
        2. Build the settlement report (report.py)
        3. Return complete results
    """
    try:
        records = _records_from_snapshot(snapshot)
        return build_settlement_report(snapshot.members, records)

    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "invalid", "message": str(e)})
    except Exception as e:
        logger.exception("Failed to compute settlement plan")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/members/{member_id}/explanation")
async def get_member_explanation(member_id: str, snapshot: LedgerSnapshot):
    """Explain how one member's balance was reached."""
    if member_id not in snapshot.members:
        raise HTTPException(status_code=404, detail=f"Member {member_id} not found")

    try:
        records = _records_from_snapshot(snapshot)
        totals = compute_member_totals(snapshot.members, records)
        return explain_member_share(member_id, records, totals)

    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "invalid", "message": str(e)})
    except Exception as e:
        logger.exception("Failed to explain member %s", member_id)
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": get_api_title()}


# =============================================================================
# Run with: python -m group_ledger.api
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("group_ledger.api:app", host="127.0.0.1", port=8000, reload=True)
