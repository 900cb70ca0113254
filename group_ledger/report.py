"""
Report Module

This module assembles balance and settlement results for display.

Features:
    - One-call settlement report (balances, totals, transfers, summary)
    - Group-level summary of money to receive and money owed
    - Per-member breakdown of how a balance was reached

Functions:
    summarize_balances: Totals to receive and owe across the group.
    explain_member_share: Detailed breakdown for one member.
    explain_all_members: Detailed breakdown for all members.
    build_settlement_report: Balances and settlement plan in one dict.
"""

from decimal import Decimal

from .balances import balances_to_list, compute_member_totals
from .settlement import simplify_debts
from .utils import EPSILON, round_float, to_decimal


def summarize_balances(balances: dict) -> dict:
    """
    Summarize a balance mapping.

    Returns:
        dict: Contains:
            - total_to_receive: float (sum of positive balances)
            - total_owing: float (sum of |negative balances|)
            - settled_members: list of member ids within 0.01 of zero
    """
    to_receive = Decimal("0")
    owing = Decimal("0")
    settled = []

    for member, balance in balances.items():
        net = to_decimal(balance)
        if net > 0:
            to_receive += net
        elif net < 0:
            owing -= net
        if abs(net) <= EPSILON:
            settled.append(member)

    return {
        "total_to_receive": round_float(to_receive),
        "total_owing": round_float(owing),
        "settled_members": settled
    }


def explain_member_share(member_id: str, records: list, totals: dict) -> dict:
    """
    Generate detailed explanation of how a member's balance was reached.

    For each record the member paid for or has a share in:
        - Shows record details (id, description, policy, kind, total)
        - Shows what the member paid and what they owe in that record

    Args:
        member_id: ID of the member to explain.
        records: List of ExpenseRecord.
        totals: Output from compute_member_totals().

    Returns:
        dict: Explanation containing:
            - member_id: string
            - contributions: list of dicts with per-record breakdown
            - total_paid: float (from totals)
            - total_share: float (from totals)
            - net_balance: float (from totals)
    """
    member_totals = totals.get(member_id, {
        "total_paid": 0.0,
        "total_share": 0.0,
        "net_balance": 0.0
    })

    contributions = []
    for record in records:
        paid = record.amount if record.payer == member_id else 0.0
        participates = member_id in record.members

        if not paid and not participates:
            continue

        contributions.append({
            "record_id": record.record_id,
            "description": record.description,
            "policy": record.policy.value,
            "kind": record.kind.value,
            "date": record.date,
            "total_amount": record.amount,
            "paid": paid,
            "owed": record.owed_by(member_id)
        })

    return {
        "member_id": member_id,
        "contributions": contributions,
        "total_paid": member_totals["total_paid"],
        "total_share": member_totals["total_share"],
        "net_balance": member_totals["net_balance"]
    }


def explain_all_members(members: list, records: list, totals: dict) -> list[dict]:
    """
    Generate explanations for all members, ordered by member id.

    Includes members with no activity and members that only appear
    inside records.
    """
    member_ids = list(members) + [m for m in totals if m not in members]
    explanations = [
        explain_member_share(member_id, records, totals)
        for member_id in member_ids
    ]
    explanations.sort(key=lambda x: x["member_id"])
    return explanations


def build_settlement_report(members: list, records: list) -> dict:
    """
    Compute balances and the settlement plan for a group in one call.

    Request flow:
        1. Accumulate per-member totals (balances.py)
        2. Simplify net balances into transfers (settlement.py)
        3. Summarize totals to receive and owe

    Returns:
        dict: Contains:
            - balances: list of {member_id, amount}
            - totals: dict member id -> {total_paid, total_share, net_balance}
            - settlements: list of {from, to, amount}
            - summary: output of summarize_balances()
    """
    totals = compute_member_totals(members, records)
    balances = {member: entry["net_balance"] for member, entry in totals.items()}
    transfers = simplify_debts(balances)

    return {
        "balances": balances_to_list(balances),
        "totals": totals,
        "settlements": [t.to_dict() for t in transfers],
        "summary": summarize_balances(balances)
    }
