"""
Balances Module

This module accumulates net balances over a group's expense history.

Features:
    - Per-member paid / share / net totals
    - Members with no activity still appear, settled at zero
    - Order-independent accumulation in Decimal
    - Settlement records folded in like any other record

Data Model:
    Input - members: list of member ids for the group
    Input - records: list of ExpenseRecord (any order)

    Output - totals (dict keyed by member id):
        - total_paid: float (sum of records paid by this member)
        - total_share: float (sum of shares owed by this member)
        - net_balance: float (total_paid - total_share)
            - Positive = the group owes this member
            - Negative = this member owes the group

Functions:
    compute_member_totals: Per-member paid, share and net totals.
    compute_balances: Net balance per member.
    balances_to_list: JSON list view of a balance mapping.
"""

import logging
from decimal import Decimal

from .utils import EPSILON, round_float

logger = logging.getLogger(__name__)


def _accumulate(members: list, records: list) -> dict:
    """Sum paid and owed amounts per member as Decimals."""
    totals = {
        member: {"total_paid": Decimal("0"), "total_share": Decimal("0")}
        for member in members
    }

    for record in records:
        # Unreconciled equal splits may drift by up to n * 0.005
        drift = record.split_total() - Decimal(str(record.amount))
        if abs(drift) > EPSILON * max(1, len(record.splits)):
            logger.warning(
                "Record %s splits sum to %s, not %s",
                record.record_id, record.split_total(), record.amount
            )

        for member, delta in record.balance_effects():
            # Members that only appear inside records are appended after the group
            entry = totals.setdefault(
                member, {"total_paid": Decimal("0"), "total_share": Decimal("0")}
            )
            if delta >= 0:
                entry["total_paid"] += delta
            else:
                entry["total_share"] -= delta

    return totals


def compute_member_totals(members: list, records: list) -> dict:
    """
    Calculate per-member paid, share and net totals from expense records.

    For each record:
        1. The payer's total_paid increases by the record amount
        2. Each split member's total_share increases by their owed amount

    Args:
        members: Group member ids. Each gets an entry even with no activity.
        records: ExpenseRecord list, in any order.

    Returns:
        dict: member id -> {total_paid, total_share, net_balance}, floats
        rounded to 2 decimal places.
    """
    totals = _accumulate(members, records)

    result = {}
    net_sum = Decimal("0")
    for member, entry in totals.items():
        net = entry["total_paid"] - entry["total_share"]
        net_sum += net
        result[member] = {
            "total_paid": round_float(entry["total_paid"]),
            "total_share": round_float(entry["total_share"]),
            "net_balance": round_float(net)
        }

    # Equal-split rounding leaves up to n * 0.005 per record
    if abs(net_sum) > EPSILON * max(1, len(records)):
        logger.warning("Balances do not sum to zero (residue %s over %d records)", net_sum, len(records))

    logger.debug("Computed balances for %d members over %d records", len(result), len(records))

    return result


def compute_balances(members: list, records: list) -> dict:
    """
    Calculate the net balance of every member.

    Returns:
        dict: member id -> float. Positive means the member is owed money,
        negative means the member owes money.
    """
    totals = compute_member_totals(members, records)
    return {member: entry["net_balance"] for member, entry in totals.items()}


def balances_to_list(balances: dict) -> list[dict]:
    """Convert a balance mapping to ``[{member_id, amount}]``."""
    return [{"member_id": member, "amount": amount} for member, amount in balances.items()]
