"""
Settlement Module

This module reduces net balances to a short list of settlement transfers.

Features:
    - Convert net balances into settlement transactions
    - Minimize number of transactions using a greedy algorithm
    - Deterministic tie-breaking (stable sort on input order)
    - Handle rounding safely

Data Model:
    Input - balances (dict keyed by member id):
        - float or Decimal net balance (positive = owed money, negative = owes money)

    Output - list of SettlementTransfer:
        - from_member: debtor who pays
        - to_member: creditor who receives
        - amount: float (rounded to 2 decimal places)

Functions:
    simplify_debts: Convert balances into minimal settlement transactions.
    apply_transfers: Apply transfers to a balance mapping.
"""

import logging
from decimal import Decimal

from .models import SettlementTransfer
from .utils import EPSILON, round_float, to_decimal

logger = logging.getLogger(__name__)


def simplify_debts(balances: dict) -> list[SettlementTransfer]:
    """
    Convert net balances into minimal settlement transactions.

    Uses a greedy algorithm:
        1. Separate members into creditors (balance > 0.01) and debtors
           (balance < -0.01); anyone within 0.01 of zero is settled
        2. Sort creditors by largest credit first
        3. Sort debtors by most negative balance first
        4. Walk both lists with two cursors:
           - Settle min(creditor remaining, |debtor remaining|)
           - Emit a transfer only if that amount exceeds 0.01
           - Advance a cursor once its member is within 0.01 of zero
           - Stop when either list is exhausted

    Args:
        balances: Dictionary keyed by member id with net balances.

    Returns:
        list[SettlementTransfer]: At most creditors + debtors - 1 transfers.

    Notes:
        - Sorting is stable, so members with equal balances keep the
          order in which they appear in ``balances``
        - Does NOT modify input balances
        - If balances do not sum to ~0, the last creditor or debtor keeps
          an untransferred residue
    """
    creditors = []
    debtors = []

    for member, balance in balances.items():
        net = to_decimal(balance)
        if net > EPSILON:
            creditors.append((member, net))
        elif net < -EPSILON:
            debtors.append((member, net))

    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1])

    if creditors and debtors:
        residue = sum((b for _, b in creditors), Decimal("0")) + sum((b for _, b in debtors), Decimal("0"))
        if abs(residue) > EPSILON:
            logger.warning("Simplifying an unbalanced vector; residue of %s will remain", residue)

    transfers = []

    i = 0
    j = 0
    credit_remaining = creditors[0][1] if creditors else Decimal("0")
    debt_remaining = debtors[0][1] if debtors else Decimal("0")

    while i < len(creditors) and j < len(debtors):
        creditor_id = creditors[i][0]
        debtor_id = debtors[j][0]

        amount = min(credit_remaining, abs(debt_remaining))

        if amount > EPSILON:
            transfers.append(SettlementTransfer(
                from_member=debtor_id,
                to_member=creditor_id,
                amount=round_float(amount)
            ))

        credit_remaining -= amount
        debt_remaining += amount

        if abs(credit_remaining) < EPSILON:
            i += 1
            if i < len(creditors):
                credit_remaining = creditors[i][1]

        if abs(debt_remaining) < EPSILON:
            j += 1
            if j < len(debtors):
                debt_remaining = debtors[j][1]

    logger.debug(
        "Simplified %d creditors and %d debtors into %d transfers",
        len(creditors), len(debtors), len(transfers)
    )

    return transfers


def apply_transfers(balances: dict, transfers: list) -> dict:
    """
    Apply settlement transfers to a balance mapping.

    The payer of each transfer moves up by the amount and the recipient
    moves down by it, mirroring how a recorded settlement changes balances.

    Returns:
        dict: New mapping member id -> float; the input is not modified.
    """
    result = {member: to_decimal(balance) for member, balance in balances.items()}

    for transfer in transfers:
        amount = to_decimal(transfer.amount)
        result[transfer.from_member] = result.get(transfer.from_member, Decimal("0")) + amount
        result[transfer.to_member] = result.get(transfer.to_member, Decimal("0")) - amount

    return {member: round_float(balance) for member, balance in result.items()}
