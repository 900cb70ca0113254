"""
Splitter Module

This module turns a raw expense input into a validated expense record.

Features:
    - Equal, exact and percentage splitting policies
    - Decimal-safe rounding (round half up, 2 places)
    - Reconciliation of split totals within a 0.01 tolerance
    - Settlements recorded as two-entry exact records

Data Model:
    Input:
        - total: positive amount (int, float, str or Decimal)
        - payer: member id, must belong to the group
        - members: ordered list of participating member ids
        - policy: SplitPolicy
        - raw_values: dict member_id -> value (exact amount or percentage)

    Output - ExpenseRecord with one SplitShare per member.

Functions:
    compute_splits: Validate an expense input and produce its record.
    build_settlement_record: Record a payment between two members.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from .config import REMAINDER_NONE, REMAINDER_PAYER, VALID_REMAINDER_MODES, get_equal_remainder_mode
from .errors import ValidationError
from .models import ExpenseRecord, RecordKind, SplitPolicy, SplitShare
from .utils import parse_raw_value, round_decimal, round_float, to_decimal, within_tolerance

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def _validate_total(total) -> Decimal:
    """Parse the declared total, which must be a positive number."""
    try:
        amount = to_decimal(total)
    except ValueError:
        raise ValidationError(
            f"amount must be a positive number, got: {total!r}",
            code="invalid_amount"
        )
    if amount <= 0:
        raise ValidationError(
            f"amount must be a positive number, got: {total!r}",
            code="invalid_amount"
        )
    return amount


def _validate_members(payer: str, members: list, group_members: list) -> None:
    if not members:
        raise ValidationError("expense must have at least one member", code="no_members")

    if len(set(members)) != len(members):
        raise ValidationError("members must not contain duplicates", code="duplicate_member")

    group = set(group_members)

    if not payer or payer not in group:
        raise ValidationError(
            f"payer '{payer}' is not a member of the group",
            code="invalid_payer",
            detail={"payer": payer}
        )

    for member in members:
        if member not in group:
            raise ValidationError(
                f"member '{member}' is not a member of the group",
                code="unknown_member",
                detail={"member_id": member}
            )


def _parse_raw_values(members: list, raw_values: Optional[dict]) -> dict:
    """
    Read per-member values; missing or unparseable entries become 0.

    Values for members outside ``members`` and negative values are rejected.
    """
    raw_values = raw_values or {}

    for member in raw_values:
        if member not in members:
            raise ValidationError(
                f"split value given for '{member}', who is not part of this expense",
                code="unknown_member",
                detail={"member_id": member}
            )

    parsed = {}
    for member in members:
        value = parse_raw_value(raw_values.get(member))
        if value < 0:
            raise ValidationError(
                f"split value for '{member}' must not be negative, got: {value}",
                code="negative_share",
                detail={"member_id": member}
            )
        parsed[member] = value
    return parsed


def _assign_residue(total: Decimal, shares: dict, payer: str, members: list) -> dict:
    """
    Move the rounding residue so the shares sum exactly to ``total``.

    The payer absorbs it when they participate, else the first member. A
    negative residue is taken from members in that order without driving
    any share below zero.
    """
    residue = total - sum(shares.values(), Decimal("0"))
    if not residue:
        return shares

    if payer in shares:
        order = [payer] + [member for member in members if member != payer]
    else:
        order = list(members)

    shares = dict(shares)
    if residue > 0:
        shares[order[0]] += residue
        return shares

    for member in order:
        taken = min(shares[member], -residue)
        shares[member] -= taken
        residue += taken
        if not residue:
            break
    return shares


def _equal_shares(total: Decimal, payer: str, members: list, remainder: str) -> dict:
    share = round_decimal(total / Decimal(len(members)))
    shares = {member: share for member in members}

    if remainder == REMAINDER_PAYER:
        shares = _assign_residue(total, shares, payer, members)

    return shares


def _exact_shares(total: Decimal, members: list, values: dict) -> dict:
    split_total = sum(values.values(), Decimal("0"))
    if not within_tolerance(split_total, total):
        raise ValidationError(
            "split mismatch",
            code="split_mismatch",
            detail={"expected": round_float(total), "actual": round_float(split_total)}
        )
    return {member: values[member] for member in members}


def _percentage_shares(total: Decimal, payer: str, members: list, values: dict) -> dict:
    pct_total = sum(values.values(), Decimal("0"))
    if not within_tolerance(pct_total, HUNDRED):
        raise ValidationError(
            "split mismatch",
            code="split_mismatch",
            detail={"expected": 100.0, "actual": round_float(pct_total)}
        )
    shares = {member: round_decimal(total * values[member] / HUNDRED) for member in members}
    # Per-member rounding and the 0.01 percentage slack can both leave residue
    return _assign_residue(total, shares, payer, members)


def compute_splits(
    total,
    payer: str,
    members: list,
    policy,
    raw_values: Optional[dict] = None,
    group_members: Optional[list] = None,
    remainder: Optional[str] = None,
    description: str = "",
    record_id: Optional[str] = None,
    date: Optional[str] = None
) -> ExpenseRecord:
    """
    Validate an expense input and derive each member's owed amount.

    Policies:
        - equal: each member owes round2(total / n). The rounded shares are
          not reconciled against the total unless ``remainder="payer"``.
        - exact: raw values are owed amounts; they must sum to the total
          within 0.01.
        - percentage: raw values are percentages of the total; they must
          sum to 100 within 0.01. Owed = round2(total * pct / 100), with
          any residue moved onto the payer (or the first member) so the
          shares sum to the total.

    Args:
        total: Declared expense amount, must be > 0.
        payer: Member who paid.
        members: Members sharing the expense.
        policy: SplitPolicy or its string value.
        raw_values: Per-member raw values for exact/percentage policies.
        group_members: Full group membership; defaults to ``members``.
        remainder: "none" or "payer"; defaults to LEDGER_EQUAL_REMAINDER.
        description: Free-text label copied onto the record.
        record_id: Identifier assigned by the host.
        date: Timestamp assigned by the host.

    Returns:
        ExpenseRecord: The finalized record.

    Raises:
        ValidationError: If any check fails. No record is produced.

    Notes:
        - Pure function; inputs are never mutated.
    """
    try:
        policy = SplitPolicy(policy)
    except ValueError:
        raise ValidationError(f"unknown split policy: {policy!r}", code="invalid_policy")

    members = list(members or [])
    group_members = list(group_members) if group_members is not None else members

    try:
        amount = _validate_total(total)
        _validate_members(payer, members, group_members)

        if policy == SplitPolicy.EQUAL:
            mode = remainder or get_equal_remainder_mode()
            if mode not in VALID_REMAINDER_MODES:
                raise ValidationError(f"unknown remainder mode: {mode!r}", code="invalid_remainder")
            shares = _equal_shares(amount, payer, members, mode)
        else:
            values = _parse_raw_values(members, raw_values)
            if policy == SplitPolicy.EXACT:
                shares = _exact_shares(amount, members, values)
            else:
                shares = _percentage_shares(amount, payer, members, values)
    except ValidationError as e:
        logger.info("Rejected %s split of %r paid by %r: %s (%s)", policy.value, total, payer, e.message, e.code)
        raise

    splits = tuple(SplitShare(member=member, amount=float(shares[member])) for member in members)

    logger.debug("Computed %s split of %s across %d members", policy.value, amount, len(members))

    return ExpenseRecord(
        amount=float(amount),
        payer=payer,
        policy=policy,
        splits=splits,
        kind=RecordKind.EXPENSE,
        description=description.strip() if description else "",
        record_id=record_id,
        date=date
    )


def build_settlement_record(
    payer: str,
    recipient: str,
    amount,
    group_members: Optional[list] = None,
    description: Optional[str] = None,
    record_id: Optional[str] = None,
    date: Optional[str] = None
) -> ExpenseRecord:
    """
    Record that ``payer`` paid ``recipient`` to settle a debt.

    The settlement is an exact-split record with two entries: the payer
    owes 0 and the recipient owes the full amount. Folding it into the
    expense history moves the payer's balance up and the recipient's
    balance down by ``amount``.

    Raises:
        ValidationError: If payer and recipient are the same member, or
            the amount or membership checks fail.
    """
    if payer == recipient:
        raise ValidationError(
            "settlement payer and recipient must differ",
            code="invalid_settlement",
            detail={"payer": payer}
        )

    members = [payer, recipient]
    record = compute_splits(
        total=amount,
        payer=payer,
        members=members,
        policy=SplitPolicy.EXACT,
        raw_values={payer: 0, recipient: amount},
        group_members=group_members if group_members is not None else members,
        remainder=REMAINDER_NONE,
        description=description or f"Settlement: {payer} paid {recipient}",
        record_id=record_id,
        date=date
    )

    logger.info("Recorded settlement of %s from %r to %r", record.amount, payer, recipient)

    return replace(record, kind=RecordKind.SETTLEMENT)
