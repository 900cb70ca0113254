"""
tests/test_splitter.py - Unit tests for the split calculator.

Covers:
  - Equal, exact and percentage policies
  - Reconciliation within the 0.01 tolerance
  - Rejected inputs produce a ValidationError and no record
  - Equal-split residue handling
  - Settlement records
"""

from decimal import Decimal

import pytest

from group_ledger.errors import ValidationError
from group_ledger.models import RecordKind, SplitPolicy
from group_ledger.splitter import build_settlement_record, compute_splits


MEMBERS = ["A", "B", "C"]


def _shares(record) -> dict:
    return {share.member: share.amount for share in record.splits}


def _split_sum(record) -> Decimal:
    return record.split_total()


# ── Equal ──────────────────────────────────────────────────────────────────

def test_equal_split_even_total():
    record = compute_splits(6000, "A", MEMBERS, SplitPolicy.EQUAL)

    assert record.amount == 6000.0
    assert record.payer == "A"
    assert record.policy == SplitPolicy.EQUAL
    assert record.kind == RecordKind.EXPENSE
    assert _shares(record) == {"A": 2000.0, "B": 2000.0, "C": 2000.0}


def test_equal_split_accepts_policy_string():
    record = compute_splits("90", "B", MEMBERS, "equal")

    assert record.policy == SplitPolicy.EQUAL
    assert _shares(record) == {"A": 30.0, "B": 30.0, "C": 30.0}


def test_equal_split_residue_is_not_reconciled_by_default():
    record = compute_splits(100, "A", MEMBERS, "equal", remainder="none")

    assert _shares(record) == {"A": 33.33, "B": 33.33, "C": 33.33}
    assert _split_sum(record) == Decimal("99.99")


def test_equal_split_rounds_half_up():
    # 0.05 / 2 = 0.025 -> 0.03
    record = compute_splits("0.05", "A", ["A", "B"], "equal", remainder="none")

    assert _shares(record) == {"A": 0.03, "B": 0.03}


def test_equal_split_residue_to_payer():
    record = compute_splits(100, "B", MEMBERS, "equal", remainder="payer")

    assert _shares(record) == {"A": 33.33, "B": 33.34, "C": 33.33}
    assert _split_sum(record) == Decimal("100")


def test_equal_split_negative_residue_to_payer():
    # 20 / 3 = 6.67 each, which over-collects by 0.01
    record = compute_splits(20, "A", MEMBERS, "equal", remainder="payer")

    assert _shares(record) == {"A": 6.66, "B": 6.67, "C": 6.67}
    assert _split_sum(record) == Decimal("20")


def test_equal_split_residue_never_makes_a_share_negative():
    # 0.05 / 7 rounds to 0.01 each, over-collecting by 0.02
    members = list("ABCDEFG")

    record = compute_splits("0.05", "A", members, "equal", remainder="payer")

    assert _shares(record) == {"A": 0.0, "B": 0.0, "C": 0.01, "D": 0.01, "E": 0.01, "F": 0.01, "G": 0.01}
    assert all(share.amount >= 0 for share in record.splits)
    assert _split_sum(record) == Decimal("0.05")


def test_equal_split_residue_to_first_member_when_payer_not_sharing():
    record = compute_splits(
        10, "D", MEMBERS, "equal",
        group_members=["A", "B", "C", "D"],
        remainder="payer"
    )

    assert _shares(record) == {"A": 3.34, "B": 3.33, "C": 3.33}


def test_equal_split_remainder_mode_from_environment(monkeypatch):
    monkeypatch.setenv("LEDGER_EQUAL_REMAINDER", "payer")

    record = compute_splits(100, "C", MEMBERS, "equal")

    assert _shares(record)["C"] == 33.34


def test_equal_split_default_mode_leaves_residue(monkeypatch):
    monkeypatch.delenv("LEDGER_EQUAL_REMAINDER", raising=False)

    record = compute_splits(100, "C", MEMBERS, "equal")

    assert _shares(record)["C"] == 33.33


def test_equal_split_single_member_gets_full_amount():
    record = compute_splits("57.89", "A", ["A"], "equal")

    assert _shares(record) == {"A": 57.89}


# ── Exact ──────────────────────────────────────────────────────────────────

def test_exact_split_uses_values_directly():
    record = compute_splits(100, "A", MEMBERS, "exact", {"A": 30, "B": "30", "C": 40.0})

    assert _shares(record) == {"A": 30.0, "B": 30.0, "C": 40.0}
    assert record.policy == SplitPolicy.EXACT


def test_exact_split_mismatch_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        compute_splits(100, "A", MEMBERS, "exact", {"A": 30, "B": 30, "C": 41})

    assert str(exc_info.value) == "split mismatch"
    assert exc_info.value.code == "split_mismatch"
    assert exc_info.value.detail == {"expected": 100.0, "actual": 101.0}


def test_exact_split_within_tolerance_is_accepted():
    record = compute_splits(100, "A", MEMBERS, "exact", {"A": 30, "B": 30, "C": "40.01"})

    assert abs(_split_sum(record) - Decimal("100")) <= Decimal("0.01")


def test_exact_split_just_outside_tolerance_is_rejected():
    with pytest.raises(ValidationError):
        compute_splits(100, "A", MEMBERS, "exact", {"A": 30, "B": 30, "C": "40.02"})


def test_exact_split_missing_and_unparseable_values_count_as_zero():
    record = compute_splits(100, "A", MEMBERS, "exact", {"A": "100", "B": "abc", "C": ""})
    assert _shares(record) == {"A": 100.0, "B": 0.0, "C": 0.0}

    with pytest.raises(ValidationError):
        compute_splits(100, "A", MEMBERS, "exact", {"A": "60"})


def test_exact_split_without_values_is_a_mismatch():
    with pytest.raises(ValidationError) as exc_info:
        compute_splits(100, "A", MEMBERS, "exact")

    assert exc_info.value.code == "split_mismatch"


def test_exact_split_rejects_value_for_non_participant():
    with pytest.raises(ValidationError) as exc_info:
        compute_splits(100, "A", ["A", "B"], "exact", {"A": 50, "B": 40, "Z": 10})

    assert exc_info.value.code == "unknown_member"


def test_exact_split_rejects_negative_value():
    with pytest.raises(ValidationError) as exc_info:
        compute_splits(100, "A", MEMBERS, "exact", {"A": 120, "B": -20, "C": 0})

    assert exc_info.value.code == "negative_share"


def test_exact_split_does_not_mutate_inputs():
    members = ["A", "B"]
    values = {"A": "25", "B": "75"}

    compute_splits(100, "A", members, "exact", values)

    assert members == ["A", "B"]
    assert values == {"A": "25", "B": "75"}


# ── Percentage ─────────────────────────────────────────────────────────────

def test_percentage_split():
    record = compute_splits(1000, "A", MEMBERS, "percentage", {"A": 50, "B": 30, "C": 20})

    assert _shares(record) == {"A": 500.0, "B": 300.0, "C": 200.0}
    assert record.policy == SplitPolicy.PERCENTAGE


def test_percentage_split_rounds_each_share():
    record = compute_splits(100, "A", MEMBERS, "percentage", {"A": "33.33", "B": "33.33", "C": "33.34"})

    assert _shares(record) == {"A": 33.33, "B": 33.33, "C": 33.34}
    assert abs(_split_sum(record) - Decimal("100")) <= Decimal("0.01")


def test_percentage_split_must_total_100():
    with pytest.raises(ValidationError) as exc_info:
        compute_splits(1000, "A", MEMBERS, "percentage", {"A": 50, "B": 30, "C": 10})

    assert str(exc_info.value) == "split mismatch"
    assert exc_info.value.code == "split_mismatch"


def test_percentage_split_within_tolerance_reconciles_to_total():
    record = compute_splits(300, "A", MEMBERS, "percentage", {"A": "33.33", "B": "33.33", "C": "33.33"})

    assert _shares(record) == {"A": 100.02, "B": 99.99, "C": 99.99}
    assert _split_sum(record) == Decimal("300")


def test_percentage_split_rounding_residue_goes_to_payer():
    members = list("ABCDEFG")
    values = {member: "14.2857" for member in members[1:]}
    values["A"] = "14.2858"

    record = compute_splits(1, "A", members, "percentage", values)

    assert _shares(record)["A"] == 0.16
    assert all(_shares(record)[m] == 0.14 for m in members[1:])
    assert _split_sum(record) == Decimal("1")


def test_percentage_split_over_collection_is_taken_from_payer():
    # Each share rounds up to 0.67, which over-collects 2 by 0.01
    record = compute_splits(2, "A", MEMBERS, "percentage", {"A": "33.335", "B": "33.335", "C": "33.33"})

    assert _shares(record) == {"A": 0.66, "B": 0.67, "C": 0.67}
    assert _split_sum(record) == Decimal("2")


def test_percentage_split_residue_to_first_member_when_payer_not_sharing():
    record = compute_splits(
        300, "D", MEMBERS, "percentage", {"A": "33.33", "B": "33.33", "C": "33.33"},
        group_members=["A", "B", "C", "D"]
    )

    assert _shares(record) == {"A": 100.02, "B": 99.99, "C": 99.99}


# ── Preconditions ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("total", [0, -5, "-0.01", "abc", "", None, True, float("nan"), float("inf")])
@pytest.mark.parametrize("policy", ["equal", "exact", "percentage"])
def test_invalid_total_is_rejected(total, policy):
    with pytest.raises(ValidationError) as exc_info:
        compute_splits(total, "A", MEMBERS, policy, {"A": 100})

    assert exc_info.value.code == "invalid_amount"


@pytest.mark.parametrize("policy", ["equal", "exact", "percentage"])
def test_empty_members_is_rejected(policy):
    with pytest.raises(ValidationError) as exc_info:
        compute_splits(100, "A", [], policy)

    assert exc_info.value.code == "no_members"


def test_payer_outside_group_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        compute_splits(100, "Z", MEMBERS, "equal")

    assert exc_info.value.code == "invalid_payer"
    assert exc_info.value.detail == {"payer": "Z"}


def test_payer_in_group_need_not_share():
    record = compute_splits(90, "D", MEMBERS, "equal", group_members=["A", "B", "C", "D"])

    assert record.payer == "D"
    assert _shares(record) == {"A": 30.0, "B": 30.0, "C": 30.0}


def test_member_outside_group_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        compute_splits(90, "A", ["A", "X"], "equal", group_members=MEMBERS)

    assert exc_info.value.code == "unknown_member"


def test_duplicate_members_are_rejected():
    with pytest.raises(ValidationError) as exc_info:
        compute_splits(90, "A", ["A", "B", "A"], "equal")

    assert exc_info.value.code == "duplicate_member"


def test_unknown_policy_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        compute_splits(90, "A", MEMBERS, "shares")

    assert exc_info.value.code == "invalid_policy"


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        compute_splits(0, "A", MEMBERS, "equal")


def test_description_and_ids_are_copied():
    record = compute_splits(
        60, "A", MEMBERS, "equal",
        description="  Dinner ",
        record_id="E001",
        date="2026-01-02T10:00:00Z"
    )

    assert record.description == "Dinner"
    assert record.record_id == "E001"
    assert record.date == "2026-01-02T10:00:00Z"


# ── Settlement records ─────────────────────────────────────────────────────

def test_settlement_record_shape():
    record = build_settlement_record("B", "A", 2000, group_members=MEMBERS)

    assert record.kind == RecordKind.SETTLEMENT
    assert record.is_settlement
    assert record.policy == SplitPolicy.EXACT
    assert record.payer == "B"
    assert record.amount == 2000.0
    assert _shares(record) == {"B": 0.0, "A": 2000.0}
    assert record.description == "Settlement: B paid A"


def test_settlement_record_rejects_same_member():
    with pytest.raises(ValidationError) as exc_info:
        build_settlement_record("A", "A", 10)

    assert exc_info.value.code == "invalid_settlement"


def test_settlement_record_rejects_non_positive_amount():
    with pytest.raises(ValidationError) as exc_info:
        build_settlement_record("B", "A", 0)

    assert exc_info.value.code == "invalid_amount"


def test_settlement_record_rejects_outsider():
    with pytest.raises(ValidationError):
        build_settlement_record("Z", "A", 10, group_members=MEMBERS)
