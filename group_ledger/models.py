"""
Models Module

Data model shared by the split calculator and the balance reducer.

Data Model:
    Member - opaque string identifier, unique within a group.

    ExpenseRecord - produced by the split calculator, consumed by the
    balance reducer. Fields:
        - record_id: string or None (assigned by the host)
        - amount: float (total, > 0)
        - payer: member id
        - policy: SplitPolicy
        - splits: tuple of SplitShare, one per participating member
        - kind: RecordKind (expense or settlement)
        - description: string
        - date: string (ISO timestamp) or None

    SettlementTransfer - one payment instruction:
        - from_member: debtor who pays
        - to_member: creditor who receives
        - amount: float (> 0)
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional

from .utils import to_decimal


class SplitPolicy(str, Enum):
    """Rule that decides each member's owed share of an expense."""

    EQUAL = "equal"
    EXACT = "exact"
    PERCENTAGE = "percentage"


class RecordKind(str, Enum):
    """Tag distinguishing ordinary expenses from recorded settlements."""

    EXPENSE = "expense"
    SETTLEMENT = "settlement"


@dataclass(frozen=True)
class SplitShare:
    """One member's owed amount within a record."""

    member: str
    amount: float

    def to_dict(self) -> dict:
        return {"member_id": self.member, "amount": self.amount}

    @classmethod
    def from_dict(cls, data: dict) -> "SplitShare":
        member = data.get("member_id", data.get("userId"))
        return cls(member=member, amount=float(to_decimal(data.get("amount", 0))))


@dataclass(frozen=True)
class ExpenseRecord:
    """
    An immutable, finalized expense (or settlement) for a group.

    Invariant: the split amounts sum to ``amount`` within 0.01. Equal
    splits are the exception unless their residue is reconciled: per-member
    rounding may leave up to n * 0.005.
    """

    amount: float
    payer: str
    policy: SplitPolicy
    splits: tuple = field(default_factory=tuple)
    kind: RecordKind = RecordKind.EXPENSE
    description: str = ""
    record_id: Optional[str] = None
    date: Optional[str] = None

    @property
    def is_settlement(self) -> bool:
        return self.kind == RecordKind.SETTLEMENT

    @property
    def members(self) -> list:
        """Members that carry a share in this record, in split order."""
        return [share.member for share in self.splits]

    def owed_by(self, member: str) -> float:
        """Amount ``member`` owes in this record (0.0 if not a participant)."""
        total = Decimal("0")
        for share in self.splits:
            if share.member == member:
                total += Decimal(str(share.amount))
        return float(total)

    def split_total(self) -> Decimal:
        """Sum of all owed amounts, as a Decimal."""
        return sum((Decimal(str(share.amount)) for share in self.splits), Decimal("0"))

    def balance_effects(self) -> Iterator[tuple]:
        """
        Yield the (member, signed Decimal delta) pairs this record applies.

        The payer is credited the full amount and every participant is
        debited their share. Expenses and settlements share this
        interface, so the balance reducer never inspects ``kind``.
        """
        yield self.payer, Decimal(str(self.amount))
        for share in self.splits:
            yield share.member, -Decimal(str(share.amount))

    def to_dict(self) -> dict:
        """Convert record to a JSON-serializable dictionary."""
        return {
            "record_id": self.record_id,
            "description": self.description,
            "amount": self.amount,
            "payer": self.payer,
            "policy": self.policy.value,
            "kind": self.kind.value,
            "date": self.date,
            "splits": [share.to_dict() for share in self.splits]
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExpenseRecord":
        """
        Create an ExpenseRecord from a dictionary.

        Accepts both the snake_case shape produced by ``to_dict`` and the
        host application's camelCase shape (paidBy, splitType, userId).
        """
        policy = SplitPolicy(data.get("policy", data.get("splitType", SplitPolicy.EXACT.value)))
        kind = RecordKind(data.get("kind", RecordKind.EXPENSE.value))
        return cls(
            amount=float(to_decimal(data.get("amount"))),
            payer=data.get("payer", data.get("paidBy")),
            policy=policy,
            splits=tuple(SplitShare.from_dict(s) for s in data.get("splits", [])),
            kind=kind,
            description=data.get("description") or "",
            record_id=data.get("record_id", data.get("id")),
            date=data.get("date")
        )

    def __repr__(self) -> str:
        return (
            f"ExpenseRecord(payer='{self.payer}', amount={self.amount}, "
            f"policy='{self.policy.value}', kind='{self.kind.value}', splits={len(self.splits)})"
        )


@dataclass(frozen=True)
class SettlementTransfer:
    """A single payment from a debtor to a creditor."""

    from_member: str
    to_member: str
    amount: float

    def to_dict(self) -> dict:
        return {"from": self.from_member, "to": self.to_member, "amount": self.amount}

    @classmethod
    def from_dict(cls, data: dict) -> "SettlementTransfer":
        return cls(
            from_member=data.get("from"),
            to_member=data.get("to"),
            amount=float(to_decimal(data.get("amount")))
        )
