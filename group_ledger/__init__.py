"""
Group Ledger

Split shared expenses among a group and reduce the resulting balances to
a short list of settlement transfers.
"""

from .balances import balances_to_list, compute_balances, compute_member_totals
from .errors import ValidationError
from .models import ExpenseRecord, RecordKind, SettlementTransfer, SplitPolicy, SplitShare
from .report import build_settlement_report, explain_all_members, explain_member_share, summarize_balances
from .settlement import apply_transfers, simplify_debts
from .splitter import build_settlement_record, compute_splits

__all__ = [
    "ExpenseRecord",
    "RecordKind",
    "SettlementTransfer",
    "SplitPolicy",
    "SplitShare",
    "ValidationError",
    "apply_transfers",
    "balances_to_list",
    "build_settlement_record",
    "build_settlement_report",
    "compute_balances",
    "compute_member_totals",
    "compute_splits",
    "explain_all_members",
    "explain_member_share",
    "simplify_debts",
    "summarize_balances",
]
