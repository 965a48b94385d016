"""
Group Settle

Balance aggregation and debt simplification for shared group expenses.
"""

from groupsettle.balances import aggregate, aggregate_member_balances, balance_total
from groupsettle.models import (
    DebtEdge,
    ExpenseRecord,
    MemberBalance,
    SettlementPayment,
    SettlementResult,
    SettlementSummary,
    Share,
)
from groupsettle.settlement import (
    EPSILON,
    build_settlement_summaries,
    calculate_group_settlements,
    simplify,
    simplify_debts,
)

__version__ = "1.0.0"
