# Ledger module - policy and claim persistence
from .base import PolicyLedger
from .memory import InMemoryPolicyLedger
from .sql import SqlPolicyLedger

__all__ = ["PolicyLedger", "InMemoryPolicyLedger", "SqlPolicyLedger"]
