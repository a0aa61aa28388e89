"""Background workers for the ledger service"""
from .expiry_sweeper import ExpirySweeperWorker
from .commission_reconciler import CommissionReconcilerWorker

__all__ = ["ExpirySweeperWorker", "CommissionReconcilerWorker"]
