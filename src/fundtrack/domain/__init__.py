"""Domain layer for fundtrack application."""

__all__ = [
    "AccountService",
    "AllocationEngine",
    "GoalService",
    "LedgerService",
    "ReportingService",
    "ReversalResolver",
]

_SERVICE_MODULES = {
    "AccountService": "fundtrack.domain.account",
    "AllocationEngine": "fundtrack.domain.allocation",
    "GoalService": "fundtrack.domain.goal",
    "LedgerService": "fundtrack.domain.ledger",
    "ReportingService": "fundtrack.domain.reporting",
    "ReversalResolver": "fundtrack.domain.reversal",
}


# Import services lazily; the database layer imports domain.entities, and the
# services import the database layer.
def __getattr__(name):
    if name in _SERVICE_MODULES:
        from importlib import import_module
        return getattr(import_module(_SERVICE_MODULES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
