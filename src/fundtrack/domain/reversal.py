"""Reversal resolution for the append-only ledger."""

from datetime import date
from typing import Iterable, Optional, Sequence

from fundtrack.database.base import Database
from fundtrack.domain.entities import LedgerTransaction, TransactionKind


class ReversalResolver:
    """Works out which ledger entries have been voided by a reversal."""

    def __init__(self, db: Database):
        """Initialize reversal resolver.

        Args:
            db: Database instance
        """
        self.db = db

    def voided_references(
        self, kinds: Sequence[TransactionKind], since: Optional[date] = None
    ) -> frozenset[str]:
        """Collect the reference IDs voided by reversals of the given kinds.

        Args:
            kinds: Kinds of the original entries (e.g. income, expense)
            since: Only consider reversals dated on or after this day. There
                is never an upper bound, so a reversal posted after a report
                window still voids an entry inside it.

        Returns:
            Frozen set of voided reference IDs
        """
        return frozenset().union(*self.voided_by_kind(kinds, since=since).values())

    def voided_by_kind(
        self, kinds: Sequence[TransactionKind], since: Optional[date] = None
    ) -> dict[TransactionKind, frozenset[str]]:
        """Voided reference IDs per original kind, from a single ledger query."""
        kinds = [TransactionKind(k) for k in kinds]
        if not kinds:
            return {}
        by_reference_kind: dict[str, set[str]] = {k.reversal_reference_kind: set() for k in kinds}
        reversals = self.db.query_ledger(
            kinds=[TransactionKind.REVERSAL],
            start_date=since,
            reference_kinds=list(by_reference_kind),
        )
        for reversal in reversals:
            if reversal.reference_id:
                by_reference_kind[reversal.reference_kind].add(reversal.reference_id)
        return {k: frozenset(by_reference_kind[k.reversal_reference_kind]) for k in kinds}

    def exclude_voided(
        self, transactions: Iterable[LedgerTransaction], voided: frozenset[str]
    ) -> list[LedgerTransaction]:
        """Drop transactions whose voided key is in the voided set."""
        return [txn for txn in transactions if txn.voided_key not in voided]

    def filter_kind(
        self,
        kind: TransactionKind,
        start: Optional[date],
        end: Optional[date],
        reversals_since: Optional[date] = None,
    ) -> list[LedgerTransaction]:
        """Fetch entries of one kind in a window with voided entries removed."""
        transactions = self.db.query_ledger(kinds=[kind], start_date=start, end_date=end)
        voided = self.voided_references([kind], since=reversals_since)
        return self.exclude_voided(transactions, voided)
