"""
Church App Offline Gateway
Per-item outcome records for best-effort lifecycle operations.

Install, activate and clear-cache each touch a set of items (manifest paths,
bucket names, clients). A failure on one item never aborts the others, so the
operations return the full list of outcomes instead of a single flag.
"""

from __future__ import annotations

# ── Outcome values ───────────────────────────────────────────────────────────

OUTCOME_CACHED = "cached"
OUTCOME_FAILED = "failed"
OUTCOME_DELETED = "deleted"
OUTCOME_KEPT = "kept"
OUTCOME_NOTIFIED = "notified"
OUTCOME_CLAIMED = "claimed"


class ItemOutcome:
    """Result of processing one item (path, bucket, or client)."""

    def __init__(self, item: str, outcome: str, error: str | None = None) -> None:
        self.item = item
        self.outcome = outcome
        self.error = error

    @property
    def failed(self) -> bool:
        return self.outcome == OUTCOME_FAILED

    def to_dict(self) -> dict:
        d = {"item": self.item, "outcome": self.outcome}
        if self.error:
            d["error"] = self.error
        return d

    def __repr__(self) -> str:
        return f"<ItemOutcome {self.item}={self.outcome}>"


class LifecycleResult:
    """Aggregated outcomes of one lifecycle operation."""

    def __init__(self, operation: str, version: str, outcomes: list[ItemOutcome] | None = None) -> None:
        self.operation = operation
        self.version = version
        self.outcomes: list[ItemOutcome] = list(outcomes or [])

    def add(self, item: str, outcome: str, error: str | None = None) -> ItemOutcome:
        entry = ItemOutcome(item, outcome, error)
        self.outcomes.append(entry)
        return entry

    def extend(self, outcomes: list[ItemOutcome]) -> None:
        self.outcomes.extend(outcomes)

    def items_with(self, outcome: str) -> list[str]:
        return [o.item for o in self.outcomes if o.outcome == outcome]

    @property
    def failures(self) -> list[ItemOutcome]:
        return [o for o in self.outcomes if o.failed]

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "version": self.version,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "failed": len(self.failures),
        }
