"""Year-to-date tracking against annual contribution limits."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math

from .assumptions import CONTRIBUTION_LIMITS, LIMIT_CATEGORIES

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ContributionLimitTracker:
    limits: dict[str, float] = field(default_factory=lambda: dict(CONTRIBUTION_LIMITS))
    ytd: dict[str, float] = field(default_factory=lambda: {category: 0.0 for category in LIMIT_CATEGORIES})

    @classmethod
    def seeded(cls, limits: dict[str, float], ira_ytd: float = 0.0, four_oh_one_k_ytd: float = 0.0) -> "ContributionLimitTracker":
        tracker = cls(limits=dict(limits))
        tracker.ytd["ira"] = min(tracker.limits["ira"], max(0.0, ira_ytd))
        tracker.ytd["401k"] = min(tracker.limits["401k"], max(0.0, four_oh_one_k_ytd))
        return tracker

    def start_month(self, month: int) -> None:
        """Reset every counter on the first month of each simulated year after the first."""
        if month > 0 and month % 12 == 0:
            for category in self.ytd:
                self.ytd[category] = 0.0
            logger.debug("month %d: contribution YTD counters reset", month)

    def remaining(self, category: str) -> float:
        return max(0.0, self.limits[category] - self.ytd[category])

    def contribute(self, category: str, requested: float) -> float:
        """Record up to ``requested`` against the limit and return the accepted amount."""
        if requested <= 0:
            return 0.0
        accepted = min(requested, self.remaining(category))
        self.ytd[category] += accepted
        return accepted

    def contribute_ira(self, traditional: float, roth: float, budget: float = math.inf) -> tuple[float, float]:
        """Traditional is drawn before Roth against the shared IRA limit."""
        traditional_accepted = self.contribute("ira", min(traditional, budget))
        roth_accepted = self.contribute("ira", min(roth, max(0.0, budget - traditional_accepted)))
        return traditional_accepted, roth_accepted
