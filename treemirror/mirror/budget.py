"""Bounded tolerance for failed file transfers."""

import logging

from ..exceptions import FailureBudgetExceeded
from ..utils import MAX_TRANSFER_FAILURES

logger = logging.getLogger(__name__)


class FailureBudget:
    """Counts transfer failures over a whole run.

    The count never decreases. Once it is strictly greater than the
    threshold the run has to stop.
    """

    def __init__(self, threshold: int = MAX_TRANSFER_FAILURES):
        self.threshold = threshold
        self._failures = 0

    @property
    def count(self) -> int:
        """Failures recorded so far."""
        return self._failures

    def record_failure(self) -> int:
        """Count one more failure and return the total."""
        self._failures += 1
        logger.warning("Total transfer failures so far: %d", self._failures)
        return self._failures

    def exceeded(self) -> bool:
        """Return True once more failures than the threshold were recorded."""
        return self._failures > self.threshold

    def check(self) -> None:
        """Abort the run if the budget is exceeded.

        Raises:
            FailureBudgetExceeded: If ``exceeded()`` is true
        """
        if self.exceeded():
            raise FailureBudgetExceeded(self._failures, self.threshold)
