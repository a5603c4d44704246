from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class Outcome(str, Enum):
    """Test IT outcome vocabulary."""
    PASSED = "Passed"
    FAILED = "Failed"
    SKIPPED = "Skipped"
    BLOCKED = "Blocked"


def status_to_outcome(status: Optional[str]) -> Outcome:
    """
    Maps an Allure status onto a Test IT outcome.
    Missing status means the test never ran; anything unrecognized counts as a failure.
    """
    if status is None:
        return Outcome.BLOCKED
    if status == "passed":
        return Outcome.PASSED
    if status == "skipped":
        return Outcome.SKIPPED
    return Outcome.FAILED


def convert_timestamp(value: Optional[int]) -> Optional[str]:
    """Converts epoch milliseconds to an ISO-8601 UTC string, or None when unset."""
    if not value:
        return None
    moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def compute_duration(start: Optional[int], stop: Optional[int]) -> int:
    # Negative durations are passed through as-is
    if start and stop:
        return stop - start
    return 0
