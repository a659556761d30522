import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


@dataclass
class CancellationCheck:
    can_cancel: bool
    hours_until_event: float
    deadline: datetime
    message: str


def cancellation_deadline(event_start: datetime, deadline_hours: int) -> datetime:
    return event_start - timedelta(hours=deadline_hours)


def validate_cancellation(event_start: datetime, deadline_hours: int,
                          now: Optional[datetime] = None) -> CancellationCheck:
    """Cancelling is allowed up to ``deadline_hours`` before the event starts."""
    now = now or datetime.now()
    deadline = cancellation_deadline(event_start, deadline_hours)
    hours_until = (event_start - now).total_seconds() / 3600

    if now <= deadline:
        message = f"Cancellation allowed ({math.floor(hours_until)} hours until event start)"
        return CancellationCheck(True, hours_until, deadline, message)

    hours_late = abs(math.floor(hours_until - deadline_hours))
    message = (
        f"Cannot cancel within {deadline_hours}h of event start. "
        f"Please contact the professor. ({hours_late}h past deadline)"
    )
    return CancellationCheck(False, hours_until, deadline, message)
