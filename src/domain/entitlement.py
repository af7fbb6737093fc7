"""Entitlement Rules

Pure functions deriving access from a SubscriptionRecord. Nothing here
touches storage or the clock; callers pass `now` explicitly.
"""

import calendar
import math
from datetime import datetime, timedelta
from typing import Optional
from pydantic import BaseModel
from src.domain.subscription_record import SubscriptionRecord, SubscriptionStatus

ACCESS_GRANTING_STATUSES = (SubscriptionStatus.TRIAL, SubscriptionStatus.PREMIUM)


class SubscriptionState(BaseModel):
    """Effective status of a record at a point in time"""

    status: SubscriptionStatus
    days_remaining: Optional[int] = None

    @property
    def grants_access(self) -> bool:
        return self.status in ACCESS_GRANTING_STATUSES


def current_state(record: Optional[SubscriptionRecord], now: datetime) -> SubscriptionState:
    """
    Effective state of a subscription record

    Stale trial/premium rows (end_date <= now) read as expired without any
    background job having rewritten them.
    """
    if record is None or record.status == SubscriptionStatus.FREE or record.end_date is None:
        return SubscriptionState(status=SubscriptionStatus.FREE)

    if record.status == SubscriptionStatus.EXPIRED or record.end_date <= now:
        return SubscriptionState(status=SubscriptionStatus.EXPIRED, days_remaining=0)

    remaining = (record.end_date - now) / timedelta(days=1)
    return SubscriptionState(status=record.status, days_remaining=math.ceil(remaining))


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping to the last day of short months"""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def extended_end_date(record: Optional[SubscriptionRecord], months: int, now: datetime) -> datetime:
    """
    New end of the paid window after granting `months`

    Single stacking policy for vouchers, payments and admin grants: extend
    from the current end only while the record is an unexpired premium
    window, otherwise from now. Trial days are not carried over.
    """
    start = now
    if record is not None and record.end_date is not None:
        state = current_state(record, now)
        if state.status == SubscriptionStatus.PREMIUM:
            start = max(now, record.end_date)
    return add_months(start, months)
