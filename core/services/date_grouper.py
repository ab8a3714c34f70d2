"""Group photos by the local calendar day of their effective date."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from core.models import DateGroup, MediaItem


class DateGrouper:
    """Buckets photos per day.

    Items keep their first-seen relative order inside a day; days are emitted
    in ascending order. Videos are expected to be filtered out beforehand.
    """

    def group(self, photos: Iterable[MediaItem]) -> list[DateGroup]:
        buckets: dict[date, DateGroup] = {}
        for item in photos:
            day = item.effective_day
            bucket = buckets.get(day)
            if bucket is None:
                bucket = buckets[day] = DateGroup(day=day)
            bucket.items.append(item)
        return [buckets[day] for day in sorted(buckets)]
