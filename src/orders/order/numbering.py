"""Human-readable order numbers: ``VKR`` + UTC ``YYMMDD`` + 4-digit sequence.

One ``OrderSequence`` row per UTC day holds the last value handed out that
day. Allocation runs inside the creating command's unit of work, so a
failed creation does not burn a number. Past 9999 orders in a day the
sequence keeps counting and simply widens to five digits. Widened numbers
no longer sort lexically after the four-digit ones, so listings order by
``created_at`` rather than by number.
"""

from datetime import UTC, date, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from orders.domain import orders

ORDER_NUMBER_PREFIX = "VKR"


@orders.aggregate
class OrderSequence:
    day = String(identifier=True, required=True, max_length=6)  # YYMMDD
    last_value = Integer(default=0, min_value=0)


def format_order_number(day: date, sequence: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}{day.strftime('%y%m%d')}{sequence:04d}"


def _get_or_create(day_key):
    repo = current_domain.repository_for(OrderSequence)
    try:
        return repo.get(day_key)
    except ObjectNotFoundError:
        return OrderSequence(day=day_key, last_value=0)


def allocate_order_number(on: date | None = None) -> str:
    """Reserve the next number for ``on`` (defaults to today in UTC)."""
    day = on or datetime.now(UTC).date()
    record = _get_or_create(day.strftime("%y%m%d"))
    record.last_value = (record.last_value or 0) + 1
    current_domain.repository_for(OrderSequence).add(record)
    return format_order_number(day, record.last_value)
