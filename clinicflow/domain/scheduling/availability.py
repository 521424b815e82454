"""Bookable slots = calendar slots minus slots held by live appointments"""

from datetime import time
from typing import Iterable

# Cancelled and no-show appointments free their slot for future bookings.
# Must match models.ACTIVE_SLOT_CONDITION.
SLOT_FREEING_STATUSES = frozenset({"cancelled", "no_show"})


def slot_key(t: time) -> tuple[int, int]:
    """Slots match on (hour, minute); seconds are ignored"""
    return (t.hour, t.minute)


def occupies_slot(appointment) -> bool:
    return appointment.deleted_at is None and appointment.status not in SLOT_FREEING_STATUSES


def available_slots(all_slots: Iterable[time], booked_times: Iterable[time]) -> list[time]:
    """Order-preserving difference of all_slots and booked_times"""
    booked = {slot_key(t) for t in booked_times}
    return [slot for slot in all_slots if slot_key(slot) not in booked]


def is_slot_free(slot: time, booked_times: Iterable[time]) -> bool:
    return slot_key(slot) not in {slot_key(t) for t in booked_times}
