"""Core membership as seen by the domain.

The registry itself is persisted by a store; the domain only needs to ask
whether a subject is a member and to seed a seasonal event from a snapshot.
"""

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol

from roster.domain.models import CoreMember, Event, Registration


class MembershipLookup(Protocol):
    def is_member(self, subject: str) -> bool: ...


def seed(event: Event, members: Iterable[CoreMember]) -> Event:
    """Seat core members on a fresh event in registry order.

    Members fill the main list up to capacity, then the waitlist up to its
    cap. Anyone beyond both caps is left out. Members already holding seats
    on the event are skipped.
    """
    participants = list(event.participants)
    waitlist = list(event.waitlist)
    main_total = event.participant_total
    wait_total = event.waitlist_total
    wait_cap = event.waitlist_capacity.value if event.waitlist_capacity else None

    for member in members:
        if event.holding_of(member.subject):
            continue
        entry = Registration(
            subject=member.subject,
            display_name=member.display_name or member.subject,
            quantity=1,
            priority=True,
        )
        if main_total < event.capacity.value:
            participants.append(entry)
            main_total += 1
        elif wait_cap is None or wait_total < wait_cap:
            waitlist.append(entry)
            wait_total += 1
        else:
            break

    return replace(event, participants=tuple(participants), waitlist=tuple(waitlist))
