"""Chronological list of births, deaths and anniversaries."""

from dataclasses import dataclass
from enum import Enum

from vanshavali.models import Person, iter_persons
from vanshavali.parsing import normalize_date


class EventType(str, Enum):
    BIRTH = "BIRTH"
    DEATH = "DEATH"
    ANNIVERSARY = "ANNIVERSARY"


@dataclass(frozen=True)
class TimelineEvent:
    id: str
    person_id: str
    name: str
    type: EventType
    date: str  # As entered
    year: int


def timeline_events(tree: Person) -> list[TimelineEvent]:
    """Collect dated events of every person, oldest first. Unparseable dates are skipped."""
    events: list[TimelineEvent] = []
    for person in iter_persons(tree):
        for event_type, raw in (
            (EventType.BIRTH, person.date_of_birth),
            (EventType.DEATH, person.date_of_death),
            (EventType.ANNIVERSARY, person.anniversary_date),
        ):
            iso = normalize_date(raw)
            if iso is None:
                continue
            events.append(
                TimelineEvent(
                    id=f"{person.id}-{event_type.value.lower()}",
                    person_id=person.id,
                    name=person.name,
                    type=event_type,
                    date=raw,
                    year=int(iso[:4]),
                )
            )

    events.sort(key=lambda e: (normalize_date(e.date), e.id))
    return events
