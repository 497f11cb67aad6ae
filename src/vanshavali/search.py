"""Search the tree by text, gender and generation."""

from dataclasses import dataclass

from vanshavali.models import Gender, Person

DEFAULT_MIN_GENERATION = 1
DEFAULT_MAX_GENERATION = 15


@dataclass(frozen=True)
class SearchHit:
    person: Person
    generation: int  # Depth from the root, not the cached field


def search_persons(
    tree: Person,
    query: str = "",
    gender: Gender | None = None,
    min_generation: int = DEFAULT_MIN_GENERATION,
    max_generation: int = DEFAULT_MAX_GENERATION,
) -> list[SearchHit]:
    """
    Find persons matching every given filter, in pre-order.

    The query matches name, occupation or id, case-insensitively. Collapsed
    branches are searched too. With no query and the default filters nothing
    is returned.
    """
    if (
        not query
        and gender is None
        and min_generation == DEFAULT_MIN_GENERATION
        and max_generation == DEFAULT_MAX_GENERATION
    ):
        return []

    needle = query.lower()
    hits: list[SearchHit] = []
    stack = [(tree, 1)]
    while stack:
        person, depth = stack.pop()
        stack.extend((child, depth + 1) for child in reversed(person.children))

        if needle and not any(
            needle in (text or "").lower() for text in (person.name, person.occupation, person.id)
        ):
            continue
        if gender is not None and person.gender != gender:
            continue
        if not min_generation <= depth <= max_generation:
            continue
        hits.append(SearchHit(person=person, generation=depth))

    return hits
