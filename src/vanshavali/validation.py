"""Sanity checks for family tree data."""

from collections import Counter

from vanshavali.models import Person, iter_persons
from vanshavali.parsing import normalize_date


def _parent_child_pairs(tree: Person):
    for parent in iter_persons(tree):
        for child in parent.children:
            yield parent, child


def validate_tree(tree: Person) -> list[str]:
    """
    Validate the family tree for:
    - Duplicate person ids
    - Impossible ages (child born before parent)
    - Suspiciously young parents
    - Date ordering issues

    Returns a list of warning messages.
    """
    warnings: list[str] = []

    counts = Counter(person.id for person in iter_persons(tree))
    for person_id, count in sorted(counts.items()):
        if count > 1:
            warnings.append(f"Duplicate id {person_id} used by {count} persons")

    # Check for impossible ages (child born before parent)
    # normalized dates are ISO format (YYYY-MM-DD) which can be compared as strings
    for parent, child in _parent_child_pairs(tree):
        parent_birth = normalize_date(parent.date_of_birth)
        child_birth = normalize_date(child.date_of_birth)

        if parent_birth and child_birth:
            if child_birth < parent_birth:
                warnings.append(f"Impossible: {child.name} born before parent {parent.name}")
            elif int(child_birth[:4]) - int(parent_birth[:4]) < 12:
                warnings.append(
                    f"Suspicious: {parent.name} was less than 12 years "
                    f"old when {child.name} was born"
                )

    # Check death before birth
    for person in iter_persons(tree):
        birth = normalize_date(person.date_of_birth)
        death = normalize_date(person.date_of_death)

        if birth and death and death < birth:
            warnings.append(f"Impossible: {person.name} died before being born")

    return warnings
