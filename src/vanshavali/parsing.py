"""JSON import/export of family trees and date handling utilities."""

import json
from pathlib import Path
import re

from vanshavali.errors import ParseError
from vanshavali.models import Gender, Location, Person, Spouse


# Month name mappings (handle abbreviations and full names)
MONTH_MAP = {
    "JAN": 1, "JANUARY": 1,
    "FEB": 2, "FEBRUARY": 2,
    "MAR": 3, "MARCH": 3,
    "APR": 4, "APRIL": 4,
    "MAY": 5,
    "JUN": 6, "JUNE": 6,
    "JUL": 7, "JULY": 7,
    "AUG": 8, "AUGUST": 8,
    "SEP": 9, "SEPT": 9, "SEPTEMBER": 9,
    "OCT": 10, "OCTOBER": 10,
    "NOV": 11, "NOVEMBER": 11,
    "DEC": 12, "DECEMBER": 12,
}

# camelCase keys of the exported JSON -> Person fields
PERSON_KEYS = {
    "dateOfBirth": "date_of_birth",
    "dateOfDeath": "date_of_death",
    "occupation": "occupation",
    "phoneNumber": "phone",
    "anniversaryDate": "anniversary_date",
    "photoUrl": "photo_url",
    "relation": "relation",
    "bio": "bio",
}
SPOUSE_KEYS = {
    "spouse": "name",
    "spouseOccupation": "occupation",
    "spousePhoneNumber": "phone",
    "spouseDateOfBirth": "date_of_birth",
    "spouseDateOfDeath": "date_of_death",
    "spousePhotoUrl": "photo_url",
}


def normalize_date(date_str: str | None) -> str | None:
    """
    Parse a free-form date string into ISO format (YYYY-MM-DD).
    Returns None if the date cannot be parsed.

    Handles formats like:
    - "1954-11-25" or "1746-00-00"
    - "25 NOV 1954", "08 March 1893", "11 Aug. 1968"
    - "NOV 1954", "May, 1837"
    - "1698", "ABOUT 1905", "(1789?)"
    - "01-27-1920", "05/15/1923"
    - "April 17, 1850", "Oct.12,1929"
    """
    if not date_str:
        return None

    # Clean up the string
    s = date_str.strip().strip("()").rstrip("?")
    # Remove qualifiers (ABT, ABOUT, BEF, AFT, EST, CIRCA, AROUND, etc.) - with optional colon
    s = re.sub(
        r"^(ABT\.?|ABOUT|BEF\.?|BEFORE|AFT\.?|AFTER|EST\.?|CAL\.?|CIRCA|CA\.?|AROUND):?\s*",
        "",
        s,
        flags=re.IGNORECASE,
    ).strip()

    if not s:
        return None

    # ISO format, 00 month/day default to 01
    match = re.match(r"^(\d{4})-(\d{2})-(\d{2})", s)
    if match:
        year, month, day = (int(g) for g in match.groups())
        month, day = month or 1, day or 1
        if 1 <= month <= 12 and 1 <= day <= 31:
            return f"{year:04d}-{month:02d}-{day:02d}"
        return None

    # "25 NOV 1954" (day month year)
    match = re.match(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(2).upper())
        if month:
            return f"{int(match.group(3)):04d}-{month:02d}-{int(match.group(1)):02d}"

    # "April 17, 1850" (month day, year)
    match = re.match(r"^([A-Za-z]+)\.?\s*(\d{1,2}),\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(1).upper())
        if month:
            return f"{int(match.group(3)):04d}-{month:02d}-{int(match.group(2)):02d}"

    # "NOV 1954" or "May, 1837" (month year)
    match = re.match(r"^([A-Za-z]+)\.?,?\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(1).upper())
        if month:
            return f"{int(match.group(2)):04d}-{month:02d}-01"

    # "1698" (year only)
    match = re.match(r"^(\d{4})$", s)
    if match:
        return f"{int(match.group(1)):04d}-01-01"

    # "01-27-1920" or "01/27/1920" (MM-DD-YYYY)
    match = re.match(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$", s)
    if match:
        month, day, year = (int(g) for g in match.groups())
        if 1 <= month <= 12 and 1 <= day <= 31:
            return f"{year:04d}-{month:02d}-{day:02d}"

    return None


def _number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _text_fields(node: dict, keys, person_id: str) -> dict:
    values = {}
    for key, field in keys.items():
        value = node.get(key)
        if value is not None and not isinstance(value, str):
            raise ParseError(f"{key} of {person_id} must be a string")
        values[field] = value
    return values


def _person_from_dict(node, generation: int, seen: set[str]) -> Person:
    if not isinstance(node, dict):
        raise ParseError(f"Expected a person object, got {type(node).__name__}")
    if "id" not in node:
        raise ParseError(f"Person without id: {node.get('name', '?')}")

    person_id = str(node["id"])
    if person_id in seen:
        raise ParseError(f"Duplicate person id {person_id}")
    seen.add(person_id)

    name = node.get("name")
    if name is not None and not isinstance(name, str):
        raise ParseError(f"name of {person_id} must be a string")

    children = node.get("children") or []
    if not isinstance(children, list):
        raise ParseError(f"children of {person_id} must be a list")

    gender = node.get("gender")
    if gender is not None and gender not in Gender.__members__:
        raise ParseError(f"Unknown gender {gender!r} for {person_id}")

    location = node.get("location")
    if location is not None:
        if not isinstance(location, dict) or not isinstance(location.get("name"), str):
            raise ParseError(f"location of {person_id} must have a name")
        lat, lng = location.get("lat"), location.get("lng")
        if not all(v is None or _number(v) for v in (lat, lng)):
            raise ParseError(f"location of {person_id} must have numeric lat/lng")
        location = Location(name=location["name"], lat=lat, lng=lng)

    gallery = node.get("gallery") or []
    if not isinstance(gallery, list) or not all(isinstance(item, str) for item in gallery):
        raise ParseError(f"gallery of {person_id} must be a list of strings")

    spouse = Spouse(**_text_fields(node, SPOUSE_KEYS, person_id))

    # Generation defaults to depth when the file does not carry it
    if node.get("generation") is not None:
        generation = node["generation"]
        if not isinstance(generation, int) or isinstance(generation, bool) or generation < 1:
            raise ParseError(f"generation of {person_id} must be a positive integer")

    return Person(
        id=person_id,
        name=name or "Unknown",
        generation=generation,
        gender=Gender(gender) if gender else None,
        spouse=spouse if spouse != Spouse() else None,
        gallery=tuple(gallery),
        location=location,
        is_collapsed=bool(node.get("isCollapsed", False)),
        children=tuple(_person_from_dict(child, generation + 1, seen) for child in children),
        **_text_fields(node, PERSON_KEYS, person_id),
    )


def tree_from_dict(data) -> Person:
    """
    Build a tree from decoded JSON.

    Accepts either `{"tree": {...}}` or a bare person object with an id and
    a name.
    """
    if isinstance(data, dict) and isinstance(data.get("tree"), dict):
        root = data["tree"]
    elif isinstance(data, dict) and "id" in data and "name" in data:
        root = data
    else:
        raise ParseError("Invalid JSON format. Expected root object 'tree' or a Person node.")
    return _person_from_dict(root, 1, set())


def parse_tree_json(text: str) -> Person:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse JSON: {e}") from e
    return tree_from_dict(data)


def load_tree_file(filepath: Path) -> Person:
    """Read a tree from a JSON file."""
    return parse_tree_json(Path(filepath).read_text(encoding="utf-8"))


def tree_to_dict(person: Person) -> dict:
    """Convert a tree to the camelCase JSON structure, dropping empty fields."""
    node = {"id": person.id, "name": person.name, "generation": person.generation}
    if person.gender:
        node["gender"] = person.gender.value
    for key, field in PERSON_KEYS.items():
        value = getattr(person, field)
        if value is not None:
            node[key] = value
    if person.spouse:
        for key, field in SPOUSE_KEYS.items():
            value = getattr(person.spouse, field)
            if value is not None:
                node[key] = value
    if person.gallery:
        node["gallery"] = list(person.gallery)
    if person.location:
        node["location"] = {"name": person.location.name}
        if person.location.lat is not None:
            node["location"]["lat"] = person.location.lat
        if person.location.lng is not None:
            node["location"]["lng"] = person.location.lng
    if person.is_collapsed:
        node["isCollapsed"] = True
    node["children"] = [tree_to_dict(child) for child in person.children]
    return node


def dump_tree_json(tree: Person, indent: int | None = 2) -> str:
    return json.dumps({"tree": tree_to_dict(tree)}, indent=indent, ensure_ascii=False)
