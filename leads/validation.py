"""
Record validation for imported leads.

Turns a loosely shaped row (parsed spreadsheet line or JSON object) into a
ValidatedLead. Every problem found in a row is reported together in one
LeadValidationError, which keeps the original row for error reporting.
"""

import math
import re
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type

from .config import DEFAULT_CAMPAIGN
from .models import LeadSource, LeadStatus, RawLeadRecord, ValidatedLead


class LeadValidationError(ValueError):
    """
    Raised when a lead record fails validation.

    Attributes:
        reason: Every violated constraint, "; "-joined
        data: The record exactly as received
    """

    def __init__(self, reason: str, data: Any = None):
        super().__init__(reason)
        self.reason = reason
        self.data = data


EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
)

_DAY_MONTH_YEAR = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
_TAG_DELIMITERS = re.compile(r"[,;]")


def _clean(value: Any) -> str:
    """Coerce a cell value to stripped text ("" for missing)."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def clean_tags(tags: Iterable[Any]) -> List[str]:
    """Strip tags, drop blanks and collapse duplicates keeping first-seen order."""
    seen = set()
    cleaned = []
    for tag in tags:
        text = _clean(tag)
        if text and text not in seen:
            seen.add(text)
            cleaned.append(text)
    return cleaned


def parse_tags(value: Any) -> List[str]:
    """Accept a comma/semicolon-delimited string or a list of tags."""
    if value is None:
        return []
    if isinstance(value, str):
        return clean_tags(_TAG_DELIMITERS.split(value))
    if isinstance(value, (list, tuple, set)):
        return clean_tags(value)
    if isinstance(value, float) and math.isnan(value):
        return []
    raise ValueError(f"Tags must be text or a list, got {type(value).__name__}")


def parse_entry_date(value: Any) -> str:
    """
    Parse an entry date into an ISO-8601 UTC timestamp.

    Accepts datetime/date objects, dd/mm/yyyy strings and ISO date or
    date-time strings. Naive values are taken as UTC.

    Raises:
        ValueError: if the value is not a real calendar date
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = _clean(value)
        if not text:
            raise ValueError("Entry date is empty")

        match = _DAY_MONTH_YEAR.match(text)
        if match:
            day, month, year = (int(part) for part in match.groups())
            parsed = datetime(year, month, day)
        else:
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat()


# ==========================================
# FIELD RULES
# ==========================================


def _required_text(label: str) -> Callable[[Any], str]:
    def rule(value: Any) -> str:
        text = _clean(value)
        if not text:
            raise ValueError(f"{label} is required")
        return text
    return rule


def _email(value: Any) -> str:
    email = _clean(value).lower()
    if not email:
        raise ValueError("Email is required")
    if not EMAIL_REGEX.match(email):
        raise ValueError(f"Invalid email format: {email}")
    return email


def _choice(label: str, enum: Type) -> Callable[[Any], str]:
    allowed = {member.value.lower(): member.value for member in enum}

    def rule(value: Any) -> str:
        text = _clean(value)
        if not text:
            raise ValueError(f"{label} is required")
        try:
            return allowed[text.lower()]
        except KeyError:
            options = ", ".join(member.value for member in enum)
            raise ValueError(f"{label} must be one of {options}, got {text!r}") from None
    return rule


def _entry_date(value: Any) -> str:
    try:
        return parse_entry_date(value)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"Entry date must be a valid date, got {_clean(value)!r}") from None


def _notes(value: Any) -> Optional[str]:
    return _clean(value) or None


_FIELD_ALIASES = {
    "entryDate": ("entryDate", "entry_date"),
}

FIELD_RULES: Dict[str, Callable[[Any], Any]] = {
    "name": _required_text("Name"),
    "email": _email,
    "phone": _required_text("Phone"),
    "state": _required_text("State"),
    "source": _choice("Source", LeadSource),
    "status": _choice("Status", LeadStatus),
    "campaign": _clean,
    "tags": parse_tags,
    "notes": _notes,
    "entryDate": _entry_date,
}


def _lookup(raw: Mapping[str, Any], field_name: str) -> Any:
    for key in _FIELD_ALIASES.get(field_name, (field_name,)):
        if key in raw:
            return raw[key]
    return None


def validate_lead(raw: RawLeadRecord, default_campaign: str = DEFAULT_CAMPAIGN) -> ValidatedLead:
    """
    Validate one raw record.

    A missing or blank campaign gets `default_campaign`; a missing or blank
    entryDate is stamped with the current UTC time. A present but
    unparseable entryDate is a violation.

    Raises:
        LeadValidationError: listing every violated constraint
    """
    if not isinstance(raw, Mapping):
        raise LeadValidationError("Lead record must be an object", raw)

    values: Dict[str, Any] = {}
    problems: List[str] = []
    entry_date_supplied = True

    for field_name, rule in FIELD_RULES.items():
        value = _lookup(raw, field_name)
        if field_name == "entryDate" and not _clean(value):
            values[field_name] = datetime.now(timezone.utc).isoformat()
            entry_date_supplied = False
            continue
        try:
            values[field_name] = rule(value)
        except ValueError as exc:
            problems.append(str(exc))

    if problems:
        raise LeadValidationError("; ".join(problems), raw)

    return ValidatedLead(
        entry_date=values["entryDate"],
        name=values["name"],
        email=values["email"],
        phone=values["phone"],
        state=values["state"],
        source=values["source"],
        status=values["status"],
        campaign=values["campaign"] or default_campaign,
        tags=values["tags"],
        notes=values["notes"],
        entry_date_supplied=entry_date_supplied,
    )


def validate_partial(updates: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate only the fields present in `updates`.

    Unknown keys are dropped. Used by bulk updates, where a payload such as
    {"status": "Aluno"} is applied to many leads at once.

    Raises:
        LeadValidationError: if a provided field is invalid or nothing is left
    """
    if not isinstance(updates, Mapping):
        raise LeadValidationError("Updates must be an object", updates)

    payload: Dict[str, Any] = {}
    problems: List[str] = []

    for field_name, rule in FIELD_RULES.items():
        keys = _FIELD_ALIASES.get(field_name, (field_name,))
        if not any(key in updates for key in keys):
            continue
        try:
            payload[field_name] = rule(_lookup(updates, field_name))
        except ValueError as exc:
            problems.append(str(exc))

    if problems:
        raise LeadValidationError("; ".join(problems), dict(updates))
    if not payload:
        raise LeadValidationError("No updatable fields provided", dict(updates))

    return payload
