"""Phone-keyed deduplication: normalization, index building and merging."""

import logging
import re
from typing import Any, Dict, Iterable

from .models import ExistingLeadRef, ValidatedLead
from .validation import clean_tags

logger = logging.getLogger(__name__)

_PHONE_NOISE = re.compile(r"[\s()\-+\[\]]")


def normalize_phone(raw: Any) -> str:
    """
    Reduce a phone number to its comparison key.

    Strips whitespace, brackets, parentheses, hyphens and plus signs.
    Returns "" for missing input; an empty key never matches anything.
    """
    if raw is None:
        return ""
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    return _PHONE_NOISE.sub("", str(raw))


def build_index(existing: Iterable[ExistingLeadRef]) -> Dict[str, ExistingLeadRef]:
    """
    Map normalized phone -> existing lead.

    Leads without a usable phone are left out. When two stored leads share a
    key the later one in `existing` wins.
    """
    index: Dict[str, ExistingLeadRef] = {}

    for lead in existing:
        key = normalize_phone(lead.phone)
        if not key:
            continue
        if key in index:
            logger.debug(
                "Phone %s shared by leads %s and %s; keeping %s",
                key, index[key].id, lead.id, lead.id
            )
        index[key] = lead

    return index


def resolve_merge(existing: ExistingLeadRef, incoming: ValidatedLead) -> Dict[str, Any]:
    """
    Build the update payload for a lead that already exists.

    Scalar fields come from the incoming record. Tags are the union of the
    stored and incoming tags, stored ones first. An entry date the row did
    not carry is left out, so the stored one is kept.
    """
    payload = incoming.to_record()
    payload["tags"] = clean_tags(list(existing.tags) + list(incoming.tags))
    if not incoming.entry_date_supplied:
        del payload["entryDate"]
    return payload
