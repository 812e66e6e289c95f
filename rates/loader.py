#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Rate table loading

Published tables list each rate by the date it takes effect. End dates are
derived: a period ends the day before the next one starts, and the latest
period ends on the table's ``validUntil`` date.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from calculation.dates import add_days, normalize
from models.interest_data import RatePeriod
from rates.rate_table import RateTable
from utils.error_handler import ConfigurationError, InvalidDateError, RateTableError

logger = logging.getLogger(__name__)

_METADATA_KEYS = {'lastUpdated', 'last_updated', 'validUntil', 'valid_until', 'rates', 'source'}


@dataclass(frozen=True)
class RateTableDocument:
    """A rate table with the metadata published alongside it"""
    table: RateTable
    last_updated: Optional[date] = None
    valid_until: Optional[date] = None
    source: str = ""


def _optional_date(value: Any) -> Optional[date]:
    return normalize(value) if value else None


def build_periods(entries: List[Mapping[str, Any]], valid_until: Optional[date]) -> List[RatePeriod]:
    """Builds ordered RatePeriods, deriving missing end dates."""
    parsed = []
    for entry in entries:
        if 'start' not in entry:
            raise RateTableError(f"Rate entry without a start date: {dict(entry)!r}")
        parsed.append((normalize(entry['start']), entry))
    parsed.sort(key=lambda item: item[0])

    periods = []
    for index, (start, entry) in enumerate(parsed):
        if entry.get('end'):
            end = normalize(entry['end'])
        elif index + 1 < len(parsed):
            end = add_days(parsed[index + 1][0], -1)
        elif valid_until is not None:
            end = valid_until
        else:
            raise RateTableError(
                f"The latest rate period starting {start.isoformat()} has no end date and no validUntil date"
            )
        periods.append(RatePeriod(
            start=start,
            end=end,
            prejudgment_rate=entry.get('prejudgment', entry.get('prejudgment_rate')),
            postjudgment_rate=entry.get('postjudgment', entry.get('postjudgment_rate')),
        ))
    return periods


def build_rate_table(document: Mapping[str, Any], valid_until: Any = None) -> RateTableDocument:
    """
    Builds a RateTable from a rate document.

    The document is either ``{jurisdiction: [entries]}`` or the same mapping
    nested under a ``rates`` key next to ``lastUpdated``/``validUntil``.
    Empty jurisdiction lists are skipped.
    """
    if not isinstance(document, Mapping):
        raise RateTableError("A rate document must be a mapping of jurisdiction to rate entries.")

    rates = document.get('rates', document)
    last_updated = _optional_date(document.get('lastUpdated') or document.get('last_updated'))
    if valid_until is not None:
        valid_until = normalize(valid_until)
    else:
        valid_until = _optional_date(document.get('validUntil') or document.get('valid_until'))

    periods_by_jurisdiction: Dict[str, List[RatePeriod]] = {}
    for jurisdiction, entries in rates.items():
        if jurisdiction in _METADATA_KEYS:
            continue
        if not isinstance(entries, list):
            raise RateTableError(f"Rates for {jurisdiction!r} must be a list.")
        if not entries:
            logger.debug(f"Skipping jurisdiction {jurisdiction} with no rate entries")
            continue
        periods_by_jurisdiction[jurisdiction] = build_periods(entries, valid_until)

    return RateTableDocument(
        table=RateTable(periods_by_jurisdiction),
        last_updated=last_updated,
        valid_until=valid_until,
        source=str(document.get('source', '')),
    )


def load_rate_table(path: Union[str, Path], valid_until: Any = None) -> RateTableDocument:
    """Reads a JSON rate document from disk."""
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            document = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Rate table file not found: {path}",
            user_message="The interest rate table could not be found.",
            context={"path": str(path)},
        ) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Rate table file is not valid JSON: {path}. Error: {e}",
            user_message="The interest rate table file is damaged.",
            context={"path": str(path)},
        ) from e

    try:
        result = build_rate_table(document, valid_until=valid_until)
    except InvalidDateError as e:
        raise ConfigurationError(
            f"Rate table file {path} contains an invalid date: {e}",
            user_message="The interest rate table contains an invalid date.",
            context={"path": str(path)},
        ) from e

    if not result.source:
        result = RateTableDocument(result.table, result.last_updated, result.valid_until, source=str(path))
    logger.info(f"Loaded rate table from {path}: {', '.join(result.table.jurisdictions)}")
    return result


def default_rate_table_path() -> Path:
    """Path of the bundled sample table"""
    return Path(__file__).parent / "data" / "bc_coia_sample.json"
