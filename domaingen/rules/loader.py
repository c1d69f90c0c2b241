"""Load, save, and default rule tables."""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from domaingen.errors import RuleTableError
from domaingen.rules.seed_data import seed_tables
from domaingen.rules.tables import RuleTables

logger = logging.getLogger(__name__)


def build_rule_tables(data: dict[str, Any]) -> RuleTables:
    """Validate raw table data as one unit.

    Raises RuleTableError if any table is malformed; no partial tables are
    ever returned.
    """
    try:
        return RuleTables.model_validate(data)
    except ValidationError as exc:
        raise RuleTableError(f"Invalid rule tables: {exc}") from exc


@functools.lru_cache(maxsize=1)
def default_rule_tables() -> RuleTables:
    """Return the embedded seed tables (built once per process)."""
    tables = build_rule_tables(seed_tables())
    logger.debug("Loaded seed rule tables %s", tables.version)
    return tables


def load_rule_tables(path: str | Path) -> RuleTables:
    """Read rule tables from a JSON file.

    Monetary values and rates should be written as strings (``"0.18"``) so
    they reach Decimal without passing through binary floating point.
    """
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise RuleTableError(f"Could not read rule tables from {p}: {exc}") from exc
    tables = build_rule_tables(data)
    logger.info("Loaded rule tables %s from %s", tables.version, p)
    return tables


def save_rule_tables(tables: RuleTables, path: str | Path) -> Path:
    """Write *tables* as JSON, decimals serialised as strings."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(
        json.dumps(tables.model_dump(mode="json"), indent=2, sort_keys=True),
        encoding="utf-8",
    )
    return p
