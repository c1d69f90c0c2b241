"""Rule Tables — tax rates, shipping zones, transition defaults, validation map."""

from domaingen.rules.loader import (
    build_rule_tables,
    default_rule_tables,
    load_rule_tables,
    save_rule_tables,
)
from domaingen.rules.tables import (
    Carrier,
    RuleTables,
    ShippingZoneTable,
    TaxRuleTable,
    TransitionTopology,
    ValidationRuleMap,
    normalize_jurisdiction,
)

__all__ = [
    "Carrier",
    "RuleTables",
    "ShippingZoneTable",
    "TaxRuleTable",
    "TransitionTopology",
    "ValidationRuleMap",
    "build_rule_tables",
    "default_rule_tables",
    "load_rule_tables",
    "normalize_jurisdiction",
    "save_rule_tables",
]
