# -*- coding: utf-8 -*-
"""
Classify menu items into report categories.

Module: sales
Each rule is a set of case-insensitive substring keywords and a label. Rules
are evaluated in declaration order and the first rule with a keyword contained
in the item name wins; when nothing matches, the default label is used.

Keyword sets overlap ("Pizza Extra Queso" contains both an add-on keyword and
a pizza keyword), so the table order is part of the configuration. The rule
table lives in pipeline.toml; DEFAULT_CATEGORY_RULES is used when the config
does not define one.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

CategoryRule = Tuple[Tuple[str, ...], str]

DEFAULT_CATEGORY = "OTHERS"


# ============================================================================
# DEFAULT RULE TABLE
# ============================================================================

DEFAULT_CATEGORY_RULES: List[CategoryRule] = [
    (("extra", "aderezo", "dip", "agr."), "AGREGADO"),
    (
        (
            "pizza",
            "margherita",
            "pepperoni",
            "caprichosisima",
            "tartufo",
            "marinara",
            "putanesca",
            "fonduta",
            "brisket",
            "gambere",
            "rucula",
            "rúcula",
        ),
        "PIZZAS",
    ),
    (
        ("birra", "cerveza", "schop", "stella", "peroni", "leyenda", "estrella"),
        "CERVEZAS",
    ),
    (
        (
            "coca",
            "fanta",
            "ginger",
            "tonica",
            "gaseosa",
            "agua",
            "vital",
            "jugo",
            "limonada",
        ),
        "AGUAS JUGOS & BEBIDAS",
    ),
    (
        (
            "spritz",
            "negroni",
            "aperol",
            "campari",
            "sangria",
            "sangría",
            "frozen",
            "gin",
            "pisco",
            "fernet",
            "jack",
            "disaronno",
            "limoncello",
            "chambord",
            "mocktail",
        ),
        "COCTELERIA",
    ),
    (("insalata", "ensalada"), "ENSALADAS"),
    (("gnocchi", "ñoquis", "ñoqui"), "PASTAS"),
    (("gelato", "tiramisú", "tiramisu", "affogato"), "POSTRES"),
    (
        ("espresso", "americano", "capuccino", "cafe", "café", "te ", "infusion"),
        "CAFETERIA",
    ),
    (
        (
            "panetti",
            "panecillo",
            "tavola",
            "provolone",
            "burrata",
            "carpaccio",
            "croccantina",
        ),
        "ENTRADAS",
    ),
    (("colacion",), "COLACIONES"),
    (("combo", "felice", "promo"), "PROMOCIONES"),
]


# ============================================================================
# CATEGORIZER
# ============================================================================


class ItemCategorizer:
    """First-match-wins keyword categorizer.

    Usage:
        categorizer = ItemCategorizer(config.category_rules, config.default_category)
        categorizer.categorize("Pizza Margherita")  # "PIZZAS"
    """

    def __init__(
        self,
        rules: Optional[Iterable[CategoryRule]] = None,
        default_label: str = DEFAULT_CATEGORY,
    ):
        """Build the categorizer from an ordered rule table.

        Args:
            rules: Ordered (keywords, label) pairs; None uses DEFAULT_CATEGORY_RULES
            default_label: Label returned when no rule matches
        """
        if rules is None:
            rules = DEFAULT_CATEGORY_RULES
        self.rules: List[CategoryRule] = [
            (tuple(keyword.lower() for keyword in keywords), label)
            for keywords, label in rules
        ]
        self.default_label = default_label or DEFAULT_CATEGORY

    def categorize(self, item_name: str) -> str:
        """Return the label of the first rule matching the item name.

        Args:
            item_name: Free-text menu item name

        Returns:
            Category label, or the default label when no rule matches
        """
        if not item_name or not isinstance(item_name, str):
            return self.default_label

        name_lower = item_name.lower()
        for keywords, label in self.rules:
            if any(keyword in name_lower for keyword in keywords):
                return label

        logger.debug(f"No category rule matched '{item_name[:50]}'")
        return self.default_label

    @property
    def labels(self) -> List[str]:
        """All labels in declaration order, default last."""
        labels = [label for _, label in self.rules]
        if self.default_label not in labels:
            labels.append(self.default_label)
        return labels


def categorize(
    item_name: str,
    rules: Optional[Sequence[CategoryRule]] = None,
    default_label: str = DEFAULT_CATEGORY,
) -> str:
    """Categorize one item name with an ad-hoc rule table."""
    return ItemCategorizer(rules, default_label).categorize(item_name)
