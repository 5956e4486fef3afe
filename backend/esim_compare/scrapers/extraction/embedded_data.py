"""Embedded-data extraction: decode serialized component props.

Some provider pages ship their pricing as the props of a hydrated
component, serialized as nested tagged tuples:

    [0, payload]   a leaf; the payload is decoded in turn
    [1, children]  a node; children is either a list of [key, value]
                   pairs (an object) or a positional list (an array)

Any other list is a plain array and is decoded element-wise.
"""

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import structlog
from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, ValidationError

logger = structlog.get_logger(__name__)


PROPS_ATTRIBUTE = "props"
VARIANT_KEYS = ("variants", "Variants")
MAX_SEARCH_DEPTH = 10


@dataclass(frozen=True)
class Leaf:
    """Primitive slot: ``[0, value]``."""

    value: Any


@dataclass(frozen=True)
class Node:
    """Composite slot: ``[1, children]``."""

    children: Any


TaggedValue = Union[Leaf, Node]


def as_tagged(value: Any) -> Optional[TaggedValue]:
    """Classify a raw JSON value as Leaf / Node, or None for anything else."""
    if isinstance(value, list) and len(value) == 2 and type(value[0]) is int:
        if value[0] == 0:
            return Leaf(value[1])
        if value[0] == 1:
            return Node(value[1])
    return None


def _is_association(children: List[Any]) -> bool:
    return bool(children) and all(
        isinstance(item, list) and len(item) == 2 and isinstance(item[0], str)
        for item in children
    )


def decode(value: Any) -> Any:
    """Decode a tagged-tuple value into plain Python data.

    Pure and recursive.  Values that are already decoded scalars come
    back unchanged.
    """
    tagged = as_tagged(value)
    if isinstance(tagged, Leaf):
        return decode(tagged.value)
    if isinstance(tagged, Node):
        return _decode_node(tagged.children)
    if isinstance(value, list):
        return [decode(item) for item in value]
    if isinstance(value, dict):
        return {key: decode(item) for key, item in value.items()}
    return value


def _decode_node(children: Any) -> Any:
    if not isinstance(children, list):
        return decode(children)
    if _is_association(children):
        return {key: decode(item) for key, item in children}
    return [decode(item) for item in children]


class VariantPrice(BaseModel):
    """One currency's price for a variant."""

    model_config = ConfigDict(extra="ignore")

    currency: str
    amount: Decimal


class Variant(BaseModel):
    """A provider pricing tier as embedded in page data."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: Optional[str] = None
    name: Optional[str] = None
    days: int
    gigas: Optional[str] = None
    destiny: Optional[str] = None
    prices: List[VariantPrice] = []

    def price_in(self, currency: str) -> Optional[VariantPrice]:
        """First price entry in ``currency``, if any."""
        for price in self.prices:
            if price.currency.upper() == currency.upper():
                return price
        return None


def find_variants_props(html: str) -> Optional[str]:
    """Raw (entity-unescaped) props value that carries a variants key."""
    soup = BeautifulSoup(html, "html.parser")
    elements = soup.find_all(attrs={PROPS_ATTRIBUTE: True})
    logger.debug("props_attributes_found", count=len(elements))

    for element in elements:
        raw = element[PROPS_ATTRIBUTE]
        if any(f'"{key}"' in raw for key in VARIANT_KEYS):
            return raw
    return None


def find_variants(obj: Any, depth: int = 0) -> Any:
    """Depth-first search for the first variants / Variants value."""
    if depth > MAX_SEARCH_DEPTH:
        return None

    if isinstance(obj, list):
        for item in obj:
            found = find_variants(item, depth + 1)
            if found:
                return found
    elif isinstance(obj, dict):
        for key in VARIANT_KEYS:
            if obj.get(key):
                return obj[key]
        for item in obj.values():
            found = find_variants(item, depth + 1)
            if found:
                return found
    return None


def parse_variants(html: str) -> List[Variant]:
    """Locate, decode and validate the embedded variant list.

    Items that fail validation (e.g. non-numeric days) are skipped.

    Raises:
        ValueError: Props missing, JSON malformed, or variants not a list
    """
    raw_props = find_variants_props(html)
    if raw_props is None:
        raise ValueError("no props attribute with variants")

    props = json.loads(raw_props)
    raw_variants = find_variants(props)
    if raw_variants is None:
        raise ValueError("variants key not found in parsed props")

    decoded = decode(raw_variants)
    if not isinstance(decoded, list):
        raise ValueError(f"variants decoded to {type(decoded).__name__}, expected list")

    variants: List[Variant] = []
    for item in decoded:
        if not isinstance(item, dict):
            continue
        try:
            variants.append(Variant.model_validate(item))
        except ValidationError as e:
            logger.debug("variant_skipped", error=str(e))
    return variants


def extract_variants(html: str) -> List[Variant]:
    """``parse_variants`` that returns an empty list instead of raising."""
    try:
        variants = parse_variants(html)
    except (ValueError, TypeError, KeyError, RecursionError) as e:
        logger.warning("embedded_data_extraction_failed", error=str(e))
        return []

    logger.info("variants_decoded", count=len(variants))
    return variants


def select_priced_variants(
    variants: Iterable[Variant],
    target_days: Sequence[int],
    currency: str,
) -> List[Tuple[Variant, VariantPrice]]:
    """Keep variants on the allowed day counts that have a ``currency`` price."""
    selected: List[Tuple[Variant, VariantPrice]] = []
    for variant in variants:
        if variant.days not in target_days:
            continue
        price = variant.price_in(currency)
        if price is None:
            logger.debug("variant_missing_currency", days=variant.days, currency=currency)
            continue
        selected.append((variant, price))
    return selected
