"""Tests for embedded-data (tagged tuple) decoding."""

import html
import json
from decimal import Decimal

import pytest

from esim_compare.scrapers.catalog import HOLAFLY_TARGET_DAYS
from esim_compare.scrapers.extraction.embedded_data import (
    Leaf,
    Node,
    as_tagged,
    decode,
    extract_variants,
    parse_variants,
    select_priced_variants,
)


def tagged_variant(days, usd=None, eur=None, variant_id="v"):
    prices = []
    if usd is not None:
        prices.append([0, {"currency": [0, "USD"], "amount": [0, usd]}])
    if eur is not None:
        prices.append([0, {"currency": [0, "EUR"], "amount": [0, eur]}])
    return [0, {
        "id": [0, variant_id],
        "name": [0, f"{days} days"],
        "days": [0, days],
        "gigas": [0, "unlimited"],
        "destiny": [0, "Japan"],
        "prices": [1, prices],
    }]


def island_html(props: dict, extra: str = "") -> str:
    attribute = html.escape(json.dumps(props), quote=True)
    return f'<html><body>{extra}<astro-island props="{attribute}"></astro-island></body></html>'


class TestDecode:
    """Tests for the pure decoder."""

    @pytest.mark.parametrize("value", [0, 1, 7, 3.5, "USD", True, False, None])
    def test_primitives_are_identity(self, value):
        assert decode(value) == value

    def test_leaf(self):
        assert decode([0, "USD"]) == "USD"
        assert decode([0, [0, 5]]) == 5

    def test_node_with_pairs_is_object(self):
        assert decode([1, [["currency", [0, "USD"]], ["amount", [0, 9.9]]]]) == {
            "currency": "USD",
            "amount": 9.9,
        }

    def test_node_positional_is_list(self):
        assert decode([1, [[0, 1], [0, 2], [0, 3]]]) == [1, 2, 3]

    def test_plain_lists_and_dicts(self):
        assert decode([[0, "a"], "b", 3]) == ["a", "b", 3]
        assert decode({"days": [0, 7], "name": "x"}) == {"days": 7, "name": "x"}

    def test_decoding_is_idempotent_on_decoded_data(self):
        decoded = decode(tagged_variant(7, usd=19))
        assert decode(decoded) == decoded

    def test_as_tagged(self):
        assert as_tagged([0, "x"]) == Leaf("x")
        assert as_tagged([1, []]) == Node([])
        assert as_tagged([2, "x"]) is None
        assert as_tagged([True, "x"]) is None
        assert as_tagged("x") is None


class TestParseVariants:
    """Tests for locating and validating embedded variants."""

    def test_parses_variants_from_props(self):
        props = {"variants": [1, [tagged_variant(7, usd=19, eur=18), tagged_variant(15, usd=29)]]}
        variants = parse_variants(island_html(props))

        assert [v.days for v in variants] == [7, 15]
        assert variants[0].price_in("USD").amount == Decimal("19")
        assert variants[0].price_in("eur").amount == Decimal("18")
        assert variants[1].price_in("EUR") is None

    def test_finds_nested_capitalized_key(self):
        props = {"data": [0, {"product": [0, {"Variants": [1, [tagged_variant(30, usd=49)]]}]}]}
        variants = parse_variants(island_html(props))
        assert variants[0].days == 30

    def test_skips_props_without_variants(self):
        other = html.escape(json.dumps({"menu": [0, "x"]}), quote=True)
        props = {"variants": [1, [tagged_variant(5, usd=12)]]}
        page = island_html(props, extra=f'<astro-island props="{other}"></astro-island>')
        assert [v.days for v in parse_variants(page)] == [5]

    def test_missing_props_raises(self):
        with pytest.raises(ValueError):
            parse_variants("<html><body><div>no data</div></body></html>")

    def test_malformed_json_raises(self):
        page = '<astro-island props="{&quot;variants&quot;: [1, [oops"></astro-island>'
        with pytest.raises(ValueError):
            parse_variants(page)

    def test_invalid_items_are_skipped(self):
        props = {"variants": [1, [tagged_variant("soon", usd=5), tagged_variant(3, usd=8)]]}
        assert [v.days for v in parse_variants(island_html(props))] == [3]

    def test_extract_variants_returns_empty_on_failure(self):
        assert extract_variants("<html></html>") == []
        assert extract_variants('<div props="{&quot;variants&quot;: nope}"></div>') == []


class TestSelectPricedVariants:
    """Tests for the day allow-list and currency selection."""

    def test_days_outside_allow_list_are_excluded(self):
        props = {"variants": [1, [
            tagged_variant("45", usd=59),
            tagged_variant(7, usd=19),
            tagged_variant(90, usd=99),
        ]]}
        variants = parse_variants(island_html(props))
        selected = select_priced_variants(variants, HOLAFLY_TARGET_DAYS, "USD")

        assert [variant.days for variant, _ in selected] == [7, 90]

    def test_variants_without_currency_are_skipped(self):
        props = {"variants": [1, [tagged_variant(7, eur=17), tagged_variant(10, usd=24)]]}
        selected = select_priced_variants(parse_variants(island_html(props)), HOLAFLY_TARGET_DAYS, "USD")

        assert len(selected) == 1
        variant, price = selected[0]
        assert variant.days == 10
        assert price.amount == Decimal("24")
