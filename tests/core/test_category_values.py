"""Category Value Types — verifies every wire-string rule and its rule id.

Invariants:
    - Each rejection names the field and a stable rule id
    - Accepted values are trimmed; colors normalized to upper-case
    - Optional types treat None and blank strings as absent
"""

import pytest

from ledger_backend.core.category_values import (
    CategoryCode, CategoryName, Description, HexColor, Icon, UrlSlug,
)
from ledger_backend.core.errors import ValidationError


def _rule(parse, raw) -> tuple[str, str]:
    with pytest.raises(ValidationError) as exc_info:
        parse(raw)
    return exc_info.value.field, exc_info.value.rule


# ─── CategoryCode ───────────────────────────────────────────────

def test_code_accepts_letters_digits_dot_underscore_dash():
    assert CategoryCode.parse("EXP.food_01-a").value == "EXP.food_01-a"


def test_code_is_trimmed():
    assert CategoryCode.parse("  SAL  ").value == "SAL"


@pytest.mark.parametrize("raw, rule", [
    (None, "required"),
    ("", "required"),
    ("   ", "required"),
    ("A" * 33, "max_length"),
    ("has space", "charset"),
    ("sal/ary", "charset"),
    ("café", "charset"),
    (42, "type"),
])
def test_code_rejections(raw, rule):
    assert _rule(CategoryCode.parse, raw) == ("code", rule)


def test_code_max_length_boundary():
    assert CategoryCode.parse("A" * 32).value == "A" * 32


def test_code_casefold_key_ignores_case():
    assert CategoryCode.parse("SaL").casefold_key == CategoryCode.parse("sal").casefold_key


# ─── CategoryName ───────────────────────────────────────────────

def test_name_allows_any_printable_text():
    assert CategoryName.parse("Groceries & Household").value == "Groceries & Household"


@pytest.mark.parametrize("raw, rule", [
    (None, "required"),
    ("  ", "required"),
    ("n" * 101, "max_length"),
])
def test_name_rejections(raw, rule):
    assert _rule(CategoryName.parse, raw) == ("name", rule)


# ─── UrlSlug ────────────────────────────────────────────────────

def test_slug_accepts_lowercase_with_inner_hyphens():
    assert UrlSlug.parse("food-and-drink-2").value == "food-and-drink-2"


@pytest.mark.parametrize("raw, rule", [
    ("Food", "charset"),
    ("food_drink", "charset"),
    ("-food", "hyphen_edge"),
    ("food-", "hyphen_edge"),
    ("food--drink", "hyphen_run"),
    ("s" * 101, "max_length"),
])
def test_slug_rejections(raw, rule):
    assert _rule(UrlSlug.parse, raw) == ("slug", rule)


def test_slug_parse_optional_blank_is_absent():
    assert UrlSlug.parse_optional("   ") is None
    assert UrlSlug.parse_optional(None) is None


# ─── HexColor ───────────────────────────────────────────────────

def test_color_normalized_to_upper_case():
    assert HexColor.parse("#ff8800").value == "#FF8800"


def test_color_components():
    assert HexColor.parse("#0A10FF").components() == (10, 16, 255)


@pytest.mark.parametrize("raw, rule", [
    ("#FFF", "length"),
    ("#FF88001", "length"),
    ("FF88001", "prefix"),
    ("#GG8800", "hex_digits"),
])
def test_color_rejections(raw, rule):
    assert _rule(HexColor.parse, raw) == ("color", rule)


# ─── Description / Icon ─────────────────────────────────────────

def test_description_max_length():
    assert Description.parse("d" * 500).value == "d" * 500
    assert _rule(Description.parse, "d" * 501) == ("description", "max_length")


def test_icon_max_length():
    assert _rule(Icon.parse, "i" * 101) == ("icon", "max_length")


def test_optional_types_reject_non_strings():
    assert _rule(Icon.parse_optional, 3) == ("icon", "type")
