"""Unit tests for quad-tree tile key arithmetic."""

from __future__ import annotations

import pytest

from core.errors import InvalidRequestError
from partitioning.quadkey import QuadKey


def test_from_morton_code_decodes_row_column_level() -> None:
    """Column bits sit at even and row bits at odd positions."""
    # 0b1_10_01: level 2, digits 2 then 1
    quad_key = QuadKey.from_morton_code(0b11001)

    assert quad_key == QuadKey(row=2, column=1, level=2)


def test_root_tile_is_morton_one() -> None:
    """The level-0 tile should encode as 1."""
    assert QuadKey.from_morton_code(1) == QuadKey(row=0, column=0, level=0)
    assert QuadKey(row=0, column=0, level=0).to_morton_code() == 1


def test_to_string_has_sentinel_and_level_plus_one_digits() -> None:
    """Base-4 strings should start with 1 and have level + 1 digits."""
    quad_key = QuadKey.from_morton_code(73982)

    text = quad_key.to_string()

    assert text == "102003332"
    assert len(text) == quad_key.level + 1


@pytest.mark.parametrize("code", [1, 5, 92, 73982, 23618402])
def test_morton_code_roundtrip(code: int) -> None:
    """Decoding then encoding should return the same Morton code."""
    assert QuadKey.from_morton_code(code).to_morton_code() == code


def test_from_string_parses_base4_digits() -> None:
    """Base-4 strings should decode to the same key as the Morton code."""
    assert QuadKey.from_string("102003332") == QuadKey.from_morton_code(73982)


def test_quadkey_string_uses_dash_for_root() -> None:
    """The root tile should render as '-' in plain quadkey form."""
    root = QuadKey(row=0, column=0, level=0)

    assert root.to_quadkey_string() == "-"
    assert QuadKey.from_quadkey_string("-") == root
    assert QuadKey.from_quadkey_string("02003332").to_here_tile() == "73982"


@pytest.mark.parametrize("index", [0, 1, 2, 3])
@pytest.mark.parametrize("code", [1, 6, 73982, 1183716])
def test_parent_of_child_is_original(code: int, index: int) -> None:
    """parent(child(q, i)) should equal q for every child index."""
    quad_key = QuadKey.from_morton_code(code)

    assert quad_key.child(index).parent() == quad_key


def test_child_index_maps_to_morton_digit() -> None:
    """Child i should append base-4 digit i."""
    parent = QuadKey.from_morton_code(73982)

    assert [parent.child(index).to_string()[-1] for index in range(4)] == ["0", "1", "2", "3"]


def test_parent_of_root_raises() -> None:
    """The level-0 tile has no parent."""
    with pytest.raises(InvalidRequestError):
        QuadKey(row=0, column=0, level=0).parent()


@pytest.mark.parametrize("index", [-1, 4])
def test_child_index_out_of_range_raises(index: int) -> None:
    """Child indexes outside 0..3 should be rejected."""
    with pytest.raises(InvalidRequestError):
        QuadKey(row=0, column=0, level=0).child(index)


def test_is_valid_checks_bounds() -> None:
    """Row and column must be below 2^level."""
    assert QuadKey(row=3, column=3, level=2).is_valid()
    assert not QuadKey(row=4, column=0, level=2).is_valid()


def test_ancestor_clamps_at_level_zero() -> None:
    """Walking up further than the level should stop at the root."""
    quad_key = QuadKey(row=1, column=2, level=2)

    assert quad_key.ancestor(4) == QuadKey(row=0, column=0, level=0)
    assert quad_key.ancestor(1) == quad_key.parent()


def test_added_sub_key_resolves_relative_code() -> None:
    """A relative Morton code should extend the root's digits."""
    root = QuadKey.from_morton_code(73982)

    absolute = root.added_sub_key("5")

    assert absolute.to_string() == "102003332" + "1"
    assert absolute.parent() == root


def test_added_sub_key_one_is_the_root_itself() -> None:
    """Relative code 1 should address the query root."""
    root = QuadKey.from_morton_code(4623)

    assert root.added_sub_key(1) == root


def test_ancestors_are_closest_first() -> None:
    """Ancestors should run from the parent down to the root."""
    quad_key = QuadKey.from_morton_code(73982)

    ancestors = quad_key.ancestors()

    assert ancestors[0] == quad_key.parent()
    assert ancestors[-1].level == 0
    assert len(ancestors) == quad_key.level


@pytest.mark.parametrize("code", [0, -3, "abc"])
def test_invalid_morton_code_raises(code: object) -> None:
    """Morton codes must be positive decimal integers."""
    with pytest.raises(InvalidRequestError):
        QuadKey.from_morton_code(code)  # type: ignore[arg-type]
