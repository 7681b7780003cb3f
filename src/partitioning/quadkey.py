"""Quad-tree tile key arithmetic.

A tile is addressed by row, column, and level. Level 0 holds a single
tile, and every tile splits into four children on the next level, so a
level has ``2 ** level`` rows and columns.

The Morton code interleaves column bits (even positions) and row bits
(odd positions) below a sentinel bit at position ``2 * level``. Written
in base 4 it is a digit string whose first digit is the sentinel ``1``
and whose length is ``level + 1``. Its decimal form is the partition id
that catalogs use for tiles.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import InvalidRequestError

SUBTILES_COUNT = 4
ROOT_QUADKEY_STRING = "-"


@dataclass(frozen=True)
class QuadKey:
    """Immutable tile address.

    Attributes:
        row: Tile row in ``[0, 2 ** level)``.
        column: Tile column in ``[0, 2 ** level)``.
        level: Tree level, 0 for the root tile.
    """

    row: int
    column: int
    level: int

    @classmethod
    def from_morton_code(cls, code: int | str) -> "QuadKey":
        """Decode a numeric or decimal-string Morton code.

        Raises:
            InvalidRequestError: If the code is not a positive integer.
        """
        value = _parse_morton_code(code)
        level = 0
        row = 0
        column = 0
        while value > 1:
            mask = 1 << level
            if value & 0x1:
                column |= mask
            if value & 0x2:
                row |= mask
            level += 1
            value >>= 2
        return cls(row=row, column=column, level=level)

    @classmethod
    def from_string(cls, value: str) -> "QuadKey":
        """Decode the base-4 digit string produced by ``to_string``."""
        if not value or value[0] != "1" or any(digit not in "0123" for digit in value):
            raise InvalidRequestError(
                f"Invalid quadkey string '{value}': expected base-4 digits "
                "with a leading sentinel '1'."
            )
        return cls.from_morton_code(int(value, SUBTILES_COUNT))

    @classmethod
    def from_quadkey_string(cls, value: str) -> "QuadKey":
        """Decode a plain base-4 tile string without sentinel.

        The root tile is written as ``"-"``.
        """
        if value in (ROOT_QUADKEY_STRING, ""):
            return cls(row=0, column=0, level=0)
        if any(digit not in "0123" for digit in value):
            raise InvalidRequestError(
                f"Invalid quadkey string '{value}': expected base-4 digits."
            )
        return cls.from_string("1" + value)

    def is_valid(self) -> bool:
        """Return whether row and column fit inside this level."""
        if self.level < 0:
            return False
        dimension = 1 << self.level
        return 0 <= self.row < dimension and 0 <= self.column < dimension

    def to_morton_code(self) -> int:
        """Encode this key as a Morton code."""
        result = 1 << (2 * self.level)
        column = self.column
        row = self.row
        for bit in range(self.level):
            if column & 0x1:
                result |= 1 << (2 * bit)
            if row & 0x1:
                result |= 1 << (2 * bit + 1)
            column >>= 1
            row >>= 1
        return result

    def to_here_tile(self) -> str:
        """Return the decimal Morton code used as tile partition id."""
        return str(self.to_morton_code())

    def to_string(self) -> str:
        """Return the base-4 digit string with leading sentinel digit."""
        code = self.to_morton_code()
        digits: list[str] = []
        while code:
            digits.append(str(code & 0x3))
            code >>= 2
        return "".join(reversed(digits))

    def to_quadkey_string(self) -> str:
        """Return the plain base-4 tile string, ``"-"`` for the root."""
        if self.level == 0:
            return ROOT_QUADKEY_STRING
        return self.to_string()[1:]

    def parent(self) -> "QuadKey":
        """Return the direct parent tile.

        Raises:
            InvalidRequestError: If called on the level-0 root tile.
        """
        if self.level == 0:
            raise InvalidRequestError("The level-0 root tile has no parent.")
        return QuadKey(row=self.row >> 1, column=self.column >> 1, level=self.level - 1)

    def child(self, index: int) -> "QuadKey":
        """Return one of the four children.

        Bit 0 of ``index`` selects the column half, bit 1 the row half,
        matching the digit order of the Morton code.

        Raises:
            InvalidRequestError: If index is outside 0..3.
        """
        if index < 0 or index >= SUBTILES_COUNT:
            raise InvalidRequestError(f"Child index must be in 0..3, got {index}.")
        return QuadKey(
            row=(self.row << 1) | (index >> 1),
            column=(self.column << 1) | (index & 0x1),
            level=self.level + 1,
        )

    def changed_level_by(self, delta: int) -> "QuadKey":
        """Return the tile covering this one ``delta`` levels away.

        Negative deltas move toward the root and clamp at level 0;
        positive deltas return the top-left descendant.
        """
        if delta == 0:
            return self
        if delta > 0:
            return QuadKey(
                row=self.row << delta,
                column=self.column << delta,
                level=self.level + delta,
            )
        shift = min(-delta, self.level)
        return QuadKey(row=self.row >> shift, column=self.column >> shift, level=self.level - shift)

    def ancestor(self, delta: int) -> "QuadKey":
        """Return the ancestor ``delta`` levels up, clamped at the root."""
        if delta < 0:
            raise InvalidRequestError(f"Ancestor delta must be non-negative, got {delta}.")
        return self.changed_level_by(-delta)

    def added_sub_key(self, sub_key: int | str) -> "QuadKey":
        """Resolve a Morton code relative to this tile into an absolute key."""
        relative = QuadKey.from_morton_code(sub_key)
        return QuadKey(
            row=(self.row << relative.level) + relative.row,
            column=(self.column << relative.level) + relative.column,
            level=self.level + relative.level,
        )

    def ancestors(self) -> list["QuadKey"]:
        """Return all ancestors, closest first, ending with the root."""
        result: list[QuadKey] = []
        current = self
        while current.level > 0:
            current = current.parent()
            result.append(current)
        return result


def _parse_morton_code(code: int | str) -> int:
    if isinstance(code, str):
        try:
            value = int(code, 10)
        except ValueError as error:
            raise InvalidRequestError(
                f"Invalid Morton code '{code}': expected a decimal integer."
            ) from error
    else:
        value = code
    if value < 1:
        raise InvalidRequestError(f"Invalid Morton code {code}: must be at least 1.")
    return value
