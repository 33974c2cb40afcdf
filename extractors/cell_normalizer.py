"""
Turns raw worksheet cells into table values.

Normalisation rules, in order:
  1. A missing cell reads as the no-data sentinel.
  2. A formula reads as its cached (or computed) result; a formula with
     neither fails the read.
  3. Blank -> sentinel, string -> text (``""`` -> sentinel),
     numeric -> date text for date/time formats, otherwise the number as
     the cell's own format displays it.
  4. Error values and unknown cell types abort the read.

When the number the displayed text stands for differs from the stored
one, a warning is logged (once per cell and read) and the displayed text
is kept.

Two *value kinds* sit on top of the normaliser.  ``string_values`` makes a
reader return normalised text; ``cell_values`` makes it return the
``GridCell`` handles themselves (for copying cells with their styles).
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set, Tuple

from detection.constants import DEFAULT_DATE_FORMAT, SUPPRESS_NUMBER_WARNINGS
from dto.policy import NoDataPolicy
from errors import CellContainsError, UnrecognizedCellTypeError
from grid.cell import GridCell, RawCellType

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Number formats
# ---------------------------------------------------------------------------

# quoted text | [directive] | \x | _x and *x padding | any single character
_FORMAT_TOKEN = re.compile(r'"[^"]*"|\[[^\]]*\]|\\.|[_*].?|.', re.DOTALL)
_PLACEHOLDERS = ("0", "#", "?")

# General shows at most 11 characters: 10 significant digits and the point.
_GENERAL_DIGITS = 10


def _literal(token: str) -> str:
    """Text a non-digit format token contributes to the displayed value."""
    if token.startswith('"'):
        return token[1:-1]
    if token.startswith("["):
        # [$€-407] carries a currency symbol; [Red], [>100] show nothing.
        m = re.match(r"\[\$([^\]-]*)", token)
        return m.group(1) if m else ""
    if token.startswith("\\"):
        return token[1:]
    if token[0] in "_*":
        return ""
    return token


def _split_section(section: str) -> Optional[Tuple[str, str, str]]:
    """
    Split one format section into (prefix text, digit pattern, suffix text).
    None when the section has no digit placeholders.
    """
    tokens = _FORMAT_TOKEN.findall(section)
    digits = [i for i, token in enumerate(tokens) if token in _PLACEHOLDERS]
    if not digits:
        return None
    first, last = digits[0], digits[-1]
    prefix = "".join(_literal(token) for token in tokens[:first])
    pattern = "".join(tokens[first : last + 1])
    suffix = "".join(_literal(token) for token in tokens[last + 1 :])
    return prefix, pattern, suffix


def _decimal_places(pattern: str) -> Optional[int]:
    m = re.search(r"[#0?]*\.([0#?]+)", pattern)
    if m:
        return len(m.group(1))
    return 0 if re.search(r"[#0?]", pattern) else None


def _general(num: float) -> str:
    if num == 0:
        return "0"
    if num.is_integer() and abs(num) < 1e11:
        return str(int(num))

    exponent = math.floor(math.log10(abs(num)))
    if -5 < exponent < 11:
        decimals = max(_GENERAL_DIGITS - 1 - max(exponent, 0), 0)
        text = f"{num:.{decimals}f}"
        return text.rstrip("0").rstrip(".") if "." in text else text

    mantissa, exp = f"{num:.5E}".split("E")
    if "." in mantissa:
        mantissa = mantissa.rstrip("0").rstrip(".")
    return f"{mantissa}E{exp[0]}{abs(int(exp)):02d}"


def _format_digits(num: float, pattern: str) -> str:
    m = re.search(r"E[+-]", pattern, re.IGNORECASE)
    if m:
        places = _decimal_places(pattern[: m.start()]) or 0
        mantissa, exponent = f"{num:.{places}E}".split("E")
        exp = int(exponent)
        width = len(re.sub(r"[^0#]", "", pattern[m.end():])) or 1
        sign = "-" if exp < 0 else "+"
        return f"{mantissa}E{sign}{abs(exp):0{width}d}"

    places = _decimal_places(pattern) or 0
    grouping = "," if re.search(r"[#0],[#0]", pattern) else ""
    return f"{num:{grouping}.{places}f}"


def _render(value: Any, number_format: Optional[str]) -> Tuple[str, float]:
    """Displayed text of *value* and the number that text stands for."""
    num = float(value)
    fmt = (number_format or "General").strip()
    if fmt in ("General", "@", ""):
        text = _general(num)
        return text, float(text)

    sections = fmt.split(";")
    if num < 0 and len(sections) > 1:
        # The negative section shows its own sign, e.g. "(1,234)".
        section, sign = sections[1], ""
    else:
        section, sign = sections[0], "-" if num < 0 else ""

    parts = _split_section(section)
    if parts is None:
        text = _general(num)
        return text, float(text)
    prefix, pattern, suffix = parts

    scale = 100 ** (prefix + suffix).count("%")
    core = _format_digits(abs(num) * scale, pattern)
    shown = float(core.replace(",", "")) / scale
    return f"{sign}{prefix}{core}{suffix}", -shown if num < 0 else shown


def format_number(value: Any, number_format: Optional[str]) -> str:
    """
    Render *value* the way Excel would show it under *number_format*
    (best effort: digits, decimals, grouping, percent, scientific,
    currency symbols and quoted text around the digits).
    """
    return _render(value, number_format)[0]


# ---------------------------------------------------------------------------
# CellNormalizer
# ---------------------------------------------------------------------------


class CellNormalizer:

    def __init__(
        self,
        policy: NoDataPolicy = NoDataPolicy.AS_ABSENT,
        date_format: str = DEFAULT_DATE_FORMAT,
        suppress_warnings: bool = SUPPRESS_NUMBER_WARNINGS,
    ):
        self.policy = policy
        self.date_format = date_format
        self.suppress_warnings = suppress_warnings
        # Cells already warned about; cell-mode reads normalise a cell more than once.
        self._warned: Set[Tuple[str, str]] = set()

    def forget_warnings(self) -> None:
        """Allow every cell to warn again (called at the start of each read)."""
        self._warned.clear()

    def normalize(
        self, cell: Optional[GridCell], date_format: Optional[str] = None
    ) -> Optional[str]:
        if cell is None:
            return self.policy.sentinel

        fmt = date_format or self.date_format
        if cell.raw_type is RawCellType.FORMULA:
            value = self._normalize_value(cell.formula_result(), fmt)
        else:
            value = self._normalize_value(cell, fmt)

        logger.debug("%s!%s (%s) -> %r", cell.sheet_name, cell.coordinate, cell.raw_type.value, value)
        return value

    def is_empty(self, value: Optional[str]) -> bool:
        return value is None or value == ""

    def _normalize_value(self, cell: GridCell, date_format: str) -> Optional[str]:
        raw_type = cell.raw_type

        if raw_type is RawCellType.BLANK:
            return self.policy.sentinel

        if raw_type is RawCellType.STRING:
            return self.policy.substitute(cell.as_string())

        if raw_type is RawCellType.NUMERIC:
            if cell.display_format_is_date_time():
                return cell.as_date_time().strftime(date_format)
            return self._format_numeric(cell)

        if raw_type is RawCellType.ERROR:
            raise CellContainsError(cell.sheet_name, cell.coordinate, str(cell.value))

        raise UnrecognizedCellTypeError(
            cell.sheet_name, cell.coordinate, f"{raw_type.value}:{cell.data_type}"
        )

    def _format_numeric(self, cell: GridCell) -> str:
        displayed, shown = _render(cell.value, cell.number_format)
        actual = cell.as_numeric()
        if self.suppress_warnings or shown == actual:
            return displayed

        key = (cell.sheet_name, cell.coordinate)
        if not cell.coordinate or key not in self._warned:
            self._warned.add(key)
            logger.warning(
                "%s!%s: the number stored and the number displayed differ. "
                "actual: %s, displayed: %s",
                cell.sheet_name,
                cell.coordinate,
                repr(actual),
                displayed,
            )
        return displayed


# ---------------------------------------------------------------------------
# Value kinds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValueKind:
    """
    How a reader turns a grid cell into a row value.

    extract   (cell, table column number) -> row value
    is_empty  row value -> whether it counts as no data
    as_string row value -> normalised text (header comparison)
    """

    name: str
    extract: Callable[[Optional[GridCell], int], Any]
    is_empty: Callable[[Any], bool]
    as_string: Callable[[Any], Optional[str]]


def string_values(
    normalizer: CellNormalizer,
    column_date_formats: Optional[Dict[int, str]] = None,
) -> ValueKind:
    """
    Rows of normalised text.  *column_date_formats* maps a 1-based table
    column number to the strftime pattern used for dates in that column.
    """
    formats = dict(column_date_formats or {})

    def extract(cell: Optional[GridCell], column_number: int) -> Optional[str]:
        return normalizer.normalize(cell, formats.get(column_number))

    return ValueKind(
        name="string",
        extract=extract,
        is_empty=normalizer.is_empty,
        as_string=lambda value: value,
    )


def cell_values(normalizer: CellNormalizer) -> ValueKind:
    """Rows of ``GridCell`` handles, ``None`` where no cell exists."""

    def is_empty(cell: Optional[GridCell]) -> bool:
        return cell is None or normalizer.is_empty(normalizer.normalize(cell))

    return ValueKind(
        name="cell",
        extract=lambda cell, column_number: cell,
        is_empty=is_empty,
        as_string=lambda cell: None if cell is None else normalizer.normalize(cell),
    )
