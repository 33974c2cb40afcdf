"""
Formula evaluation with the ``formulas`` library.

Workbooks written by openpyxl (or any tool that does not recalculate)
carry formulas without cached results.  ``compute_formula_values``
evaluates such a workbook; the writer also uses it to check that a
freshly written workbook still calculates.

``prepare_formula_input`` turns text that looks like a number (or a date)
into a real number so formulas reading the cell compute with it.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import formulas
import numpy as np
from openpyxl.cell.cell import Cell
from openpyxl.utils.datetime import to_excel

from errors import FormulaEvaluationError

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_TEXT_FORMAT = "@"


# ----------------------------------------------------------------------
# Evaluation
# ----------------------------------------------------------------------


def _result_key_pattern(file_path: str) -> re.Pattern:
    # keys look like  "'[file.xlsx]SHEET NAME'!E2"  or range variants
    return re.compile(
        r"'\[" + re.escape(Path(file_path).name) + r"\](.+?)'!([A-Z]+\d+)$",
        re.IGNORECASE,
    )


def _plain_value(val: Any) -> Optional[Any]:
    """Unwrap a ``formulas`` result into a Python scalar (None for ranges)."""
    v = getattr(val, "value", val)
    if isinstance(v, np.ndarray):
        if v.size != 1:
            return None
        v = v.flat[0]
    if isinstance(v, np.bool_):
        return bool(v)
    if isinstance(v, (np.integer, np.floating)):
        return v.item()
    return v


def compute_formula_values(file_path: str) -> Dict[Tuple[str, str], Any]:
    """
    Evaluate every formula in the workbook and return a lookup
    ``(SHEET_NAME_UPPER, COORDINATE) -> value``.

    Raises ``FormulaEvaluationError`` when the workbook cannot be loaded
    or calculated.
    """
    logger.info("Evaluating formulas in %s", file_path)
    try:
        xl_model = formulas.ExcelModel().loads(str(file_path)).finish()
        results = xl_model.calculate()
    except Exception as exc:
        raise FormulaEvaluationError(str(file_path), str(exc) or type(exc).__name__) from exc

    pattern = _result_key_pattern(str(file_path))
    computed: Dict[Tuple[str, str], Any] = {}
    for key, val in results.items():
        m = pattern.match(str(key))
        if not m:
            continue
        value = _plain_value(val)
        if value is None:
            continue
        computed[(m.group(1).upper(), m.group(2).upper())] = value

    logger.info("  -> %d formula value(s) computed", len(computed))
    return computed


# ----------------------------------------------------------------------
# Formula inputs
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class FormulaInputs:
    """
    Which written text values become numbers for formulas to use.

    ``numbers``             "1,234.5" -> 1234.5 (thousands separators dropped)
    ``dates``               text matching one of ``date_formats`` (strptime
                            patterns) -> the Excel date serial
    ``include_text_format`` also convert cells formatted as text ("@")
    """

    numbers: bool = True
    dates: bool = False
    date_formats: Sequence[str] = ()
    include_text_format: bool = False


def _as_number(text: str) -> Optional[float]:
    candidate = text.replace(",", "").strip()
    if not _NUMBER_RE.fullmatch(candidate):
        return None
    if "." in candidate or "e" in candidate.lower():
        return float(candidate)
    return int(candidate)


def _as_date_serial(text: str, date_formats: Sequence[str]) -> Optional[float]:
    for pattern in date_formats:
        try:
            parsed = dt.datetime.strptime(text.strip(), pattern)
        except ValueError:
            continue
        return to_excel(parsed)
    return None


def prepare_formula_input(cell: Cell, inputs: FormulaInputs) -> bool:
    """
    Replace a text value in *cell* with the number it spells.  Returns
    True when the cell was changed.
    """
    if not isinstance(cell.value, str):
        return False
    if cell.number_format == _TEXT_FORMAT and not inputs.include_text_format:
        return False

    converted = _as_number(cell.value) if inputs.numbers else None
    if converted is None and inputs.dates:
        converted = _as_date_serial(cell.value, inputs.date_formats)
    if converted is None:
        return False

    cell.value = converted
    return True
