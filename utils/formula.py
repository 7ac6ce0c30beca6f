"""
Minimal model formula support.

Only additive formulas are understood:
    outcome ~ a + b
    outcome ~ .
    outcome ~ . - c - d
Column names that are not plain tokens can be written in backticks.
Interactions, transformations and intercept terms are rejected.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from utils import constants
from utils.exceptions import DataValidationError

_UNSUPPORTED = re.compile(r"[*:^()|]")
_PLAIN_NAME = re.compile(r"^[^\s+\-~`]+$")


@dataclass(frozen=True)
class Formula:
    outcome: str
    predictors: Tuple[str, ...] = ()
    dot: bool = False
    excluded: Tuple[str, ...] = ()

    def __str__(self) -> str:
        rhs = []
        if self.dot:
            rhs.append(".")
        rhs.extend(_quote(p) for p in self.predictors)
        text = f"{_quote(self.outcome)} ~ {' + '.join(rhs)}"
        for name in self.excluded:
            text += f" - {_quote(name)}"
        return text


def _quote(name: str) -> str:
    return name if _PLAIN_NAME.match(name) else f"`{name}`"


def _tokenize(rhs: str) -> List[Tuple[str, str]]:
    """Split the right-hand side into (sign, term) pairs."""
    tokens = []
    sign = "+"
    buffer = ""
    in_ticks = False
    for char in rhs:
        if char == "`":
            in_ticks = not in_ticks
            buffer += char
        elif char in "+-" and not in_ticks:
            if buffer.strip():
                tokens.append((sign, buffer.strip()))
            elif tokens:
                raise DataValidationError(f"Malformed formula term near '{char}' in '{rhs}'")
            sign = char
            buffer = ""
        else:
            buffer += char
    if in_ticks:
        raise DataValidationError(f"Unbalanced backticks in formula '{rhs}'")
    if not buffer.strip():
        raise DataValidationError(f"Formula right-hand side is empty or ends with an operator: '{rhs}'")
    tokens.append((sign, buffer.strip()))
    return tokens


def _unquote(term: str) -> str:
    if term.startswith("`") and term.endswith("`") and len(term) > 2:
        return term[1:-1]
    if _UNSUPPORTED.search(term):
        raise DataValidationError(f"Unsupported formula term '{term}'. Only additive terms are allowed.")
    return term


def parse_formula(text: str) -> Formula:
    """Parse an additive formula string into a Formula."""
    if not isinstance(text, str) or text.count("~") != 1:
        raise DataValidationError(f"Formula must contain exactly one '~': {text!r}")

    lhs, rhs = (part.strip() for part in text.split("~"))
    if not lhs:
        raise DataValidationError(f"Formula has no outcome: {text!r}")
    outcome = _unquote(lhs)

    predictors: List[str] = []
    excluded: List[str] = []
    dot = False
    for sign, term in _tokenize(rhs):
        if term == ".":
            if sign == "-" or dot:
                raise DataValidationError(f"'.' may only appear once, as an added term: {text!r}")
            dot = True
            continue
        if term in ("0", "1"):
            raise DataValidationError(f"Intercept terms are not supported: {text!r}")
        name = _unquote(term)
        if sign == "-":
            excluded.append(name)
        elif name not in predictors:
            predictors.append(name)

    if excluded and not dot:
        raise DataValidationError(f"Removing terms requires '.' on the right-hand side: {text!r}")

    return Formula(outcome=outcome, predictors=tuple(predictors), dot=dot, excluded=tuple(excluded))


def formula_from_xy(predictors: Sequence[str], outcome: str) -> str:
    """Build the formula that describes an x/y fit."""
    return str(Formula(outcome=outcome, predictors=tuple(predictors)))


def predictor_columns(formula: Formula, data: pd.DataFrame) -> List[str]:
    """Resolve the predictor column names a formula selects from ``data``."""
    columns = [str(c) for c in data.columns]
    required = [formula.outcome] + list(formula.predictors) + list(formula.excluded)
    missing = [c for c in required if c not in columns]
    if missing:
        raise DataValidationError(f"Columns referenced in formula are missing from data: {missing}")

    if formula.dot:
        skip = {formula.outcome, *formula.excluded}
        selected = [c for c in columns if c not in skip]
        return selected + [p for p in formula.predictors if p not in selected]

    if formula.outcome in formula.predictors:
        raise DataValidationError(f"Outcome '{formula.outcome}' cannot also be a predictor.")
    return list(formula.predictors)


def encode_predictors(X: pd.DataFrame,
                      indicators: str = constants.INDICATORS_TRADITIONAL,
                      columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Turn non-numeric predictors into indicator columns.

    With ``columns`` (the training design columns) the result is aligned to
    them: unseen levels are dropped and absent levels are zero-filled.
    """
    if indicators not in constants.PREDICTOR_INDICATORS:
        raise DataValidationError(f"Unknown predictor encoding '{indicators}'")
    if indicators == constants.INDICATORS_NONE:
        return X if columns is None else X[list(columns)]

    categorical = [c for c in X.columns
                   if not pd.api.types.is_numeric_dtype(X[c]) or pd.api.types.is_bool_dtype(X[c])]
    drop_first = indicators == constants.INDICATORS_TRADITIONAL and columns is None
    if categorical:
        encoded = pd.get_dummies(X, columns=categorical, drop_first=drop_first, dtype=float)
    else:
        encoded = X

    if columns is not None:
        encoded = encoded.reindex(columns=list(columns), fill_value=0.0)
    return encoded
