"""
Parse the ``*_station_<id>_best_parameters.txt`` reports of the AtmoSwing optimizer.

A report is a header line followed by tab-separated ``keyword<TAB>value``
pairs. Parameter blocks repeat once per analogy level (and per predictor);
every occurrence of a keyword is numbered 1, 2, 3... in document order,
whatever level number the file itself prints. Keyword spellings changed
between producer versions (``Xmin``/``xMin``...), both are accepted.

Point counts are also turned into a window width ``(points - 1) * step``,
with the step taken from the same block: the producer writes
``Xptsnb <n> Xstep <step>``, so the step value sits three tokens after the
point-count keyword.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .errors import MalformedReportError

STATION_KEYWORD = "Station"
SCORE_KEYWORD = "Calib"
VALID_KEYWORD = "Valid"
VALID_OFFSET = 3


@dataclass(frozen=True)
class FieldSpec:
    name: str
    keywords: Tuple[str, ...]
    offset: int = 1
    # point-count fields only: derived width column and where its step lives
    width: Optional[str] = None
    step_keywords: Tuple[str, ...] = ()
    step_offset: int = 3


REPEATED_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec("anb", ("Anb",)),
    FieldSpec("xmin", ("Xmin", "xMin")),
    FieldSpec("ymin", ("Ymin", "yMin")),
    FieldSpec("xstep", ("Xstep", "xStep")),
    FieldSpec("ystep", ("Ystep", "yStep")),
    FieldSpec("xpts", ("Xptsnb", "xPtsNb"), width="xw", step_keywords=("Xstep", "xStep")),
    FieldSpec("ypts", ("Yptsnb", "yPtsNb"), width="yw", step_keywords=("Ystep", "yStep")),
)


@dataclass
class ParsedReport:
    station_id: str
    calib: float
    valid: float
    # field name -> one value per occurrence (level 1 first)
    fields: Dict[str, List[float]] = field(default_factory=dict)

    @property
    def level_count(self) -> int:
        return len(self.fields.get("anb", []))

    def items(self) -> Iterator[Tuple[str, Optional[int], float]]:
        """(field, level, value) triples; level is None for the scores."""
        for name, values in self.fields.items():
            for i, value in enumerate(values, start=1):
                yield name, i, value
        yield "calib", None, self.calib
        yield "valid", None, self.valid


# ----------------------------
# Tokenizer
# ----------------------------

def _split_line(line: str) -> List[str]:
    parts = line.split("\t") if "\t" in line else re.split(r"\s+", line)
    return [p.strip() for p in parts if p.strip()]


def tokenize(text: str) -> List[str]:
    """Flat token list of everything after the header line."""
    tokens: List[str] = []
    for line in text.splitlines()[1:]:
        tokens.extend(_split_line(line))
    return tokens


# ----------------------------
# Extraction helpers
# ----------------------------

def find_all(tokens: Sequence[str], keywords: Sequence[str]) -> List[int]:
    return [i for i, tok in enumerate(tokens) if tok in keywords]


def _token_after(tokens: Sequence[str], pos: int, offset: int) -> str:
    idx = pos + offset
    if idx >= len(tokens):
        raise MalformedReportError(f"no value {offset} token(s) after '{tokens[pos]}'")
    return tokens[idx]


def _number(token: str, keyword: str) -> float:
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token)
    except ValueError:
        raise MalformedReportError(f"value of '{keyword}' is not numeric: {token!r}") from None


def extract_repeated(tokens: Sequence[str], spec: FieldSpec) -> List[float]:
    return [_number(_token_after(tokens, pos, spec.offset), tokens[pos])
            for pos in find_all(tokens, spec.keywords)]


def extract_widths(tokens: Sequence[str], spec: FieldSpec) -> Tuple[List[float], List[float]]:
    """Point counts and the matching ``(points - 1) * step`` widths."""
    positions = find_all(tokens, spec.keywords)
    n_steps = len(find_all(tokens, spec.step_keywords))
    if len(positions) > n_steps:
        raise MalformedReportError(
            f"'{spec.keywords[0]}' occurs {len(positions)} times but its step only {n_steps} times")

    points: List[float] = []
    widths: List[float] = []
    for pos in positions:
        keyword = tokens[pos]
        npts = _number(_token_after(tokens, pos, spec.offset), keyword)
        step_label = _token_after(tokens, pos, spec.step_offset - 1)
        if step_label not in spec.step_keywords:
            raise MalformedReportError(
                f"expected a step keyword after '{keyword}' value, found {step_label!r}")
        step = _number(_token_after(tokens, pos, spec.step_offset), step_label)
        points.append(npts)
        widths.append((npts - 1) * step)
    return points, widths


# ----------------------------
# Public API
# ----------------------------

def parse_report(text: str) -> ParsedReport:
    tokens = tokenize(text)

    pos_station = find_all(tokens, (STATION_KEYWORD,))
    if not pos_station:
        raise MalformedReportError(f"no '{STATION_KEYWORD}' token")
    station_id = _token_after(tokens, pos_station[0], 1)

    try:
        fields: Dict[str, List[float]] = {}
        for spec in REPEATED_FIELDS:
            if spec.width is None:
                fields[spec.name] = extract_repeated(tokens, spec)
            else:
                points, widths = extract_widths(tokens, spec)
                fields[spec.width] = widths
                fields[spec.name] = points

        pos_score = find_all(tokens, (SCORE_KEYWORD,))
        if len(pos_score) != 1:
            raise MalformedReportError(
                f"expected one '{SCORE_KEYWORD}' token, found {len(pos_score)}")
        calib = _number(_token_after(tokens, pos_score[0], 1), SCORE_KEYWORD)
        valid = _number(_token_after(tokens, pos_score[0], VALID_OFFSET), VALID_KEYWORD)
    except MalformedReportError as exc:
        raise exc.annotate(station_id=station_id)

    return ParsedReport(station_id=station_id, calib=calib, valid=valid, fields=fields)


def read_report(path) -> ParsedReport:
    with open(os.fspath(path), "r", encoding="utf-8", errors="replace") as f:
        text = f.read()
    try:
        return parse_report(text)
    except MalformedReportError as exc:
        raise exc.annotate(path=os.fspath(path))
