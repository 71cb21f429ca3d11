#!/usr/bin/env python3
"""
Parsing of winget's table output into records.

winget prints human oriented tables whose column widths, header names and
optional columns change between versions, commands and display languages::

    Name               Id                 Version   Available  Source
    --------------------------------------------------------------------
    7-Zip 23.01 (x64)  7zip.7zip          23.01     24.08      winget
    Microsoft Visual…  Microsoft.VCRedi…  14.38.3…             winget

Column boundaries are taken from the header line and every data row is
sliced at those offsets, which keeps values containing spaces intact.
Offsets are display columns, so East Asian wide characters count twice
like they do in the console winget renders for.
"""

from __future__ import annotations

import re
import unicodedata
from bisect import bisect_left
from dataclasses import dataclass, field
from functools import cached_property
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from loguru import logger

from .models import Package, PinnedPackage, PinType, ProcessResult, RecordKind, Source

Record = Union[Package, PinnedPackage, Source]

# Markers winget uses for values cut to the column width
TRUNCATION_MARKERS = ("…", "...")

_ANSI_PATTERN = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
_SEPARATOR_PATTERN = re.compile(r"^\s*[-─=]{3,}[-─=\s]*$")
_PROGRESS_PATTERN = re.compile(r"^\s*(?:[-\\|/]|[█▒▓░]+.*)\s*$")
_TOKEN_PATTERN = re.compile(r"\S+")
_LABEL_PATTERN = re.compile(r"\S+(?: \S+)*")
_WIDE_GAP_PATTERN = re.compile(r"\s{2,}")


def _char_width(char: str) -> int:
    if unicodedata.combining(char):
        return 0
    if unicodedata.east_asian_width(char) in ("W", "F"):
        return 2
    return 1


def _display_positions(line: str) -> List[int]:
    """Display column at which each character of `line` starts."""
    positions: List[int] = []
    column = 0
    for index, char in enumerate(line):
        width = _char_width(char)
        # Combining marks belong to the character before them
        positions.append(positions[index - 1] if width == 0 and index else column)
        column += width
    return positions


def clean_line(line: str) -> str:
    """Remove terminal escape sequences and trailing whitespace."""
    return _ANSI_PATTERN.sub("", line).rstrip()


def is_separator(line: str) -> bool:
    """Check for the dashed rule winget prints below a table header."""
    return bool(_SEPARATOR_PATTERN.match(line))


def is_progress(line: str) -> bool:
    """Check for spinner and progress bar lines."""
    return bool(_PROGRESS_PATTERN.match(line))


def is_shortened(value: str) -> bool:
    return value.endswith(TRUNCATION_MARKERS)


@dataclass(frozen=True)
class ColumnLayout:
    """
    Column boundaries derived from one table header.

    `starts` are strictly increasing display offsets; the extent of column
    ``i`` runs from ``starts[i]`` up to ``starts[i + 1]``, the last column
    runs to the end of the line. `fields` holds the record field each column
    feeds, or None for columns the schema does not use.
    """

    starts: Tuple[int, ...]
    labels: Tuple[str, ...]
    fields: Tuple[Optional[str], ...]

    def __post_init__(self) -> None:
        if not (len(self.starts) == len(self.labels) == len(self.fields)):
            raise ValueError("starts, labels and fields must have the same length")
        if any(b <= a for a, b in zip(self.starts, self.starts[1:])):
            raise ValueError("column starts must be strictly increasing")

    def __len__(self) -> int:
        return len(self.starts)

    def extent(self, index: int) -> Tuple[int, Optional[int]]:
        """Return (start, end) of a column; end is None for the last column."""
        end = self.starts[index + 1] if index + 1 < len(self.starts) else None
        return self.starts[index], end

    def slice(self, line: str) -> List[str]:
        """
        Cut a data row into trimmed column values.

        Columns the row does not reach come back as empty strings.
        """
        positions = _display_positions(line)
        values = []
        for index in range(len(self.starts)):
            start, end = self.extent(index)
            low = bisect_left(positions, start)
            high = len(line) if end is None else bisect_left(positions, end)
            values.append(line[low:high].strip())
        return values

    def fits(self, line: str) -> bool:
        """
        Check that no value in the row runs across a column boundary.

        A row that does not fit was rendered with a different alignment than
        the header, for example after a localized or differently padded
        header, and cannot be sliced reliably.
        """
        positions = _display_positions(line)
        for boundary in self.starts[1:]:
            index = bisect_left(positions, boundary)
            if index >= len(line):
                break
            if index == 0:
                continue
            previous = line[index - 1]
            if previous.isspace():
                continue
            # A wide character spanning the boundary, or text on both sides
            if positions[index] > boundary or not line[index].isspace():
                return False
        return True

    def to_dict(self) -> Dict[str, list]:
        return {
            "starts": list(self.starts),
            "labels": list(self.labels),
            "fields": list(self.fields),
        }


@dataclass(frozen=True)
class TableSchema:
    """Header keywords and record construction for one record kind."""

    kind: RecordKind
    keywords: Mapping[str, Optional[str]]
    required: Tuple[str, ...]
    key_field: str
    canonical_order: Tuple[str, ...]
    factory: Callable[[Dict[str, str]], Record] = field(compare=False)

    @cached_property
    def keyword_words(self) -> List[Tuple[str, ...]]:
        """Keywords split into words, longest first."""
        return sorted(
            (tuple(keyword.split()) for keyword in self.keywords),
            key=len,
            reverse=True,
        )


def _package_from_values(values: Dict[str, str]) -> Package:
    return Package(
        name=values.get("name", ""),
        id=values.get("id", ""),
        version=values.get("version", ""),
        available_version=values.get("available_version", ""),
        source_name=values.get("source_name", ""),
        has_shortened_id=is_shortened(values.get("id", "")),
    )


def _pinned_package_from_values(values: Dict[str, str]) -> PinnedPackage:
    return PinnedPackage(
        name=values.get("name", ""),
        id=values.get("id", ""),
        version=values.get("version", ""),
        source_name=values.get("source_name", ""),
        has_shortened_id=is_shortened(values.get("id", "")),
        pin_type=PinType.from_string(values.get("pin_type")),
        pinned_version=values.get("pinned_version", ""),
    )


def _source_from_values(values: Dict[str, str]) -> Source:
    return Source(
        name=values.get("name", ""),
        arg=values.get("arg", ""),
        type=values.get("type", ""),
        identifier=values.get("identifier", ""),
        trust_level=values.get("trust_level", ""),
        explicit=values.get("explicit", ""),
    )


SCHEMAS: Dict[RecordKind, TableSchema] = {
    RecordKind.PACKAGE: TableSchema(
        kind=RecordKind.PACKAGE,
        keywords={
            "name": "name",
            "id": "id",
            "version": "version",
            "available": "available_version",
            "source": "source_name",
            "match": None,
        },
        required=("name", "id"),
        key_field="id",
        canonical_order=("name", "id", "version", "available_version", "source_name"),
        factory=_package_from_values,
    ),
    RecordKind.PINNED_PACKAGE: TableSchema(
        kind=RecordKind.PINNED_PACKAGE,
        keywords={
            "name": "name",
            "id": "id",
            "version": "version",
            "source": "source_name",
            "pin type": "pin_type",
            "pinned version": "pinned_version",
        },
        required=("name", "id", "pin_type"),
        key_field="id",
        canonical_order=("name", "id", "version", "source_name", "pin_type", "pinned_version"),
        factory=_pinned_package_from_values,
    ),
    RecordKind.SOURCE: TableSchema(
        kind=RecordKind.SOURCE,
        keywords={
            "name": "name",
            "argument": "arg",
            "type": "type",
            "identifier": "identifier",
            "trust level": "trust_level",
            "explicit": "explicit",
            "data": None,
        },
        required=("name", "arg"),
        key_field="name",
        canonical_order=("name", "arg", "explicit"),
        factory=_source_from_values,
    ),
}


def _header_columns(header: str, schema: TableSchema) -> List[Tuple[int, str, Optional[str]]]:
    """Split a header into (offset, label, keyword) columns; keyword is None if unknown."""
    tokens = [(m.start(), m.group()) for m in _TOKEN_PATTERN.finditer(header)]
    columns: List[Tuple[int, str, Optional[str]]] = []
    index = 0
    while index < len(tokens):
        keyword = _match_keyword(tokens, index, schema)
        width = len(keyword.split()) if keyword else 1
        first_offset = tokens[index][0]
        last_offset, last_text = tokens[index + width - 1]
        columns.append((first_offset, header[first_offset:last_offset + len(last_text)], keyword))
        index += width
    return columns


def keyword_layout(header: str, schema: TableSchema) -> Optional[ColumnLayout]:
    """
    Build a layout from a header line made of known column names.

    The line qualifies when its leading columns are all known keywords of
    the schema and include every required field. Matching ignores case; a
    keyword seen twice only counts the first time.
    """
    columns = _header_columns(header, schema)
    if not columns:
        return None

    positions = _display_positions(header)
    starts: List[int] = []
    labels: List[str] = []
    fields: List[Optional[str]] = []
    seen: set[str] = set()
    leading_fields: set[str] = set()
    in_leading_run = True

    for offset, label, keyword in columns:
        column_field: Optional[str] = None
        if keyword is not None and keyword not in seen:
            seen.add(keyword)
            column_field = schema.keywords[keyword]
            if in_leading_run and column_field:
                leading_fields.add(column_field)
        else:
            in_leading_run = False

        starts.append(positions[offset])
        labels.append(label)
        fields.append(column_field)

    if fields[0] is None or not set(schema.required) <= leading_fields:
        return None
    return ColumnLayout(tuple(starts), tuple(labels), tuple(fields))


def is_keyword_header(header: str, schema: TableSchema) -> bool:
    """True when every column of the header is a known keyword of the schema."""
    columns = _header_columns(header, schema)
    return bool(columns) and all(keyword is not None for _, _, keyword in columns)


def _match_keyword(tokens: Sequence[Tuple[int, str]], index: int, schema: TableSchema) -> Optional[str]:
    for words in schema.keyword_words:
        candidate = tokens[index:index + len(words)]
        if len(candidate) != len(words):
            continue
        if any(text.casefold() != word for (_, text), word in zip(candidate, words)):
            continue
        # Words of one header are separated by a single space
        if any(
            nxt[0] != cur[0] + len(cur[1]) + 1
            for cur, nxt in zip(candidate, candidate[1:])
        ):
            continue
        return " ".join(words)
    return None


def positional_layout(header: str, schema: TableSchema) -> Optional[ColumnLayout]:
    """
    Build a layout from a header in an unknown or mixed display language.

    Labels are separated by two or more spaces. A label that is a known
    keyword keeps its field; every other label takes the field of its
    position in winget's usual column order, unless that field is taken.
    """
    matches = list(_LABEL_PATTERN.finditer(header))
    if not matches:
        return None

    fields: List[Optional[str]] = [None] * len(matches)
    known: set[int] = set()
    taken: set[str] = set()
    for i, match in enumerate(matches):
        key = " ".join(match.group().casefold().split())
        if key not in schema.keywords:
            continue
        known.add(i)
        column_field = schema.keywords[key]
        if column_field and column_field not in taken:
            fields[i] = column_field
            taken.add(column_field)

    for i in range(len(matches)):
        if i in known or i >= len(schema.canonical_order):
            continue
        column_field = schema.canonical_order[i]
        if column_field not in taken:
            fields[i] = column_field
            taken.add(column_field)

    positions = _display_positions(header)
    return ColumnLayout(
        tuple(positions[m.start()] for m in matches),
        tuple(m.group() for m in matches),
        tuple(fields),
    )


class OutputParser:
    """
    Turns captured winget output into records of one kind.

    Parsing never raises for unexpected text: rows that cannot be decoded
    are skipped, and output without a recognizable table yields an empty
    list.
    """

    def __init__(self, schemas: Optional[Mapping[RecordKind, TableSchema]] = None) -> None:
        self.schemas = dict(schemas or SCHEMAS)

    def parse(self, result: ProcessResult, kind: Union[RecordKind, str]) -> List[Record]:
        """
        Parse the stdout lines of a process result.

        Args:
            result: The captured winget output.
            kind: The record kind, selecting header keywords and record type.

        Returns:
            List of records in output order, possibly empty.
        """
        return self.parse_lines(result.output_lines, kind)

    def parse_lines(self, lines: Sequence[str], kind: Union[RecordKind, str]) -> List[Record]:
        schema = self.schemas[RecordKind(kind)]
        cleaned = [clean_line(line) for line in lines]

        records: List[Record] = []
        index = 0
        while index < len(cleaned):
            layout = self._header_at(cleaned, index, schema)
            if layout is None:
                index += 1
                continue

            logger.debug(f"Found {schema.kind.value} table header at line {index}: {layout.to_dict()}")
            index += 1
            if index < len(cleaned) and is_separator(cleaned[index]):
                index += 1

            while index < len(cleaned):
                line = cleaned[index]
                if not line.strip() or self._starts_table(cleaned, index):
                    break
                if not is_separator(line) and not is_progress(line):
                    record = self._decode_row(line, layout, schema)
                    if record is not None:
                        records.append(record)
                index += 1

        return records

    def parse_string(self, result: ProcessResult) -> str:
        """
        Return single-value output (settings, hashes, exported JSON) as text.

        Progress indicators and blank lines are dropped.
        """
        kept = [
            line
            for line in (clean_line(raw) for raw in result.output_lines)
            if line.strip() and not is_progress(line)
        ]
        return "\n".join(kept).strip()

    def _header_at(self, lines: Sequence[str], index: int, schema: TableSchema) -> Optional[ColumnLayout]:
        line = lines[index]
        layout = keyword_layout(line, schema)
        if layout is not None and is_keyword_header(line, schema):
            return layout
        if not line.strip() or index + 1 >= len(lines) or not is_separator(lines[index + 1]):
            return layout
        # A fully known header of another kind is not a translated one of this kind
        if any(is_keyword_header(line, other) for other in self.schemas.values()):
            return layout
        logger.debug(f"Reading {schema.kind.value} header at line {index} by position: {line!r}")
        return positional_layout(line, schema)

    def _starts_table(self, lines: Sequence[str], index: int) -> bool:
        if index + 1 < len(lines) and is_separator(lines[index + 1]):
            return True
        return any(keyword_layout(lines[index], schema) for schema in self.schemas.values())

    def _decode_row(self, line: str, layout: ColumnLayout, schema: TableSchema) -> Optional[Record]:
        try:
            if layout.fits(line):
                values = layout.slice(line)
            else:
                # Misaligned row: fall back to values separated by wide gaps
                values = _WIDE_GAP_PATTERN.split(line.strip())
                if len(values) > len(layout):
                    logger.debug(f"Skipping row wider than header: {line!r}")
                    return None
                values += [""] * (len(layout) - len(values))

            mapped = {
                field_name: value
                for field_name, value in zip(layout.fields, values)
                if field_name
            }
            if not mapped.get(schema.key_field):
                logger.debug(f"Skipping row without {schema.key_field}: {line!r}")
                return None
            return schema.factory(mapped)
        except (ValueError, TypeError, IndexError, KeyError) as e:
            logger.debug(f"Skipping malformed row {line!r}: {e}")
            return None


_default_parser = OutputParser()


def parse_output(result: ProcessResult, kind: Union[RecordKind, str]) -> List[Record]:
    """Parse a process result with the default schemas."""
    return _default_parser.parse(result, kind)


def parse_string(result: ProcessResult) -> str:
    """Return single-value output as text."""
    return _default_parser.parse_string(result)


__all__ = [
    "Record",
    "ColumnLayout",
    "TableSchema",
    "SCHEMAS",
    "OutputParser",
    "keyword_layout",
    "is_keyword_header",
    "positional_layout",
    "parse_output",
    "parse_string",
    "clean_line",
    "is_separator",
    "is_progress",
    "is_shortened",
    "TRUNCATION_MARKERS",
]
