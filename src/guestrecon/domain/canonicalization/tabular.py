"""Raw CSV/XML text to flat, header-normalized source records.

``SourceRecord.get`` is the only place where untyped column access happens;
everything downstream works on the typed rows built in ``rows``.
"""

from __future__ import annotations

import csv
import io
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import TYPE_CHECKING

from guestrecon.domain.errors import SourceFormatError

if TYPE_CHECKING:
    from collections.abc import Mapping

_WHITESPACE = re.compile(r"\s+")
_NON_HEADER_CHARS = re.compile(r"[^a-z0-9_]")
_ENCODINGS = ("utf-8-sig", "utf-8", "latin-1")


@dataclass(frozen=True, slots=True)
class SourceRecord:
    """One data line of an export, keyed by normalized header."""

    line_number: int
    values: Mapping[str, str]

    def get(self, *synonyms: str) -> str:
        """Return the value of the first synonym that holds a non-empty value."""

        for key in synonyms:
            value = self.values.get(key)
            if value and value.strip():
                return value
        return ""

    def is_blank(self) -> bool:
        return not any(value.strip() for value in self.values.values())


def normalize_header(name: str) -> str:
    lowered = _WHITESPACE.sub("_", name.strip().lower())
    return _NON_HEADER_CHARS.sub("", lowered)


def decode_upload(raw: bytes) -> str:
    for encoding in _ENCODINGS:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise SourceFormatError("Could not decode upload content")


def _unique_headers(raw_headers: list[str]) -> list[str]:
    seen: dict[str, int] = {}
    headers: list[str] = []
    for raw in raw_headers:
        name = normalize_header(raw)
        count = seen.get(name, 0) + 1
        seen[name] = count
        headers.append(name if count == 1 else f"{name}_{count}")
    return headers


def parse_delimited(text: str, *, delimiter: str = ",") -> list[SourceRecord]:
    """Parse delimited text whose first line is the header row.

    Quoted fields may contain the delimiter, doubled quotes and line breaks.
    Cells are kept verbatim; callers trim what they need to.
    Physically empty lines are dropped; rows of empty cells are kept so the
    classifier can report them.
    """

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), delimiter=delimiter)
    try:
        header_row = next(reader, None)
        if header_row is None or not any(cell.strip() for cell in header_row):
            raise SourceFormatError("File has no header row")
        headers = _unique_headers(header_row)

        records: list[SourceRecord] = []
        for cells in reader:
            if not cells:
                continue
            values = {
                header: (cells[index] if index < len(cells) else "")
                for index, header in enumerate(headers)
            }
            records.append(SourceRecord(line_number=reader.line_num, values=values))
    except csv.Error as exc:
        raise SourceFormatError(f"Malformed CSV near line {reader.line_num}: {exc}") from exc
    return records


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_xml_nodes(text: str, tag: str) -> list[dict[str, str]]:
    """Return every ``tag`` element at any depth as a flat child-name to text map."""

    try:
        root = ET.fromstring(text.lstrip("\ufeff").strip())
    except ET.ParseError as exc:
        raise SourceFormatError(f"Malformed XML: {exc}") from exc

    nodes: list[dict[str, str]] = []
    for element in root.iter():
        if _local_name(element.tag) != tag:
            continue
        flat: dict[str, str] = {}
        for child in element:
            if len(child):
                continue
            flat[_local_name(child.tag)] = (child.text or "").strip()
        nodes.append(flat)
    return nodes
