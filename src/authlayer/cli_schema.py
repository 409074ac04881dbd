"""Table layouts and masking used when the CLI prints a shaped request."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

SENSITIVE_HEADERS = frozenset({"authorization", "x-gdata-key"})


@dataclass(frozen=True)
class Column:
    """One table column read from a single key of a request summary row."""

    header: str
    key: str
    formatter: Callable[[Any], str] = str

    def render(self, row: Mapping[str, Any]) -> str:
        value = row.get(self.key)
        return "" if value is None else self.formatter(value)


@dataclass(frozen=True)
class TableView:
    title: str
    columns: tuple[Column, ...]


def yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def mask_secret(value: Any, *, visible: int = 12) -> str:
    """Keep the scheme prefix of a credential and elide the rest."""

    text = str(value)
    if len(text) <= visible:
        return text
    return text[:visible] + "…"


def header_rows(headers: Mapping[str, str], *, reveal: bool = False) -> list[dict[str, str]]:
    """Header name/value rows sorted by name, credentials masked unless ``reveal``."""

    rows = []
    for name in sorted(headers, key=str.lower):
        value = headers[name]
        if not reveal and name.lower() in SENSITIVE_HEADERS:
            value = mask_secret(value)
        rows.append({"name": name, "value": value})
    return rows


REQUEST_SUMMARY = TableView(
    "Request",
    (
        Column("Method", "method"),
        Column("URL", "url"),
        Column("Redirects", "allow_redirects", yes_no),
        Column("Scheme", "scheme"),
    ),
)
REQUEST_HEADERS = TableView("Headers", (Column("Header", "name"), Column("Value", "value")))
