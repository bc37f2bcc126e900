"""
Selectors and queries for list/query-style operations.

Every type here implements the XmlPayload capability: ``to_element``
renders it as an element tree qualified with the target service's
namespace.  All are immutable; sequences are stored as tuples.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterable
from dataclasses import dataclass, field

from .network.protocol import XmlPayload
from .network.soap_envelope import qname

__all__ = [
    "AwqlQuery",
    "DateRange",
    "Operation",
    "OrderBy",
    "Paging",
    "Predicate",
    "Selector",
]


def _text(parent: ET.Element, namespace: str, tag: str, value: object) -> ET.Element:
    elem = ET.SubElement(parent, qname(namespace, tag))
    elem.text = str(value)
    return elem


def _freeze(obj: object, name: str, values: Iterable[object]) -> None:
    # A bare string is one value, not a sequence of characters
    if isinstance(values, str):
        values = (values,)
    object.__setattr__(obj, name, tuple(values))


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range, dates as ``YYYYMMDD``."""

    min: str
    max: str

    def render(self, parent: ET.Element, namespace: str) -> None:
        elem = ET.SubElement(parent, qname(namespace, "dateRange"))
        _text(elem, namespace, "min", self.min)
        _text(elem, namespace, "max", self.max)


@dataclass(frozen=True)
class Predicate:
    """Filter on one field, e.g. ``Predicate("Status", "IN", ["ENABLED"])``."""

    field: str
    operator: str
    values: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "values", self.values)

    def render(self, parent: ET.Element, namespace: str) -> None:
        elem = ET.SubElement(parent, qname(namespace, "predicates"))
        _text(elem, namespace, "field", self.field)
        _text(elem, namespace, "operator", self.operator)
        for value in self.values:
            _text(elem, namespace, "values", value)


@dataclass(frozen=True)
class OrderBy:
    field: str
    sort_order: str = "ASCENDING"

    def render(self, parent: ET.Element, namespace: str) -> None:
        elem = ET.SubElement(parent, qname(namespace, "ordering"))
        _text(elem, namespace, "field", self.field)
        _text(elem, namespace, "sortOrder", self.sort_order)


@dataclass(frozen=True)
class Paging:
    """Result window: ``limit`` results starting at ``offset``."""

    offset: int = 0
    limit: int = 100

    def __post_init__(self) -> None:
        if self.offset < 0 or self.limit < 0:
            raise ValueError(f"Paging offset and limit must be >= 0, got {self}")

    def render(self, parent: ET.Element, namespace: str) -> None:
        elem = ET.SubElement(parent, qname(namespace, "paging"))
        _text(elem, namespace, "startIndex", self.offset)
        _text(elem, namespace, "numberResults", self.limit)


@dataclass(frozen=True)
class Selector:
    """Declarative query for ``get``-style operations.

    Optional ``date_range`` and ``paging`` are left out of the XML
    entirely when unset.
    """

    fields: tuple[str, ...] = ()
    predicates: tuple[Predicate, ...] = ()
    date_range: DateRange | None = None
    ordering: tuple[OrderBy, ...] = ()
    paging: Paging | None = None
    tag: str = "selector"

    def __post_init__(self) -> None:
        _freeze(self, "fields", self.fields)
        _freeze(self, "predicates", self.predicates)
        _freeze(self, "ordering", self.ordering)

    def to_element(self, namespace: str) -> ET.Element:
        root = ET.Element(qname(namespace, self.tag))
        for name in self.fields:
            _text(root, namespace, "fields", name)
        for predicate in self.predicates:
            predicate.render(root, namespace)
        if self.date_range is not None:
            self.date_range.render(root, namespace)
        for order in self.ordering:
            order.render(root, namespace)
        if self.paging is not None:
            self.paging.render(root, namespace)
        return root


@dataclass(frozen=True)
class AwqlQuery:
    """An AWQL query string for ``query`` operations."""

    query: str
    tag: str = "query"

    def to_element(self, namespace: str) -> ET.Element:
        root = ET.Element(qname(namespace, self.tag))
        _text(root, namespace, "query", self.query)
        return root


@dataclass(frozen=True)
class Operation:
    """Operation element wrapping its arguments.

    ``Operation("get", Selector(fields=["Id"]))`` renders
    ``<get><selector><fields>Id</fields></selector></get>``.
    """

    name: str
    arguments: tuple[XmlPayload, ...] = field(default=())

    def __init__(self, name: str, *arguments: XmlPayload) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "arguments", tuple(arguments))

    def to_element(self, namespace: str) -> ET.Element:
        root = ET.Element(qname(namespace, self.name))
        for argument in self.arguments:
            root.append(argument.to_element(namespace))
        return root
