"""
Streaming XML output on top of `lxml.etree.xmlfile`.

Documents are written element by element with two-space indentation; nothing
is buffered beyond the element currently written.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping

from lxml import etree

from matsim_exporter.core import WriteError, atomic_output

NETWORK_DOCTYPE = (
    '<!DOCTYPE network SYSTEM "http://www.matsim.org/files/dtd/network_v2.dtd">'
)
TRANSIT_SCHEDULE_DOCTYPE = (
    '<!DOCTYPE transitSchedule SYSTEM '
    '"http://www.matsim.org/files/dtd/transitSchedule_v2.dtd">'
)

INDENT = "  "


class NetworkElements:
    NETWORK = "network"
    NODES = "nodes"
    NODE = "node"
    LINKS = "links"
    LINK = "link"


class NetworkAttributes:
    ID = "id"
    X = "x"
    Y = "y"
    FROM = "from"
    TO = "to"
    LENGTH = "length"
    FREESPEED = "freespeed"
    CAPACITY = "capacity"
    PERMLANES = "permlanes"
    MODES = "modes"
    ORIGID = "origid"
    NT_CATEGORY = "nt_category"
    NT_TYPE = "nt_type"
    TYPE = "type"


class TransitElements:
    TRANSIT_SCHEDULE = "transitSchedule"
    TRANSIT_STOPS = "transitStops"
    STOP_FACILITY = "stopFacility"
    TRANSIT_LINE = "transitLine"
    TRANSIT_ROUTE = "transitRoute"
    TRANSPORT_MODE = "transportMode"
    DESCRIPTION = "description"
    ROUTE_PROFILE = "routeProfile"
    STOP = "stop"
    ROUTE = "route"
    LINK = "link"
    DEPARTURES = "departures"
    DEPARTURE = "departure"


class TransitAttributes:
    ID = "id"
    X = "x"
    Y = "y"
    LINK_REF_ID = "linkRefId"
    NAME = "name"
    IS_BLOCKING = "isBlocking"
    REF_ID = "refId"
    ARRIVAL_OFFSET = "arrivalOffset"
    DEPARTURE_OFFSET = "departureOffset"
    AWAIT_DEPARTURE = "awaitDeparture"
    DEPARTURE_TIME = "departureTime"


def xml_bool(value: bool) -> str:
    return "true" if value else "false"


class XmlStreamWriter:
    """Indenting wrapper around an open `etree.xmlfile` writer."""

    def __init__(self, xf) -> None:
        self._xf = xf
        self._depth = 0

    def _newline(self) -> None:
        if self._depth > 0:
            self._xf.write("\n" + INDENT * self._depth)

    @contextmanager
    def element(self, tag: str, attrib: Mapping[str, str] | None = None) -> Iterator[None]:
        self._newline()
        with self._xf.element(tag, attrib=dict(attrib or {})):
            self._depth += 1
            yield
            self._depth -= 1
            self._newline()

    def leaf(self, tag: str, attrib: Mapping[str, str] | None = None) -> None:
        self._newline()
        self._xf.write(etree.Element(tag, attrib=dict(attrib or {})))

    def text_element(self, tag: str, text: str) -> None:
        self._newline()
        el = etree.Element(tag)
        el.text = text
        self._xf.write(el)


@contextmanager
def xml_document(path: Path, *, doctype: str) -> Iterator[XmlStreamWriter]:
    """
    Open `path` for streaming through an atomic temp file. The document only appears
    under its final name when the block completes without error.
    """
    with atomic_output(Path(path)) as tmp:
        try:
            with etree.xmlfile(str(tmp), encoding="UTF-8") as xf:
                xf.write_declaration()
                xf.write_doctype(doctype)
                yield XmlStreamWriter(xf)
        except (etree.LxmlError, OSError) as e:
            raise WriteError(f"failed writing {path}: {e}") from e
