"""Shared fixtures: a small base map, a talk page export, and an offline client."""

from __future__ import annotations

from typing import Mapping, Sequence

import pytest
from lxml import etree

from qualitymap.svgmap import parse_map


SAMPLE_SVG = b"""<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg"
     xmlns:sodipodi="http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd"
     sodipodi:docname="Detailed_Blank_World_Map.svg" width="100" height="50">
  <g id="fr" transform="translate(5,5)">
    <path id="fr-main" d="M0 0h1v1z"/>
    <path class="limitxx" d="M1 1h1v1z"/>
    <g id="gp">
      <path d="M2 2h1v1z"/>
    </g>
  </g>
  <path id="de" d="M3 3h1v1z"/>
  <path id="xc" d="M4 4h1v1z"/>
  <path id="ab" d="M5 5h1v1z"/>
  <path id="gb" d="M6 6h1v1z"/>
  <path id="uk" d="M7 7h1v1z"/>
  <rect id="zz" width="1" height="1"/>
  <path id="FR" d="M8 8h1v1z"/>
</svg>
"""

SAMPLE_CODES = ["fr", "gp", "de", "xc", "ab", "gb", "uk"]

SAMPLE_REDIRECTS = {
    "ISO 3166-1:FR": "France",
    "ISO 3166-1:GP": "Guadeloupe",
    "ISO 3166-1:DE": "Germany",
    "ISO 3166-1:XC": "Cyprus",
    "ISO 3166-1:GB": "United Kingdom",
    "ISO 3166-1:UK": "United Kingdom",
}

SAMPLE_EXPORT = """<mediawiki xmlns="http://www.mediawiki.org/xml/export-0.11/" version="0.11" xml:lang="en">
  <siteinfo><sitename>Wikipedia</sitename></siteinfo>
  <page>
    <title>Talk:France</title>
    <ns>1</ns>
    <revision><text bytes="40">{{WikiProject banner shell| class = FA |1=
{{WikiProject France}}}}</text></revision>
  </page>
  <page>
    <title>Talk:Germany</title>
    <ns>1</ns>
    <revision><text>{{WikiProject banner shell|class=GA}}</text></revision>
  </page>
  <page>
    <title>Talk:Guadeloupe</title>
    <ns>1</ns>
    <revision><text>No assessment banner on this page.</text></revision>
  </page>
  <page>
    <title>Talk:United Kingdom</title>
    <ns>1</ns>
    <revision><text>{{WikiProject Countries|class=B}}</text></revision>
  </page>
  <page>
    <title>Talk:Northern Cyprus</title>
    <ns>1</ns>
    <revision><text>{{WikiProject Cyprus|class=Unassessed}}</text></revision>
  </page>
</mediawiki>
"""


class FakeClient:
    """Offline stand-in for `WikimediaClient`."""

    def __init__(
        self,
        *,
        map_bytes: bytes = SAMPLE_SVG,
        redirects: Mapping[str, str] | None = None,
        export_xml: str = SAMPLE_EXPORT,
        fetch_error: Exception | None = None,
    ) -> None:
        self.map_bytes = map_bytes
        self.redirects = dict(SAMPLE_REDIRECTS if redirects is None else redirects)
        self.export_xml = export_xml
        self.fetch_error = fetch_error
        self.fetched: list[str] = []
        self.lookups: list[list[str]] = []
        self.exported: list[list[str]] = []
        self.closed = False

    def fetch_bytes(self, url: str) -> bytes:
        self.fetched.append(url)
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.map_bytes

    def query_redirects(self, titles: Sequence[str]) -> dict[str, str]:
        self.lookups.append(list(titles))
        return {title: self.redirects[title] for title in titles if title in self.redirects}

    def export_pages(self, titles: Sequence[str]) -> str:
        self.exported.append(list(titles))
        return self.export_xml

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def sample_tree() -> etree._ElementTree:
    return parse_map(SAMPLE_SVG)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()
