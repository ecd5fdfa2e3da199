"""In-place transformations of the base SVG world map."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Mapping, Sequence
from urllib.parse import quote

from lxml import etree

from .models import ColorKey
from .util import xml_escape


SVG_NS = "http://www.w3.org/2000/svg"
SODIPODI_NS = "http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd"

_COUNTRY_CODE_RE = re.compile(r"[a-z]{2}")
_VISUAL_TAGS = ("g", "path")
# Characters left unescaped by JavaScript's encodeURIComponent.
_URL_SAFE = "-_.!~*'()"

_LOGGER = logging.getLogger("qualitymap.svgmap")


def parse_map(data: bytes) -> etree._ElementTree:
    parser = etree.XMLParser(huge_tree=True, resolve_entities=False, no_network=True)
    root = etree.fromstring(data, parser=parser)
    return root.getroottree()


def identify_country_codes(tree: etree._ElementTree) -> list[str]:
    """Ids of all `g` then all `path` elements that look like ISO 3166-1 alpha-2 codes.

    Order follows the document; repeated ids are kept.
    """
    root = tree.getroot()
    codes: list[str] = []
    for name in _VISUAL_TAGS:
        for element in root.iter(f"{{*}}{name}"):
            element_id = element.get("id")
            if element_id is not None and _COUNTRY_CODE_RE.fullmatch(element_id):
                codes.append(element_id)
    return codes


def elements_by_id(tree: etree._ElementTree, element_id: str) -> list[etree._Element]:
    """Every element carrying `element_id`; base maps are not guaranteed to keep ids unique."""
    return tree.getroot().xpath("//*[@id=$element_id]", element_id=element_id)


def fill_style(color: str) -> str:
    return f"fill: {color}; fill-opacity: 1"


def color_countries(
    tree: etree._ElementTree,
    codes: Iterable[str],
    ratings: Mapping[str, str],
    color_key: ColorKey,
    *,
    exclude_class: str,
) -> None:
    for code in codes:
        style = fill_style(color_key.color_for(ratings.get(code)))
        for element in elements_by_id(tree, code):
            element.set("style", style)
            for child in element.iterdescendants(tag=etree.Element):
                if exclude_class in (child.get("class") or "").split():
                    continue
                child.set("style", style)


def article_url(host: str, title: str) -> str:
    return f"https://{host}/wiki/" + quote(title.replace(" ", "_"), safe=_URL_SAFE)


def annotate_links(tree: etree._ElementTree, pages: Mapping[str, str], *, host: str) -> int:
    """Give each resolved country a tooltip title and wrap it in a link to its article."""
    root = tree.getroot()
    linked = 0
    for code, title in pages.items():
        url = article_url(host, title)
        for element in elements_by_id(tree, code):
            parent = element.getparent()
            if parent is None:
                continue
            element.insert(0, _element(root, f"<title>{xml_escape(title)}</title>"))
            link = _element(root, f'<a href="{xml_escape(url)}"/>')
            link.tail, element.tail = element.tail, None
            parent.replace(element, link)
            link.append(element)
            linked += 1
    return linked


def extract_nested_links(tree: etree._ElementTree) -> int:
    """Move every link nested in another link out to follow its enclosing link.

    The enclosing link's visual transform, if any, is copied onto the moved
    link's visual children so the country keeps its position. The copy replaces
    any transform already there; transforms on groups between the two links are
    not carried over. Repeats until no link contains another.
    """
    root = tree.getroot()
    moved = 0
    while True:
        nested = root.xpath("//*[local-name()='a'][ancestor::*[local-name()='a']]")
        if not nested:
            return moved
        link = nested[0]
        outer = next(link.iterancestors("{*}a"))
        transform = _visual_transform(outer)
        if transform:
            for child in _visual_children(link):
                child.set("transform", transform)
        outer.addnext(link)
        moved += 1
        _LOGGER.debug("Extracted nested link %s", link.get("href"))


def attach_metadata(tree: etree._ElementTree, *, docname: str, title: str) -> None:
    root = tree.getroot()
    declared = SODIPODI_NS in root.nsmap.values() or "sodipodi" in root.nsmap
    existing_prefixes = [prefix for prefix in root.nsmap if prefix]
    root.set(f"{{{SODIPODI_NS}}}docname", docname)
    if not declared:
        # Rebinds the auto-generated prefix to `sodipodi` on the root itself.
        etree.cleanup_namespaces(
            root,
            top_nsmap={"sodipodi": SODIPODI_NS},
            keep_ns_prefixes=existing_prefixes,
        )
    root.insert(0, _element(root, f"<title>{xml_escape(title)}</title>"))


def serialize_map(tree: etree._ElementTree) -> bytes:
    return etree.tostring(tree, xml_declaration=True, encoding="UTF-8")


def write_map(tree: etree._ElementTree, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(serialize_map(tree))
    return path


def _element(root: etree._Element, markup: str) -> etree._Element:
    """Parse a single element from markup, in the document's default namespace."""
    namespace = etree.QName(root).namespace
    if namespace:
        wrapped = f'<fragment xmlns="{xml_escape(namespace)}">{markup}</fragment>'
    else:
        wrapped = f"<fragment>{markup}</fragment>"
    return etree.fromstring(wrapped)[0]


def _visual_children(element: etree._Element) -> Sequence[etree._Element]:
    return [
        child
        for child in element
        if isinstance(child.tag, str) and etree.QName(child).localname in _VISUAL_TAGS
    ]


def _visual_transform(link: etree._Element) -> str | None:
    children = _visual_children(link)
    if not children:
        return None
    return children[0].get("transform")

