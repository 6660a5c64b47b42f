"""AppStream catalog codec.

Decodes remote AppStream XML into Component objects and encodes the
mirrored subset back into a catalog for the local repository.
"""

import copy
import gzip
import xml.etree.ElementTree as ET
import zlib

from flatmirror.models.package import Bundle, Component

# AppStream catalog format version written to the local catalog
CATALOG_VERSION = "0.14"

_XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"


class CatalogError(Exception):
    """Raised when a catalog cannot be decoded."""


def decode_catalog(data: bytes) -> list[Component]:
    """Parse AppStream XML into components.

    Components without an ID are skipped.

    Args:
        data: Uncompressed AppStream XML.

    Returns:
        Components in document order.

    Raises:
        CatalogError: If the XML is malformed or not an AppStream catalog.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise CatalogError(f"Invalid catalog XML: {e}") from e

    if root.tag != "components":
        msg = f"Not an AppStream catalog: root element is <{root.tag}>"
        raise CatalogError(msg)

    components: list[Component] = []
    for element in root.findall("component"):
        component = _decode_component(element)
        if component is not None:
            components.append(component)
    return components


def encode_catalog(components: list[Component], origin: str | None = None) -> bytes:
    """Serialize components as an AppStream XML catalog.

    Components decoded from a remote catalog are written back with their
    original element so no upstream metadata is lost.

    Args:
        components: Components to publish.
        origin: Optional catalog origin attribute.

    Returns:
        UTF-8 encoded XML document.
    """
    root = ET.Element("components", {"version": CATALOG_VERSION})
    if origin:
        root.set("origin", origin)
    for component in components:
        if component.element is not None:
            root.append(copy.deepcopy(component.element))
        else:
            root.append(_encode_component(component))
    ET.indent(root)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def compress(data: bytes) -> bytes:
    """Gzip catalog data with a fixed timestamp so equal input gives equal output."""
    return gzip.compress(data, mtime=0)


def decompress(data: bytes) -> bytes:
    """Gunzip catalog data.

    Raises:
        CatalogError: If the data is not valid gzip.
    """
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise CatalogError(f"Invalid compressed catalog: {e}") from e


def _decode_component(element: ET.Element) -> Component | None:
    """Convert a <component> element, or None if it has no ID."""
    component_id = (element.findtext("id") or "").strip()
    if not component_id:
        return None

    bundle: Bundle | None = None
    bundles = element.findall("bundle")
    # Prefer the flatpak bundle when several bundle types are listed
    chosen = next((b for b in bundles if b.get("type") == "flatpak"), None)
    if chosen is None and bundles:
        chosen = bundles[0]
    if chosen is not None:
        bundle = Bundle(
            kind=chosen.get("type", ""),
            ref=(chosen.text or "").strip() or None,
            runtime=chosen.get("runtime"),
            sdk=chosen.get("sdk"),
        )

    return Component(
        id=component_id,
        name=_untranslated_text(element, "name"),
        summary=_untranslated_text(element, "summary"),
        bundle=bundle,
        element=element,
    )


def _untranslated_text(element: ET.Element, tag: str) -> str:
    """Return the text of the first child without an xml:lang attribute."""
    for child in element.findall(tag):
        if child.get(_XML_LANG) is None:
            return (child.text or "").strip()
    return ""


def _encode_component(component: Component) -> ET.Element:
    """Build a minimal <component> element from model fields."""
    element = ET.Element("component", {"type": "desktop-application"})
    ET.SubElement(element, "id").text = component.id
    if component.name:
        ET.SubElement(element, "name").text = component.name
    if component.summary:
        ET.SubElement(element, "summary").text = component.summary
    if component.bundle is not None:
        attrs = {"type": component.bundle.kind}
        if component.bundle.runtime:
            attrs["runtime"] = component.bundle.runtime
        if component.bundle.sdk:
            attrs["sdk"] = component.bundle.sdk
        ET.SubElement(element, "bundle", attrs).text = component.bundle.ref
    return element
