"""
Ampache wire formats.

The renderer produces one structure for both APIs; the XML and JSON flavours
of the protocol then differ in a few places:

- JSON unwraps responses consisting of a single entity list, and renames the
  `value` key to `name` (or `message` inside errors).
- XML wraps everything in <root>, prepends a total_count to entity lists and
  gives each entry of an id list an `index` attribute.

In XML, scalar values under the keys in XML_ATTRIBUTE_KEYS become attributes
of the parent element and `value` becomes its text content.
"""

import xml.etree.ElementTree as ET
from typing import Any, Union

XML_ATTRIBUTE_KEYS = frozenset({"id", "index", "count", "code"})
ENTITY_LIST_KEYS = ("song", "album", "artist", "playlist", "tag")


def error_content(code: int, message: str) -> dict:
    return {"error": {"code": code, "value": message}}


def _convert_keys(content: Any, mapping: dict[str, str]) -> Any:
    if isinstance(content, dict):
        return {mapping.get(key, key): _convert_keys(value, mapping) for key, value in content.items()}
    if isinstance(content, list):
        return [_convert_keys(item, mapping) for item in content]
    return content


def prepare_for_json(content: dict) -> Union[dict, list]:
    # Responses listing library entities have an anonymous root array
    if len(content) == 1:
        (only_value,) = content.values()
        if isinstance(only_value, list):
            content = only_value

    if isinstance(content, dict) and "error" in content:
        return _convert_keys(content, {"value": "message"})
    return _convert_keys(content, {"value": "name"})


def prepare_for_xml(content: dict) -> dict:
    content = dict(content)
    first_key = next(iter(content), None)

    if first_key in ENTITY_LIST_KEYS:
        content = {"total_count": len(content[first_key]), **content}

    if first_key == "id":
        content["id"] = [
            {"index": index, "value": entity_id}
            for index, entity_id in enumerate(content["id"])
        ]

    return {"root": content}


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _fill_element(element: ET.Element, content: dict) -> None:
    for key, value in content.items():
        if value is None:
            continue
        if isinstance(value, list):
            for item in value:
                _append_child(element, key, item)
        elif isinstance(value, dict):
            _append_child(element, key, value)
        elif key in XML_ATTRIBUTE_KEYS:
            element.set(key, _text(value))
        elif key == "value":
            element.text = _text(value)
        else:
            _append_child(element, key, value)


def _append_child(parent: ET.Element, tag: str, value: Any) -> None:
    if value is None:
        return
    child = ET.SubElement(parent, tag)
    if isinstance(value, dict):
        _fill_element(child, value)
    else:
        child.text = _text(value)


def to_xml(content: dict) -> bytes:
    """Serialize a structure with a single top-level key (the root element)."""
    ((root_tag, root_content),) = content.items()
    root = ET.Element(root_tag)
    if isinstance(root_content, dict):
        _fill_element(root, root_content)
    else:
        root.text = _text(root_content)
    ET.indent(root)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)
