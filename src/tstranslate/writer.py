import logging
import os
import pathlib
import re
import xml.etree.ElementTree as ET

from tstranslate.classes import Catalog, Message

logger = logging.getLogger(__name__)

_INDENT = "    "
# Characters XML 1.0 cannot carry, written as <byte value="xNN"/>
_CONTROL_REGEX = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def _set_text(elem: ET.Element, text: str) -> None:
    parts = _CONTROL_REGEX.split(text)
    controls = _CONTROL_REGEX.findall(text)
    elem.text = parts[0]
    for char, tail in zip(controls, parts[1:]):
        byte = ET.SubElement(elem, "byte", value=f"x{ord(char):x}")
        byte.tail = tail


def _text_element(parent: ET.Element, tag: str, text: str | None) -> None:
    if text is None:
        return
    _set_text(ET.SubElement(parent, tag), text)


def _message_element(parent: ET.Element, message: Message) -> None:
    elem = ET.SubElement(parent, "message")
    if message.id is not None:
        elem.set("id", message.id)
    if message.numerus:
        elem.set("numerus", "yes")

    for location in message.locations:
        loc = ET.SubElement(elem, "location")
        if location.filename is not None:
            loc.set("filename", location.filename)
        if location.line is not None:
            loc.set("line", location.line)

    _text_element(elem, "source", message.source)
    _text_element(elem, "oldsource", message.old_source)
    _text_element(elem, "comment", message.comment or None)
    _text_element(elem, "oldcomment", message.old_comment)
    _text_element(elem, "extracomment", message.extra_comment)
    _text_element(elem, "translatorcomment", message.translator_comment)

    translation = ET.SubElement(elem, "translation")
    if message.translation_type.attribute:
        translation.set("type", message.translation_type.attribute)
    if message.numerus:
        translation.text = ""
        for form in message.numerus_forms:
            _text_element(translation, "numerusform", form)
    else:
        _set_text(translation, message.translation)


def _indent(elem: ET.Element, level: int = 0) -> None:
    # Only pure container elements get whitespace; text elements keep theirs
    if not len(elem) or any(x.tag == "byte" for x in elem):
        return
    padding = "\n" + _INDENT * (level + 1)
    elem.text = padding
    for child in elem:
        child.tail = padding
        _indent(child, level + 1)
    elem[-1].tail = "\n" + _INDENT * level


def build_tree(catalog: Catalog) -> ET.Element:
    root = ET.Element("TS")
    if catalog.version:
        root.set("version", catalog.version)
    root.set("language", catalog.language)
    if catalog.source_language:
        root.set("sourcelanguage", catalog.source_language)

    for context in catalog.contexts:
        context_elem = ET.SubElement(root, "context")
        _text_element(context_elem, "name", context.name)
        for message in context.messages:
            _message_element(context_elem, message)

    _indent(root)
    return root


def dumps_catalog(catalog: Catalog) -> str:
    body = ET.tostring(build_tree(catalog), encoding="unicode", short_empty_elements=False)
    return f'<?xml version="1.0" encoding="utf-8"?>\n<!DOCTYPE TS>\n{body}\n'


def save_catalog(catalog: Catalog, path: str | pathlib.Path) -> None:
    file = pathlib.Path(path)
    # Encode before touching the target so a failure leaves it intact
    data = dumps_catalog(catalog).encode("utf-8")
    partial = file.with_name(f".{file.name}.tmp")
    partial.write_bytes(data)
    os.replace(partial, file)
    logger.info(f"Wrote {sum(len(x.messages) for x in catalog.contexts)} messages to {file}")
