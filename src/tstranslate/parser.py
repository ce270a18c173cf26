#!/usr/bin/python3
import dataclasses
import logging
import pathlib
import xml.etree.ElementTree as ET

from tstranslate import validator
from tstranslate.classes import (
    Catalog,
    CatalogFile,
    Context,
    Location,
    Message,
    TranslationType,
)
from tstranslate.errors import CatalogParseError, PluralRuleError
from tstranslate.plurals import PluralRule

logger = logging.getLogger(__name__)


def _byte_char(elem: ET.Element, path: str) -> str:
    value = elem.get("value", "")
    try:
        if value[:1] in ("x", "X"):
            code = int(value[1:], 16)
        else:
            code = int(value)
    except ValueError:
        raise CatalogParseError(f'Invalid byte value "{value}"', element=path)
    # Control characters are allowed here, surrogates and non-characters are not
    if not 0 <= code <= 0x10FFFF or 0xD800 <= code <= 0xDFFF or code in (0xFFFE, 0xFFFF):
        raise CatalogParseError(f'Byte value "{value}" is not a valid character', element=path)
    return chr(code)


def _text(elem: ET.Element | None, path: str = "") -> str:
    # Control characters are written as <byte value="x1b"/> children
    if elem is None:
        return ""
    parts = [elem.text or ""]
    for child in elem:
        if child.tag == "byte":
            parts.append(_byte_char(child, f"{path}/byte"))
        parts.append(child.tail or "")
    return "".join(parts)


def _variant_text(elem: ET.Element, path: str) -> str:
    # Only the first (longest) length variant is kept
    variants = elem.findall("lengthvariant")
    if not variants:
        return _text(elem, path)
    return _text(variants[0], f"{path}/lengthvariant[1]")


def _optional_text(elem: ET.Element, tag: str, path: str) -> str | None:
    child = elem.find(tag)
    if child is None:
        return None
    return _text(child, f"{path}/{tag}")


def _parse_message(elem: ET.Element, path: str) -> Message:
    source_elem = elem.find("source")
    if source_elem is None:
        raise CatalogParseError("Message without a source", element=path)

    numerus = elem.get("numerus") == "yes"
    locations = tuple(
        Location(x.get("filename"), x.get("line")) for x in elem.findall("location")
    )

    translation = ""
    forms: tuple[str, ...] = ()
    translation_type = TranslationType.UNFINISHED
    tr_elem = elem.find("translation")
    if tr_elem is not None:
        tr_path = f"{path}/translation"
        try:
            translation_type = TranslationType.from_attribute(tr_elem.get("type"))
        except ValueError:
            raise CatalogParseError(
                f'Unknown translation type "{tr_elem.get("type")}"', element=tr_path
            )
        form_elems = tr_elem.findall("numerusform")
        if numerus:
            forms = tuple(
                _variant_text(x, f"{tr_path}/numerusform[{i}]")
                for i, x in enumerate(form_elems, 1)
            )
        elif form_elems:
            raise CatalogParseError(
                'Plural forms in a message without numerus="yes"', element=tr_path
            )
        else:
            translation = _variant_text(tr_elem, tr_path)

    return Message(
        source=_text(source_elem, f"{path}/source"),
        locations=locations,
        comment=_optional_text(elem, "comment", path) or "",
        numerus=numerus,
        translation=translation,
        numerus_forms=forms,
        translation_type=translation_type,
        id=elem.get("id"),
        extra_comment=_optional_text(elem, "extracomment", path),
        translator_comment=_optional_text(elem, "translatorcomment", path),
        old_source=_optional_text(elem, "oldsource", path),
        old_comment=_optional_text(elem, "oldcomment", path),
    )


def _parse_tree(root: ET.Element) -> Catalog:
    if root.tag != "TS":
        raise CatalogParseError(f'Root element is "{root.tag}", expected "TS"', element=root.tag)

    # Repeated context blocks are merged under the first occurrence
    contexts: dict[str, list[Message]] = {}
    for ci, context_elem in enumerate(root.findall("context"), 1):
        path = f"TS/context[{ci}]"
        name_elem = context_elem.find("name")
        if name_elem is None:
            raise CatalogParseError("Context without a name", element=path)
        name = _text(name_elem, f"{path}/name")
        if name in contexts:
            logger.debug(f'Context "{name}" appears more than once, merging')
        messages = contexts.setdefault(name, [])
        for mi, message_elem in enumerate(context_elem.findall("message"), 1):
            messages.append(_parse_message(message_elem, f"{path}/message[{mi}]"))

    return Catalog(
        language=root.get("language", ""),
        version=root.get("version", ""),
        source_language=root.get("sourcelanguage"),
        contexts=tuple(Context(name, tuple(messages)) for name, messages in contexts.items()),
    )


def _resolve_plural_rule(language: str, plural_forms: dict[str, int] | None) -> PluralRule | None:
    form_count = (plural_forms or {}).get(language)
    try:
        return PluralRule.for_locale(language, form_count)
    except PluralRuleError as ex:
        logger.warning(f"Plural forms not checked: {ex}")
        return None


def loads_catalog(
    data: str | bytes,
    *,
    filename: str | None = None,
    plural_rule: PluralRule | None = None,
    plural_forms: dict[str, int] | None = None,
) -> Catalog:
    """Parse a .ts document.

    Raises CatalogParseError for malformed documents. Business-rule problems
    (plural form counts, placeholder mismatches) are logged and kept on
    ``Catalog.issues``.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as ex:
        raise CatalogParseError(
            f"Malformed XML: {ex}", position=ex.position, filename=filename
        ) from ex

    try:
        catalog = _parse_tree(root)
    except CatalogParseError as ex:
        ex.filename = filename
        raise

    if plural_rule is None:
        plural_rule = _resolve_plural_rule(catalog.language, plural_forms)

    issues = []
    if plural_rule is not None:
        issues.extend(validator.check_plural_forms(catalog, plural_rule))
    issues.extend(validator.check_placeholders(catalog))
    for issue in issues:
        logger.warning(f"{filename or catalog.language}: {issue.context}: {issue.warning}")
    return dataclasses.replace(catalog, issues=tuple(issues))


def load_catalog(
    path: str | pathlib.Path,
    *,
    plural_rule: PluralRule | None = None,
    plural_forms: dict[str, int] | None = None,
) -> Catalog:
    file = pathlib.Path(path)
    logger.debug(f"Parsing {file}")
    return loads_catalog(
        file.read_bytes(),
        filename=file.name,
        plural_rule=plural_rule,
        plural_forms=plural_forms,
    )


def parse_catalogs(path: str | pathlib.Path, plural_forms: dict[str, int] | None = None) -> list[CatalogFile]:
    units = []
    for file in sorted(pathlib.Path(path).glob("*.ts")):
        if not file.is_file():
            continue

        try:
            catalog = load_catalog(file, plural_forms=plural_forms)
        except (CatalogParseError, OSError) as ex:
            logger.error(f"Error parsing {file.name}: {ex}")
            units.append(CatalogFile(file.name, None, str(ex)))
            continue

        units.append(CatalogFile(file.name, catalog))
    return units
