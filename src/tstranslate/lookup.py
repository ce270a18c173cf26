"""Runtime string lookup over a loaded catalog.

A ``Translator`` wraps one immutable ``Catalog`` and never raises on a
miss: the source text comes back flagged as a fallback instead. Switching
locale means building a new ``Translator`` and handing it to
``ActiveTranslator.switch``; readers holding the old one keep a consistent
snapshot.
"""
from collections import defaultdict
from dataclasses import dataclass
import enum
import logging
import pathlib
import threading

from tstranslate import parser
from tstranslate.classes import Catalog, Message
from tstranslate.errors import CatalogParseError, PluralRuleError
from tstranslate.plurals import PluralRule

logger = logging.getLogger(__name__)


class LookupStatus(str, enum.Enum):
    TRANSLATED = "translated"
    # Entry exists but its translation is not approved or is empty
    UNFINISHED = "unfinished"
    MISSING = "missing"


@dataclass(frozen=True)
class LookupResult:
    text: str
    status: LookupStatus
    message: Message | None = None
    ambiguous: bool = False
    # Set when the plural form for the count was missing and another one was used
    plural_fallback: bool = False

    @property
    def fallback(self) -> bool:
        return self.status is not LookupStatus.TRANSLATED

    def __str__(self) -> str:
        return self.text


class Translator:
    def __init__(self, catalog: Catalog, plural_rule: PluralRule | None = None) -> None:
        self.catalog = catalog
        if plural_rule is None and catalog.language:
            try:
                plural_rule = PluralRule.for_locale(catalog.language)
            except PluralRuleError as ex:
                logger.warning(f"Plural lookups use the first form: {ex}")
        self.plural_rule = plural_rule

        # Insertion ordered multimaps, first entry wins
        self._exact: dict[tuple[str, str, str], list[Message]] = defaultdict(list)
        self._by_source: dict[tuple[str, str], list[Message]] = defaultdict(list)
        for context, message in catalog.messages():
            self._exact[(context.name, message.source, message.comment)].append(message)
            self._by_source[(context.name, message.source)].append(message)

    @classmethod
    def empty(cls, language: str = "") -> "Translator":
        return cls(Catalog(language=language))

    @property
    def language(self) -> str:
        return self.catalog.language

    def find(self, context: str, source: str, comment: str | None = None) -> tuple[Message | None, bool]:
        """Return the matching message and whether the match was ambiguous."""
        if comment is None:
            # An uncommented entry is an exact match for an uncommented query
            uncommented = self._exact.get((context, source, ""))
            if uncommented:
                return uncommented[0], False
            candidates = self._by_source.get((context, source), [])
            if not candidates:
                return None, False
            ambiguous = len({x.comment for x in candidates}) > 1
            if ambiguous:
                logger.debug(
                    f'"{source}" in {context} has {len(candidates)} entries with different comments, using the first'
                )
            return candidates[0], ambiguous

        candidates = self._exact.get((context, source, comment))
        if not candidates and comment:
            # Same as the Qt runtime: retry without the disambiguation
            candidates = self._exact.get((context, source, ""))
        if not candidates:
            return None, False
        return candidates[0], False

    def _plural_index(self, count: int | None) -> int:
        if count is None or self.plural_rule is None:
            return 0
        return self.plural_rule.index(count)

    def translate(
        self,
        context: str,
        source: str,
        comment: str | None = None,
        count: int | None = None,
    ) -> LookupResult:
        message, ambiguous = self.find(context, source, comment)
        if message is None:
            return LookupResult(source, LookupStatus.MISSING)
        if not message.finished:
            return LookupResult(source, LookupStatus.UNFINISHED, message, ambiguous)

        if not message.numerus:
            if not message.translation:
                return LookupResult(source, LookupStatus.UNFINISHED, message, ambiguous)
            return LookupResult(message.translation, LookupStatus.TRANSLATED, message, ambiguous)

        index = self._plural_index(count)
        forms = message.numerus_forms
        if index < len(forms) and forms[index]:
            return LookupResult(forms[index], LookupStatus.TRANSLATED, message, ambiguous)

        available = [x for x in forms if x]
        if not available:
            return LookupResult(source, LookupStatus.UNFINISHED, message, ambiguous)
        logger.debug(f'No plural form {index} for "{source}" in {context}, using the last one')
        return LookupResult(available[-1], LookupStatus.TRANSLATED, message, ambiguous, plural_fallback=True)

    def tr(self, context: str, source: str, comment: str | None = None, count: int | None = None) -> str:
        return self.translate(context, source, comment, count).text


class ActiveTranslator:
    """Holds the translator for the current locale."""

    def __init__(self, translator: Translator | None = None) -> None:
        self._translator = translator or Translator.empty()
        self._lock = threading.Lock()

    @property
    def current(self) -> Translator:
        return self._translator

    def switch(self, translator: Translator) -> Translator:
        with self._lock:
            previous = self._translator
            self._translator = translator
        logger.info(f"Switched translations from {previous.language or 'source'} to {translator.language or 'source'}")
        return previous

    def tr(self, context: str, source: str, comment: str | None = None, count: int | None = None) -> str:
        return self.current.tr(context, source, comment, count)


def open_translator(
    path: str | pathlib.Path,
    plural_forms: dict[str, int] | None = None,
) -> Translator:
    """Load a catalog for runtime use.

    A malformed catalog is logged and replaced by an empty one, so every
    lookup falls back to the source language.
    """
    try:
        catalog = parser.load_catalog(path, plural_forms=plural_forms)
    except (CatalogParseError, OSError) as ex:
        logger.error(f"Cannot load translations from {path}: {ex}")
        return Translator.empty()

    rule = None
    form_count = (plural_forms or {}).get(catalog.language)
    if form_count is not None:
        try:
            rule = PluralRule.for_locale(catalog.language, form_count)
        except PluralRuleError as ex:
            logger.warning(f"Ignoring declared plural forms: {ex}")
    return Translator(catalog, rule)
