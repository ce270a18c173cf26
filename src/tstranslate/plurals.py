"""Plural form selection for numerus messages.

The count -> category function is CLDR locale data, taken from Babel. A
numerus message stores one form per category the locale uses for whole
counts, in CLDR order (``zero``, ``one``, ``two``, ``few``, ``many``,
``other``). Russian therefore has three forms (one, few, many) and English
two (one, other).
"""
import logging

from babel import Locale, UnknownLocaleError

from tstranslate.errors import PluralRuleError

logger = logging.getLogger(__name__)

CLDR_CATEGORIES = ("zero", "one", "two", "few", "many", "other")

# Categories only reachable through fractional counts get no numerus form
_SAMPLE_COUNTS = range(0, 1000)


class PluralRule:
    def __init__(self, language: str, categories: tuple[str, ...], selector, form_count: int | None = None):
        self.language = language
        self.categories = categories
        self._selector = selector
        self.form_count = form_count if form_count is not None else len(categories)

    def __repr__(self) -> str:
        return f"PluralRule({self.language!r}, {self.categories!r}, form_count={self.form_count})"

    @classmethod
    def for_locale(cls, language: str, form_count: int | None = None) -> "PluralRule":
        if not language:
            raise PluralRuleError("Catalog does not declare a language")
        try:
            locale = Locale.parse(language.replace("-", "_"))
        except (UnknownLocaleError, ValueError) as ex:
            raise PluralRuleError(f"Unknown locale {language!r}: {ex}") from ex

        selector = locale.plural_form
        seen = {selector(n) for n in _SAMPLE_COUNTS}
        categories = tuple(x for x in CLDR_CATEGORIES if x in seen)
        logger.debug(f"Plural categories for {language}: {', '.join(categories)}")
        return cls(language, categories, selector, form_count)

    def category(self, count: int) -> str:
        return self._selector(abs(count))

    def index(self, count: int) -> int:
        category = self.category(count)
        try:
            return self.categories.index(category)
        except ValueError:
            # Not produced by the sampled counts, use the catch-all form
            return len(self.categories) - 1
