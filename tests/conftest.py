from __future__ import annotations

from pathlib import Path

import pytest

from tstranslate import parser
from tstranslate.classes import Catalog
from tstranslate.lookup import Translator
from tstranslate.plurals import PluralRule

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR


@pytest.fixture
def ru_path() -> Path:
    return DATA_DIR / "subsurface_ru_RU.ts"


@pytest.fixture
def ru_catalog(ru_path: Path) -> Catalog:
    return parser.load_catalog(ru_path)


@pytest.fixture
def ru_rule() -> PluralRule:
    return PluralRule.for_locale("ru_RU")


@pytest.fixture
def translator(ru_catalog: Catalog, ru_rule: PluralRule) -> Translator:
    return Translator(ru_catalog, ru_rule)
