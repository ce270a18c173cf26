from __future__ import annotations

from pathlib import Path
import threading

import pytest

from tests.helpers import context_block, ts_document
from tstranslate import parser
from tstranslate.classes import Catalog
from tstranslate.lookup import ActiveTranslator, LookupStatus, Translator, open_translator


def test_finished_messages_translate_verbatim(translator: Translator, ru_catalog: Catalog) -> None:
    for context, message in ru_catalog.messages():
        if not message.finished or message.numerus or not message.translation:
            continue
        result = translator.translate(context.name, message.source, message.comment)
        assert result.text == message.translation
        assert result.status is LookupStatus.TRANSLATED
        assert not result.fallback


def test_unfinished_messages_fall_back_to_source(translator: Translator) -> None:
    result = translator.translate("DivelogsDeWebServices", "Upload dive data to divelogs.de")
    assert result.text == "Upload dive data to divelogs.de"
    assert result.status is LookupStatus.UNFINISHED
    assert result.fallback
    assert result.message is not None


def test_vanished_messages_are_not_served(translator: Translator) -> None:
    result = translator.translate("DivelogsDeWebServices", "Download dive data from divelogs.de")
    assert result.text == "Download dive data from divelogs.de"
    assert result.fallback


def test_lookup_is_scoped_by_context(translator: Translator) -> None:
    assert translator.tr("DiveTripModel", "Weight(%1)") == "Вес(%1)"

    result = translator.translate("DiveListModel", "Weight(%1)")
    assert result.text == "Weight(%1)"
    assert result.status is LookupStatus.MISSING
    assert result.message is None


def test_comment_disambiguates(translator: Translator) -> None:
    context = "ConfigureDiveComputerDialog"
    assert translator.tr(context, "P1 (medium)", "Suunto safety level") == "P1 (средний)"
    assert translator.tr(context, "P1 (medium)", "") == "П1 (умеренный)"


def test_unknown_comment_falls_back_to_uncommented_entry(translator: Translator) -> None:
    result = translator.translate("ConfigureDiveComputerDialog", "P1 (medium)", "Gas change level")
    assert result.text == "П1 (умеренный)"
    assert not result.fallback

    missing = translator.translate("ConfigureDiveComputerDialog", "P2 (high)", "Gas change level")
    assert missing.status is LookupStatus.MISSING


def test_omitted_comment_prefers_uncommented_entry(translator: Translator) -> None:
    result = translator.translate("ConfigureDiveComputerDialog", "P1 (medium)")
    assert result.text == "П1 (умеренный)"
    assert not result.ambiguous

    single = translator.translate("ConfigureDiveComputerDialog", "P2 (high)")
    assert single.text == "P2 (высокий)"
    assert not single.ambiguous


def test_omitted_comment_without_uncommented_entry_flags_ambiguity() -> None:
    document = ts_document(
        context_block(
            "ConfigureDiveComputerDialog",
            "<message><source>P1 (medium)</source><comment>Suunto safety level</comment>"
            "<translation>P1 (средний)</translation></message>",
            "<message><source>P1 (medium)</source><comment>Gas change level</comment>"
            "<translation>P1 (умеренный)</translation></message>",
        )
    )
    translator = Translator(parser.loads_catalog(document))

    result = translator.translate("ConfigureDiveComputerDialog", "P1 (medium)")
    assert result.text == "P1 (средний)"
    assert result.ambiguous


@pytest.mark.parametrize(
    ("count", "expected"),
    [
        (1, "(%n погружение)"),
        (21, "(%n погружение)"),
        (3, "(%n погружения)"),
        (24, "(%n погружения)"),
        (5, "(%n погружений)"),
        (11, "(%n погружений)"),
        (0, "(%n погружений)"),
    ],
)
def test_plural_form_follows_russian_rule(translator: Translator, count: int, expected: str) -> None:
    result = translator.translate("DiveTripModel", "(%n dive(s))", count=count)
    assert result.text == expected
    assert not result.plural_fallback


def test_missing_plural_form_uses_last_available() -> None:
    document = ts_document(
        context_block(
            "DiveTripModel",
            '<message numerus="yes"><source>(%n dive(s))</source><translation>'
            "<numerusform>(%n погружение)</numerusform><numerusform>(%n погружения)</numerusform>"
            "</translation></message>",
        )
    )
    translator = Translator(parser.loads_catalog(document))

    result = translator.translate("DiveTripModel", "(%n dive(s))", count=7)
    assert result.text == "(%n погружения)"
    assert result.plural_fallback
    assert result.status is LookupStatus.TRANSLATED


def test_plural_without_forms_falls_back_to_source(translator: Translator) -> None:
    result = translator.translate("DiveTripModel", "(%n shown)", count=2)
    assert result.text == "(%n shown)"
    assert result.fallback


def test_empty_translator_returns_source() -> None:
    translator = Translator.empty()
    assert translator.tr("MainWindow", "&File") == "&File"


def test_open_translator_falls_back_on_broken_file(tmp_path: Path) -> None:
    broken = tmp_path / "broken.ts"
    broken.write_text("<TS><context><name>A</name>", encoding="utf-8")

    translator = open_translator(broken)

    assert translator.catalog.contexts == ()
    assert translator.translate("A", "Hello").status is LookupStatus.MISSING


def test_open_translator_falls_back_on_bad_byte_value(tmp_path: Path) -> None:
    broken = tmp_path / "huge_byte.ts"
    broken.write_text(
        ts_document(
            context_block(
                "MainWindow",
                '<message><source>x<byte value="99999999999999999999"/></source>'
                "<translation>y</translation></message>",
            )
        ),
        encoding="utf-8",
    )

    translator = open_translator(broken)

    assert translator.catalog.contexts == ()
    assert translator.tr("MainWindow", "x") == "x"


def test_open_translator_with_declared_forms(ru_path: Path) -> None:
    translator = open_translator(ru_path, plural_forms={"ru_RU": 4})
    assert translator.plural_rule is not None
    assert translator.plural_rule.form_count == 4
    assert translator.tr("DiveTripModel", "Weight(%1)") == "Вес(%1)"


def test_switch_replaces_translator(translator: Translator) -> None:
    active = ActiveTranslator()
    assert active.tr("DiveTripModel", "Weight(%1)") == "Weight(%1)"

    snapshot = active.current
    previous = active.switch(translator)

    assert previous is snapshot
    assert active.tr("DiveTripModel", "Weight(%1)") == "Вес(%1)"
    # Readers holding the old snapshot are unaffected
    assert snapshot.tr("DiveTripModel", "Weight(%1)") == "Weight(%1)"


def test_concurrent_readers_see_whole_catalogs(translator: Translator) -> None:
    active = ActiveTranslator()
    seen: set[str] = set()

    def read() -> None:
        for _ in range(200):
            current = active.current
            seen.add(current.tr("DiveTripModel", "Weight(%1)") + current.language)

    threads = [threading.Thread(target=read) for _ in range(4)]
    for thread in threads:
        thread.start()
    for _ in range(20):
        active.switch(translator)
        active.switch(Translator.empty())
    for thread in threads:
        thread.join()

    assert seen <= {"Weight(%1)", "Вес(%1)ru_RU"}
