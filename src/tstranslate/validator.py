from collections import Counter, defaultdict
import logging
import re

from tstranslate.classes import Catalog, ContextStats, Message, Report, Severity
from tstranslate.plurals import PluralRule

logger = logging.getLogger(__name__)

# Qt positional (%1, %L2, %n) and printf style (%s, %d, %.1f) placeholders
PLACEHOLDER_REGEX = re.compile(
    r"%(?:%|L?n(?![A-Za-z])|L?[1-9][0-9]?|[-+#0]*[0-9]*(?:\.[0-9]+)?(?:hh|h|ll|l|L|z|j|t)?[diouxXeEfgGcsp])"
)
_QT_PLACEHOLDER = re.compile(r"%L?(?:[1-9][0-9]?|n)$")


def placeholders(text: str) -> list[str]:
    return [x for x in PLACEHOLDER_REGEX.findall(text) if x != "%%"]


def _normalize(found: list[str], numerus: bool) -> tuple[Counter, list[str]]:
    positional = Counter()
    printf = []
    for placeholder in found:
        if _QT_PLACEHOLDER.match(placeholder):
            # %L1 and %1 are substituted the same way
            name = placeholder.replace("%L", "%")
            # Plural forms may spell out the count instead of using %n
            if numerus and name == "%n":
                continue
            positional[name] += 1
        else:
            printf.append(placeholder)
    return positional, printf


def _translated_texts(message: Message) -> list[str]:
    if message.numerus:
        return [x for x in message.numerus_forms if x]
    return [message.translation] if message.translation else []


def check_plural_forms(catalog: Catalog, rule: PluralRule) -> list[Report]:
    reports = []
    for context, message in catalog.messages():
        if not message.numerus or message.translation_type.obsolete:
            continue
        if len(message.numerus_forms) != rule.form_count:
            reports.append(
                Report(
                    context.name,
                    f"Has {len(message.numerus_forms)} plural forms, but {rule.language} needs {rule.form_count}",
                    source=message.source,
                    comment=message.comment,
                )
            )
    return reports


def check_placeholders(catalog: Catalog) -> list[Report]:
    reports = []
    for context, message in catalog.messages():
        if not message.finished:
            continue
        source_positional, source_printf = _normalize(placeholders(message.source), message.numerus)
        for text in _translated_texts(message):
            positional, printf = _normalize(placeholders(text), message.numerus)
            if positional != source_positional:
                missing = sorted((source_positional - positional).elements())
                unresolved = sorted((positional - source_positional).elements())
                details = []
                if missing:
                    details.append(f"missing {', '.join(missing)}")
                if unresolved:
                    details.append(f"unresolved {', '.join(unresolved)}")
                reports.append(
                    Report(
                        context.name,
                        f"Placeholder mismatch: {'; '.join(details)}",
                        source=message.source,
                        comment=message.comment,
                    )
                )
            elif printf != source_printf:
                reports.append(
                    Report(
                        context.name,
                        f"Has format parameters {' '.join(printf) or 'none'}, but source has {' '.join(source_printf) or 'none'}",
                        source=message.source,
                        comment=message.comment,
                    )
                )
    return reports


def check_duplicates(catalog: Catalog) -> list[Report]:
    reports = []
    for context in catalog.contexts:
        grouped: dict[tuple[str, str], list[Message]] = defaultdict(list)
        for message in context.messages:
            grouped[(message.source, message.comment)].append(message)

        for (source, comment), messages in grouped.items():
            translations = {
                (x.translation, x.numerus_forms) for x in messages if x.finished
            }
            if len(translations) > 1:
                reports.append(
                    Report(
                        context.name,
                        f"Inconsistent translations across {len(messages)} duplicate entries, the first one is used",
                        source=source,
                        comment=comment,
                    )
                )
    return reports


def check_ambiguous(catalog: Catalog) -> list[Report]:
    reports = []
    for context in catalog.contexts:
        comments: dict[str, list[str]] = defaultdict(list)
        for message in context.messages:
            if message.comment not in comments[message.source]:
                comments[message.source].append(message.comment)

        for source, found in comments.items():
            if len(found) > 1:
                used = "the uncommented entry" if "" in found else "the first"
                reports.append(
                    Report(
                        context.name,
                        f"Translated under {len(found)} comments, lookups without a comment use {used}",
                        source=source,
                        severity=Severity.NOTICE,
                    )
                )
    return reports


def check_catalog(catalog: Catalog, rule: PluralRule | None = None) -> list[Report]:
    reports = []
    if rule is not None:
        reports.extend(check_plural_forms(catalog, rule))
    reports.extend(check_placeholders(catalog))
    reports.extend(check_duplicates(catalog))
    reports.extend(check_ambiguous(catalog))
    logger.debug(f"{len(reports)} issues in {catalog.language} catalog")
    return reports


def completeness(catalog: Catalog) -> list[ContextStats]:
    stats = []
    for context in catalog.contexts:
        finished = unfinished = obsolete = 0
        for message in context.messages:
            if message.translation_type.obsolete:
                obsolete += 1
            elif message.finished and _translated_texts(message):
                finished += 1
            else:
                unfinished += 1
        stats.append(
            ContextStats(
                context.name,
                total=len(context.messages),
                finished=finished,
                unfinished=unfinished,
                obsolete=obsolete,
            )
        )
    return stats


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", "\\n")


def render_markdown(filename: str, reports: list[Report], stats: list[ContextStats] | None = None) -> str:
    markdown = f"## {filename}\n"

    if stats:
        total = sum(x.total - x.obsolete for x in stats)
        finished = sum(x.finished for x in stats)
        percent = 100.0 * finished / total if total else 100.0
        markdown += f"**{finished} of {total} messages translated ({percent:.1f}%)**\n\n"
        incomplete = [x for x in stats if x.unfinished]
        if incomplete:
            markdown += "| Context | Unfinished | Done |\n| ------- | --------- | ---- |\n"
            for context in incomplete:
                markdown += f"| `{_cell(context.name)}` | {context.unfinished} | {context.percent:.0f}% |\n"
            markdown += "\n"

    if not reports:
        markdown += "No issues found\n"
        return markdown

    markdown += "| Context | Source | Issue |\n| ------- | ------ | --------- |\n"
    for report in reports:
        source = _cell(report.source)
        if report.comment:
            source += f" ({_cell(report.comment)})"
        markdown += f"| `{_cell(report.context)}` | `{source}` | {report.warning} |\n"
    return markdown
