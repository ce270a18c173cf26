import copy
import logging
import os
import sys
from typing import Any

import yaml

import click
from tstranslate import lookup, parser, validator, writer
from tstranslate.errors import CatalogParseError, PluralRuleError
from tstranslate.plurals import PluralRule

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
    },
    "catalog": {"plural_forms": {}},
}


def load_config(config_folder: str) -> dict[str, Any]:
    config_folder_path = os.path.abspath(config_folder)
    config_file_path = os.path.abspath(f"{config_folder_path}/config.yml")

    config: dict[str, Any] = {}
    try:
        with open(config_file_path, "r") as file:
            config = yaml.safe_load(file) or {}
    except FileNotFoundError:
        logger.error(f"File not found: {config_file_path}")
    except yaml.YAMLError as exc:
        logger.error(sys._getframe().f_code.co_name + " " + str(exc))
        sys.exit(1)

    if not isinstance(config, dict):
        logger.error(f"{config_file_path}: expected a mapping of sections")
        sys.exit(1)

    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in config.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            logger.error(f"{config_file_path}: section \"{section}\" must be a mapping")
            sys.exit(1)
        merged.setdefault(section, {}).update(values)
    return merged


def setup(config_folder: str) -> dict[str, Any]:
    config = load_config(config_folder)
    logging.basicConfig(
        level=logging.getLevelName(config["logging"]["level"]),
        format=config["logging"]["format"],
        datefmt=config["logging"]["datefmt"],
    )
    return config


config_option = click.option("--config-folder", default="config", help="Configuration folder path.")


@click.group()
@click.version_option(package_name="tstranslate")
def cli() -> None:
    pass


@cli.command("check")
@config_option
@click.option("--translation-folder", required=True, help="Folder with Qt .ts catalogs")
@click.option("--output", type=click.Path(dir_okay=False), help="Write the markdown report to this file.")
def check(config_folder: str, translation_folder: str, output: str | None) -> None:
    config = setup(config_folder)
    plural_forms = config["catalog"].get("plural_forms") or {}

    files = parser.parse_catalogs(os.path.abspath(translation_folder), plural_forms=plural_forms)
    logger.info(f"Found {len(files)} catalogs")

    markdown = ""
    failed = False
    for file in files:
        if file.catalog is None:
            failed = True
            markdown += f"## {file.filename}\n**Cannot be loaded: {file.error}**\n\n"
            continue

        rule = None
        try:
            rule = PluralRule.for_locale(file.catalog.language, plural_forms.get(file.catalog.language))
        except PluralRuleError as ex:
            logger.warning(f"{file.filename}: {ex}")

        reports = validator.check_catalog(file.catalog, rule)
        stats = validator.completeness(file.catalog)
        if reports:
            logger.error(f"Found {len(reports)} issues in {file.filename} ({file.catalog.language})")
        else:
            logger.info(f"No issues found in {file.filename} ({file.catalog.language})")
        markdown += validator.render_markdown(file.filename, reports, stats) + "\n"

    if output:
        with open(output, "w", encoding="utf-8") as report:
            report.write(markdown)
    else:
        click.echo(markdown, nl=False)

    if failed:
        sys.exit(1)


@cli.command("stats")
@config_option
@click.argument("catalog", type=click.Path(exists=True, dir_okay=False))
def stats(config_folder: str, catalog: str) -> None:
    config = setup(config_folder)
    try:
        loaded = parser.load_catalog(catalog, plural_forms=config["catalog"].get("plural_forms"))
    except CatalogParseError as ex:
        raise click.ClickException(str(ex))

    for context in validator.completeness(loaded):
        click.echo(
            f"{context.name}: {context.finished}/{context.total - context.obsolete} "
            f"({context.percent:.0f}%), {context.obsolete} obsolete"
        )


@cli.command("lookup")
@config_option
@click.argument("catalog", type=click.Path(exists=True, dir_okay=False))
@click.argument("context")
@click.argument("source")
@click.option("--comment", default=None, help="Disambiguation comment.")
@click.option("--count", type=int, default=None, help="Count for plural messages.")
def lookup_command(
    config_folder: str, catalog: str, context: str, source: str, comment: str | None, count: int | None
) -> None:
    config = setup(config_folder)
    translator = lookup.open_translator(catalog, plural_forms=config["catalog"].get("plural_forms"))
    result = translator.translate(context, source, comment, count)
    click.echo(result.text)
    if result.fallback:
        logger.info(f"Fell back to the source text ({result.status.value})")
    if result.ambiguous:
        logger.warning("Several entries match without a comment, used the first one")


@cli.command("normalize")
@config_option
@click.argument("catalog", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", type=click.Path(dir_okay=False), help="Write here instead of in place.")
def normalize(config_folder: str, catalog: str, output: str | None) -> None:
    config = setup(config_folder)
    try:
        loaded = parser.load_catalog(catalog, plural_forms=config["catalog"].get("plural_forms"))
    except CatalogParseError as ex:
        raise click.ClickException(str(ex))
    writer.save_catalog(loaded, output or catalog)
