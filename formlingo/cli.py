"""Command line interface for the formlingo translation toolkit."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Dict, Iterable, Optional

from .bundles import export_bundle, import_bundle
from .classifier import DEFAULT_NAME_PATTERNS, classify_text, compile_patterns
from .components import bindings_as_csv
from .configuration import ConfigInstance, FormlingoConfig, get_config, normalise_language
from .errors import ConfigurationError, FormlingoError
from .ignore_rules import classify, load_ignore_file
from .store import TranslationStore, build_store, translate
from .translator import CaptureSummary, TranslationSummary

LOG_FORMAT = "[formlingo] %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    """Route library log records to stderr at ``level``."""

    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formlingo",
        description="Maintain and apply UI translations stored in an SQLite database.",
    )
    parser.add_argument(
        "--database",
        help="Translation database path, or 'memory' (default: FORMLINGO_DATABASE).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    commands = parser.add_subparsers(dest="command", metavar="<command>")
    commands.required = True

    commands.add_parser("init-db", help="Create the translation tables.")

    translate_parser = commands.add_parser("translate", help="Translate a single text.")
    translate_parser.add_argument("text", help="Id or existing translation to look up.")
    translate_parser.add_argument("-l", "--language", help="Target language code.")

    import_parser = commands.add_parser(
        "import-json", help="Replace a language's translations from a JSON bundle."
    )
    import_parser.add_argument("file", help="Bundle of id -> translation pairs.")
    import_parser.add_argument("-l", "--language", required=True, help="Bundle language.")

    export_parser = commands.add_parser("export-json", help="Write translations to a JSON bundle.")
    export_parser.add_argument("file", help="Destination bundle path.")
    export_parser.add_argument("-l", "--language", help="Only export this language.")

    ignore_parser = commands.add_parser(
        "apply-ignore", help="Bind controls matched by an ignore file to DoNotTranslate."
    )
    ignore_parser.add_argument(
        "file",
        nargs="?",
        help="Ignore rule file (default: FORMLINGO_IGNORE_FILE).",
    )
    ignore_parser.add_argument(
        "--case-sensitive",
        action="store_true",
        help="Match patterns case-sensitively.",
    )

    list_parser = commands.add_parser("list", help="Print stored translations.")
    list_parser.add_argument("-l", "--language", help="Only list this language.")
    list_parser.add_argument("--id", dest="id_text", help="Only list this id.")

    bindings_parser = commands.add_parser(
        "bindings", help="Print form control bindings as CSV."
    )
    bindings_parser.add_argument("--form", help="Only list this form.")

    classify_parser = commands.add_parser(
        "classify-text", help="Show whether texts can be static translation ids."
    )
    classify_parser.add_argument("texts", nargs="+", metavar="TEXT")
    classify_parser.add_argument(
        "--pattern",
        action="append",
        dest="patterns",
        help="Default-name regular expression (repeatable, replaces the built-in set).",
    )

    check_parser = commands.add_parser(
        "check-name", help="Evaluate ignore rules against component names."
    )
    check_parser.add_argument("names", nargs="+", metavar="NAME")
    check_parser.add_argument("--rules", required=True, help="Ignore rule file.")
    check_parser.add_argument("--case-sensitive", action="store_true")

    commands.add_parser("config", help="Print the effective settings and their sources.")
    commands.add_parser("gui", help="Launch the graphical translation browser.")
    return parser


def _open_store(args: argparse.Namespace, settings: FormlingoConfig) -> TranslationStore:
    return build_store(
        args.database or settings.FORMLINGO_DATABASE,
        debug=settings.FORMLINGO_DEBUG_SQL,
    )


def _target_language(args: argparse.Namespace, settings: FormlingoConfig) -> str:
    language = getattr(args, "language", None)
    return normalise_language(language) if language else settings.FORMLINGO_LANGUAGE


def _command_init_db(args: argparse.Namespace, config: ConfigInstance) -> None:
    store = _open_store(args, config.model)
    store.create_schema()
    print(f"Translation database ready: {args.database or config.model.FORMLINGO_DATABASE}")


def _command_translate(args: argparse.Namespace, config: ConfigInstance) -> None:
    store = _open_store(args, config.model)
    print(translate(args.text, _target_language(args, config.model), store))


def _command_import(args: argparse.Namespace, config: ConfigInstance) -> None:
    store = _open_store(args, config.model)
    language = normalise_language(args.language)
    applied = import_bundle(store, args.file, language)
    print(f"Imported {applied} {language} translations from {args.file}.")


def _command_export(args: argparse.Namespace, config: ConfigInstance) -> None:
    store = _open_store(args, config.model)
    language = normalise_language(args.language) if args.language else None
    written = export_bundle(store, args.file, language)
    print(f"Exported {written} translations to {args.file}.")


def _command_apply_ignore(args: argparse.Namespace, config: ConfigInstance) -> None:
    settings = config.model
    path = args.file or settings.FORMLINGO_IGNORE_FILE
    if not path:
        raise ConfigurationError(
            "No ignore file given. Pass one or set FORMLINGO_IGNORE_FILE."
        )
    rules = load_ignore_file(
        path,
        case_sensitive=args.case_sensitive or settings.FORMLINGO_CASE_SENSITIVE_PATTERNS,
    )
    store = _open_store(args, settings)
    updated = store.mark_ignored(rules)
    print(f"Marked {updated} controls as DoNotTranslate.")


def _command_list(args: argparse.Namespace, config: ConfigInstance) -> None:
    store = _open_store(args, config.model)
    language = normalise_language(args.language) if args.language else None
    for record in store.fetch_translations(language=language, id_text=args.id_text):
        print(f"{record.id_text}\t{record.language_code}\t{record.translation}")


def _command_bindings(args: argparse.Namespace, config: ConfigInstance) -> None:
    store = _open_store(args, config.model)
    sys.stdout.write(bindings_as_csv(store.fetch_bindings(form_name=args.form)))


def _command_classify_text(args: argparse.Namespace, config: ConfigInstance) -> None:
    patterns = compile_patterns(args.patterns) if args.patterns else DEFAULT_NAME_PATTERNS
    for text in args.texts:
        result = classify_text(text, patterns)
        print(f"{result.kind.value}\t{result.id_text}")


def _command_check_name(args: argparse.Namespace, config: ConfigInstance) -> None:
    rules = load_ignore_file(
        args.rules,
        case_sensitive=args.case_sensitive or config.model.FORMLINGO_CASE_SENSITIVE_PATTERNS,
    )
    for name in args.names:
        print(f"{classify(name, rules).value}\t{name}")


def _command_config(args: argparse.Namespace, config: ConfigInstance) -> None:
    for key, value in config.model.model_dump().items():
        print(f"{key}={value}  # {config.source_of(key)}")


def _command_gui(args: argparse.Namespace, config: ConfigInstance) -> None:
    from .gui import launch_gui

    store = _open_store(args, config.model)
    launch_gui(settings=config.model, store=store, summary_printer=print_summary)


COMMANDS: Dict[str, Callable[[argparse.Namespace, ConfigInstance], None]] = {
    "init-db": _command_init_db,
    "translate": _command_translate,
    "import-json": _command_import,
    "export-json": _command_export,
    "apply-ignore": _command_apply_ignore,
    "list": _command_list,
    "bindings": _command_bindings,
    "classify-text": _command_classify_text,
    "check-name": _command_check_name,
    "config": _command_config,
    "gui": _command_gui,
}


def execute_command(
    args: argparse.Namespace,
    config: ConfigInstance,
) -> tuple[int, str | None]:
    """Run one command and return the exit code and an optional message."""

    handler = COMMANDS[args.command]
    try:
        handler(args, config)
    except FormlingoError as exc:
        return 1, str(exc)
    except KeyboardInterrupt:
        return 2, "Interrupted by user."
    return 0, None


def print_summary(summary: TranslationSummary | CaptureSummary) -> None:
    """Output a friendly report for a translation or capture pass."""

    if isinstance(summary, CaptureSummary):
        print(f"\nCaptured form '{summary.form_name}'.")
        print(
            f"  Bindings:        {summary.bindings_saved} saved "
            f"({summary.static_bindings} static, {summary.dynamic_bindings} dynamic)"
        )
        print(f"  Seeded ids:      {summary.translations_seeded} ({summary.source_language})")
        print(f"  Ignored:         {summary.controls_ignored}")
        return

    print(f"\nTranslated form '{summary.form_name}' into {summary.language}.")
    print(
        f"  Components:      {summary.total_applied} "
        f"({summary.static_applied} static, {summary.dynamic_applied} dynamic)"
    )
    print(f"  Hierarchy drift: {summary.fuzzy_matches} fuzzy matches")
    print(f"  Tool-tips:       {summary.tooltips_translated}")
    print(f"  Elapsed time:    {summary.elapsed_seconds:.2f} seconds")
    if summary.error_messages:
        print("  Notes:")
        for message in summary.error_messages:
            print(f"    - {message}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        config = get_config()
    except ConfigurationError as exc:
        print(exc)
        return 1

    configure_logging("DEBUG" if args.verbose else config.model.FORMLINGO_LOG_LEVEL)

    exit_code, message = execute_command(args, config)
    if message:
        print(message)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
