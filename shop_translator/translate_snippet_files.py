"""
Command line entry point: translate the snippet JSON files of the source
locale found below ``snippet_directory`` into every configured target locale.
"""
import fnmatch
import logging
import os
import sys
from typing import Dict, List

from shop_translator.app_config import AppConfig, load_app_config
from shop_translator.errors import ConfigurationError, TranslatorError
from shop_translator.logging_config import LOGGER_NAME
from shop_translator.models import SnippetFile
from shop_translator.snippet_files import find_by_language, target_file_path
from shop_translator.translation_client import TranslationClient
from shop_translator.translation_service import TranslationService

logger = logging.getLogger(f"{LOGGER_NAME}.translate_snippet_files")


def get_source_files(config: AppConfig) -> List[SnippetFile]:
    """
    Return the snippet files of the source locale.

    If the TRANSLATION_FILTER_GLOB environment variable is set, only files whose
    name matches the glob pattern are returned.
    """
    source_files = [
        snippet_file
        for group in find_by_language(config.snippet_directory, config.source_language)
        for snippet_file in group['files']
    ]
    filter_glob = os.environ.get('TRANSLATION_FILTER_GLOB')
    if filter_glob:
        filtered_list = [f for f in source_files if fnmatch.fnmatch(f.filename, filter_glob)]
        logger.info(f"Applied filter '{filter_glob}', {len(filtered_list)} out of {len(source_files)} files will be translated.")
        return filtered_list
    return source_files


def write_error_report(report_path: str, failed: Dict[str, List[str]]) -> None:
    """Write the keys that could not be translated, grouped by file."""
    os.makedirs(os.path.dirname(report_path), exist_ok=True)
    with open(report_path, 'w', encoding='utf-8') as f:
        f.write("## Snippet Translation Errors\n\n")
        f.write("The following keys could not be translated and must be handled manually or on the next run.\n\n")
        for filename, errors in failed.items():
            f.write(f"### `{filename}`\n")
            for error in errors:
                f.write(f"- {error}\n")
            f.write("\n")


def translate_all(config: AppConfig) -> None:
    """
    Translate all source locale snippet files into the configured target locales.
    """
    if not config.target_locales:
        logger.error("No target_locales configured. Nothing to translate.")
        return

    source_files = get_source_files(config)
    if not source_files:
        logger.info(f"No '{config.source_language}' snippet files found in '{config.snippet_directory}'. Exiting.")
        return
    logger.info(f"Found {len(source_files)} '{config.source_language}' snippet file(s).")

    service = TranslationService(config, TranslationClient(config))
    translated_total = 0
    failed: Dict[str, List[str]] = {}

    for snippet_file in source_files:
        for target_locale in config.target_locales:
            if target_locale == config.source_language:
                continue
            target_path = target_file_path(snippet_file.full_path, target_locale)
            report_key = os.path.relpath(target_path, config.snippet_directory)
            logger.info(f"Translating '{snippet_file.path}' to '{target_locale}'...")
            try:
                result = service.translate_snippet_file(snippet_file.full_path, target_path, target_locale)
            except ConfigurationError:
                raise
            except (ValueError, OSError, TranslatorError) as file_exc:
                logger.exception("Failed to translate '%s' to '%s'", snippet_file.path, target_locale)
                failed[report_key] = [f"File could not be processed: {file_exc}"]
                continue
            translated_total += result.get('translated', 0)
            errors = [
                f"{key}: {detail['error']}"
                for key, detail in result.get('details', {}).items()
                if not detail['success']
            ]
            if errors:
                failed[report_key] = errors

    logger.info(f"Translated {translated_total} snippet(s) in total.")

    report_path = os.path.join(config.project_root, 'logs', 'snippet_translation_errors.log')
    if failed:
        logger.warning(f"Some keys failed. Writing report to {report_path}")
        write_error_report(report_path, failed)
    elif os.path.exists(report_path):
        os.remove(report_path)


def main() -> None:
    config = load_app_config()
    try:
        translate_all(config)
    except ConfigurationError as config_exc:
        logger.critical(f"Configuration error: {config_exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
