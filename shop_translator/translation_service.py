"""
Translation orchestration.

Extracts source content pinned to the configured source language, sends it
to the provider in bounded chunks, recovers the structured answer and writes
the result back into the language scoped target fields. Failures are isolated
per language, per chunk and per key so that everything that did succeed is
still written and reported.
"""
import copy
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import tiktoken

from shop_translator.app_config import AppConfig
from shop_translator.content_extractor import (
    CUSTOM_FIELD_PREFIX,
    build_slot_mapping,
    extract_cms_page_content,
    extract_key_value_content,
    extract_product_content,
    iter_slots,
    parse_slot_key,
)
from shop_translator.errors import (
    ConfigurationError,
    NotFoundError,
    ProviderError,
    TranslationParseError,
    TransportError,
)
from shop_translator.logging_config import chunk_progress
from shop_translator.models import CmsPage, EntityType, Language, TranslationBatch, TranslationUnit
from shop_translator.prompt_builder import PromptBuilder
from shop_translator.response_recovery import parse_batch_response
from shop_translator.snippet_files import read_snippet_file, write_snippet_file
from shop_translator.stores import LanguageDirectory, PromptOverrideStore, SourceStore, TargetStore
from shop_translator.translation_client import TranslationClient
from shop_translator.translation_validator import check_key_coverage, find_placeholder_mismatches

logger = logging.getLogger(__name__)

FALLBACK_LOCALE = 'en-GB'
NOTHING_TO_TRANSLATE = {'success': True, 'message': 'No translatable content found'}

# Errors that fail one chunk (or one language) without stopping the others.
ISOLATED_ERRORS = (TransportError, ProviderError, TranslationParseError)


def count_tokens(text: str, model_name: str) -> int:
    """Count the number of tokens in ``text``.

    Claude models have no ``tiktoken`` encoding of their own, so the
    ``cl100k_base`` encoding is used as an estimate. If no encoding can be
    loaded (e.g. no network access to fetch it) a whitespace split is used.
    """
    try:
        encoding = tiktoken.encoding_for_model(model_name)
    except Exception:
        try:
            encoding = tiktoken.get_encoding("cl100k_base")
        except Exception:
            return len(text.split())

    try:
        return len(encoding.encode(text))
    except Exception:
        return len(text.split())


def build_chunks(
        units: List[TranslationUnit],
        chunk_size: int,
        max_tokens: Optional[int] = None,
        model_name: str = ''
) -> List[List[TranslationUnit]]:
    """
    Split units into ordered chunks of at most ``chunk_size`` units.

    When ``max_tokens`` is given a chunk is also closed before its estimated
    source token count would exceed it. A single oversized unit still gets a
    chunk of its own.
    """
    chunks: List[List[TranslationUnit]] = []
    current: List[TranslationUnit] = []
    current_tokens = 0
    for unit in units:
        unit_tokens = count_tokens(unit.source_text, model_name) if max_tokens else 0
        if current and (len(current) >= chunk_size or (max_tokens and current_tokens + unit_tokens > max_tokens)):
            chunks.append(current)
            current = []
            current_tokens = 0
        current.append(unit)
        current_tokens += unit_tokens
    if current:
        chunks.append(current)
    return chunks


def build_product_translation_payload(translated: Dict[str, str]) -> Dict[str, Any]:
    """Split ``customFields.<key>`` entries into a nested ``customFields`` mapping."""
    payload: Dict[str, Any] = {}
    custom_fields: Dict[str, str] = {}
    for field_key, value in translated.items():
        if field_key.startswith(CUSTOM_FIELD_PREFIX):
            custom_fields[field_key[len(CUSTOM_FIELD_PREFIX):]] = value
        else:
            payload[field_key] = value
    if custom_fields:
        payload['customFields'] = custom_fields
    return payload


def _set_path(container: Any, path: List[str], value: str) -> bool:
    """Set ``value`` at a dot path inside nested lists/dicts. Returns False if the path does not exist."""
    for index, part in enumerate(path):
        is_last = index == len(path) - 1
        if isinstance(container, list):
            if not part.isdigit() or int(part) >= len(container):
                return False
            if is_last:
                container[int(part)] = value
                return True
            container = container[int(part)]
        elif isinstance(container, dict):
            if part not in container:
                return False
            if is_last:
                container[part] = value
                return True
            container = container[part]
        else:
            return False
    return False


def build_cms_slot_updates(
        translated: Dict[str, str],
        slot_mapping: Dict[int, Dict[str, Any]]
) -> Tuple[Dict[str, Dict[str, Any]], List[str]]:
    """
    Map translated ``slot_<index>_<field>[.<path>]`` values back onto slot configs.

    Args:
        translated: Translated values keyed like the extractor keys them.
        slot_mapping: Slot index -> ``{'slot_id', 'config'}`` captured at extraction time.

    Returns:
        ``({slot_id: config}, applied_keys)`` where each config is a copy of the
        mapped config with only the translated values replaced, and
        ``applied_keys`` lists the field keys that found a place to go.
    """
    configs: Dict[str, Dict[str, Any]] = {}
    touched: List[str] = []
    applied: List[str] = []
    for field_key, value in translated.items():
        parsed = parse_slot_key(field_key)
        if parsed is None:
            continue
        slot_index, field_name, path = parsed
        slot = slot_mapping.get(slot_index)
        if slot is None or not isinstance(slot['config'].get(field_name), dict):
            logger.warning("No slot config found for translated key '%s'. Skipping.", field_key)
            continue

        slot_id = slot['slot_id']
        config = configs.setdefault(slot_id, copy.deepcopy(slot['config']))
        entry = config[field_name]
        if path is None:
            entry['value'] = value
        elif not _set_path(entry.get('value'), path.split('.'), value):
            logger.warning("Path '%s' not found in slot config for key '%s'. Skipping.", path, field_key)
            continue
        applied.append(field_key)
        if slot_id not in touched:
            touched.append(slot_id)
    return {slot_id: configs[slot_id] for slot_id in touched}, applied


class TranslationService:
    """
    Entry point for translating products, CMS pages, snippet sets and snippet files.

    All collaborators are passed in explicitly; nothing is read from global
    state. Calls are synchronous and chunks are processed strictly in order.
    """

    def __init__(
            self,
            config: AppConfig,
            client: TranslationClient,
            source_store: Optional[SourceStore] = None,
            target_store: Optional[TargetStore] = None,
            languages: Optional[LanguageDirectory] = None,
            prompt_overrides: Optional[PromptOverrideStore] = None,
            default_language_id: Optional[str] = None
    ):
        self.config = config
        self.client = client
        self.source_store = source_store
        self.target_store = target_store
        self.languages = languages
        self.prompt_builder = PromptBuilder(config, prompt_overrides)
        self.default_language_id = default_language_id

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _ensure_configured(self) -> None:
        if not self.config.api_key:
            raise ConfigurationError("Anthropic API key not configured. Please set ANTHROPIC_API_KEY.")

    def get_source_language_id(self) -> Optional[str]:
        """Language id of the configured source locale, else the default language id."""
        if self.languages is not None:
            language_id = self.languages.resolve_language_id_by_locale(self.config.source_language)
            if language_id:
                return language_id
        logger.warning("Source language '%s' not found. Falling back to the default language.",
                       self.config.source_language)
        return self.default_language_id

    def _get_language(self, language_id: str) -> Language:
        language = self.languages.resolve_language(language_id) if self.languages is not None else None
        if language is None:
            raise NotFoundError(f"Language not found: {language_id}")
        return language

    def _overwrite(self, overwrite_existing: Optional[bool]) -> bool:
        return self.config.overwrite_existing if overwrite_existing is None else overwrite_existing

    def _translate_batch(self, batch: TranslationBatch) -> Dict[str, str]:
        """One provider call plus response recovery. Keys that were not requested are dropped."""
        raw_response = self.client.translate_batch(batch.as_mapping(), batch.language_code, batch.system_prompt)
        try:
            translated = parse_batch_response(raw_response)
        except TranslationParseError as parse_exc:
            logger.debug("Raw response that could not be parsed:\n---\n%s\n---", parse_exc.raw_text)
            raise

        requested = set(batch.as_mapping())
        missing_keys, extra_keys = check_key_coverage(requested, set(translated))
        if extra_keys:
            logger.warning("Dropping %d key(s) not present in the request: %s", len(extra_keys), sorted(extra_keys))
        if missing_keys:
            logger.warning("Response is missing %d requested key(s): %s", len(missing_keys), sorted(missing_keys))
        return {key: value for key, value in translated.items() if key in requested}

    def _translate_in_chunks(
            self,
            texts: Dict[str, str],
            language_code: str,
            system_prompt: str,
            chunk_size: int,
            max_tokens: Optional[int] = None,
            should_continue: Optional[Callable[[], bool]] = None
    ) -> Tuple[Dict[str, str], Dict[str, str]]:
        """
        Translate ``texts`` chunk by chunk.

        Returns:
            ``(translated, errors)``: translated values and an error message per
            key that could not be translated. A failed chunk marks all of its
            keys as failed and processing continues with the next chunk.
        """
        units = [TranslationUnit(key, text) for key, text in texts.items()]
        chunks = build_chunks(units, chunk_size, max_tokens, self.config.model_name)
        translated: Dict[str, str] = {}
        errors: Dict[str, str] = {}

        progress = chunk_progress(chunks, len(chunks), language_code, self.config.show_progress)
        for index, chunk in enumerate(progress):
            if should_continue is not None and not should_continue():
                logger.warning("Translation cancelled before chunk %d/%d.", index + 1, len(chunks))
                for chunk_to_skip in chunks[index:]:
                    for unit in chunk_to_skip:
                        errors[unit.field_key] = 'Cancelled before dispatch'
                break
            if index > 0 and self.config.chunk_delay_seconds > 0:
                time.sleep(self.config.chunk_delay_seconds)

            logger.info("Translating chunk %d/%d (%d keys) to '%s'...", index + 1, len(chunks), len(chunk), language_code)
            batch = TranslationBatch(units=chunk, language_code=language_code, system_prompt=system_prompt)
            try:
                chunk_result = self._translate_batch(batch)
            except ISOLATED_ERRORS as chunk_exc:
                logger.error("Chunk %d/%d translation failed: %s", index + 1, len(chunks), chunk_exc)
                for unit in chunk:
                    errors[unit.field_key] = str(chunk_exc)
                continue

            translated.update(chunk_result)
            for unit in chunk:
                if unit.field_key not in chunk_result:
                    errors[unit.field_key] = 'Missing from translation response'
        progress.close()
        return translated, errors

    def _placeholder_warnings(self, texts: Dict[str, str], translated: Dict[str, str]) -> List[str]:
        mismatches = find_placeholder_mismatches(texts, translated)
        for key in mismatches:
            logger.warning("Placeholder or markup mismatch in translation for key '%s'.", key)
        return mismatches

    def _language_result(self, translated: Dict[str, str], texts: Dict[str, str], skipped: int = 0) -> Dict[str, Any]:
        result: Dict[str, Any] = {'success': True, 'fields': len(translated)}
        if skipped:
            result['skipped'] = skipped
        warnings = self._placeholder_warnings(texts, translated)
        if warnings:
            result['warnings'] = warnings
        return result

    def _write_fields(self, entity_type: str, entity_id: str, language_id: str, fields: Dict[str, Any]) -> None:
        if self.config.dry_run:
            logger.info("[Dry Run] Would write %d field(s) of %s '%s' for language '%s'.",
                        len(fields), entity_type, entity_id, language_id)
            return
        self.target_store.write_localized_fields(entity_type, entity_id, language_id, fields)

    @staticmethod
    def _untranslated(content: Dict[str, str], existing: Dict[str, str]) -> Dict[str, str]:
        """
        Keys that still need translation: the target value is missing or equal
        to the source text (the store fell back to the source language).
        """
        return {
            key: text for key, text in content.items()
            if not existing.get(key) or existing[key].strip() == text.strip()
        }

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def translate_product(
            self,
            product_id: str,
            target_language_ids: List[str],
            overwrite_existing: Optional[bool] = None
    ) -> Dict[str, Any]:
        """
        Translate a product into every target language.

        Returns:
            ``{locale_code: {'success': True, 'fields': n}}`` or
            ``{locale_code: {'success': False, 'error': message}}`` per language,
            or the "nothing to translate" result.

        Raises:
            ConfigurationError: If no API key is configured.
            NotFoundError: If the product does not exist in the source language.
        """
        self._ensure_configured()
        source_language_id = self.get_source_language_id()
        logger.info("Starting product translation for '%s' (source language id '%s').", product_id, source_language_id)

        product = self.source_store.fetch_product(product_id, source_language_id)
        if product is None:
            raise NotFoundError(f"Product not found: {product_id}")

        content = extract_product_content(product)
        logger.info("Extracted %d field(s) from product '%s': %s", len(content), product_id, list(content))
        if not content:
            logger.warning("No translatable content found for product '%s'.", product_id)
            return dict(NOTHING_TO_TRANSLATE)

        overwrite = self._overwrite(overwrite_existing)
        results: Dict[str, Any] = {}
        for language_id in target_language_ids:
            result_key = language_id
            try:
                language = self._get_language(language_id)
                result_key = language.locale_code or FALLBACK_LOCALE
                texts = content
                if not overwrite:
                    target_product = self.source_store.fetch_product(product_id, language_id)
                    existing = extract_product_content(target_product) if target_product else {}
                    texts = self._untranslated(content, existing)
                if not texts:
                    logger.info("All fields of product '%s' already translated to '%s'. Skipping.", product_id, result_key)
                    results[result_key] = {'success': True, 'fields': 0, 'skipped': len(content)}
                    continue

                system_prompt = self.prompt_builder.build_system_prompt(language_id)
                batch = TranslationBatch(
                    units=[TranslationUnit(key, text) for key, text in texts.items()],
                    language_code=result_key,
                    system_prompt=system_prompt
                )
                translated = self._translate_batch(batch)
                self._write_fields(EntityType.PRODUCT.value, product_id, language_id,
                                   build_product_translation_payload(translated))
                logger.info("Saved %d translated field(s) of product '%s' for '%s'.", len(translated), product_id, result_key)
                results[result_key] = self._language_result(translated, texts, len(content) - len(texts))
            except ConfigurationError:
                raise
            except Exception as exc:
                logger.exception("Translation of product '%s' to '%s' failed", product_id, result_key)
                results[result_key] = {'success': False, 'error': str(exc)}
        return results

    # ------------------------------------------------------------------
    # CMS pages
    # ------------------------------------------------------------------

    @staticmethod
    def _target_slot_mapping(slot_mapping: Dict[int, Dict[str, Any]], target_page: Optional[CmsPage]) -> Dict[int, Dict[str, Any]]:
        """
        Use the target language config of each slot as the base for writing.

        Fields the target config does not have are taken from the source config,
        so a translated value always has an entry to land in.
        """
        if target_page is None:
            return slot_mapping
        target_configs = {slot.id: slot.config for _, slot in iter_slots(target_page) if slot.config}
        mapping: Dict[int, Dict[str, Any]] = {}
        for index, slot in slot_mapping.items():
            config = dict(target_configs.get(slot['slot_id'], {}))
            for field_name, entry in slot['config'].items():
                if not isinstance(config.get(field_name), dict):
                    config[field_name] = entry
            mapping[index] = {'slot_id': slot['slot_id'], 'config': config}
        return mapping

    def _save_cms_page_translation(
            self,
            page_id: str,
            language_id: str,
            translated: Dict[str, str],
            slot_mapping: Dict[int, Dict[str, Any]]
    ) -> Dict[str, str]:
        """Write the page name and slot configs; return the values that were written."""
        written: Dict[str, str] = {}
        if 'name' in translated:
            self._write_fields(EntityType.CMS_PAGE.value, page_id, language_id, {'name': translated['name']})
            written['name'] = translated['name']

        updates, applied = build_cms_slot_updates(translated, slot_mapping)
        for slot_id, config in updates.items():
            if self.config.dry_run:
                logger.info("[Dry Run] Would write config of slot '%s' for language '%s'.", slot_id, language_id)
                continue
            self.target_store.write_slot_config(slot_id, language_id, config)
        written.update((key, translated[key]) for key in applied)
        return written

    def translate_cms_page(
            self,
            page_id: str,
            target_language_ids: List[str],
            overwrite_existing: Optional[bool] = None
    ) -> Dict[str, Any]:
        """Translate the name and slot texts of a CMS page into every target language."""
        self._ensure_configured()
        source_language_id = self.get_source_language_id()

        page = self.source_store.fetch_cms_page(page_id, source_language_id)
        if page is None:
            raise NotFoundError(f"CMS page not found: {page_id}")

        content = extract_cms_page_content(page)
        if not content:
            logger.warning("No translatable content found for CMS page '%s'.", page_id)
            return dict(NOTHING_TO_TRANSLATE)

        # Captured once so slot indexes match the extracted keys.
        slot_mapping = build_slot_mapping(page)
        overwrite = self._overwrite(overwrite_existing)

        results: Dict[str, Any] = {}
        for language_id in target_language_ids:
            result_key = language_id
            try:
                language = self._get_language(language_id)
                result_key = language.locale_code or FALLBACK_LOCALE
                texts = content
                language_slot_mapping = slot_mapping
                if not overwrite:
                    target_page = self.source_store.fetch_cms_page(page_id, language_id)
                    existing = extract_cms_page_content(target_page) if target_page else {}
                    texts = self._untranslated(content, existing)
                    language_slot_mapping = self._target_slot_mapping(slot_mapping, target_page)
                if not texts:
                    logger.info("CMS page '%s' already translated to '%s'. Skipping.", page_id, result_key)
                    results[result_key] = {'success': True, 'fields': 0, 'skipped': len(content)}
                    continue

                system_prompt = self.prompt_builder.build_system_prompt(language_id)
                batch = TranslationBatch(
                    units=[TranslationUnit(key, text) for key, text in texts.items()],
                    language_code=result_key,
                    system_prompt=system_prompt
                )
                translated = self._translate_batch(batch)
                written = self._save_cms_page_translation(page_id, language_id, translated, language_slot_mapping)
                results[result_key] = self._language_result(written, texts, len(content) - len(texts))
            except ConfigurationError:
                raise
            except Exception as exc:
                logger.exception("Translation of CMS page '%s' to '%s' failed", page_id, result_key)
                results[result_key] = {'success': False, 'error': str(exc)}
        return results

    # ------------------------------------------------------------------
    # Snippets
    # ------------------------------------------------------------------

    def _snippet_system_prompt(self, iso: str) -> str:
        language_id = self.languages.resolve_language_id_by_locale(iso) if self.languages is not None else None
        return self.prompt_builder.build_system_prompt(language_id)

    def translate_snippet_set(
            self,
            source_set_id: str,
            target_set_id: str,
            snippet_ids: Optional[List[str]] = None,
            overwrite_existing: Optional[bool] = None,
            should_continue: Optional[Callable[[], bool]] = None
    ) -> Dict[str, Any]:
        """
        Translate the snippets of one set into another set, in chunks.

        Returns:
            ``{'success', 'total', 'translated', 'skipped', 'errors', 'details'}``
            where ``details`` holds one entry per snippet key.
        """
        self._ensure_configured()
        target_set = self.source_store.fetch_snippet_set(target_set_id)
        if target_set is None:
            raise NotFoundError(f"Target snippet set not found: {target_set_id}")

        target_iso = target_set.iso
        system_prompt = self._snippet_system_prompt(target_iso)

        source_snippets = self.source_store.fetch_snippets(source_set_id, snippet_ids)
        if not source_snippets:
            return {'success': True, 'message': 'No snippets found in source set'}

        texts = extract_key_value_content({snippet.translation_key: snippet.value for snippet in source_snippets})
        if not texts:
            return dict(NOTHING_TO_TRANSLATE)

        details: Dict[str, Dict[str, Any]] = {}
        to_translate = texts
        if not self._overwrite(overwrite_existing):
            existing = {
                snippet.translation_key for snippet in self.source_store.fetch_snippets(target_set_id)
                if snippet.value
            }
            to_translate = {key: text for key, text in texts.items() if key not in existing}
            for key in texts:
                if key in existing:
                    details[key] = {'success': True, 'skipped': True}

        translated, errors = self._translate_in_chunks(
            to_translate, target_iso, system_prompt, self.config.snippet_chunk_size,
            should_continue=should_continue
        )
        warnings = self._placeholder_warnings(to_translate, translated)

        for key, message in errors.items():
            details[key] = {'success': False, 'error': message}

        success_count = 0
        for key, value in translated.items():
            if self.config.dry_run:
                logger.info("[Dry Run] Would save snippet '%s' to set '%s'.", key, target_set_id)
                details[key] = {'success': True}
                success_count += 1
                continue
            try:
                self.target_store.upsert_snippet(key, target_set_id, value)
                details[key] = {'success': True}
                success_count += 1
            except Exception as exc:
                logger.exception("Saving snippet '%s' failed", key)
                details[key] = {'success': False, 'error': str(exc)}

        summary = {
            'success': True,
            'total': len(texts),
            'translated': success_count,
            'skipped': len(texts) - len(to_translate),
            'errors': sum(1 for detail in details.values() if not detail['success']),
            'details': details,
        }
        if warnings:
            summary['warnings'] = warnings
        logger.info("Snippet set translation finished: %d translated, %d skipped, %d errors (total %d).",
                    summary['translated'], summary['skipped'], summary['errors'], summary['total'])
        return summary

    def translate_single_snippet(self, snippet_id: str, target_set_id: str) -> Dict[str, Any]:
        """Translate one snippet with the single-text prompt and store it in the target set."""
        self._ensure_configured()
        snippet = self.source_store.fetch_snippet(snippet_id)
        if snippet is None:
            raise NotFoundError(f"Snippet not found: {snippet_id}")
        if not snippet.value:
            return {'success': True, 'message': 'Snippet has no value'}

        target_set = self.source_store.fetch_snippet_set(target_set_id)
        if target_set is None:
            raise NotFoundError(f"Target snippet set not found: {target_set_id}")

        system_prompt = self._snippet_system_prompt(target_set.iso)
        try:
            translated = self.client.translate_one(snippet.value, target_set.iso, system_prompt)
        except ISOLATED_ERRORS as exc:
            logger.error("Translation of snippet '%s' failed: %s", snippet.translation_key, exc)
            return {'success': False, 'translationKey': snippet.translation_key, 'error': str(exc)}

        if self.config.dry_run:
            logger.info("[Dry Run] Would save snippet '%s' to set '%s'.", snippet.translation_key, target_set_id)
        else:
            self.target_store.upsert_snippet(snippet.translation_key, target_set_id, translated)
        return {'success': True, 'translationKey': snippet.translation_key, 'targetIso': target_set.iso}

    # ------------------------------------------------------------------
    # Snippet files
    # ------------------------------------------------------------------

    def translate_snippet_file(
            self,
            source_path: str,
            target_path: str,
            target_locale: str,
            overwrite_existing: Optional[bool] = None,
            should_continue: Optional[Callable[[], bool]] = None
    ) -> Dict[str, Any]:
        """
        Translate a snippet JSON file into the file of another locale.

        Existing target values are kept key by key unless overwriting is
        enabled, so a partially translated file can be topped up.
        """
        self._ensure_configured()
        texts = extract_key_value_content(read_snippet_file(source_path))
        if not texts:
            return dict(NOTHING_TO_TRANSLATE)

        try:
            target_content = read_snippet_file(target_path)
        except NotFoundError:
            target_content = {}

        if self._overwrite(overwrite_existing):
            to_translate = texts
        else:
            to_translate = {
                key: text for key, text in texts.items()
                if not (isinstance(target_content.get(key), str) and target_content[key].strip())
            }

        details: Dict[str, Dict[str, Any]] = {
            key: {'success': True, 'skipped': True} for key in texts if key not in to_translate
        }
        if not to_translate:
            logger.info("'%s' is already fully translated to '%s'.", target_path, target_locale)
            return {'success': True, 'total': len(texts), 'translated': 0, 'skipped': len(texts),
                    'errors': 0, 'details': details}

        translated, errors = self._translate_in_chunks(
            to_translate, target_locale, self._snippet_system_prompt(target_locale),
            self.config.file_chunk_size, self.config.max_chunk_tokens, should_continue
        )
        warnings = self._placeholder_warnings(to_translate, translated)
        for key in translated:
            details[key] = {'success': True}
        for key, message in errors.items():
            details[key] = {'success': False, 'error': message}

        if translated:
            target_content.update(translated)
            if self.config.dry_run:
                logger.info("[Dry Run] Would write %d translation(s) to '%s'.", len(translated), target_path)
            else:
                write_snippet_file(target_path, target_content)
                logger.info("Wrote %d translation(s) to '%s'.", len(translated), target_path)

        summary = {
            'success': True,
            'total': len(texts),
            'translated': len(translated),
            'skipped': len(texts) - len(to_translate),
            'errors': len(errors),
            'details': details,
        }
        if warnings:
            summary['warnings'] = warnings
        return summary

    # ------------------------------------------------------------------
    # Entry point and metadata
    # ------------------------------------------------------------------

    def translate_entity(
            self,
            entity_type: EntityType,
            entity_id: str,
            target_language_ids: Optional[List[str]] = None,
            target_set_id: Optional[str] = None,
            snippet_ids: Optional[List[str]] = None,
            should_continue: Optional[Callable[[], bool]] = None
    ) -> Dict[str, Any]:
        """
        Synchronous entry point used by the job runner.

        ``entity_id`` is the product or page id, or the source snippet set id
        for ``EntityType.SNIPPET_SET``.
        """
        entity_type = EntityType(entity_type)
        if entity_type is EntityType.PRODUCT:
            return self.translate_product(entity_id, target_language_ids or [])
        if entity_type is EntityType.CMS_PAGE:
            return self.translate_cms_page(entity_id, target_language_ids or [])
        if not target_set_id:
            raise ValueError("target_set_id is required for snippet set translation")
        return self.translate_snippet_set(entity_id, target_set_id, snippet_ids, should_continue=should_continue)

    def get_available_models(self) -> List[Dict[str, Any]]:
        return self.client.list_models()

    def get_available_languages(self) -> List[Dict[str, Any]]:
        """All languages except the source language."""
        return [
            {'id': language.id, 'name': language.name, 'locale': language.locale_code}
            for language in self.languages.list_languages()
            if language.locale_code != self.config.source_language
        ]
