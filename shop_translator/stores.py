"""
Interfaces of the collaborators the translation pipeline reads from and
writes to. The store itself (database, shop API, ...) lives outside this
package; tests use mocks.
"""
from typing import Any, Dict, List, Optional, Protocol

from shop_translator.models import CmsPage, Language, Product, Snippet, SnippetSet, TranslationJob


class SourceStore(Protocol):
    """Read access pinned to an explicit language, independent of the caller's locale."""

    def fetch_product(self, product_id: str, language_id: str) -> Optional[Product]:
        ...

    def fetch_cms_page(self, page_id: str, language_id: str) -> Optional[CmsPage]:
        ...

    def fetch_snippet(self, snippet_id: str) -> Optional[Snippet]:
        ...

    def fetch_snippets(self, set_id: str, snippet_ids: Optional[List[str]] = None) -> List[Snippet]:
        ...

    def fetch_snippet_set(self, set_id: str) -> Optional[SnippetSet]:
        ...


class TargetStore(Protocol):
    """Language scoped writes of translated content."""

    def write_localized_fields(self, entity_type: str, entity_id: str, language_id: str,
                               fields: Dict[str, Any]) -> None:
        ...

    def write_slot_config(self, slot_id: str, language_id: str, config: Dict[str, Any]) -> None:
        ...

    def upsert_snippet(self, translation_key: str, set_id: str, value: str) -> None:
        ...


class LanguageDirectory(Protocol):

    def resolve_language(self, language_id: str) -> Optional[Language]:
        ...

    def resolve_language_id_by_locale(self, locale_code: str) -> Optional[str]:
        ...

    def list_languages(self) -> List[Language]:
        ...


class PromptOverrideStore(Protocol):

    def get_prompt_override(self, language_id: str) -> Optional[str]:
        ...


class JobStore(Protocol):

    def update_job(self, job_id: str, **fields: Any) -> None:
        ...

    def get_jobs(self, job_ids: List[str]) -> List[TranslationJob]:
        ...
