"""
Extraction of translatable text from store entities.

Every extractor returns a flat ``{field_key: source_text}`` mapping and has no
side effects. The field keys are chosen so that the orchestrator can write the
translated values back to the exact place they came from.
"""
import re
import unicodedata
from typing import Any, Callable, Dict, List, Optional, Tuple

from shop_translator.models import CmsPage, CmsSlot, Product, Snippet

CUSTOM_FIELD_PREFIX = 'customFields.'

# (field key, accessor) pairs of the simple product text fields.
PRODUCT_FIELDS: List[Tuple[str, Callable[[Product], Optional[str]]]] = [
    ('name', lambda product: product.name),
    ('description', lambda product: product.description),
    ('metaTitle', lambda product: product.meta_title),
    ('metaDescription', lambda product: product.meta_description),
    ('keywords', lambda product: product.keywords),
    ('packUnit', lambda product: product.pack_unit),
    ('packUnitPlural', lambda product: product.pack_unit_plural),
]

# Custom field keys with these suffixes hold IDs, dates, numbers or flags.
NON_TEXT_SUFFIXES = ('_id', '_date', '_number', '_bool', '_at', '_count')

# Slot config keys that carry visible text.
SLOT_TEXT_FIELDS = (
    'content', 'title', 'headline', 'text', 'label', 'altText', 'linkText',
    'buttonText', 'placeholder', 'faqItems', 'items',
)

MEDIA_EXTENSIONS = re.compile(r'\.(jpg|jpeg|png|gif|svg|webp|mp4|pdf)$', re.IGNORECASE)
_NUMERIC = re.compile(r'^[+-]?[\d\s.,\'%]+$')
SLOT_KEY_PATTERN = re.compile(r'^slot_(\d+)_([^.]+)(?:\.(.+))?$')


def is_media_url(value: str) -> bool:
    """Check whether a value points to a media file rather than holding text."""
    stripped = value.strip()
    return (
        stripped.startswith(('http://', 'https://', '/media/'))
        or MEDIA_EXTENSIONS.search(stripped) is not None
    )


def _contains_letter(value: str) -> bool:
    return any(unicodedata.category(char).startswith('L') for char in value)


def is_translatable_text(value: Any) -> bool:
    """
    Decide whether a value is human readable text worth translating.

    Rejects non-strings, blank strings, purely numeric strings, strings without
    a single Unicode letter and media URLs or paths.
    """
    if not isinstance(value, str):
        return False
    stripped = value.strip()
    if not stripped:
        return False
    if _NUMERIC.match(stripped):
        return False
    if not _contains_letter(stripped):
        return False
    return not is_media_url(stripped)


def is_translatable_custom_field(key: str) -> bool:
    return not key.lower().endswith(NON_TEXT_SUFFIXES)


def extract_product_content(product: Product) -> Dict[str, str]:
    """
    Extract the simple text fields and the textual custom fields of a product.

    Custom fields are keyed ``customFields.<key>``.
    """
    content: Dict[str, str] = {}
    for key, accessor in PRODUCT_FIELDS:
        value = accessor(product)
        if is_translatable_text(value):
            content[key] = value

    for key, value in (product.custom_fields or {}).items():
        if isinstance(value, str) and value and is_translatable_custom_field(key) and is_translatable_text(value):
            content[CUSTOM_FIELD_PREFIX + key] = value
    return content


def iter_slots(page: CmsPage):
    """Yield ``(index, slot)`` over section -> block -> slot, counting across the whole page."""
    index = 0
    for section in page.sections or []:
        for block in section.blocks or []:
            for slot in block.slots or []:
                yield index, slot
                index += 1


def _flatten_nested(value: Any, prefix: str) -> Dict[str, str]:
    """Flatten lists/dicts of strings into dot-joined paths below ``prefix``."""
    flat: Dict[str, str] = {}
    if isinstance(value, dict):
        items = value.items()
    elif isinstance(value, list):
        items = enumerate(value)
    else:
        if is_translatable_text(value):
            flat[prefix] = value
        return flat
    for key, child in items:
        flat.update(_flatten_nested(child, f"{prefix}.{key}"))
    return flat


def extract_slot_content(slot: CmsSlot, index: int) -> Dict[str, str]:
    content: Dict[str, str] = {}
    config = slot.config or {}
    for field_name in SLOT_TEXT_FIELDS:
        entry = config.get(field_name)
        if not isinstance(entry, dict) or 'value' not in entry:
            continue
        value = entry['value']
        key = f"slot_{index}_{field_name}"
        if isinstance(value, str):
            if is_translatable_text(value):
                content[key] = value
        elif isinstance(value, (dict, list)):
            content.update(_flatten_nested(value, key))
    return content


def extract_cms_page_content(page: CmsPage) -> Dict[str, str]:
    """Extract the page name and the text of every slot config."""
    content: Dict[str, str] = {}
    if is_translatable_text(page.name):
        content['name'] = page.name
    for index, slot in iter_slots(page):
        content.update(extract_slot_content(slot, index))
    return content


def build_slot_mapping(page: CmsPage) -> Dict[int, Dict[str, Any]]:
    """
    Map slot index -> ``{'slot_id', 'config'}`` using the same traversal
    order as ``extract_cms_page_content``.
    """
    return {
        index: {'slot_id': slot.id, 'config': slot.config or {}}
        for index, slot in iter_slots(page)
    }


def parse_slot_key(field_key: str) -> Optional[Tuple[int, str, Optional[str]]]:
    """
    Split ``slot_<index>_<field>[.<path>]`` into its parts.

    Returns None for keys that do not address a slot.
    """
    match = SLOT_KEY_PATTERN.match(field_key)
    if not match:
        return None
    return int(match.group(1)), match.group(2), match.group(3)


def extract_snippet_content(snippet: Snippet) -> Dict[str, str]:
    if not isinstance(snippet.value, str) or not snippet.value:
        return {}
    return {'value': snippet.value}


def extract_key_value_content(entries: Dict[str, Any]) -> Dict[str, str]:
    """Keep the non-empty string values of a flat key/value mapping."""
    return {key: value for key, value in entries.items() if isinstance(value, str) and value.strip()}


def extract_content(entity: Any) -> Dict[str, str]:
    """Dispatch to the extractor matching the type of ``entity``."""
    if isinstance(entity, Product):
        return extract_product_content(entity)
    if isinstance(entity, CmsPage):
        return extract_cms_page_content(entity)
    if isinstance(entity, Snippet):
        return extract_snippet_content(entity)
    if isinstance(entity, dict):
        return extract_key_value_content(entity)
    raise TypeError(f"Unsupported entity type: {type(entity).__name__}")
