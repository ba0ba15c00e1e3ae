"""Prompt construction for single-text and batch translation requests."""
import json
import logging
from typing import Dict, Optional

from shop_translator.app_config import AppConfig
from shop_translator.stores import PromptOverrideStore

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a professional translator for e-commerce content. Translate precisely and keep "
    "the tone and style of the original. Return only the translation, without explanations."
)

# ISO 639-1 code -> English language name.
LANGUAGE_NAMES: Dict[str, str] = {
    'ar': 'Arabic',
    'bg': 'Bulgarian',
    'bs': 'Bosnian',
    'cs': 'Czech',
    'da': 'Danish',
    'de': 'German',
    'el': 'Greek',
    'en': 'English',
    'es': 'Spanish',
    'et': 'Estonian',
    'fi': 'Finnish',
    'fr': 'French',
    'he': 'Hebrew',
    'hr': 'Croatian',
    'hu': 'Hungarian',
    'it': 'Italian',
    'ja': 'Japanese',
    'ko': 'Korean',
    'lt': 'Lithuanian',
    'lv': 'Latvian',
    'nb': 'Norwegian',
    'nl': 'Dutch',
    'no': 'Norwegian',
    'pl': 'Polish',
    'pt': 'Portuguese',
    'ro': 'Romanian',
    'ru': 'Russian',
    'sk': 'Slovak',
    'sl': 'Slovenian',
    'sr': 'Serbian',
    'sv': 'Swedish',
    'tr': 'Turkish',
    'uk': 'Ukrainian',
    'zh': 'Chinese',
}

# Languages whose pluralization needs three pipe-separated forms instead of two.
THREE_PLURAL_FORMS = {'bs', 'cs', 'hr', 'lt', 'lv', 'pl', 'ro', 'ru', 'sk', 'sr', 'uk'}


def _primary_subtag(language_code: str) -> str:
    return language_code.replace('_', '-').split('-')[0].lower()


def language_name(language_code: str) -> str:
    """Return the English name for a locale code such as ``fr-FR``, or the code itself if unknown."""
    return LANGUAGE_NAMES.get(_primary_subtag(language_code), language_code)


def plural_form_count(language_code: str) -> int:
    return 3 if _primary_subtag(language_code) in THREE_PLURAL_FORMS else 2


def encode_json_payload(texts: Dict[str, str]) -> str:
    """Pretty JSON with Unicode kept as is (json.dumps never escapes forward slashes)."""
    return json.dumps(texts, ensure_ascii=False, indent=4)


def _formatting_rules(language_code: str) -> str:
    forms = plural_form_count(language_code)
    if forms == 3:
        plural_rule = ("Pluralization forms separated by a pipe (e.g. `one | other`) must be rewritten with "
                       "exactly 3 forms for this language (`one | few | many`).")
    else:
        plural_rule = ("Pluralization forms separated by a pipe (e.g. `one | other`) must keep exactly 2 forms "
                       "(`one | other`) for this language.")
    return f"""- **Preserve markup**: Keep HTML tags and their attributes exactly as they are. Only translate the human-readable text between the tags.
- **Preserve template syntax**: Placeholders such as `{{{{ variable }}}}`, `{{% tag %}}` and `%placeholder%` must stay unchanged.
- **Pluralization**: {plural_rule}"""


def build_batch_user_prompt(texts: Dict[str, str], language_code: str, source_language: str) -> str:
    """
    Build the user prompt for a batch of ``{field_key: text}`` pairs.

    The model is asked to return the same JSON object with translated values.
    """
    target_name = language_name(language_code)
    source_name = language_name(source_language)
    json_input = encode_json_payload(texts)

    return f"""Translate the values of the following JSON object from {source_name} ({source_language}) to {target_name} ({language_code}).

**Instructions**:
- **Keys stay unchanged**: Do not translate, rename, add or remove keys. Only translate the values.
- **Valid JSON only**: Return ONLY the translated JSON object, no additional text, comments or explanations.
- **Escape double quotes**: A double quote inside a value must be written as `\\"`.
- **Escape control characters**: Line breaks and tabs inside a value must be written as `\\n` and `\\t`.
{_formatting_rules(language_code)}

```json
{json_input}
```"""


def build_single_user_prompt(text: str, language_code: str, source_language: str) -> str:
    """Build the user prompt for a single text."""
    target_name = language_name(language_code)
    source_name = language_name(source_language)

    return f"""Translate the following text from {source_name} ({source_language}) to {target_name} ({language_code}).

**Instructions**:
- Return ONLY the translated text, no explanations or additional content.
{_formatting_rules(language_code)}

Text to translate:
{text}"""


class PromptBuilder:
    """Resolves the system prompt for a target language."""

    def __init__(self, config: AppConfig, prompt_overrides: Optional[PromptOverrideStore] = None):
        self.config = config
        self.prompt_overrides = prompt_overrides

    def default_system_prompt(self) -> str:
        if self.config.global_system_prompt and self.config.global_system_prompt.strip():
            return self.config.global_system_prompt
        return DEFAULT_SYSTEM_PROMPT

    def build_system_prompt(self, language_id: Optional[str]) -> str:
        """
        Return the language specific override if one is configured, else the
        global default prompt.
        """
        if language_id and self.prompt_overrides is not None:
            override = self.prompt_overrides.get_prompt_override(language_id)
            if override and override.strip():
                logger.debug("Using custom system prompt for language '%s'.", language_id)
                return override
        return self.default_system_prompt()
