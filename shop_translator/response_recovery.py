"""
Recovery of structured translations from raw model output.

Models are asked to answer with a JSON object mapping field keys to translated
text, but the answer regularly arrives wrapped in markdown fences, surrounded
by prose, with raw newlines or unescaped quotes inside values. The functions
below try increasingly forgiving tiers until one of them yields key/value
pairs:

1. strict parse of the fence-stripped text
2. sanitized parse (first balanced object, control characters, trailing commas)
3. quote-repair parse (unescaped ``"`` inside values)
4. lenient ``"key": "value"`` extraction

Only when the last tier finds nothing is ``TranslationParseError`` raised.
"""
import json
import logging
import re
from typing import Any, Dict, List

import jsonschema

from shop_translator.errors import TranslationParseError
from shop_translator.json_scanner import (
    escape_control_characters,
    extract_first_object,
    iter_object_candidates,
    repair_unescaped_quotes,
    strip_trailing_commas,
)

logger = logging.getLogger(__name__)

# The model must answer with a JSON object; anything else falls through to the next tier.
BATCH_RESPONSE_SCHEMA = {"type": "object"}

_FENCE_START = re.compile(r'^```[a-zA-Z]*\s*')
_FENCE_END = re.compile(r'\s*```$')
_TRIPLE_QUOTES = ('"""', "'''")
_KEY_VALUE_PAIR = re.compile(r'"((?:[^"\\]|\\.)*)"\s*:\s*"((?:[^"\\]|\\.)*)"', re.DOTALL)

_TIER_ERRORS = (ValueError, jsonschema.ValidationError)


def strip_code_fences(text: str) -> str:
    """Strip surrounding whitespace, markdown code fences and triple-quote wrappers."""
    text = text.strip()
    text = _FENCE_START.sub('', text)
    text = _FENCE_END.sub('', text)
    text = text.strip()
    for wrapper in _TRIPLE_QUOTES:
        if text.startswith(wrapper) and text.endswith(wrapper) and len(text) >= 2 * len(wrapper):
            text = text[len(wrapper):-len(wrapper)].strip()
    return text


def _coerce_value(value: Any):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def parse_json_object(text: str) -> Dict[str, str]:
    """
    Strictly parse ``text`` as a JSON object and coerce scalar values to strings.

    Null values and nested containers are skipped. Raises ``ValueError`` (or a
    schema validation error) when the text is not a JSON object or yields no
    usable pairs.
    """
    parsed = json.loads(text)
    jsonschema.validate(instance=parsed, schema=BATCH_RESPONSE_SCHEMA)

    result: Dict[str, str] = {}
    for key, value in parsed.items():
        if not isinstance(key, str):
            continue
        coerced = _coerce_value(value)
        if coerced is not None:
            result[key] = coerced
    if not result:
        raise ValueError("JSON object contains no string values")
    return result


def _clean_object_text(text: str) -> str:
    return strip_trailing_commas(escape_control_characters(text))


def sanitize_json_text(text: str) -> str:
    """Apply the tier 2 clean-up steps to ``text``."""
    return _clean_object_text(extract_first_object(text.lstrip('\ufeff')))


def sanitized_candidates(text: str) -> List[str]:
    """Apply the tier 2 clean-up steps to every top-level object of ``text``."""
    text = text.lstrip('\ufeff')
    blocks = list(iter_object_candidates(text)) or [text]
    return [_clean_object_text(block) for block in blocks]


def _decode_token(token: str) -> str:
    try:
        return json.loads(f'"{token}"')
    except ValueError:
        return re.sub(r'\\(.)', r'\1', token, flags=re.DOTALL)


def extract_key_value_pairs(text: str) -> Dict[str, str]:
    """
    Collect every ``"key": "value"`` pair found in ``text``, regardless of
    whether the text as a whole is valid JSON.
    """
    pairs: Dict[str, str] = {}
    for match in _KEY_VALUE_PAIR.finditer(text):
        pairs[_decode_token(match.group(1))] = _decode_token(match.group(2))
    return pairs


def parse_batch_response(raw_text: str) -> Dict[str, str]:
    """
    Turn a raw model response into a mapping of field key to translated text.

    Args:
        raw_text: The text returned by the provider.

    Returns:
        The recovered key/value pairs. Never empty.

    Raises:
        TranslationParseError: If none of the recovery tiers found a pair.
    """
    stripped = strip_code_fences(raw_text)
    try:
        return parse_json_object(stripped)
    except _TIER_ERRORS as strict_exc:
        logger.debug("Strict JSON parse failed: %s", strict_exc)

    # Prose around the answer may carry braces of its own, so every top-level object is tried.
    candidates = sanitized_candidates(stripped)
    for sanitized in candidates:
        try:
            result = parse_json_object(sanitized)
            logger.info("Recovered translation response after sanitizing.")
            return result
        except _TIER_ERRORS as sanitized_exc:
            logger.debug("Sanitized JSON parse failed: %s", sanitized_exc)

    repaired_candidates = [repair_unescaped_quotes(sanitized) for sanitized in candidates]
    for repaired in repaired_candidates:
        try:
            result = parse_json_object(repaired)
            logger.info("Recovered translation response after repairing unescaped quotes.")
            return result
        except _TIER_ERRORS as repaired_exc:
            logger.debug("Quote-repaired JSON parse failed: %s", repaired_exc)

    sanitized, repaired = candidates[0], repaired_candidates[0]
    # Quote repair can swallow the rest of the text when a value is followed by garbage.
    pairs = (
        extract_key_value_pairs(repaired)
        or extract_key_value_pairs(sanitized)
        or extract_key_value_pairs(stripped)
    )
    if pairs:
        logger.warning("Recovered %d key/value pair(s) with lenient extraction.", len(pairs))
        return pairs

    error = TranslationParseError(
        "Failed to parse translation response: no key/value pairs could be recovered",
        raw_text=raw_text,
        sanitized_text=sanitized,
        repaired_text=repaired,
    )
    logger.error(
        "Unparseable translation response (%d chars). Head: %r Tail: %r",
        len(raw_text), error.head, error.tail
    )
    logger.debug("Sanitized response:\n---\n%s\n---\nRepaired response:\n---\n%s\n---", sanitized, repaired)
    raise error
