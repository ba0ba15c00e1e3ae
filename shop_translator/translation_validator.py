from typing import Dict, List, Set, Tuple
import re
from collections import Counter

# Template placeholders and markup that must survive translation unchanged:
# {{ var }}, {% tag %}, %placeholder%, {0}/{name} and HTML tags.
PLACEHOLDER_PATTERN = re.compile(
    r'(\{\{.*?\}\}|\{%.*?%\}|%[A-Za-z0-9_.\-]+%|\{[^{}]+\}|</?[A-Za-z][^<>]*>)',
    re.DOTALL
)


def check_key_coverage(base_keys: Set[str], target_keys: Set[str]) -> Tuple[Set[str], Set[str]]:
    """
    Compares the keys of a translation result against the requested keys.

    Args:
        base_keys: The keys that were sent for translation.
        target_keys: The keys that came back.

    Returns:
        A tuple containing two sets:
        - missing_keys: Keys requested but absent from the result.
        - extra_keys: Keys in the result that were never requested.
    """
    missing_keys = base_keys - target_keys
    extra_keys = target_keys - base_keys
    return missing_keys, extra_keys


def _normalize_placeholder(token: str) -> str:
    # Whitespace inside template tags is not significant ({{var}} == {{ var }}).
    return re.sub(r'\s+', '', token)


def check_placeholder_parity(base_string: str, target_string: str) -> bool:
    """
    Checks that a translation keeps every placeholder and markup tag of its
    source, the same number of times. Reordering is allowed.

    Args:
        base_string: The source text.
        target_string: The translated text.

    Returns:
        True if both strings carry the same multiset of placeholders, False otherwise.
    """
    base_placeholders = Counter(_normalize_placeholder(p) for p in PLACEHOLDER_PATTERN.findall(base_string))
    target_placeholders = Counter(_normalize_placeholder(p) for p in PLACEHOLDER_PATTERN.findall(target_string))
    return base_placeholders == target_placeholders


def find_placeholder_mismatches(source_texts: Dict[str, str], translations: Dict[str, str]) -> List[str]:
    """Return the keys whose translation lost or gained placeholders, in source order."""
    return [
        key for key, source_text in source_texts.items()
        if key in translations and not check_placeholder_parity(source_text, translations[key])
    ]
