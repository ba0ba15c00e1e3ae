"""
Snippet translation files: discovery on disk, reading, writing and the
conversion between nested JSON and flat dot-notation keys.

``unflatten(flatten(tree)) == tree`` holds for every tree whose own keys
contain no dot. A key such as ``"a.b"`` cannot be told apart from the path
``a -> b`` once flattened.
"""
import json
import os
import re
from typing import Any, Dict, List, Optional

from shop_translator.errors import NotFoundError
from shop_translator.models import SnippetFile

SNIPPET_LANGUAGE_PATTERN = re.compile(r'\.([a-z]{2}-[A-Z]{2})\.json$')


def flatten(tree: Dict[str, Any], prefix: str = '') -> Dict[str, Any]:
    """
    Flatten a nested mapping to ``{"a.b.c": leaf}``.

    Empty nested mappings are kept as ``{}`` leaves so that they survive a
    round trip through ``unflatten``.

    Args:
        tree: Nested mapping of scalars.
        prefix: Path of ``tree`` inside the outer structure.

    Returns:
        Flat mapping in depth-first key order.
    """
    result: Dict[str, Any] = {}
    for key, value in tree.items():
        new_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            result.update(flatten(value, new_key))
        else:
            result[new_key] = value
    return result


def unflatten(flat: Dict[str, Any]) -> Dict[str, Any]:
    """Rebuild the nested mapping from dot-notation keys."""
    result: Dict[str, Any] = {}
    for key, value in flat.items():
        parts = key.split('.')
        current = result
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        if value == {}:
            # An empty group never replaces a group that already has entries.
            current.setdefault(parts[-1], {})
        else:
            current[parts[-1]] = value
    return result


def count_snippets(data: Any) -> int:
    """Count leaf values recursively."""
    if isinstance(data, dict):
        return sum(count_snippets(value) for value in data.values())
    if isinstance(data, list):
        return sum(count_snippets(value) for value in data)
    return 1


def language_from_filename(filename: str) -> Optional[str]:
    """Extract the locale from a name like ``storefront.de-DE.json``."""
    match = SNIPPET_LANGUAGE_PATTERN.search(filename)
    return match.group(1) if match else None


def target_file_path(source_path: str, target_locale: str) -> str:
    """``.../storefront.de-DE.json`` -> ``.../storefront.fr-FR.json``."""
    directory, filename = os.path.split(source_path)
    target_name = SNIPPET_LANGUAGE_PATTERN.sub(f'.{target_locale}.json', filename)
    if target_name == filename:
        base, ext = os.path.splitext(filename)
        target_name = f"{base}.{target_locale}{ext}"
    return os.path.join(directory, target_name)


def package_name_to_readable(package: str) -> str:
    """``swag/swag-analytics`` -> ``SwagAnalytics``."""
    name = package.split('/')[-1]
    return ''.join(part.capitalize() for part in re.split(r'[-_]', name) if part)


def extract_source(path: str) -> str:
    """Name of the plugin, app or package a snippet file belongs to."""
    normalized = path.replace(os.sep, '/')
    match = re.search(r'/(?:vendor|custom)/(?:apps|plugins)/([^/]+)', normalized)
    if match:
        return match.group(1)
    match = re.search(r'/vendor/([^/]+)/([^/]+)/', normalized)
    if match:
        return package_name_to_readable(f"{match.group(1)}/{match.group(2)}")
    return 'Unknown'


def find_snippet_files(root: str) -> List[Dict[str, Any]]:
    """
    Find every ``*.json`` file below a ``snippet`` directory under ``root``.

    Returns:
        A list of ``{'name': source, 'files': [SnippetFile, ...]}`` groups, files
        sorted by language.
    """
    groups: Dict[str, Dict[str, Any]] = {}
    for dirpath, _, filenames in os.walk(root):
        if 'snippet' not in dirpath.replace(os.sep, '/').split('/'):
            continue
        for filename in sorted(filenames):
            if not filename.endswith('.json'):
                continue
            full_path = os.path.join(dirpath, filename)
            try:
                with open(full_path, 'r', encoding='utf-8') as f:
                    content = json.load(f)
            except (OSError, ValueError):
                continue
            source = extract_source(full_path)
            groups.setdefault(source, {'name': source, 'files': []})
            groups[source]['files'].append(SnippetFile(
                path=os.path.relpath(full_path, root),
                full_path=full_path,
                filename=filename,
                language=language_from_filename(filename) or 'unknown',
                snippet_count=count_snippets(content),
                size=os.path.getsize(full_path),
                source=source,
            ))
    for group in groups.values():
        group['files'].sort(key=lambda snippet_file: snippet_file.language)
    return list(groups.values())


def find_by_language(root: str, iso: str) -> List[Dict[str, Any]]:
    """Same as ``find_snippet_files`` restricted to one locale."""
    filtered = []
    for group in find_snippet_files(root):
        matching = [snippet_file for snippet_file in group['files'] if snippet_file.language == iso]
        if matching:
            filtered.append({'name': group['name'], 'files': matching})
    return filtered


def read_snippet_file(file_path: str) -> Dict[str, Any]:
    """
    Read a snippet JSON file and return its flattened content.

    Raises:
        NotFoundError: If the file does not exist.
        ValueError: If the file is not a JSON object.
    """
    if not os.path.exists(file_path):
        raise NotFoundError(f"Snippet file not found: {file_path}")
    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            content = json.load(f)
        except json.JSONDecodeError as json_exc:
            raise ValueError(f"Invalid JSON in file: {file_path} - {json_exc}") from json_exc
    if not isinstance(content, dict):
        raise ValueError(f"Snippet file must contain a JSON object: {file_path}")
    return flatten(content)


def write_snippet_file(file_path: str, snippets: Dict[str, Any]) -> None:
    """Unflatten ``snippets`` and write them as pretty, unescaped UTF-8 JSON."""
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(unflatten(snippets), f, ensure_ascii=False, indent=4)
        f.write('\n')
