import json
import unittest

from shop_translator.json_scanner import (
    OUTSIDE,
    QUOTE,
    STRING,
    JsonScanState,
    escape_control_characters,
    extract_first_object,
    iter_object_candidates,
    next_significant_char,
    repair_unescaped_quotes,
    strip_trailing_commas,
    tokenize
)


class TestJsonScanState(unittest.TestCase):

    def test_escaped_quote_stays_inside_string(self):
        kinds = [kind for _, _, kind in tokenize('"a\\"b"')]
        self.assertEqual(kinds, [QUOTE, STRING, STRING, STRING, STRING, QUOTE])

    def test_structural_characters_are_outside(self):
        kinds = [kind for _, _, kind in tokenize('{ }')]
        self.assertEqual(kinds, [OUTSIDE, OUTSIDE, OUTSIDE])

    def test_reopen_continues_string(self):
        state = JsonScanState()
        state.classify('"')
        self.assertEqual(state.classify('"'), QUOTE)
        state.reopen()
        self.assertTrue(state.in_string)
        self.assertEqual(state.classify('x'), STRING)


class TestExtractFirstObject(unittest.TestCase):

    def test_discards_surrounding_prose(self):
        text = 'Here is the translation:\n{"name": "Chemise"}\nLet me know if you need more.'
        self.assertEqual(extract_first_object(text), '{"name": "Chemise"}')

    def test_ignores_braces_inside_strings(self):
        text = '{"a": "value with } brace", "b": "{{ var }}"} trailing'
        self.assertEqual(extract_first_object(text), '{"a": "value with } brace", "b": "{{ var }}"}')

    def test_nested_object(self):
        self.assertEqual(extract_first_object('x {"a": {"b": "c"}} y'), '{"a": {"b": "c"}}')

    def test_unbalanced_returns_remainder(self):
        self.assertEqual(extract_first_object('prefix {"a": "b"'), '{"a": "b"')

    def test_without_brace_returns_input(self):
        self.assertEqual(extract_first_object('no object here'), 'no object here')


class TestIterObjectCandidates(unittest.TestCase):

    def test_yields_each_top_level_block(self):
        text = 'Kept {{ name }} as is:\n{"a": "Hi {{ name }}", "b": {"c": "d"}} done'
        self.assertEqual(list(iter_object_candidates(text)), [
            '{{ name }}',
            '{"a": "Hi {{ name }}", "b": {"c": "d"}}',
        ])

    def test_resumes_after_unclosed_brace(self):
        self.assertEqual(list(iter_object_candidates('oops { then {"a": "b"}')), [
            '{ then {"a": "b"}',
            '{"a": "b"}',
        ])

    def test_no_brace(self):
        self.assertEqual(list(iter_object_candidates('plain text')), [])


class TestEscapeControlCharacters(unittest.TestCase):

    def test_escapes_newline_and_tab_inside_strings(self):
        text = '{"a": "line one\nline two\tend"}'
        escaped = escape_control_characters(text)
        self.assertEqual(escaped, '{"a": "line one\\nline two\\tend"}')
        self.assertEqual(json.loads(escaped)['a'], 'line one\nline two\tend')

    def test_keeps_whitespace_outside_strings(self):
        text = '{\n\t"a": "b"\n}'
        self.assertEqual(escape_control_characters(text), text)

    def test_other_control_characters(self):
        self.assertEqual(escape_control_characters('{"a": "x\x01y"}'), '{"a": "x\\u0001y"}')
        self.assertEqual(escape_control_characters('{\x00"a": "b"}'), '{"a": "b"}')

    def test_control_character_after_backslash(self):
        escaped = escape_control_characters('{"a": "one\\\ntwo"}')
        self.assertEqual(escaped, '{"a": "one\\ntwo"}')
        self.assertEqual(json.loads(escaped)['a'], 'one\ntwo')

    def test_control_character_after_escaped_backslash(self):
        escaped = escape_control_characters('{"a": "x\\\\\ny"}')
        self.assertEqual(json.loads(escaped)['a'], 'x\\\ny')


class TestStripTrailingCommas(unittest.TestCase):

    def test_removes_comma_before_closing_brace(self):
        self.assertEqual(strip_trailing_commas('{"a": "b",\n}'), '{"a": "b"\n}')

    def test_removes_comma_before_closing_bracket(self):
        self.assertEqual(strip_trailing_commas('{"a": ["b", ]}'), '{"a": ["b" ]}')

    def test_keeps_commas_inside_strings(self):
        text = '{"a": "b, }"}'
        self.assertEqual(strip_trailing_commas(text), text)


class TestRepairUnescapedQuotes(unittest.TestCase):

    def test_escapes_inner_quotes_of_value(self):
        repaired = repair_unescaped_quotes('{"name": "Das "beste" Hemd"}')
        self.assertEqual(json.loads(repaired), {"name": 'Das "beste" Hemd'})

    def test_leaves_valid_json_unchanged(self):
        text = '{"a": "b", "c": "d \\"e\\""}'
        self.assertEqual(repair_unescaped_quotes(text), text)

    def test_keys_are_not_modified(self):
        text = '{"a": "x "quoted" y", "b": "z"}'
        self.assertEqual(json.loads(repair_unescaped_quotes(text)), {"a": 'x "quoted" y', "b": "z"})


class TestNextSignificantChar(unittest.TestCase):

    def test_skips_whitespace(self):
        self.assertEqual(next_significant_char('a  \n }', 1), '}')

    def test_end_of_text(self):
        self.assertIsNone(next_significant_char('abc   ', 3))


if __name__ == '__main__':
    unittest.main()
