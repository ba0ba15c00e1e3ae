"""Unit tests for recovering translations from raw model output."""
import json
import unittest

import jsonschema

from shop_translator.errors import TranslationParseError
from shop_translator.response_recovery import (
    extract_key_value_pairs,
    parse_batch_response,
    parse_json_object,
    sanitize_json_text,
    strip_code_fences
)

TRANSLATIONS = {
    "name": "Chemise rouge",
    "description": "Une belle chemise <strong>en coton</strong>",
    "customFields.care": "Lavable à 30 °C",
}


class TestStripCodeFences(unittest.TestCase):

    def test_json_fence(self):
        self.assertEqual(strip_code_fences('```json\n{"a": "b"}\n```'), '{"a": "b"}')

    def test_plain_fence(self):
        self.assertEqual(strip_code_fences('```\n{"a": "b"}\n```'), '{"a": "b"}')

    def test_triple_quotes(self):
        self.assertEqual(strip_code_fences('"""{"a": "b"}"""'), '{"a": "b"}')

    def test_no_fence(self):
        self.assertEqual(strip_code_fences('  {"a": "b"}  '), '{"a": "b"}')


class TestParseJsonObject(unittest.TestCase):

    def test_scalars_are_coerced(self):
        result = parse_json_object('{"a": "x", "b": 3, "c": true, "d": null, "e": {"f": "g"}}')
        self.assertEqual(result, {"a": "x", "b": "3", "c": "true"})

    def test_empty_object_is_rejected(self):
        with self.assertRaises(ValueError):
            parse_json_object('{}')

    def test_non_object_is_rejected(self):
        with self.assertRaises(jsonschema.ValidationError):
            parse_json_object('["a", "b"]')


class TestParseBatchResponse(unittest.TestCase):

    def test_round_trip_plain(self):
        self.assertEqual(parse_batch_response(json.dumps(TRANSLATIONS, ensure_ascii=False)), TRANSLATIONS)

    def test_round_trip_fenced(self):
        raw = "```json\n" + json.dumps(TRANSLATIONS, ensure_ascii=False, indent=4) + "\n```"
        self.assertEqual(parse_batch_response(raw), TRANSLATIONS)

    def test_round_trip_with_prose(self):
        raw = ("Sure! Here is the translation you asked for:\n\n"
               + json.dumps(TRANSLATIONS, ensure_ascii=False)
               + "\n\nLet me know if you need anything else.")
        self.assertEqual(parse_batch_response(raw), TRANSLATIONS)

    def test_round_trip_ascii_escaped(self):
        self.assertEqual(parse_batch_response(json.dumps(TRANSLATIONS)), TRANSLATIONS)

    def test_unescaped_quote_inside_value(self):
        raw = '{"name": "Das "beste" Hemd", "description": "Weich"}'
        self.assertEqual(parse_batch_response(raw), {"name": 'Das "beste" Hemd', "description": "Weich"})

    def test_literal_newlines_and_tabs(self):
        raw = '```json\n{"description": "Erste Zeile\nZweite Zeile\n\tEingerückt"}\n```'
        self.assertEqual(parse_batch_response(raw), {"description": "Erste Zeile\nZweite Zeile\n\tEingerückt"})

    def test_trailing_comma(self):
        raw = '{\n    "name": "Chemise",\n    "description": "Belle",\n}'
        self.assertEqual(parse_batch_response(raw), {"name": "Chemise", "description": "Belle"})

    def test_byte_order_mark(self):
        self.assertEqual(parse_batch_response('\ufeff{"name": "Chemise"}'), {"name": "Chemise"})

    def test_braces_in_prose_before_the_object(self):
        raw = 'I kept the {{ name }} placeholder unchanged:\n{"greeting": "Hello {{ name }}"}'
        self.assertEqual(parse_batch_response(raw), {"greeting": "Hello {{ name }}"})

    def test_lenient_extraction_outside_any_object(self):
        raw = 'Keep {{ name }} as is. "greeting": "Hallo {{ name }}"'
        self.assertEqual(parse_batch_response(raw), {"greeting": "Hallo {{ name }}"})

    def test_lenient_extraction_of_truncated_response(self):
        raw = 'Here you go: {"name": "Chemise rouge", "description": '
        self.assertEqual(parse_batch_response(raw), {"name": "Chemise rouge"})

    def test_lenient_extraction_ignores_garbage(self):
        raw = '{{{ \x00\x01 "name": "Chemise" ]]] \x02 :::'
        self.assertEqual(parse_batch_response(raw), {"name": "Chemise"})

    def test_unparseable_response_raises(self):
        with self.assertRaises(TranslationParseError) as ctx:
            parse_batch_response("I'm sorry, but I cannot translate this text.")
        self.assertEqual(ctx.exception.head, "I'm sorry, but I cannot translate this text.")

    def test_binary_garbage_raises(self):
        with self.assertRaises(TranslationParseError):
            parse_batch_response('\x00\x01\x02\x03 %%% ###')

    def test_empty_object_raises(self):
        with self.assertRaises(TranslationParseError):
            parse_batch_response('```json\n{}\n```')

    def test_parse_error_keeps_diagnostics(self):
        raw = "x" * 150 + "y" * 150
        with self.assertRaises(TranslationParseError) as ctx:
            parse_batch_response(raw)
        self.assertEqual(ctx.exception.raw_text, raw)
        self.assertEqual(ctx.exception.head, "x" * 100)
        self.assertEqual(ctx.exception.tail, "y" * 100)


class TestSanitizeAndExtract(unittest.TestCase):

    def test_sanitize_json_text(self):
        raw = 'Result:\n{"a": "line\nbreak",}\nDone.'
        self.assertEqual(json.loads(sanitize_json_text(raw)), {"a": "line\nbreak"})

    def test_extract_key_value_pairs_decodes_escapes(self):
        text = '"a": "say \\"hi\\"", "b": "caf\\u00e9"'
        self.assertEqual(extract_key_value_pairs(text), {"a": 'say "hi"', "b": "café"})


if __name__ == '__main__':
    unittest.main()
