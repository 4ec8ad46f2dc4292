"""
Vocabulary loading and the byte remap table.
No model or tokenizer files required.
"""
import json
import os
import tempfile
import unittest

from core.errors import InvalidTokenIndex, MalformedVocabulary
from core.vocabulary import (
    BYTE_REMAP_SIZE,
    Vocabulary,
    build_byte_remap_table,
    is_visible_byte,
    load_vocabulary_file,
)


class TestVocabularyLoad(unittest.TestCase):
    def test_dense_table(self):
        vocab = Vocabulary.load({"Hi": 0, "!": 1, "<eot>": 2})
        self.assertEqual(len(vocab), 3)
        self.assertEqual(vocab.lookup(0), "Hi")
        self.assertEqual(vocab.lookup(2), "<eot>")

    def test_gap_is_malformed(self):
        with self.assertRaises(MalformedVocabulary):
            Vocabulary.load({"a": 0, "b": 2})

    def test_negative_id_is_malformed(self):
        with self.assertRaises(MalformedVocabulary):
            Vocabulary.load({"a": -1, "b": 0})

    def test_duplicate_id_is_malformed(self):
        # Two keys, same id: one slot stays empty, one id repeats
        with self.assertRaises(MalformedVocabulary):
            Vocabulary.load({"a": 0, "b": 0})

    def test_non_integer_id_is_malformed(self):
        with self.assertRaises(MalformedVocabulary):
            Vocabulary.load({"a": "0"})

    def test_lookup_out_of_range(self):
        vocab = Vocabulary.load({"a": 0})
        self.assertTrue(vocab.contains(0))
        self.assertFalse(vocab.contains(1))
        self.assertFalse(vocab.contains(-1))
        with self.assertRaises(InvalidTokenIndex) as ctx:
            vocab.lookup(50257)
        self.assertEqual(ctx.exception.token_id, 50257)
        self.assertEqual(ctx.exception.vocab_size, 1)

    def test_empty_table(self):
        vocab = Vocabulary.load({})
        self.assertEqual(len(vocab), 0)


class TestVocabularyFile(unittest.TestCase):
    def test_load_json_file(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "vocab.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"Hello": 0, "Ġworld": 1}, f)
            vocab = load_vocabulary_file(path)
        self.assertEqual(vocab.lookup(1), "Ġworld")

    def test_missing_file(self):
        with self.assertRaises(MalformedVocabulary):
            load_vocabulary_file("/nonexistent/vocab.json")

    def test_list_json_is_malformed(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "vocab.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(["a", "b"], f)
            with self.assertRaises(MalformedVocabulary):
                load_vocabulary_file(path)


class TestByteRemapTable(unittest.TestCase):
    def test_size_and_determinism(self):
        table = build_byte_remap_table()
        self.assertEqual(len(table), BYTE_REMAP_SIZE)
        self.assertEqual(table, build_byte_remap_table())

    def test_surrogate_bytes_in_arrival_order(self):
        table = build_byte_remap_table()
        expected = list(range(0, 33)) + list(range(127, 161)) + [173]
        self.assertEqual(list(table[: len(expected)]), expected)
        self.assertEqual(len(expected), 68)
        self.assertTrue(all(v == 0 for v in table[len(expected):]))

    def test_visible_ranges(self):
        self.assertTrue(is_visible_byte(ord("!")))
        self.assertTrue(is_visible_byte(ord("~")))
        self.assertTrue(is_visible_byte(0xA1))
        self.assertTrue(is_visible_byte(0xFF))
        self.assertFalse(is_visible_byte(ord(" ")))
        self.assertFalse(is_visible_byte(0x7F))
        self.assertFalse(is_visible_byte(0xAD))


if __name__ == "__main__":
    unittest.main()
