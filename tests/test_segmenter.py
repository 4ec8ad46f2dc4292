"""
SentenceSegmenter: terminator-triggered flush, cleaning, bullet rendering.
"""
import unittest

from core.segmenter import SentenceSegmenter, clean_sentence


class TestCleanSentence(unittest.TestCase):
    def test_collapse_and_capitalize(self):
        self.assertEqual(clean_sentence("  hello    world  "), "Hello world")

    def test_space_before_punctuation(self):
        self.assertEqual(clean_sentence("well , that is it ."), "Well, that is it.")

    def test_newlines_collapsed(self):
        self.assertEqual(clean_sentence("a\n\tb"), "A b")

    def test_blank(self):
        self.assertEqual(clean_sentence("   "), "")
        self.assertEqual(clean_sentence(""), "")
        self.assertEqual(clean_sentence(None), "")

    def test_non_letter_first_char(self):
        self.assertEqual(clean_sentence(" 42 apples."), "42 apples.")


class TestSentenceSegmenter(unittest.TestCase):
    def test_terminator_flushes(self):
        seg = SentenceSegmenter()
        self.assertFalse(seg.feed("Hello"))
        self.assertEqual(seg.bullets, [])
        self.assertTrue(seg.feed(" world."))
        self.assertEqual(seg.bullets, ["• Hello world."])
        self.assertEqual(seg.current_sentence, "")

    def test_flush_without_terminator(self):
        seg = SentenceSegmenter()
        seg.feed("Hi")
        seg.feed(" there")
        seg.flush()
        self.assertEqual(seg.bullets, ["• Hi there"])

    def test_terminator_anywhere_in_fragment(self):
        seg = SentenceSegmenter()
        seg.feed(" okay")
        seg.feed("? so")
        self.assertEqual(seg.bullets, ["• Okay? so"])

    def test_question_and_exclamation(self):
        seg = SentenceSegmenter()
        for fragment in (" what", "?", " wow", "!"):
            seg.feed(fragment)
        self.assertEqual(seg.render(), "• What?\n• Wow!")

    def test_whitespace_only_sentence_not_added(self):
        seg = SentenceSegmenter()
        seg.feed("   ")
        self.assertIsNone(seg.flush())
        self.assertEqual(seg.bullets, [])
        self.assertEqual(seg.current_sentence, "")

    def test_flush_empty_is_noop(self):
        seg = SentenceSegmenter()
        self.assertIsNone(seg.flush())
        self.assertEqual(seg.render(), "")

    def test_bullets_snapshot_is_copy(self):
        seg = SentenceSegmenter()
        seg.feed("One.")
        snapshot = seg.bullets
        snapshot.append("• injected")
        self.assertEqual(seg.bullets, ["• One."])

    def test_reset(self):
        seg = SentenceSegmenter()
        seg.feed("One.")
        seg.feed(" two")
        seg.reset()
        self.assertEqual(seg.bullets, [])
        self.assertEqual(seg.current_sentence, "")


if __name__ == "__main__":
    unittest.main()
