#!/usr/bin/env python

from unittest import TestCase, main

from phonochunk.tests.stubs import LEXICON, VOCABULARY, capture_logs, no_g2p
from phonochunk.text.resolver import PhonemeResolver
from phonochunk.text.segmentation import (
    PunktSentenceSegmenter,
    compute_capacity,
    merge_short_sentences,
    plan_segments,
    reassemble_fragments,
    split_by_punctuation,
    split_into_sentences,
    tag_punctuation,
)


class CapacityTest(TestCase):
    def test_capacity(self):
        self.assertEqual(compute_capacity(510), 496)
        self.assertEqual(compute_capacity(510, has_language_token=True), 495)
        self.assertEqual(compute_capacity(48, safety_margin=0), 46)

    def test_capacity_is_at_least_one(self):
        self.assertEqual(compute_capacity(1), 1)
        self.assertEqual(compute_capacity(14, has_language_token=True), 1)


class SentenceSplittingTest(TestCase):
    def test_punkt(self):
        segmenter = PunktSentenceSegmenter()
        self.assertEqual(
            segmenter("Hello, world! This is a test. Is it?"),
            ["Hello, world!", "This is a test.", "Is it?"],
        )

    def test_cjk_full_stops(self):
        segmenter = PunktSentenceSegmenter()
        self.assertEqual(segmenter("你好。再见！好吗？"), ["你好。", "再见！", "好吗？"])

    def test_falls_back_to_whole_text(self):
        self.assertEqual(split_into_sentences("no sentences", lambda text: []), ["no sentences"])
        self.assertEqual(
            split_into_sentences("blank", lambda text: ["  ", ""]), ["blank"]
        )

    def test_strips_sentences(self):
        self.assertEqual(
            split_into_sentences("a. b.", lambda text: [" a. ", "b. "]), ["a.", "b."]
        )


class PunctuationSplittingTest(TestCase):
    def test_tag_punctuation(self):
        self.assertEqual(tag_punctuation("Hi, you... ok"), [(2, 3), (7, 10)])

    def test_split_keeps_marks_with_preceding_fragment(self):
        self.assertEqual(
            split_by_punctuation("Well, I think so; but then: maybe not"),
            ["Well,", "I think so;", "but then:", "maybe not"],
        )

    def test_sentence_final_punctuation_does_not_split(self):
        self.assertEqual(split_by_punctuation("Stop! Go."), ["Stop! Go."])

    def test_trailing_break(self):
        self.assertEqual(split_by_punctuation("one, two,"), ["one,", "two,"])

    def test_custom_tagger(self):
        self.assertEqual(
            split_by_punctuation("a,b", lambda text: [(1, 2)]), ["a,", "b"]
        )

    def test_empty(self):
        self.assertEqual(split_by_punctuation(""), [])


class MergeAndReassembleTest(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.resolver = PhonemeResolver(lexicon=LEXICON, allowed=VOCABULARY, g2p=no_g2p)

    def test_short_sentences_merge(self):
        # Hello.(5) + This is a test.(14) = 19 <= 20, one more Hello. would be 24
        self.assertEqual(
            merge_short_sentences(
                ["Hello.", "This is a test.", "Hello."], self.resolver, 100, 20
            ),
            ["Hello. This is a test.", "Hello."],
        )

    def test_long_sentence_stands_alone(self):
        self.assertEqual(
            merge_short_sentences(
                ["Hello.", "This is a test.", "Hello."], self.resolver, 100, 10
            ),
            ["Hello.", "This is a test.", "Hello."],
        )

    def test_capacity_bounds_the_merge_threshold(self):
        self.assertEqual(
            merge_short_sentences(["Hello.", "Hello."], self.resolver, 9, 40),
            ["Hello.", "Hello."],
        )
        self.assertEqual(
            merge_short_sentences(["Hello.", "Hello."], self.resolver, 10, 40),
            ["Hello. Hello."],
        )

    def test_reassemble(self):
        self.assertEqual(
            reassemble_fragments(
                ["Hello,", "world,", "this is a test."], self.resolver, 15
            ),
            ["Hello, world,", "this is a test."],
        )

    def test_reassemble_aborts_on_oversized_fragment(self):
        self.assertEqual(
            reassemble_fragments(
                ["Hello,", "world,", "this is a test."], self.resolver, 12
            ),
            [],
        )
        self.assertEqual(
            reassemble_fragments(["this is a test.", "Hello."], self.resolver, 12), []
        )


class PlanSegmentsTest(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.resolver = PhonemeResolver(lexicon=LEXICON, allowed=VOCABULARY, g2p=no_g2p)

    def test_empty(self):
        self.assertEqual(plan_segments("  \n ", self.resolver, 100, 40), [])

    def test_sentences_and_newlines(self):
        self.assertEqual(
            plan_segments(
                "Hello, world!\nThis is a test of the chunking system.",
                self.resolver,
                34,
                40,
            ),
            ["Hello, world!", "This is a test of the chunking system."],
        )

    def test_long_sentence_split_at_clause_punctuation(self):
        # each clause fits in 15 tokens, the whole sentence does not
        self.assertEqual(
            plan_segments(
                "Hello, world, this is a test.", self.resolver, 15, 40
            ),
            ["Hello, world,", "this is a test."],
        )

    def test_unsplittable_segment_is_deferred(self):
        text = "This is a test of the chunking system."
        with capture_logs() as output:
            segments = plan_segments(text, self.resolver, 10, 40)
        self.assertEqual(segments, [text])
        self.assertTrue(
            any("no punctuation-based split fits within capacity" in m for m in output)
        )

    def test_custom_segmenter(self):
        self.assertEqual(
            plan_segments(
                "Hello | world",
                self.resolver,
                4,
                1,
                segmenter=lambda text: text.split("|"),
            ),
            ["Hello", "world"],
        )


if __name__ == "__main__":
    main()
