#!/usr/bin/env python

from unittest import TestCase, main

from phonochunk.exceptions import G2PError
from phonochunk.tests.stubs import LEXICON, VOCABULARY, FakeG2P, capture_logs, no_g2p
from phonochunk.text.resolver import PhonemeResolver, spell_out_number


class SequenceG2P(FakeG2P):
    """Answers each call with the next item of `answers`"""

    def __init__(self, answers):
        super().__init__()
        self.answers = list(answers)

    def __call__(self, word, voice_id):
        self.calls.append((word, voice_id))
        return self.answers.pop(0) if self.answers else None


class ResolverCascadeTest(TestCase):
    """The order in which pronunciation sources are consulted"""

    def make_resolver(self, **kwargs) -> PhonemeResolver:
        kwargs.setdefault("lexicon", LEXICON)
        kwargs.setdefault("allowed", VOCABULARY)
        kwargs.setdefault("g2p", no_g2p)
        return PhonemeResolver(**kwargs)

    def test_lexicon(self):
        resolver = self.make_resolver()
        self.assertEqual(resolver.resolve("Hello"), ["h", "ə", "l", "o"])
        self.assertEqual(resolver.resolve("TEST"), ["t", "ɛ", "s", "t"])

    def test_case_sensitive_surface_form_first(self):
        resolver = self.make_resolver(
            lexicon={"us": ["ʌ", "s"]},
            case_sensitive_lexicon={"US": ["j", "u", "ɛ", "s"]},
        )
        self.assertEqual(resolver.resolve("US"), ["j", "u", "ɛ", "s"])
        self.assertEqual(resolver.resolve("us"), ["ʌ", "s"])
        self.assertEqual(resolver.resolve("Us"), ["ʌ", "s"])

    def test_case_sensitive_normalized_form(self):
        resolver = self.make_resolver(
            lexicon={"don't": ["d", "ɑ", "n", "t"]},
            case_sensitive_lexicon={"don't": ["d", "o", "n", "t"]},
        )
        self.assertEqual(resolver.resolve("Don't"), ["d", "o", "n", "t"])

    def test_g2p_after_lexicons(self):
        g2p = FakeG2P({"zyx": ["z", "aɪ", "k", "s"]})
        resolver = self.make_resolver(g2p=g2p)
        self.assertEqual(resolver.resolve("Zyx"), ["z", "a", "k", "s"])
        self.assertEqual(g2p.calls, [("zyx", "en-us")])

    def test_lexicon_hit_skips_g2p(self):
        g2p = FakeG2P({"hello": ["x"]})
        resolver = self.make_resolver(g2p=g2p)
        resolver.resolve("hello")
        self.assertEqual(g2p.calls, [])

    def test_default_voice(self):
        g2p = FakeG2P({"salut": ["s", "a", "l", "y"]})
        resolver = self.make_resolver(g2p=g2p, default_voice="fr-fr")
        self.assertEqual(resolver.resolve("salut"), ["s", "a", "l", "y"])
        self.assertEqual(g2p.calls, [("salut", "fr-fr")])

    def test_cjk_word_retried_with_original_spelling(self):
        g2p = SequenceG2P([None, ["t", "o", "ŋ", "1", "ʧ", "i", "ŋ", "1"]])
        resolver = self.make_resolver(g2p=g2p)
        self.assertEqual(resolver.resolve("東京"), ["t", "o", "ŋ", "ʧ", "i", "ŋ"])
        self.assertEqual(g2p.calls, [("東京", "cmn"), ("東京", "cmn")])

    def test_non_cjk_word_is_not_retried(self):
        g2p = FakeG2P()
        resolver = self.make_resolver(g2p=g2p)
        self.assertIsNone(resolver.resolve("qwzx"))
        self.assertEqual(g2p.calls, [("qwzx", "en-us")])

    def test_number_spelled_out(self):
        resolver = self.make_resolver()
        self.assertEqual(
            resolver.resolve("123"),
            ["w", "ʌ", "n", " "]
            + ["h", "ʌ", "n", "d", "r", "ə", "d", " "]
            + ["t", "w", "ɛ", "n", "t", "i", " "]
            + ["θ", "r", "i"],
        )

    def test_number_component_from_g2p(self):
        g2p = FakeG2P({"seven": ["s", "ɛ", "v", "ə", "n"]})
        resolver = self.make_resolver(g2p=g2p)
        self.assertEqual(resolver.resolve("7"), ["s", "ɛ", "v", "ə", "n"])
        self.assertIn(("seven", "en-us"), g2p.calls)

    def test_number_with_unresolvable_component(self):
        resolver = self.make_resolver(lexicon={"one": ["w", "ʌ", "n"]})
        self.assertIsNone(resolver.resolve("21"))

    def test_letter(self):
        resolver = self.make_resolver(lexicon={})
        self.assertEqual(resolver.resolve("B"), ["b", "i"])
        self.assertEqual(resolver.resolve("x"), ["ɛ", "k", "s"])

    def test_nothing_resolves(self):
        resolver = self.make_resolver()
        self.assertIsNone(resolver.resolve("xyzzy"))
        self.assertIsNone(resolver.resolve("😀"))

    def test_output_is_filtered_by_vocabulary(self):
        resolver = self.make_resolver(lexicon={"hm": ["h", "ʘ", "m"]})
        self.assertEqual(resolver.resolve("hm"), ["h", "m"])

    def test_fully_filtered_entry_falls_through(self):
        g2p = FakeG2P({"hm": ["h", "m"]})
        resolver = self.make_resolver(lexicon={"hm": ["ʘ", "ǃ"]}, g2p=g2p)
        self.assertEqual(resolver.resolve("hm"), ["h", "m"])

    def test_memoized_per_resolver(self):
        g2p = FakeG2P({"zyx": ["z", "ɪ", "k", "s"]})
        resolver = self.make_resolver(g2p=g2p)
        first = resolver.resolve("zyx")
        first.append("mutated")
        self.assertEqual(resolver.resolve("zyx"), ["z", "ɪ", "k", "s"])
        self.assertEqual(len(g2p.calls), 1)


class ResolverG2PErrorsTest(TestCase):
    """What happens when a g2p engine fails"""

    def test_engine_failure_is_a_miss(self):
        g2p = FakeG2P(failing=["b"])
        resolver = PhonemeResolver(allowed=VOCABULARY, g2p=g2p)
        with capture_logs() as output:
            self.assertEqual(resolver.resolve("b"), ["b", "i"])
        self.assertTrue(any("failed on 'b'" in message for message in output))

    def test_engine_failure_propagates(self):
        g2p = FakeG2P(failing=["b"])
        resolver = PhonemeResolver(
            allowed=VOCABULARY, g2p=g2p, propagate_g2p_errors=True
        )
        with self.assertRaises(G2PError) as context:
            resolver.resolve("b")
        self.assertIsInstance(context.exception.__cause__, RuntimeError)

    def test_unavailable_voice_warns_once(self):
        g2p = FakeG2P(voices=())
        resolver = PhonemeResolver(allowed=VOCABULARY, g2p=g2p)
        with capture_logs() as output:
            self.assertIsNone(resolver.resolve("qwzx"))
            self.assertIsNone(resolver.resolve("zxqw"))
        warnings = [m for m in output if "No g2p engine available for voice en-us" in m]
        self.assertEqual(len(warnings), 1)

    def test_unavailable_voice_does_not_propagate(self):
        g2p = FakeG2P(voices=())
        resolver = PhonemeResolver(
            allowed=VOCABULARY, g2p=g2p, propagate_g2p_errors=True
        )
        self.assertIsNone(resolver.resolve("qwzx"))


class SegmentCostTest(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.resolver = PhonemeResolver(lexicon=LEXICON, allowed=VOCABULARY, g2p=no_g2p)

    def test_cost_counts_separators_and_punctuation(self):
        # hello(4) ,(1) world(4) !(1), no separator after punctuation
        self.assertEqual(self.resolver.segment_cost("Hello, world!"), 10)
        # this(3) _ is(2) _ a(1) _ test(4) .(1)
        self.assertEqual(self.resolver.segment_cost("This is a test."), 14)

    def test_unresolved_words_and_unknown_punctuation_cost_nothing(self):
        self.assertEqual(self.resolver.segment_cost("hello xyzzy ~ world"), 9)

    def test_stops_counting_past_capacity(self):
        self.assertEqual(self.resolver.segment_cost("hello world this", capacity=3), 4)

    def test_empty(self):
        self.assertEqual(self.resolver.segment_cost(""), 0)


class SpellOutNumberTest(TestCase):
    def test_spell_out(self):
        self.assertEqual(spell_out_number("7"), ["seven"])
        self.assertEqual(spell_out_number("0"), ["zero"])
        self.assertEqual(spell_out_number("21"), ["twenty", "one"])
        self.assertEqual(spell_out_number("1000"), ["one", "thousand"])

    def test_not_a_number(self):
        self.assertIsNone(spell_out_number(""))
        self.assertIsNone(spell_out_number("1.5"))
        self.assertIsNone(spell_out_number("9" * 30))


if __name__ == "__main__":
    main()
