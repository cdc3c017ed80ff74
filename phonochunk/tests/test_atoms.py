#!/usr/bin/env python

from unittest import TestCase, main

from phonochunk.text.atoms import (
    Atom,
    AtomKind,
    append_segment,
    join_atoms,
    normalize_word,
    tokenize_atoms,
)


class AtomTokenizerTest(TestCase):
    """Splitting text into word and punctuation atoms"""

    def test_words_and_punctuation_in_order(self):
        self.assertEqual(
            tokenize_atoms("Hello, world!"),
            [
                Atom("Hello", AtomKind.word),
                Atom(",", AtomKind.punctuation),
                Atom("world", AtomKind.word),
                Atom("!", AtomKind.punctuation),
            ],
        )

    def test_whitespace_is_not_an_atom(self):
        atoms = tokenize_atoms("  one \t two\n\nthree  ")
        self.assertEqual([a.text for a in atoms], ["one", "two", "three"])
        self.assertTrue(all(a.is_word for a in atoms))

    def test_apostrophes_are_canonical(self):
        for spelling in ("it’s", "itʼs", "it's", "it‛s"):
            with self.subTest(spelling=spelling):
                self.assertEqual([a.text for a in tokenize_atoms(spelling)], ["it's"])

    def test_digits_and_letters_form_one_word(self):
        self.assertEqual([a.text for a in tokenize_atoms("mp3 2024")], ["mp3", "2024"])

    def test_emoji_are_word_characters(self):
        atoms = tokenize_atoms("hi 😀 there")
        self.assertEqual([a.text for a in atoms], ["hi", "😀", "there"])
        self.assertTrue(atoms[1].is_word)

    def test_each_punctuation_character_is_an_atom(self):
        atoms = tokenize_atoms("wait...")
        self.assertEqual([a.text for a in atoms], ["wait", ".", ".", "."])
        self.assertEqual([a.kind for a in atoms[1:]], [AtomKind.punctuation] * 3)

    def test_non_latin_scripts(self):
        self.assertEqual([a.text for a in tokenize_atoms("東京、大阪")], ["東京", "、", "大阪"])

    def test_combining_marks_stay_in_their_word(self):
        atoms = tokenize_atoms("cafe\u0301 au lait")
        self.assertEqual([a.text for a in atoms], ["cafe\u0301", "au", "lait"])
        self.assertTrue(all(a.is_word for a in atoms))

    def test_devanagari_word_is_one_atom(self):
        atoms = tokenize_atoms("हिन्दी है।")
        self.assertEqual([a.text for a in atoms], ["हिन्दी", "है", "।"])
        self.assertEqual(
            [a.kind for a in atoms],
            [AtomKind.word, AtomKind.word, AtomKind.punctuation],
        )

    def test_emoji_sequences_are_one_word(self):
        family = "👨\u200d👩\u200d👧"
        heart = "❤\ufe0f"
        atoms = tokenize_atoms(f"{family} {heart}")
        self.assertEqual([a.text for a in atoms], [family, heart])
        self.assertTrue(all(a.is_word for a in atoms))

    def test_empty(self):
        self.assertEqual(tokenize_atoms(""), [])
        self.assertEqual(tokenize_atoms("   "), [])


class NormalizeWordTest(TestCase):
    def test_lower_case(self):
        self.assertEqual(normalize_word("HeLLo"), "hello")

    def test_keeps_apostrophe_and_digits(self):
        self.assertEqual(normalize_word("Rock'n'Roll"), "rock'n'roll")
        self.assertEqual(normalize_word("B52"), "b52")

    def test_drops_other_characters(self):
        self.assertEqual(normalize_word("😀"), "")
        self.assertEqual(normalize_word("x²"), "x")

    def test_keeps_combining_marks(self):
        self.assertEqual(normalize_word("Cafe\u0301"), "cafe\u0301")
        self.assertEqual(normalize_word("हिन्दी"), "हिन्दी")


class JoinAtomsTest(TestCase):
    def test_no_space_before_closing_punctuation(self):
        self.assertEqual(
            join_atoms(["Hello", ",", "world", "!", "Is", "it", "?"]),
            "Hello, world! Is it?",
        )

    def test_space_before_opening_punctuation(self):
        self.assertEqual(join_atoms(["say", "(", "it", ")"]), "say ( it)")

    def test_append_segment(self):
        self.assertEqual(append_segment("First sentence.", "Second."), "First sentence. Second.")
        self.assertEqual(append_segment("First,", ""), "First,")
        self.assertEqual(append_segment("Wait", "..."), "Wait...")


if __name__ == "__main__":
    main()
