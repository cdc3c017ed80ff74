"""Splitting normalized text into word and punctuation atoms.

Text is read as grapheme clusters, so combining marks and emoji sequences
stay with their base character. A word atom is a maximal run of clusters
based on letters, digits or apostrophes, or holding an emoji; whitespace ends
a word without producing an atom, and every other cluster becomes its own
punctuation atom.
"""

import unicodedata
from enum import Enum
from typing import NamedTuple

import grapheme
import regex

CANONICAL_APOSTROPHE = "'"
APOSTROPHE_CHARACTERS = frozenset(["'", "’", "ʼ", "‛", "‵", "′"])

# no space is inserted before these when joining atoms back into text
NO_PRESPACE_CHARACTERS = frozenset(
    [",", ";", ":", "!", "?", ".", "…", "—", "–", "'", '"', ")", "]", "}", "”", "’"]
)

_EMOJI_RE = regex.compile(r"[\p{Emoji_Presentation}\p{Extended_Pictographic}]")


class AtomKind(str, Enum):
    word = "word"
    punctuation = "punctuation"


class Atom(NamedTuple):
    text: str
    kind: AtomKind

    @property
    def is_word(self) -> bool:
        return self.kind is AtomKind.word


def is_word_character(character: str) -> bool:
    """
    >>> [is_word_character(c) for c in "a7’,😀 "]
    [True, True, True, False, True, False]
    """
    category = unicodedata.category(character)
    if category[0] in ("L", "N") or character in APOSTROPHE_CHARACTERS:
        return True
    return _EMOJI_RE.match(character) is not None


def is_word_cluster(cluster: str) -> bool:
    """A grapheme cluster belongs to a word if its base character is a word
    character or any of its code points is an emoji

    >>> [is_word_cluster(g) for g in ["e\\u0301", "👨\\u200d👩\\u200d👧", "❤\\ufe0f", ",", "\\u0301"]]
    [True, True, True, False, False]
    """
    return is_word_character(cluster[0]) or _EMOJI_RE.search(cluster) is not None


def tokenize_atoms(text: str) -> list[Atom]:
    """Split text into ordered word and punctuation atoms, one grapheme
    cluster at a time

    >>> [a.text for a in tokenize_atoms("It’s 5 o'clock, ok?")]
    ["It's", '5', "o'clock", ',', 'ok', '?']
    >>> [a.text for a in tokenize_atoms("हिन्दी है")]
    ['हिन्दी', 'है']
    """
    atoms: list[Atom] = []
    current_word: list[str] = []

    def flush_word():
        if current_word:
            atoms.append(Atom("".join(current_word), AtomKind.word))
            current_word.clear()

    for cluster in grapheme.graphemes(text):
        if cluster[0].isspace():
            flush_word()
        elif is_word_cluster(cluster):
            if cluster[0] in APOSTROPHE_CHARACTERS:
                current_word.append(CANONICAL_APOSTROPHE + cluster[1:])
            else:
                current_word.append(cluster)
        else:
            flush_word()
            atoms.append(Atom(cluster, AtomKind.punctuation))
    flush_word()
    return atoms


def normalize_word(word: str) -> str:
    """Lower-case a word and keep only its letters, combining marks, decimal
    digits and apostrophes

    >>> normalize_word("Don't!")
    "don't"
    >>> normalize_word("😀")
    ''
    >>> normalize_word("Cafe\\u0301") == "cafe\\u0301"
    True
    """
    return "".join(
        c
        for c in word.lower()
        if c == CANONICAL_APOSTROPHE
        or unicodedata.category(c)[0] in ("L", "M")
        or unicodedata.category(c) == "Nd"
    )


def append_segment(base: str, segment: str) -> str:
    """Join two pieces of text with a space, unless the second one starts
    with closing punctuation

    >>> append_segment("Hello", ", world")
    'Hello, world'
    >>> append_segment("Hello", "world")
    'Hello world'
    >>> append_segment("", "  world ")
    'world'
    """
    segment = segment.strip()
    if not segment:
        return base
    if not base:
        return segment
    if segment[0] in NO_PRESPACE_CHARACTERS:
        return base + segment
    return base + " " + segment


def join_atoms(atoms: list[str]) -> str:
    """Rebuild readable text from atom strings

    >>> join_atoms(["Hello", ",", "world", "!"])
    'Hello, world!'
    """
    text = ""
    for atom in atoms:
        text = append_segment(text, atom)
    return text.strip()
