"""Normalize IPA symbols produced by g2p engines into a model vocabulary.

A symbol already in the allowed vocabulary is kept as it is. Otherwise its
table entry lists candidate vocabulary symbols in order of preference: the
first candidate found in the allowed vocabulary wins. An empty entry means
the symbol is always dropped silently (e.g. numeric tone markers).
"""

import string
from types import MappingProxyType
from typing import Collection, Iterable, Mapping, Optional

from loguru import logger

DROP = ""

_ASCII_LETTERS_AND_DIGITS = frozenset(string.ascii_letters + string.digits)

IPA_TO_VOCABULARY: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        # Affricates
        "t͡ʃ": ("ʧ",),
        "tʃ": ("ʧ",),
        "d͡ʒ": ("ʤ",),
        "dʒ": ("ʤ",),
        # Fricatives
        "ʃ": ("ʃ",),
        "ʒ": ("ʒ",),
        "θ": ("θ",),
        "ð": ("ð",),
        # Approximants and alveolars
        "ɹ": ("r",),
        "ɾ": ("t",),
        "ɫ": ("l",),
        # Nasals
        "ŋ": ("ŋ",),
        # Vowels
        "æ": ("æ",),
        "ɑ": ("ɑ",),
        "ɒ": ("ɑ",),
        "ʌ": ("ʌ",),
        "ɪ": ("ɪ",),
        "i": ("i",),
        "ʊ": ("ʊ",),
        "u": ("u",),
        "ə": ("ə",),
        "ɚ": ("ɚ", "ə"),
        "ɝ": ("ɝ", "ɜ"),
        "ɛ": ("ɛ",),
        "e": ("e",),
        "o": ("o",),
        "ɔ": ("ɔ",),
        # Diphthongs keep their nucleus
        "eɪ": ("e",),
        "oʊ": ("o",),
        "aɪ": ("a",),
        "aʊ": ("a",),
        "ɔɪ": ("ɔ",),
        # Mandarin numeric tones
        "1": (),
        "2": (),
        "3": (),
        "4": (),
        "5": (),
        # Mandarin inventory, nearest English symbol when the model lacks it
        "ɕ": ("ɕ", "ʃ"),
        "ʈʂ": ("ʈʂ", "ʧ"),
        "ʂ": ("ʂ", "ʃ"),
        "ʐ": ("ʐ", "ʒ"),
        "χ": ("χ", "h"),
        "ɻ": ("ɻ", "r"),
        "y": ("y", "i"),
        "ɥ": ("ɥ", "j"),
        "ɤ": ("ɤ", "ə"),
        "ɜ": ("ɜ", "ə"),
    }
)


def map_symbol(raw: str, allowed: Collection[str]) -> Optional[str]:
    """Map one IPA symbol to a vocabulary symbol.

    Returns DROP for symbols that are deliberately discarded and None
    when no mapping exists.

    >>> map_symbol("ɹ", {"r"})
    'r'
    >>> map_symbol("ɹ", {"ɹ", "r"})
    'ɹ'
    >>> map_symbol("3", {"3"})
    ''
    >>> map_symbol("ʔ", {"r"}) is None
    True
    """
    candidates = IPA_TO_VOCABULARY.get(raw)
    if candidates is not None and not candidates:
        return DROP
    if raw in allowed:
        return raw
    for candidate in candidates or ():
        if candidate in allowed:
            return candidate
    # Latin fallback
    if len(raw) == 1 and raw in _ASCII_LETTERS_AND_DIGITS:
        for candidate in (raw, raw.lower()):
            if candidate in allowed:
                return candidate
    return None


def _map_pair(first: str, second: str, allowed: Collection[str]) -> Optional[str]:
    pair = first + second
    candidates = IPA_TO_VOCABULARY.get(pair, ())
    for candidate in candidates:
        if candidate in allowed:
            return candidate
    if pair in allowed:
        return pair
    return None


def map_ipa(ipa_tokens: Iterable[str], allowed: Collection[str]) -> list[str]:
    """Map a sequence of IPA symbols to vocabulary symbols.

    Two adjacent symbols that together form a table entry (affricates written
    as two characters, diphthongs) are merged before single symbols are
    mapped. Symbols with no mapping are dropped and logged.

    >>> map_ipa(["t", "ʃ", "i", "ɹ"], {"ʧ", "i", "r", "t", "ʃ"})
    ['ʧ', 'i', 'r']
    >>> map_ipa(["m", "a", "3"], {"m", "a"})
    ['m', 'a']
    """
    tokens = list(ipa_tokens)
    mapped: list[str] = []
    dropped: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if index + 1 < len(tokens):
            merged = _map_pair(token, tokens[index + 1], allowed)
            if merged is not None:
                mapped.append(merged)
                index += 2
                continue
        symbol = map_symbol(token, allowed)
        if symbol is None:
            dropped.append(token)
        elif symbol != DROP:
            mapped.append(symbol)
        index += 1

    if dropped:
        logger.debug(f"Dropped IPA symbols not in the vocabulary: {dropped}")
    return mapped


def filter_allowed(tokens: Iterable[str], allowed: Collection[str]) -> list[str]:
    """
    >>> filter_allowed(["h", "?", "ɛ"], {"h", "ɛ"})
    ['h', 'ɛ']
    """
    return [token for token in tokens if token in allowed]
