"""Resolve words to phoneme tokens in a model vocabulary.

Each word goes through an ordered list of strategies; the first one whose
output still has tokens after filtering against the allowed vocabulary wins:

    surface form in the case-sensitive lexicon
      -> normalized form in the case-sensitive lexicon
        -> normalized form in the lexicon
          -> g2p engine, mapped from IPA to the vocabulary
            -> g2p retry on the original spelling for CJK words
              -> digits spelled out in words, each word resolved on its own
                -> single letter pronunciation
"""

import re
import threading
from types import MappingProxyType
from typing import Callable, Collection, Mapping, Optional

import inflect
from loguru import logger

from phonochunk.exceptions import G2PEngineUnavailableError, G2PError
from phonochunk.text.atoms import normalize_word, tokenize_atoms
from phonochunk.text.ipa_mapper import filter_allowed, map_ipa
from phonochunk.text.phonemizer import (
    DEFAULT_VOICE,
    G2PProvider,
    contains_cjk_characters,
    phonemize,
    voice_id_for,
)

WORD_SEPARATOR = " "

# largest value spelled out; longer digit strings fall through to other strategies
MAX_SPELLED_NUMBER = 2**63 - 1

LETTER_PRONUNCIATIONS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "a": ("e", "ɪ"),
        "b": ("b", "i"),
        "c": ("s", "i"),
        "d": ("d", "i"),
        "e": ("i",),
        "f": ("ɛ", "f"),
        "g": ("ʤ", "i"),
        "h": ("e", "ɪ", "ʧ"),
        "i": ("a", "ɪ"),
        "j": ("ʤ", "e"),
        "k": ("k", "e"),
        "l": ("ɛ", "l"),
        "m": ("ɛ", "m"),
        "n": ("ɛ", "n"),
        "o": ("o",),
        "p": ("p", "i"),
        "q": ("k", "j", "u"),
        "r": ("ɑ", "r"),
        "s": ("ɛ", "s"),
        "t": ("t", "i"),
        "u": ("j", "u"),
        "v": ("v", "i"),
        "w": ("d", "ʌ", "b", "əl", "j", "u"),
        "x": ("ɛ", "k", "s"),
        "y": ("w", "a", "ɪ"),
        "z": ("z", "i"),
    }
)

_number_engine = inflect.engine()
# inflect keeps per-call state on the engine
_NUMBER_ENGINE_LOCK = threading.Lock()
_SPELLED_SEPARATORS = re.compile(r"[\s,\-]+")

Lexicon = Mapping[str, list[str]]
Strategy = Callable[[str, str], Optional[list[str]]]


def spell_out_number(token: str) -> Optional[list[str]]:
    """Spell a string of decimal digits out as English words

    >>> spell_out_number("123")
    ['one', 'hundred', 'twenty', 'three']
    >>> spell_out_number("2024")
    ['two', 'thousand', 'twenty', 'four']
    >>> spell_out_number("12a") is None
    True
    """
    if not token or not token.isdecimal():
        return None
    value = int(token)
    if value > MAX_SPELLED_NUMBER:
        return None
    with _NUMBER_ENGINE_LOCK:
        spelled = _number_engine.number_to_words(value, andword="")
    components = [c for c in _SPELLED_SEPARATORS.split(str(spelled).lower()) if c]
    return components or None


class PhonemeResolver:
    """Resolve word atoms to vocabulary-valid phoneme tokens.

    Automatic resolutions are memoized by surface form for the lifetime of
    the resolver, so a resolver should not outlive one chunking call if the
    lexicons or g2p engines may change in between.
    """

    def __init__(
        self,
        lexicon: Optional[Lexicon] = None,
        case_sensitive_lexicon: Optional[Lexicon] = None,
        allowed: Collection[str] = frozenset(),
        g2p: G2PProvider = phonemize,
        default_voice: str = DEFAULT_VOICE,
        propagate_g2p_errors: bool = False,
    ):
        self.lexicon: Lexicon = lexicon or {}
        self.case_sensitive_lexicon: Lexicon = case_sensitive_lexicon or {}
        self.allowed = allowed
        self.g2p = g2p
        self.default_voice = default_voice
        self.propagate_g2p_errors = propagate_g2p_errors
        self.strategies: list[Strategy] = [
            self.from_case_sensitive_surface,
            self.from_case_sensitive_normalized,
            self.from_lexicon,
            self.from_g2p,
            self.from_cjk_retry,
            self.from_spelled_number,
            self.from_letter,
        ]
        self._memo: dict[str, Optional[tuple[str, ...]]] = {}
        self._unavailable_voices: set[str] = set()

    def resolve(self, word: str, normalized: Optional[str] = None) -> Optional[list[str]]:
        """Return the phoneme tokens for a word, or None if every strategy fails"""
        if normalized is None:
            normalized = normalize_word(word)
        if word not in self._memo:
            self._memo[word] = self._run_strategies(word, normalized)
        resolved = self._memo[word]
        return list(resolved) if resolved is not None else None

    def _run_strategies(self, word: str, normalized: str) -> Optional[tuple[str, ...]]:
        for strategy in self.strategies:
            candidate = strategy(word, normalized)
            if not candidate:
                continue
            filtered = filter_allowed(candidate, self.allowed)
            if filtered:
                return tuple(filtered)
        return None

    def from_case_sensitive_surface(self, word: str, normalized: str):
        return self.case_sensitive_lexicon.get(word)

    def from_case_sensitive_normalized(self, word: str, normalized: str):
        return self.case_sensitive_lexicon.get(normalized)

    def from_lexicon(self, word: str, normalized: str):
        return self.lexicon.get(normalized)

    def from_g2p(self, word: str, normalized: str):
        g2p_input = normalized or word
        voice_id = voice_id_for(word, self.default_voice)
        logger.debug(
            f"Phonemizing '{word}' (normalized: '{normalized}') with voice {voice_id}"
        )
        return self.run_g2p(g2p_input, voice_id, self.propagate_g2p_errors)

    def from_cjk_retry(self, word: str, normalized: str):
        if not contains_cjk_characters(word):
            return None
        return self.run_g2p(word, voice_id_for(word, self.default_voice), False)

    def from_spelled_number(self, word: str, normalized: str):
        components = spell_out_number(normalized)
        if not components:
            return None
        tokens: list[str] = []
        for component in components:
            segment = self.resolve_number_component(component)
            if not segment:
                logger.debug(f"Could not resolve '{component}' while spelling out '{word}'")
                return None
            if tokens:
                tokens.append(WORD_SEPARATOR)
            tokens.extend(segment)
        return tokens

    def from_letter(self, word: str, normalized: str):
        pronunciation = LETTER_PRONUNCIATIONS.get(normalized)
        return list(pronunciation) if pronunciation else None

    def resolve_number_component(self, component: str) -> list[str]:
        """Resolve one spelled-out number word: lexicon, then g2p, then letters"""
        candidates = (
            lambda: self.lexicon.get(component),
            lambda: self.run_g2p(
                component,
                voice_id_for(component, self.default_voice),
                self.propagate_g2p_errors,
            ),
            lambda: LETTER_PRONUNCIATIONS.get(component),
        )
        for candidate in candidates:
            tokens = filter_allowed(candidate() or (), self.allowed)
            if tokens:
                return tokens
        return []

    def run_g2p(self, word: str, voice_id: str, propagate: bool) -> Optional[list[str]]:
        """Call the g2p engine and map its IPA output to the vocabulary.
        Engine failures count as a miss unless propagate is set."""
        try:
            ipa = self.g2p(word, voice_id)
        except G2PEngineUnavailableError:
            if voice_id not in self._unavailable_voices:
                self._unavailable_voices.add(voice_id)
                logger.warning(f"No g2p engine available for voice {voice_id}")
            return None
        except Exception as e:
            if propagate:
                raise G2PError(
                    f"The g2p engine for voice {voice_id} failed on '{word}'"
                ) from e
            logger.warning(f"The g2p engine for voice {voice_id} failed on '{word}': {e}")
            return None
        if not ipa:
            logger.warning(f"The g2p engine returned nothing for '{word}' with voice {voice_id}")
            return None
        logger.debug(f"g2p returned IPA: {ipa}")
        mapped = map_ipa(ipa, self.allowed)
        logger.debug(f"Mapped to vocabulary symbols: {mapped}")
        return mapped or None

    def segment_cost(self, text: str, capacity: Optional[int] = None) -> int:
        """Count the tokens text would occupy in a chunk, including word
        separators and allowed punctuation. Counting stops as soon as the
        total passes capacity."""
        cost = 0
        needs_separator = False
        for atom in tokenize_atoms(text):
            if atom.is_word:
                normalized = normalize_word(atom.text)
                if not normalized:
                    continue
                phonemes = self.resolve(atom.text, normalized)
                if phonemes is None:
                    continue
                cost += len(phonemes)
                if needs_separator:
                    cost += 1
                needs_separator = True
            else:
                if atom.text not in self.allowed:
                    continue
                cost += 1
                needs_separator = False
            if capacity is not None and cost > capacity:
                return cost
        return cost
