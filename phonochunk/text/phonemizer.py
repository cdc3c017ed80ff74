"""phonochunk performs grapheme-to-phoneme conversion based on voice ids
All g2p engines must return tokenized IPA symbols for a single word.
"""

import threading
from typing import Callable, Optional
from unicodedata import normalize

from g2p import make_g2p
from ipatok import tokenise
from loguru import logger

from phonochunk.exceptions import G2PEngineUnavailableError

G2PCallable = Callable[[str], list[str]]
# (word, voice id) -> IPA symbols, or None when the engine has no answer
G2PProvider = Callable[[str, str], Optional[list[str]]]

DEFAULT_G2P = "DEFAULT_G2P"
DEFAULT_VOICE = "en-us"

# voice id -> g2p library language code
DEFAULT_G2P_LANGS: dict[str, str] = {DEFAULT_VOICE: "eng"}

# (start, end) code point ranges, inclusive
CHINESE_RANGES = (
    (0x4E00, 0x9FFF),
    (0x3400, 0x4DBF),
    (0x20000, 0x2A6DF),
    (0x2A700, 0x2B73F),
    (0x2B740, 0x2B81F),
    (0x2B820, 0x2CEAF),
    (0x2CEB0, 0x2EBEF),
    (0x2F800, 0x2FA1F),
)
JAPANESE_RANGES = ((0x3040, 0x309F), (0x30A0, 0x30FF), (0x31F0, 0x31FF))
KOREAN_RANGES = (
    (0xAC00, 0xD7AF),
    (0x1100, 0x11FF),
    (0x3130, 0x318F),
    (0xA960, 0xA97F),
    (0xD7B0, 0xD7FF),
)
CJK_VOICES = (("cmn", CHINESE_RANGES), ("ja", JAPANESE_RANGES), ("ko", KOREAN_RANGES))


def _in_ranges(code_point: int, ranges) -> bool:
    return any(start <= code_point <= end for start, end in ranges)


def voice_id_for(text: str, default: str = DEFAULT_VOICE) -> str:
    """Pick a voice id from the Unicode blocks used in text.
    Chinese wins over Japanese, which wins over Korean.

    >>> voice_id_for("hello")
    'en-us'
    >>> voice_id_for("東京です")
    'cmn'
    >>> voice_id_for("ですね")
    'ja'
    >>> voice_id_for("안녕")
    'ko'
    """
    found = set()
    for character in text:
        code_point = ord(character)
        for voice_id, ranges in CJK_VOICES:
            if _in_ranges(code_point, ranges):
                found.add(voice_id)
    for voice_id, _ in CJK_VOICES:
        if voice_id in found:
            return voice_id
    return default


def contains_cjk_characters(text: str) -> bool:
    """
    >>> contains_cjk_characters("abc")
    False
    >>> contains_cjk_characters("abc中")
    True
    """
    return any(
        _in_ranges(ord(character), ranges)
        for character in text
        for _, ranges in CJK_VOICES
    )


def make_default_g2p_engines() -> dict[str, str | G2PCallable]:
    return {voice_id: DEFAULT_G2P for voice_id in DEFAULT_G2P_LANGS}


AVAILABLE_G2P_ENGINES: dict[str, str | G2PCallable] = make_default_g2p_engines()
_ENGINE_LOCK = threading.Lock()

# If you want to override the default g2p engines, do so by the following:
#
# from some_cool_library import some_cool_g2p_method
# AVAILABLE_G2P_ENGINES['YOUR_VOICE_ID'] = some_cool_g2p_method
#
# IMPORTANT: Your g2p engine must return a list of tokenized IPA symbols for one word.


def add_g2p_plugins():
    """
    Finds the user defined G2P modules and adds them to AVAILABLE_G2P_ENGINES.

    A plugin is an installed module whose name starts with phonochunk_plugin:

    VOICE_ID: str = "voice_id"

    def g2p(word: str) -> List[str]:
    │   return list(word)
    """
    import importlib
    import pkgutil
    import typing
    from inspect import signature

    for _finder, name, _ispkg in pkgutil.iter_modules():
        if name.startswith("phonochunk_plugin"):
            module = importlib.import_module(name)
            voice_id = module.VOICE_ID
            g2p_func = module.g2p

            # Validate the signature
            sig = signature(g2p_func)
            assert len(sig.parameters) == 1
            arg_names = list(sig.parameters)
            assert sig.parameters[arg_names[0]].annotation is str
            assert sig.return_annotation is typing.List[str]

            if voice_id in AVAILABLE_G2P_ENGINES:
                logger.warning(
                    f"Overriding g2p for {voice_id} with user provided g2p plugin {name}"
                )

            AVAILABLE_G2P_ENGINES[voice_id] = g2p_func


add_g2p_plugins()


class CachingG2PEngine:
    """caching tokenizing g2p engine"""

    def __init__(self, lang_id):
        self._cache: dict[str, list[str]] = {}
        self.phonemizer = make_g2p(lang_id, f"{lang_id}-ipa")

    def process_one_token(self, input_token: str) -> list[str]:
        """Process one word. The output can be multiple tokens, since a proper
        IPA tokenizer is used."""
        # ipatok strips some important characters, so as a hack,
        # we convert them to the private use area first
        PUA_CHARS = ["ˈ", "ˌ"]
        PUA_START_NUMBER = 983040  # U+F0000
        text = self.phonemizer(input_token).output_string
        for i, char in enumerate(PUA_CHARS):
            text = text.replace(char, chr(PUA_START_NUMBER + i))
        tokens = tokenise(text, replace=False, tones=True, strict=False, unknown=True)
        # normalize the output since ipatok applies NFD
        unicode_normalization_form = self.phonemizer.transducers[-1].norm_form.value
        if unicode_normalization_form != "none":
            tokens = [normalize(unicode_normalization_form, token) for token in tokens]
        # convert the pua tokens back to their originals
        for i, token in enumerate(tokens):
            # PUA tokens have length 1
            if len(token) == 1:
                token_ord = ord(token)
                if token_ord >= PUA_START_NUMBER:
                    tokens[i] = PUA_CHARS[token_ord - PUA_START_NUMBER]
        return tokens

    def __call__(self, word: str) -> list[str]:
        cached = self._cache.get(word, None)
        if cached is None:
            cached = self.process_one_token(word)
            self._cache[word] = cached
        return list(cached)


def get_g2p_engine(voice_id: str) -> G2PCallable:
    """Return the engine registered for voice_id, building the default engine
    on first use"""
    if voice_id not in AVAILABLE_G2P_ENGINES:
        raise G2PEngineUnavailableError(voice_id)

    if AVAILABLE_G2P_ENGINES[voice_id] == DEFAULT_G2P:
        with _ENGINE_LOCK:
            # another thread may have built it while we waited
            if AVAILABLE_G2P_ENGINES[voice_id] == DEFAULT_G2P:
                AVAILABLE_G2P_ENGINES[voice_id] = CachingG2PEngine(
                    DEFAULT_G2P_LANGS[voice_id]
                )

    engine = AVAILABLE_G2P_ENGINES[voice_id]
    assert not isinstance(
        engine, str
    ), "Internal error: the only str value allowed in AVAILABLE_G2P_ENGINES is 'DEFAULT_G2P'."

    return engine


def phonemize(word: str, voice_id: str) -> Optional[list[str]]:
    """Default G2PProvider: look the engine up by voice id and run it"""
    tokens = get_g2p_engine(voice_id)(word)
    return tokens or None
