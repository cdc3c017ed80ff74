"""Build token-bounded chunks from text.

The entry point is TextChunker.chunk (or the chunk_text convenience
function). Text is planned into segments by phonochunk.text.segmentation,
then a single forward pass over each segment's atoms packs resolved phonemes
into chunks, never splitting one word across two chunks.

Phonetic overrides are matched by word index: every word atom of the text,
counted from 0 across all segments, advances the cursor whether or not it
ends up in a chunk.
"""

from pathlib import Path
from typing import Collection, Iterable, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from phonochunk.config.chunker_config import ChunkerConfig
from phonochunk.text.atoms import join_atoms, normalize_word, tokenize_atoms
from phonochunk.text.ipa_mapper import filter_allowed, map_ipa
from phonochunk.text.phonemizer import G2PProvider, phonemize
from phonochunk.text.resolver import WORD_SEPARATOR, Lexicon, PhonemeResolver
from phonochunk.text.segmentation import (
    PunctuationTagger,
    SentenceSegmenter,
    plan_segments,
    tag_punctuation,
)
from phonochunk.text.symbols import DEFAULT_VOCABULARY
from phonochunk.utils import load_json_or_yaml_path

UNUSED_OVERRIDE_SAMPLE_SIZE = 5


class TextChunk(BaseModel):
    """One unit of model input. total_frames and pause_after_ms are filled in
    by the synthesis stage."""

    model_config = ConfigDict(frozen=True)

    words: tuple[str, ...]
    atoms: tuple[str, ...]
    phonemes: tuple[str, ...]
    total_frames: float = 0.0
    pause_after_ms: int = 0
    text: str

    @property
    def token_count(self) -> int:
        return len(self.phonemes)


class PhoneticOverride(BaseModel):
    """An explicit pronunciation for the word at word_index"""

    model_config = ConfigDict(frozen=True)

    word_index: int = Field(ge=0, description="Index of the word in the input text, from 0.")
    word: str = Field(description="The word being overridden, used in diagnostics.")
    tokens: list[str] = Field(
        default_factory=list, description="Phoneme tokens to use for the word."
    )
    raw_symbols: list[str] = Field(
        default_factory=list,
        description="IPA symbols mapped into the vocabulary when tokens yield nothing.",
    )


def load_overrides(path: Path) -> list[PhoneticOverride]:
    """Read a JSON or YAML list of phonetic overrides"""
    data = load_json_or_yaml_path(path) or []
    return TypeAdapter(list[PhoneticOverride]).validate_python(data)


def resolve_override(override: PhoneticOverride, allowed: Collection[str]) -> list[str]:
    """The override's tokens as they are, else mapped from IPA, else its raw symbols mapped from IPA

    >>> resolve_override(PhoneticOverride(word_index=0, word="chr", tokens=["tʃ", "ɹ"]), {"ʧ", "r"})
    ['ʧ', 'r']
    """
    tokens = filter_allowed(override.tokens, allowed)
    if tokens:
        return tokens
    tokens = map_ipa(override.tokens, allowed)
    if tokens:
        return tokens
    if override.raw_symbols:
        return map_ipa(override.raw_symbols, allowed)
    return []


class OverrideQueue:
    """Overrides in consumption order: by word index, then declaration order"""

    def __init__(self, overrides: Iterable[PhoneticOverride] = ()):
        # sorted() is stable, which keeps declaration order for equal indices
        self._overrides = sorted(overrides, key=lambda o: o.word_index)
        self._position = 0

    def take(self, word_index: int) -> Optional[PhoneticOverride]:
        """Consume and return the override for word_index, discarding stale
        overrides for earlier words on the way"""
        while self._position < len(self._overrides):
            candidate = self._overrides[self._position]
            if candidate.word_index < word_index:
                logger.warning(
                    f"Skipping stale phonetic override for word: {candidate.word} (index {candidate.word_index})"
                )
                self._position += 1
                continue
            if candidate.word_index == word_index:
                self._position += 1
                return candidate
            break
        return None

    @property
    def remaining(self) -> list[PhoneticOverride]:
        return self._overrides[self._position :]


class ChunkAccumulator:
    """The chunk currently being filled"""

    def __init__(self, capacity: int):
        self.capacity = capacity
        self.words: list[str] = []
        self.atoms: list[str] = []
        self.phonemes: list[str] = []
        self.token_count = 0
        self.needs_separator = False

    def is_empty(self) -> bool:
        return not self.phonemes

    def overflows(self, cost: int) -> bool:
        return self.token_count + cost > self.capacity and not self.is_empty()

    def add_word(self, word: str, tokens: Sequence[str]):
        if self.needs_separator:
            self.phonemes.append(WORD_SEPARATOR)
            self.token_count += 1
        self.phonemes.extend(tokens)
        self.token_count += len(tokens)
        self.words.append(word)
        self.atoms.append(word)
        self.needs_separator = True

    def add_punctuation(self, symbol: str):
        self.phonemes.append(symbol)
        self.token_count += 1
        self.atoms.append(symbol)
        self.needs_separator = False

    def flush(self) -> Optional[TextChunk]:
        """Emit the accumulated chunk, if any, and start a new one"""
        if self.is_empty():
            return None
        if self.phonemes[-1] == WORD_SEPARATOR:
            self.phonemes.pop()
            self.token_count -= 1
        chunk = TextChunk(
            words=tuple(self.words),
            atoms=tuple(self.atoms),
            phonemes=tuple(self.phonemes),
            text=join_atoms(self.atoms),
        )
        self.words = []
        self.atoms = []
        self.phonemes = []
        self.token_count = 0
        self.needs_separator = False
        return chunk


class ChunkBuilder:
    """Packs the atoms of successive segments into chunks. The word index
    cursor and the override queue carry over from one segment to the next."""

    def __init__(
        self,
        resolver: PhonemeResolver,
        capacity: int,
        overrides: Optional[OverrideQueue] = None,
    ):
        self.resolver = resolver
        self.capacity = capacity
        self.overrides = overrides or OverrideQueue()
        self.word_index = 0

    def _override_tokens(self) -> Optional[list[str]]:
        override = self.overrides.take(self.word_index)
        if override is None:
            return None
        tokens = resolve_override(override, self.resolver.allowed)
        if not tokens:
            logger.warning(
                f"Phonetic override for word index {self.word_index} (word: {override.word}) produced no valid tokens; falling back to lexicon"
            )
            return None
        return tokens

    def build(self, segment: str) -> list[TextChunk]:
        chunks: list[TextChunk] = []
        accumulator = ChunkAccumulator(self.capacity)
        missing: set[str] = set()

        def flush():
            chunk = accumulator.flush()
            if chunk is not None:
                chunks.append(chunk)

        for atom in tokenize_atoms(segment):
            if atom.is_word:
                tokens = self._override_tokens()
                if tokens is None:
                    normalized = normalize_word(atom.text)
                    if normalized:
                        tokens = self.resolver.resolve(atom.text, normalized)
                        if tokens is None:
                            missing.add(normalized)
                self.word_index += 1
                if not tokens:
                    continue
                cost = len(tokens) + (1 if accumulator.needs_separator else 0)
                if accumulator.overflows(cost):
                    flush()
                accumulator.add_word(atom.text, tokens)
            else:
                if atom.text not in self.resolver.allowed:
                    continue
                if accumulator.overflows(1):
                    flush()
                accumulator.add_punctuation(atom.text)

        flush()

        if missing:
            logger.warning(f"Missing phoneme entries for: {', '.join(sorted(missing))}")
        return chunks


class TextChunker:
    """Chunk text for a model with a fixed input budget.

    Args:
        config: chunking parameters; defaults to ChunkerConfig()
        lexicon: normalized word -> phonemes
        case_sensitive_lexicon: exact spelling -> phonemes
        allowed: the model's vocabulary; defaults to DEFAULT_VOCABULARY
        g2p: (word, voice id) -> IPA symbols, for words missing from the lexicons
        segmenter: text -> sentences; defaults to NLTK Punkt
        tagger: text -> punctuation spans, used to split long sentences
    """

    def __init__(
        self,
        config: Optional[ChunkerConfig] = None,
        lexicon: Optional[Lexicon] = None,
        case_sensitive_lexicon: Optional[Lexicon] = None,
        allowed: Optional[Collection[str]] = None,
        g2p: G2PProvider = phonemize,
        segmenter: Optional[SentenceSegmenter] = None,
        tagger: PunctuationTagger = tag_punctuation,
    ):
        self.config = config or ChunkerConfig()
        self.lexicon = lexicon or {}
        self.case_sensitive_lexicon = case_sensitive_lexicon or {}
        self.allowed = DEFAULT_VOCABULARY if allowed is None else allowed
        self.g2p = g2p
        self.segmenter = segmenter
        self.tagger = tagger

    @property
    def capacity(self) -> int:
        return self.config.capacity

    def make_resolver(self) -> PhonemeResolver:
        return PhonemeResolver(
            lexicon=self.lexicon,
            case_sensitive_lexicon=self.case_sensitive_lexicon,
            allowed=self.allowed,
            g2p=self.g2p,
            default_voice=self.config.default_voice,
            propagate_g2p_errors=self.config.propagate_g2p_errors,
        )

    def chunk(
        self, text: str, overrides: Iterable[PhoneticOverride] = ()
    ) -> list[TextChunk]:
        """Split text into chunks whose phoneme count fits the capacity.
        A single word longer than the capacity gets a chunk of its own."""
        if not text.strip():
            return []
        resolver = self.make_resolver()
        segments = plan_segments(
            text,
            resolver,
            self.capacity,
            self.config.merge_threshold_tokens,
            segmenter=self.segmenter,
            tagger=self.tagger,
        )

        queue = OverrideQueue(overrides)
        builder = ChunkBuilder(resolver, self.capacity, queue)
        chunks: list[TextChunk] = []
        for segment in segments:
            chunks.extend(builder.build(segment))
        if not chunks:
            logger.info("No pronounceable words; chunking produced no chunks")

        if queue.remaining:
            sample = [o.word for o in queue.remaining[:UNUSED_OVERRIDE_SAMPLE_SIZE]]
            logger.warning(f"Unused phonetic overrides for words: {', '.join(sample)}")
        return chunks


def chunk_text(
    text: str,
    lexicon: Optional[Lexicon] = None,
    case_sensitive_lexicon: Optional[Lexicon] = None,
    allowed: Optional[Collection[str]] = None,
    overrides: Iterable[PhoneticOverride] = (),
    config: Optional[ChunkerConfig] = None,
    g2p: G2PProvider = phonemize,
    segmenter: Optional[SentenceSegmenter] = None,
    tagger: PunctuationTagger = tag_punctuation,
) -> list[TextChunk]:
    """Functional form of TextChunker(...).chunk(text, overrides)"""
    return TextChunker(
        config=config,
        lexicon=lexicon,
        case_sensitive_lexicon=case_sensitive_lexicon,
        allowed=allowed,
        g2p=g2p,
        segmenter=segmenter,
        tagger=tagger,
    ).chunk(text, overrides)
