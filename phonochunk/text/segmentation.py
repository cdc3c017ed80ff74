"""Sentence-level planning for the chunker.

Text is split into sentences, short sentences are merged up to a token
threshold, and any segment that is still over capacity is split at clause
punctuation and greedily reassembled. Costs are always measured by resolving
every word, so they match what the chunk builder will produce.
"""

import re
import unicodedata
from typing import Callable, Iterable, Optional

from loguru import logger
from nltk.tokenize import WordPunctTokenizer
from nltk.tokenize.punkt import PunktSentenceTokenizer

from phonochunk.text.atoms import append_segment
from phonochunk.text.resolver import PhonemeResolver
from phonochunk.utils import collapse_newlines

BOS_EOS_OVERHEAD = 2
DEFAULT_SAFETY_MARGIN = 12

CLAUSE_BREAK_CHARACTERS = frozenset(",;:")
CLAUSE_SEPARATORS = (": ", "; ", ", ")

_CJK_SENTENCE_END = re.compile(r"(?<=[。！？])")

# text -> ordered, non-empty sentences
SentenceSegmenter = Callable[[str], list[str]]
# text -> (start, end) character spans of punctuation tokens
PunctuationTagger = Callable[[str], Iterable[tuple[int, int]]]


def compute_capacity(
    target_tokens: int,
    has_language_token: bool = False,
    safety_margin: int = DEFAULT_SAFETY_MARGIN,
) -> int:
    """Tokens available to one chunk once BOS, EOS, the optional language
    token and the safety margin are reserved

    >>> compute_capacity(510)
    496
    >>> compute_capacity(510, has_language_token=True)
    495
    >>> compute_capacity(10)
    1
    """
    overhead = BOS_EOS_OVERHEAD + (1 if has_language_token else 0)
    return max(1, target_tokens - overhead - safety_margin)


class PunktSentenceSegmenter:
    """Sentence segmentation with NLTK's untrained Punkt tokenizer, which
    needs no downloaded models. CJK full stops also end a sentence."""

    def __init__(self):
        self._tokenizer = PunktSentenceTokenizer()

    def __call__(self, text: str) -> list[str]:
        sentences = []
        for sentence in self._tokenizer.tokenize(text):
            sentences.extend(
                part.strip() for part in _CJK_SENTENCE_END.split(sentence) if part.strip()
            )
        return sentences


_word_punct_tokenizer = WordPunctTokenizer()


def tag_punctuation(text: str) -> list[tuple[int, int]]:
    """Spans of the punctuation tokens in text

    >>> tag_punctuation("Well, yes; no")
    [(4, 5), (9, 10)]
    """
    return [
        (start, end)
        for start, end in _word_punct_tokenizer.span_tokenize(text)
        if all(unicodedata.category(c).startswith("P") for c in text[start:end])
    ]


def split_into_sentences(text: str, segmenter: SentenceSegmenter) -> list[str]:
    """Run the sentence segmenter, keeping the whole text as one sentence if it finds none"""
    sentences = [s.strip() for s in segmenter(text)]
    sentences = [s for s in sentences if s]
    return sentences if sentences else [text]


def merge_short_sentences(
    sentences: list[str],
    resolver: PhonemeResolver,
    capacity: int,
    merge_threshold: int,
) -> list[str]:
    """Greedily join neighbouring short sentences while their combined cost
    stays within min(capacity, merge_threshold)"""
    threshold = max(1, min(capacity, merge_threshold))
    merged: list[str] = []
    buffer = ""
    buffer_tokens = 0
    did_merge = False

    def flush_buffer():
        nonlocal buffer, buffer_tokens
        if buffer.strip():
            merged.append(buffer.strip())
        buffer = ""
        buffer_tokens = 0

    for sentence in sentences:
        sentence = sentence.strip()
        if not sentence:
            continue
        sentence_tokens = resolver.segment_cost(sentence, capacity)

        if sentence_tokens > threshold:
            flush_buffer()
            merged.append(sentence)
            continue

        if not buffer or buffer_tokens > threshold:
            flush_buffer()
            buffer, buffer_tokens = sentence, sentence_tokens
            continue

        candidate = append_segment(buffer, sentence)
        candidate_tokens = resolver.segment_cost(candidate, capacity)
        if candidate_tokens <= threshold:
            buffer, buffer_tokens = candidate, candidate_tokens
            did_merge = True
        else:
            flush_buffer()
            buffer, buffer_tokens = sentence, sentence_tokens

    flush_buffer()

    if did_merge:
        logger.debug(
            f"Merged short sentences into {len(merged)} segments (threshold={threshold} tokens)"
        )
    return merged


def split_by_punctuation(
    text: str, tagger: PunctuationTagger = tag_punctuation
) -> list[str]:
    """Break text after every clause punctuation mark (comma, semicolon,
    colon), keeping the mark with the fragment before it

    >>> split_by_punctuation("First, second; third: fourth")
    ['First,', 'second;', 'third:', 'fourth']
    >>> split_by_punctuation("no breaks here")
    ['no breaks here']
    """
    if not text:
        return []
    segments: list[str] = []
    start = 0
    for span_start, span_end in tagger(text):
        if span_start < start:
            continue
        if not CLAUSE_BREAK_CHARACTERS.intersection(text[span_start:span_end]):
            continue
        end = span_end
        for separator in CLAUSE_SEPARATORS:
            if text.startswith(separator, span_end - 1):
                end = span_end - 1 + len(separator)
                break
        segment = text[start:end].strip()
        if segment:
            segments.append(segment)
        start = end

    tail = text[start:].strip()
    if tail:
        segments.append(tail)
    return segments if segments else [text]


def reassemble_fragments(
    fragments: list[str], resolver: PhonemeResolver, capacity: int
) -> list[str]:
    """Greedily recombine punctuation fragments into segments that fit capacity.

    Returns an empty list if any single fragment is over capacity, in which
    case the caller leaves the segment for the chunk builder to break up.
    """
    assembled: list[str] = []
    current = ""

    for fragment in fragments:
        fragment = fragment.strip()
        if not fragment:
            continue
        if not current:
            if resolver.segment_cost(fragment, capacity) > capacity:
                return []
            current = fragment
            continue

        candidate = append_segment(current, fragment)
        if resolver.segment_cost(candidate, capacity) <= capacity:
            current = candidate
            continue

        assembled.append(current)
        if resolver.segment_cost(fragment, capacity) > capacity:
            return []
        current = fragment

    if current:
        assembled.append(current)
    return assembled


def plan_segments(
    text: str,
    resolver: PhonemeResolver,
    capacity: int,
    merge_threshold: int,
    segmenter: Optional[SentenceSegmenter] = None,
    tagger: PunctuationTagger = tag_punctuation,
) -> list[str]:
    """Turn raw text into the ordered segments handed to the chunk builder"""
    text = text.strip()
    if not text:
        return []
    text = collapse_newlines(text)
    sentences = split_into_sentences(text, segmenter or PunktSentenceSegmenter())

    merged = merge_short_sentences(sentences, resolver, capacity, merge_threshold)
    segments_by_periods = merged if merged else sentences

    segments: list[str] = []
    for index, segment in enumerate(segments_by_periods):
        if resolver.segment_cost(segment, capacity) > capacity:
            reassembled = reassemble_fragments(
                split_by_punctuation(segment, tagger), resolver, capacity
            )
            if reassembled:
                segments.extend(reassembled)
                continue
            logger.warning(
                f"Segment {index}: no punctuation-based split fits within capacity; deferring to chunk builder"
            )
        segments.append(segment)
    return segments
