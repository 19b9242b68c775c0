"""Script statistics and chunking for the script editor."""

import re
from collections import Counter

from .models import CharacterBreakdown, ScriptAnalysis

READ_CHARS_PER_MINUTE = 400
TOP_N = 5


def _top(items: list[str]) -> list[tuple[str, int]]:
    return Counter(items).most_common(TOP_N)


def _ngrams(words: list[str], n: int) -> list[str]:
    return [" ".join(words[i:i + n]) for i in range(len(words) - n + 1)]


def analyze_script(script: str) -> ScriptAnalysis:
    """Compute counts, read time and frequent words for a script."""
    if not script.strip():
        return ScriptAnalysis()

    char_count = len(script)
    char_count_no_spaces = len(re.sub(r"\s", "", script))
    word_count = len(script.split())
    sentence_count = len(re.findall(r"[.!?]+(?:\s|$)", script)) or 1
    normalized = re.sub(r"[^\w\s]", "", script.strip().lower()).split()

    characters = CharacterBreakdown(total=char_count)
    for char in script:
        if "가" <= char <= "힣":
            characters.hangul += 1
        elif char.isascii() and char.isalpha():
            characters.english += 1
        elif char.isascii() and char.isdigit():
            characters.numbers += 1
        elif char.isspace():
            characters.spaces += 1
        else:
            characters.symbols += 1

    return ScriptAnalysis(
        char_count=char_count,
        char_count_no_spaces=char_count_no_spaces,
        word_count=word_count,
        sentence_count=sentence_count,
        line_count=len(script.split("\n")),
        paragraph_count=len([p for p in re.split(r"\n\s*\n", script) if p]),
        unique_word_count=len(set(normalized)),
        read_time=round(char_count_no_spaces / (READ_CHARS_PER_MINUTE / 60)),
        characters=characters,
        top_words=_top(normalized),
        top_bigrams=_top(_ngrams(normalized, 2)),
        top_trigrams=_top(_ngrams(normalized, 3)),
    )


def split_text_into_chunks(text: str, max_length: int) -> list[str]:
    """Split text into sentence-sized chunks of at most ``max_length`` chars.

    Sentences longer than the limit are packed word by word. A single word
    longer than the limit becomes its own chunk.
    """
    if max_length <= 0:
        return [text]

    chunks = []
    for sentence in re.findall(r"[^.!?]+[.!?]*\s*|[^.!?]+$", text):
        sentence = sentence.strip()
        if not sentence:
            continue
        if len(sentence) <= max_length:
            chunks.append(sentence)
            continue

        current = ""
        for word in sentence.split(" "):
            if not current:
                current = word
            elif len(current) + 1 + len(word) <= max_length:
                current += " " + word
            else:
                chunks.append(current)
                current = word
        if current:
            chunks.append(current)

    return chunks
