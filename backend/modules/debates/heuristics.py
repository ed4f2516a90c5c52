"""
Termination heuristics for autonomous debates.

Pure functions over transcript data. Both signals are deliberately coarse:
agreement is a substring match against concession phrases (so "I cannot
disagree" counts, as does any phrase embedded in a longer sentence), and
circularity is bag-of-words Jaccard overlap, not semantic equivalence.
"""

from typing import Sequence

from .models import Speaker, Turn

AGREEMENT_PHRASES: tuple[str, ...] = (
    "i agree",
    "i concede",
    "you're right",
    "you are right",
    "fair point",
    "i accept",
    "convincing argument",
    "i cannot disagree",
)

CIRCULAR_TURNS_PER_SPEAKER = 3
CIRCULAR_SIMILARITY_THRESHOLD = 0.75
AGREEMENT_CONFIDENCE = 0.9


def check_for_agreement(content: str) -> bool:
    """Return True if the utterance contains any concession phrase."""
    lower = content.lower()
    return any(phrase in lower for phrase in AGREEMENT_PHRASES)


def _word_set(text: str) -> set[str]:
    return set(text.lower().split())


def calculate_similarity(first: str, second: str) -> float:
    """
    Jaccard similarity of the lowercased whitespace-separated word sets.

    Two empty word sets have similarity 0.
    """
    words_first = _word_set(first)
    words_second = _word_set(second)
    union = words_first | words_second
    if not union:
        return 0.0
    return len(words_first & words_second) / len(union)


def average_pair_similarity(contents: Sequence[str]) -> float:
    """Mean similarity over every unordered pair, 0 when there are no pairs."""
    total = 0.0
    pairs = 0
    for i in range(len(contents)):
        for j in range(i + 1, len(contents)):
            total += calculate_similarity(contents[i], contents[j])
            pairs += 1
    return total / pairs if pairs else 0.0


def check_for_circular_argument(turns: Sequence[Turn]) -> bool:
    """
    Detect a debate that keeps repeating itself.

    Takes the last three turns of each speaker and fires when the average
    pairwise similarity of those six utterances reaches 0.75. Needs at least
    three turns from each speaker.
    """
    if len(turns) < CIRCULAR_TURNS_PER_SPEAKER * 2:
        return False

    recent_a = [t for t in turns if t.speaker is Speaker.A][-CIRCULAR_TURNS_PER_SPEAKER:]
    recent_b = [t for t in turns if t.speaker is Speaker.B][-CIRCULAR_TURNS_PER_SPEAKER:]

    if len(recent_a) < CIRCULAR_TURNS_PER_SPEAKER or len(recent_b) < CIRCULAR_TURNS_PER_SPEAKER:
        return False

    contents = [t.content for t in recent_a + recent_b]
    return average_pair_similarity(contents) >= CIRCULAR_SIMILARITY_THRESHOLD


def agreement_confidence(content: str) -> float:
    return AGREEMENT_CONFIDENCE if check_for_agreement(content) else 0.0


def circular_confidence(turns: Sequence[Turn]) -> float:
    """Average similarity of the last six turns, or 0 if not circular."""
    if not check_for_circular_argument(turns):
        return 0.0
    return average_pair_similarity([t.content for t in turns[-6:]])
