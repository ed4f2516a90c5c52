"""
Incremental parser that separates visible text from hidden tag blocks.

Debaters may wrap private deliberation in <reasoning>...</reasoning> or a
short <rationale_summary>...</rationale_summary>. Model output arrives in
arbitrary chunks, so a delimiter can be split across any number of them
("<reason" + "ing>"). The parser withholds the longest tail that could
still turn into a delimiter, which keeps half-tags out of the visible text.
"""

from dataclasses import dataclass, field
from typing import Optional

REASONING_TAG = "reasoning"
RATIONALE_SUMMARY_TAG = "rationale_summary"

# Tag name -> (opening delimiter, closing delimiter)
DEFAULT_TAGS: dict[str, tuple[str, str]] = {
    REASONING_TAG: ("<reasoning>", "</reasoning>"),
    RATIONALE_SUMMARY_TAG: ("<rationale_summary>", "</rationale_summary>"),
}


@dataclass
class ParsedChunk:
    """Output produced by feeding one chunk."""

    visible: str = ""
    hidden: dict[str, str] = field(default_factory=dict)

    @property
    def hidden_reasoning(self) -> str:
        return self.hidden.get(REASONING_TAG, "")

    @property
    def hidden_rationale_summary(self) -> str:
        return self.hidden.get(RATIONALE_SUMMARY_TAG, "")


def held_suffix_length(text: str, delimiters: list[str]) -> int:
    """
    Length of the longest suffix of text that is a proper prefix of a delimiter.

    Args:
        text: Unresolved tail of the buffer
        delimiters: Delimiters that could start at the end of the tail

    Returns:
        Number of trailing characters to withhold (0 if none)
    """
    longest = max((len(d) for d in delimiters), default=0)
    for size in range(min(len(text), longest - 1), 0, -1):
        suffix = text[-size:]
        if any(len(d) > size and d.startswith(suffix) for d in delimiters):
            return size
    return 0


class TagStreamParser:
    """
    Stateful splitter for a streamed model response.

    Call feed() for every raw chunk, then finish() once the stream ends.
    Visible text is returned per call; hidden text is returned per call and
    also accumulated per tag for the whole stream.
    """

    def __init__(self, tags: Optional[dict[str, tuple[str, str]]] = None):
        self.tags = dict(tags or DEFAULT_TAGS)
        self.active_tag: Optional[str] = None
        self.remainder = ""
        self.channels: dict[str, str] = {name: "" for name in self.tags}
        self._openers = [opening for opening, _ in self.tags.values()]

    def feed(self, chunk: str) -> ParsedChunk:
        """Consume one chunk and return what it resolved."""
        text = self.remainder + chunk
        self.remainder = ""
        parsed = ParsedChunk()
        i = 0

        while i < len(text):
            if self.active_tag is None:
                match = self._find_opening(text, i)
                if match is None:
                    tail = text[i:]
                    hold = held_suffix_length(tail, self._openers)
                    parsed.visible += tail[: len(tail) - hold]
                    self.remainder = tail[len(tail) - hold:]
                    break
                name, index = match
                parsed.visible += text[i:index]
                i = index + len(self.tags[name][0])
                self.active_tag = name
            else:
                closing = self.tags[self.active_tag][1]
                index = text.find(closing, i)
                if index == -1:
                    tail = text[i:]
                    hold = held_suffix_length(tail, [closing])
                    self._hide(parsed, tail[: len(tail) - hold])
                    self.remainder = tail[len(tail) - hold:]
                    break
                self._hide(parsed, text[i:index])
                i = index + len(closing)
                self.active_tag = None

        return parsed

    def finish(self) -> ParsedChunk:
        """
        Flush state at end of stream.

        A withheld tail outside any block was ordinary text after all and is
        released as visible. A tail inside an unclosed block is dropped.
        """
        parsed = ParsedChunk()
        if self.remainder and self.active_tag is None:
            parsed.visible = self.remainder
        self.remainder = ""
        return parsed

    @property
    def reasoning(self) -> Optional[str]:
        """
        Hidden text to record for the turn.

        The rationale summary wins over raw reasoning when both are present.
        """
        summary = self.channels.get(RATIONALE_SUMMARY_TAG, "").strip()
        if summary:
            return summary
        raw = self.channels.get(REASONING_TAG, "").strip()
        return raw or None

    def _find_opening(self, text: str, start: int) -> Optional[tuple[str, int]]:
        best: Optional[tuple[str, int]] = None
        for name, (opening, _) in self.tags.items():
            index = text.find(opening, start)
            if index != -1 and (best is None or index < best[1]):
                best = (name, index)
        return best

    def _hide(self, parsed: ParsedChunk, text: str) -> None:
        if not text or self.active_tag is None:
            return
        parsed.hidden[self.active_tag] = parsed.hidden.get(self.active_tag, "") + text
        self.channels[self.active_tag] += text
