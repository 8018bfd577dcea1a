"""
Word error rate scoring against reference transcripts.

Computes WER per utterance and aggregates over a run.
"""

from __future__ import annotations

from dataclasses import dataclass

_PUNCTUATION = ".,!?;:'\"()-[]{}"


def normalize_text(text: str) -> list[str]:
    """Normalize text for WER computation.

    - Uppercase
    - Remove punctuation
    - Split by whitespace
    """
    text = text.upper()
    for punct in _PUNCTUATION:
        text = text.replace(punct, "")
    return text.split()


def edit_distance(ref: list[str], hyp: list[str]) -> tuple[int, int, int, int]:
    """Compute edit distance and error counts.

    Returns (substitutions, insertions, deletions, total_ref_words)
    """
    n = len(ref)
    m = len(hyp)

    # dp[i][j] = (cost, subs, ins, dels)
    dp: list[list[tuple[int, int, int, int]]] = [[(0, 0, 0, 0)] * (m + 1) for _ in range(n + 1)]

    for j in range(1, m + 1):
        dp[0][j] = (j, 0, j, 0)

    for i in range(1, n + 1):
        dp[i][0] = (i, 0, 0, i)

    for i in range(1, n + 1):
        for j in range(1, m + 1):
            if ref[i - 1] == hyp[j - 1]:
                dp[i][j] = dp[i - 1][j - 1]
                continue

            sub_cost, sub_s, sub_i, sub_d = dp[i - 1][j - 1]
            sub = (sub_cost + 1, sub_s + 1, sub_i, sub_d)

            ins_cost, ins_s, ins_i, ins_d = dp[i][j - 1]
            ins = (ins_cost + 1, ins_s, ins_i + 1, ins_d)

            del_cost, del_s, del_i, del_d = dp[i - 1][j]
            dele = (del_cost + 1, del_s, del_i, del_d + 1)

            dp[i][j] = min([sub, ins, dele], key=lambda x: x[0])

    _cost, subs, ins_count, dels = dp[n][m]
    return (subs, ins_count, dels, n)


@dataclass(frozen=True)
class WerScore:
    """Error counts for one utterance."""

    substitutions: int
    insertions: int
    deletions: int
    ref_words: int
    hyp_words: int

    @property
    def errors(self) -> int:
        return self.substitutions + self.insertions + self.deletions

    @property
    def wer(self) -> float:
        if self.ref_words == 0:
            # Edge case: empty reference
            return 1.0 if self.hyp_words > 0 else 0.0
        return self.errors / self.ref_words


def compute_wer(ref_text: str, hyp_text: str) -> WerScore:
    """Score a hypothesis against its reference transcript."""
    ref_words = normalize_text(ref_text)
    hyp_words = normalize_text(hyp_text)

    if not ref_words:
        return WerScore(0, len(hyp_words), 0, 0, len(hyp_words))

    subs, ins, dels, n = edit_distance(ref_words, hyp_words)
    return WerScore(subs, ins, dels, n, len(hyp_words))


@dataclass
class WerAccumulator:
    """Running totals over all scored utterances in a run."""

    utterances: int = 0
    errors: int = 0
    ref_words: int = 0
    sentence_errors: int = 0

    def add(self, score: WerScore) -> None:
        self.utterances += 1
        self.errors += score.errors
        self.ref_words += score.ref_words
        if score.errors:
            self.sentence_errors += 1

    @property
    def wer(self) -> float:
        return self.errors / self.ref_words if self.ref_words else 0.0
