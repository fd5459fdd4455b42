"""
Word Differ v1.2.0
==================
Word-level diff for caption and extracted image text history.

Text is split into word and whitespace tokens, and a classic
longest-common-subsequence table is backtracked into an edit script.
Ties during backtracking always prefer consuming from the new text
(emitting an addition), which fixes which of two equally short edit
scripts is shown.

Time and memory are O(m*n) in the token counts. That is fine for
captions and on-image copy; it is not meant for whole documents.
"""

import re
from typing import List

from config_logging import get_logger

from .models import DiffKind, DiffToken, DiffResult

logger = get_logger('creative_review.differ')

_WHITESPACE_SPLIT = re.compile(r'(\s+)')

# Above this many DP cells a debug line is emitted so slow diffs are traceable
_LARGE_TABLE_CELLS = 250_000


def tokenize(text: str) -> List[str]:
    """
    Split text into alternating word and whitespace tokens.

    Whitespace runs are kept as tokens so spacing changes show up in the
    diff. Comparison is exact and case-sensitive.

    Args:
        text: Text to tokenize

    Returns:
        List of tokens; joining them reproduces the input
    """
    if not text:
        return []
    return [token for token in _WHITESPACE_SPLIT.split(text) if token]


class WordDiffEngine:
    """
    LCS-based token diff with deterministic tie-breaking.
    """

    def diff(self, old_text: str, new_text: str) -> DiffResult:
        """
        Compute the edit script turning old_text into new_text.

        Args:
            old_text: Earlier snapshot
            new_text: Later snapshot

        Returns:
            DiffResult whose tokens are in left-to-right order
        """
        old_tokens = tokenize(old_text or '')
        new_tokens = tokenize(new_text or '')

        if old_tokens == new_tokens:
            return DiffResult([DiffToken(DiffKind.SAME, t) for t in old_tokens])

        table = self._lcs_table(old_tokens, new_tokens)
        tokens = self._backtrack(table, old_tokens, new_tokens)
        return DiffResult(tokens)

    def _lcs_table(self, old_tokens: List[str], new_tokens: List[str]) -> List[List[int]]:
        """
        Build the (m+1) x (n+1) LCS length table.

        dp[i][j] is the LCS length of old_tokens[:i] and new_tokens[:j].
        """
        m, n = len(old_tokens), len(new_tokens)
        if (m + 1) * (n + 1) > _LARGE_TABLE_CELLS:
            logger.debug(f"Large diff table: {m} x {n} tokens", old_tokens=m, new_tokens=n)

        dp = [[0] * (n + 1) for _ in range(m + 1)]
        for i in range(1, m + 1):
            old_token = old_tokens[i - 1]
            row, prev_row = dp[i], dp[i - 1]
            for j in range(1, n + 1):
                if old_token == new_tokens[j - 1]:
                    row[j] = prev_row[j - 1] + 1
                else:
                    row[j] = max(prev_row[j], row[j - 1])
        return dp

    def _backtrack(
        self,
        dp: List[List[int]],
        old_tokens: List[str],
        new_tokens: List[str]
    ) -> List[DiffToken]:
        """
        Walk the table from (m, n) back to (0, 0).

        On ties (dp[i][j-1] >= dp[i-1][j]) the new-side token is consumed
        first. Tokens are collected in reverse and flipped at the end.
        """
        i, j = len(old_tokens), len(new_tokens)
        reversed_tokens: List[DiffToken] = []

        while i > 0 or j > 0:
            if i > 0 and j > 0 and old_tokens[i - 1] == new_tokens[j - 1]:
                reversed_tokens.append(DiffToken(DiffKind.SAME, old_tokens[i - 1]))
                i -= 1
                j -= 1
            elif j > 0 and (i == 0 or dp[i][j - 1] >= dp[i - 1][j]):
                reversed_tokens.append(DiffToken(DiffKind.ADDED, new_tokens[j - 1]))
                j -= 1
            else:
                reversed_tokens.append(DiffToken(DiffKind.REMOVED, old_tokens[i - 1]))
                i -= 1

        reversed_tokens.reverse()
        return reversed_tokens


# Convenience function
def compute_diff(old_text: str, new_text: str) -> DiffResult:
    """
    Compute a word-level diff between two texts.

    Args:
        old_text: Original text
        new_text: New text

    Returns:
        DiffResult with same/added/removed tokens
    """
    return WordDiffEngine().diff(old_text, new_text)


if __name__ == '__main__':
    # Demo
    result = compute_diff("Buy now", "Shop now!")
    for token in result:
        print(f"  {token.kind.value:8} {token.text!r}")
    print(f"Stats: {result.stats}")
