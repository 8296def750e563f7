"""
Token Aggregator Service - Reduce occurrences into per-token usage.

Aggregation is a single-threaded reduction run after every file of a
repository has been matched.

Author: Tokenscope Team
"""

from collections import defaultdict
from typing import Iterable, Mapping, Union

from ..models import TokenOccurrence, TokenUsageResult
from .matcher import infer_category

OccurrenceInput = Union[Mapping[str, Iterable[TokenOccurrence]], Iterable[TokenOccurrence]]


def compute_coverage(unique_tokens: int, total_occurrences: int) -> int:
    """
    Share of raw occurrences represented by distinct tokens, as a percentage.

    ``round(unique / max(total, 1) * 100)``, clamped to [0, 100].
    """
    coverage = round(unique_tokens / max(total_occurrences, 1) * 100)
    return max(0, min(100, coverage))


class TokenAggregator:
    """Groups token occurrences by token name."""

    def aggregate(self, per_file_occurrences: OccurrenceInput) -> list[TokenUsageResult]:
        """
        Build one TokenUsageResult per token name.

        Args:
            per_file_occurrences: Mapping of file path to occurrences, or a
                                  flat iterable of occurrences

        Returns:
            Results ordered by total count descending, then token name
        """
        if isinstance(per_file_occurrences, Mapping):
            occurrences: Iterable[TokenOccurrence] = (
                o for file_occurrences in per_file_occurrences.values() for o in file_occurrences
            )
        else:
            occurrences = per_file_occurrences

        grouped: dict[str, list[TokenOccurrence]] = defaultdict(list)
        for occurrence in occurrences:
            grouped[occurrence.token_name].append(occurrence)

        results = [
            TokenUsageResult(
                token_name=name,
                token_type=token_occurrences[0].format_name,
                occurrences=tuple(token_occurrences),
                files=tuple(sorted({o.file_path for o in token_occurrences})),
                category=infer_category(name),
            )
            for name, token_occurrences in grouped.items()
        ]
        results.sort(key=lambda r: (-r.total_count, r.token_name))
        return results
