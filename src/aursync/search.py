from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from .aur import AurPackage
from .logger import setup_logger

_logger = setup_logger()


def prepare_terms(terms: Sequence[str]) -> List[str]:
    """Lowercase the terms and order them shortest first."""
    return sorted((t.lower() for t in terms), key=len)


def rank_search(
    terms: Sequence[str],
    fetch: Callable[[str], List[AurPackage]],
    alpha: bool = False,
    reverse: bool = False,
    limit: Optional[int] = None,
) -> List[AurPackage]:
    """
    Search with the longest term, then keep only records matching every other
    term in their name or description.

    Results are sorted by name when ``alpha`` is set and by votes (highest
    first) otherwise. Both sorts are stable.
    """
    if not terms:
        raise ValueError("At least one search term is required.")

    query = prepare_terms(terms)
    initial = query.pop()
    _logger.debug("Searching the AUR for %r, filtering by %s", initial, query)
    matches = fetch(initial)

    def _matches_all(p: AurPackage) -> bool:
        name = p.name.lower()
        description = (p.description or "").lower()
        return all(t in name or t in description for t in query)

    matches = [m for m in matches if _matches_all(m)]

    if alpha:
        matches.sort(key=lambda p: p.name)
    else:
        matches.sort(key=lambda p: p.num_votes, reverse=True)
    if reverse:
        matches.reverse()
    if limit is not None:
        matches = matches[:limit]
    return matches
