"""
Map Resolver — find exactly one global map for a free-text fragment or id.

The map list is fetched once at startup (load_global_maps) and wrapped in
an immutable MapIndex that is handed to whoever needs it. Nothing in here
mutates the snapshot, so reads need no locking.

Name matching is a subsequence match scored like skim/fzf: every matched
character earns a base score, matches at word boundaries and runs of
consecutive matches earn bonuses, and gaps between matches cost a penalty.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple, Union

from clients.global_api_errors import GlobalAPIError
from models.maps import GlobalMap, KZGOMap
from tools.resolution_errors import MapListUnavailableError, MapNotFoundError

logger = logging.getLogger("MapResolver")

SCORE_MATCH = 16
SCORE_GAP_START = -3
SCORE_GAP_EXTENSION = -1
BONUS_BOUNDARY = SCORE_MATCH // 2
BONUS_CONSECUTIVE = -(SCORE_GAP_START + SCORE_GAP_EXTENSION)
BONUS_FIRST_CHAR_MULTIPLIER = 2

# A candidate must score strictly above this to count as a match.
MIN_SCORE = 50

_SEPARATORS = set("_-. /")


def _boundary_bonus(text: str, index: int) -> int:
    if index == 0:
        return BONUS_BOUNDARY
    prev, cur = text[index - 1], text[index]
    if prev in _SEPARATORS and cur not in _SEPARATORS:
        return BONUS_BOUNDARY
    if prev.isalpha() and cur.isdigit():
        return BONUS_BOUNDARY // 2
    return 0


def _gap_penalty(gap: int) -> int:
    if gap <= 0:
        return 0
    return SCORE_GAP_START + SCORE_GAP_EXTENSION * (gap - 1)


def fuzzy_score(candidate: str, query: str) -> Optional[int]:
    """Score `query` as a subsequence of `candidate` (both compared lowercased).

    Returns None if query is not a subsequence of candidate, 0 for an empty
    query, otherwise the score of the best alignment.
    """
    text = candidate.lower()
    pattern = query.lower()
    if not pattern:
        return 0

    # Cheap rejection before the DP.
    pos = 0
    for ch in pattern:
        pos = text.find(ch, pos)
        if pos < 0:
            return None
        pos += 1

    bonuses = [_boundary_bonus(text, j) for j in range(len(text))]
    n = len(text)
    # best[j] = best score with the current pattern char matched at text[j]
    prev_row: List[Optional[int]] = [None] * n
    for i, ch in enumerate(pattern):
        row: List[Optional[int]] = [None] * n
        for j in range(n):
            if text[j] != ch:
                continue
            if i == 0:
                row[j] = SCORE_MATCH + bonuses[j] * BONUS_FIRST_CHAR_MULTIPLIER
                continue
            best: Optional[int] = None
            for k in range(j):
                if prev_row[k] is None:
                    continue
                if k == j - 1:
                    score = prev_row[k] + SCORE_MATCH + max(bonuses[j], BONUS_CONSECUTIVE)
                else:
                    score = prev_row[k] + _gap_penalty(j - k - 1) + SCORE_MATCH + bonuses[j]
                if best is None or score > best:
                    best = score
            row[j] = best
        prev_row = row

    scores = [s for s in prev_row if s is not None]
    return max(scores) if scores else None


class MapIndex:
    """Immutable, name-sorted snapshot of the global maps."""

    def __init__(self, maps: Iterable[GlobalMap]):
        self._maps: Tuple[GlobalMap, ...] = tuple(sorted(maps, key=lambda m: m.name))
        self._by_id: Dict[int, GlobalMap] = {m.id: m for m in self._maps}

    def __len__(self) -> int:
        return len(self._maps)

    def __iter__(self):
        return iter(self._maps)

    @property
    def maps(self) -> Tuple[GlobalMap, ...]:
        return self._maps

    @property
    def names(self) -> List[str]:
        return [m.name for m in self._maps]

    def get_by_id(self, map_id: int) -> Optional[GlobalMap]:
        return self._by_id.get(int(map_id))

    def get_by_name(self, name: str) -> Optional[GlobalMap]:
        """Exact, case-insensitive name lookup (no fuzzy matching)."""
        wanted = name.lower()
        for m in self._maps:
            if m.name.lower() == wanted:
                return m
        return None

    def count_by_tier(self) -> Dict[int, int]:
        counts: Dict[int, int] = {}
        for m in self._maps:
            counts[m.tier] = counts.get(m.tier, 0) + 1
        return counts

    def resolve_map(self, identifier: Union[str, int]) -> GlobalMap:
        """Resolve a map id or name fragment to one map.

        An empty string matches every map with score 0 and therefore
        returns the first map by name; autocomplete relies on this.

        Raises:
            MapNotFoundError: nothing matched, or the index is empty.
        """
        if isinstance(identifier, int):
            found = self.get_by_id(identifier)
            if found is None:
                raise MapNotFoundError(str(identifier))
            return found

        query = identifier.strip().lower()
        if query.isascii() and query.isdigit():
            found = self.get_by_id(int(query))
            if found is not None:
                return found

        best: Optional[GlobalMap] = None
        best_score: Optional[int] = None
        for candidate in self._maps:
            score = fuzzy_score(candidate.name, query)
            if score is None:
                continue
            if query and score <= MIN_SCORE:
                continue
            # Strictly greater: ties keep the earlier (alphabetically first) map.
            if best_score is None or score > best_score:
                best, best_score = candidate, score

        if best is None:
            logger.debug(f"No map matches '{identifier}'")
            raise MapNotFoundError(str(identifier))
        logger.debug(f"Resolved '{identifier}' -> {best.name} (score {best_score})")
        return best

    def autocomplete(self, partial: str, limit: int = 25) -> List[str]:
        """Map names containing `partial`, for Discord autocomplete."""
        needle = partial.strip().lower()
        return [m.name for m in self._maps if needle in m.name.lower()][:limit]


def merge_kzgo(maps: Iterable[GlobalMap], kzgo_maps: Iterable[KZGOMap]) -> List[GlobalMap]:
    """Attach KZ:GO details by map name; maps KZ:GO does not know stay as they are."""
    details = {m.name.lower(): m for m in kzgo_maps}
    merged = []
    for m in maps:
        extra = details.get(m.name.lower())
        merged.append(m.with_kzgo(extra) if extra is not None else m)
    return merged


async def load_global_maps(api) -> MapIndex:
    """Fetch every validated map once. Called at startup; failure is fatal.

    KZ:GO details are best-effort: if KZ:GO is down the maps load without
    bonus counts or mapper names.

    Raises:
        MapListUnavailableError: the fetch failed or returned no maps.
    """
    try:
        maps = await api.get_maps()
    except Exception as e:
        raise MapListUnavailableError(f"Failed to fetch global maps: {e}") from e
    if not maps:
        raise MapListUnavailableError("GlobalAPI returned an empty map list.")

    try:
        kzgo_maps = await api.get_kzgo_maps()
    except GlobalAPIError as e:
        logger.warning(f"KZ:GO map details unavailable, continuing without them: {e}")
        kzgo_maps = []

    index = MapIndex(merge_kzgo(maps, kzgo_maps))
    logger.info(f"Loaded {len(index)} global maps.")
    return index
