from typing import Any, Dict, Iterable, List, Optional, Tuple

from .rank_index import RankIndexMaintainer
from ..catalog import IndexType
from ..core.exceptions import InternalError, InvalidArgumentError
from ..core.types import coerce_double, make_field


class RankIndexAPI:
    """
    Leaderboard queries over a rank index of a RecordStore.

    Ranks are 1-based. With the default ``desc`` order rank 1 is the highest
    score; with ``asc`` it is the lowest. Ties are broken by primary key in
    the same direction as scores, so equal scores come out by descending
    primary key under ``desc``. All reads are snapshot reads. Grouped indexes
    take the group as the ``grouping`` keyword.
    """

    def __init__(self, store, index_name: str):
        """
        Raises:
            IndexNotFoundError: If the schema has no such index
            InvalidArgumentError: If the index is not a rank index
        """
        index = store.schema.get_index(index_name)
        if index.type != IndexType.RANK:
            raise InvalidArgumentError(
                f"Index '{index_name}' is a {index.type.value} index, not a rank index")
        self.store = store
        self.index = index
        self.record_type = store.schema.get_record_type_for_index(index_name).name
        self.maintainer: RankIndexMaintainer = store.index_manager.get_maintainer(index_name)

    @property
    def descending(self) -> bool:
        return self.maintainer.order == "desc"

    def _set(self, grouping: Iterable[Any]):
        return self.maintainer.grouped_set(grouping)

    def _check_rank(self, rank: int, name: str = "rank") -> None:
        if isinstance(rank, bool) or not isinstance(rank, int) or rank < 1:
            raise InvalidArgumentError(f"{name} must be a positive integer, got {rank!r}")

    def _position(self, rank: int, total: int) -> int:
        return total - rank if self.descending else rank - 1

    def _load(self, member: Tuple[Any, ...]) -> Dict[str, Any]:
        record = self.store.load_record(self.record_type, member[1:], snapshot=True)
        if record is None:
            raise InternalError(
                f"Rank index '{self.index.name}' references missing record {member[1:]!r}")
        return record

    def count(self, grouping: Iterable[Any] = ()) -> int:
        return self._set(grouping).count(self.store.transaction, snapshot=True)

    def _member_at(self, rank: int, grouping: Iterable[Any]) -> Optional[Tuple[Any, ...]]:
        self._check_rank(rank)
        ranked = self._set(grouping)
        tr = self.store.transaction
        total = ranked.count(tr, snapshot=True)
        if rank > total:
            return None
        return ranked.select(tr, self._position(rank, total), snapshot=True)

    def by_rank(self, rank: int, grouping: Iterable[Any] = ()) -> Optional[Dict[str, Any]]:
        """Return the record at rank, or None if rank is past the end."""
        member = self._member_at(rank, grouping)
        return None if member is None else self._load(member)

    def score_at_rank(self, rank: int, grouping: Iterable[Any] = ()) -> Optional[Any]:
        member = self._member_at(rank, grouping)
        return None if member is None else member[0]

    def range(self, start_rank: int, end_rank: int,
              grouping: Iterable[Any] = ()) -> List[Dict[str, Any]]:
        """
        Return the records ranked start_rank through end_rank, inclusive,
        best first. Ranks past the end are ignored.
        """
        self._check_rank(start_rank, "start_rank")
        self._check_rank(end_rank, "end_rank")
        if end_rank < start_rank:
            raise InvalidArgumentError(
                f"end_rank {end_rank} is before start_rank {start_rank}")

        ranked = self._set(grouping)
        tr = self.store.transaction
        total = ranked.count(tr, snapshot=True)
        if start_rank > total:
            return []
        end_rank = min(end_rank, total)

        low, high = sorted((self._position(start_rank, total),
                            self._position(end_rank, total)))
        first = ranked.select(tr, low, snapshot=True)
        members = list(ranked.scan(tr, begin=first, limit=high - low + 1))
        if self.descending:
            members.reverse()
        return [self._load(m) for m in members]

    def top(self, n: int, grouping: Iterable[Any] = ()) -> List[Dict[str, Any]]:
        """Return the n best records."""
        self._check_rank(n, "n")
        return self.range(1, n, grouping=grouping)

    def get_rank(self, score: Any, primary_key: Any,
                 grouping: Iterable[Any] = ()) -> Optional[int]:
        """Return the rank of the (score, primary_key) entry, or None if absent."""
        member = (self._normalize(score),) + self.store.normalize_primary_key(primary_key)
        ranked = self._set(grouping)
        tr = self.store.transaction
        position = ranked.rank(tr, member, snapshot=True)
        if position is None:
            return None
        if self.descending:
            return ranked.count(tr, snapshot=True) - position
        return position + 1

    def by_score_range(self, min_score: Any, max_score: Any,
                       grouping: Iterable[Any] = ()) -> List[Dict[str, Any]]:
        """Return the records with min_score <= score <= max_score, best first."""
        low = self._normalize(min_score)
        high = self._normalize(max_score)
        if low > high:
            raise InvalidArgumentError(
                f"min_score {min_score!r} is greater than max_score {max_score!r}")
        members = self._set(grouping).scan(self.store.transaction, begin=(low,),
                                           end=(high,), reverse=self.descending)
        return [self._load(m) for m in members]

    def _normalize(self, score: Any) -> Any:
        try:
            return coerce_double(make_field(score))
        except (TypeError, ValueError, InternalError) as e:
            raise InvalidArgumentError(f"Invalid score {score!r}: {e}")
