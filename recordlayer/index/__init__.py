from .index_maintainer import IndexMaintainer, encode_int64, decode_int64
from .sum_index import SumIndexMaintainer
from .count_index import CountIndexMaintainer
from .average_index import AverageIndexMaintainer
from .bounded_heap import BoundedHeap
from .vector_index import VectorIndexMaintainer
from .ranked_set import RankedSet
from .rank_index import RankIndexMaintainer
from .rank_index_api import RankIndexAPI
from .min_max_index import MinMaxIndexMaintainer
from .index_manager import IndexManager, create_maintainer

__all__ = [
    "IndexMaintainer",
    "encode_int64",
    "decode_int64",
    "SumIndexMaintainer",
    "CountIndexMaintainer",
    "AverageIndexMaintainer",
    "BoundedHeap",
    "VectorIndexMaintainer",
    "RankedSet",
    "RankIndexMaintainer",
    "RankIndexAPI",
    "MinMaxIndexMaintainer",
    "IndexManager",
    "create_maintainer",
]
