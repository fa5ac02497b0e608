"""
資料結構定義
"""

from typing import List, Optional, Dict, Any
from dataclasses import dataclass, field, asdict


@dataclass
class RawEntry:
    """組裝中的單筆慢查詢記錄"""
    query_text: str = ""
    query_time: Optional[float] = None
    lock_time: Optional[float] = None
    unix_timestamp: Optional[int] = None
    connection_id: Optional[int] = None
    # 提交時由解析器填入的正規化查詢
    normalized_query: Optional[str] = None

    def is_empty(self) -> bool:
        return (
            not self.query_text
            and self.query_time is None
            and self.lock_time is None
            and self.unix_timestamp is None
            and self.connection_id is None
        )


@dataclass
class AggregatedStat:
    """同一個正規化查詢的累計統計"""
    query: str
    count: int = 1
    query_time: float = 0.0
    lock_time: float = 0.0
    total_time: float = 0.0
    unix_timestamp: Optional[int] = None
    connection_id: Optional[int] = None

    @property
    def average_time(self) -> float:
        return self.total_time / self.count

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ConnectionBucket:
    """同一時間戳記的查詢集合"""
    unix_timestamp: Optional[int]
    count: int
    queries: List[str] = field(default_factory=list)


@dataclass
class AnalysisMetadata:
    """分析檔案元資料"""
    original_filename: str
    upload_time: str
    log_format: str
    lines_read: int
    total_entries: int
    total_templates: int
    total_buckets: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CurrentAnalysis:
    """當前分析資料"""
    name: str
    stats: List[AggregatedStat] = field(default_factory=list)
    buckets: List[ConnectionBucket] = field(default_factory=list)
