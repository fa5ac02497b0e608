"""
SQL 查詢分析器
"""

import logging
import re
from typing import Dict, List, Optional

from models.schemas import AggregatedStat, ConnectionBucket, RawEntry

logger = logging.getLogger(__name__)

NUMBER_PATTERN = re.compile(r"[-+]?[0-9]*\.?[0-9]+")
STRING_PATTERN = re.compile(r"'[^']*'")


class SQLAnalyzer:
    """SQL 查詢分析器，以正規化後的查詢為鍵累計耗時"""

    def __init__(self):
        self.stats: Dict[str, AggregatedStat] = {}
        self.entries_merged = 0
        self.entries_without_timing = 0

    @staticmethod
    def normalize_sql(sql: str) -> str:
        """
        SQL 樣板轉換函式

        數字與單引號字串都換成 `?`。結尾若為雙引號，會移除最後兩個字元，
        以維持與既有報表相同的分組鍵。

        Args:
            sql: 原始 SQL 語句

        Returns:
            str: 正規化後的 SQL 樣板
        """
        sql = NUMBER_PATTERN.sub("?", sql)
        sql = STRING_PATTERN.sub("?", sql)
        if sql.endswith('"'):
            sql = sql[:-2]
        return sql

    @staticmethod
    def get_sql_type(sql: str) -> str:
        """
        判斷 SQL 類型

        Args:
            sql: SQL 語句

        Returns:
            str: SQL 類型 (SELECT, INSERT, UPDATE, DELETE, REPLACE, CALL, OTHER)
        """
        match = re.match(r"^\s*(\w+)", sql.lower())
        if not match:
            return "OTHER"
        keyword = match.group(1).upper()
        if keyword in {"SELECT", "INSERT", "UPDATE", "DELETE", "REPLACE", "CALL"}:
            return keyword
        return "OTHER"

    def merge(self, entry: RawEntry) -> None:
        """
        將一筆完整記錄合併進統計

        沒有 Query_time 的記錄以 0 計算耗時。解析器已填入 normalized_query 時
        直接使用，不再重新正規化。

        Args:
            entry: 完整的查詢記錄
        """
        query = entry.normalized_query
        if query is None:
            query = self.normalize_sql(entry.query_text)
        if entry.query_time is None or entry.lock_time is None:
            self.entries_without_timing += 1
            logger.warning("⚠️ 查詢缺少 Query_time 資訊，耗時以 0 計算: %.80s", query)
        query_time = entry.query_time or 0.0
        lock_time = entry.lock_time or 0.0

        stat = self.stats.get(query)
        if stat is None:
            self.stats[query] = AggregatedStat(
                query=query,
                count=1,
                query_time=query_time,
                lock_time=lock_time,
                total_time=query_time + lock_time,
                unix_timestamp=entry.unix_timestamp,
                connection_id=entry.connection_id,
            )
        else:
            stat.count += 1
            stat.total_time += query_time + lock_time
            stat.query_time += query_time
            stat.lock_time += lock_time
        self.entries_merged += 1

    def timing_rows(self) -> List[AggregatedStat]:
        """依總耗時由大到小排序（同耗時維持出現順序）"""
        return sorted(self.stats.values(), key=lambda s: s.total_time, reverse=True)

    def connection_buckets(self) -> List[ConnectionBucket]:
        """依第一次出現的時間戳記分組，時間由小到大（無時間戳記者排最前）"""
        return group_by_timestamp(self.stats.values())


def group_by_timestamp(stats) -> List[ConnectionBucket]:
    timestamp_to_queries: Dict[Optional[int], List[str]] = {}
    for stat in stats:
        timestamp_to_queries.setdefault(stat.unix_timestamp, []).append(stat.query)

    buckets = [
        ConnectionBucket(unix_timestamp=ts, count=len(queries), queries=queries)
        for ts, queries in timestamp_to_queries.items()
    ]
    buckets.sort(key=lambda b: (b.unix_timestamp is not None, b.unix_timestamp or 0))
    return buckets
