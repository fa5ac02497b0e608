"""
CSV 報表輸出
"""

import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional, Union

from models.schemas import AggregatedStat, ConnectionBucket

logger = logging.getLogger(__name__)

MAX_CELL_STRING_LENGTH = 50000
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

TIMINGS_HEADER = '"Total Time","Total Query Time","Total Lock Time","Average Time","Count","Query"'
CONNECTIONS_HEADER = '"Time","Connection Count","Queries"'


def clean_string_for_csv(text: str, max_length: int = MAX_CELL_STRING_LENGTH) -> str:
    """
    讓 Google Sheets / Excel 能正確讀取文字欄位

    雙引號加倍，超過長度上限時截斷並加上 `...`。
    """
    value = text.replace('"', '""')
    if len(value) > max_length:
        return value[:max_length - 3] + "..."
    return value


def format_number(value: float) -> str:
    """
    與 JavaScript Number#toString 相同的數字輸出

    整數值不輸出小數部分；1e-6 以上、1e21 以下以一般小數表示，
    其餘使用科學記號。
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if 1e-6 <= abs(value) < 1e21:
        return format(Decimal(repr(value)), "f")
    return repr(value).replace("e-0", "e-").replace("e+0", "e+")


def format_unix_timestamp(unix_timestamp: Optional[int]) -> str:
    """以本地時間輸出，沒有時間戳記時輸出空字串"""
    if unix_timestamp is None:
        return ""
    return datetime.fromtimestamp(unix_timestamp).strftime(TIMESTAMP_FORMAT)


def format_timing_row(stat: AggregatedStat, max_length: int = MAX_CELL_STRING_LENGTH) -> str:
    return ",".join([
        format_number(stat.total_time),
        format_number(stat.query_time),
        format_number(stat.lock_time),
        format_number(stat.average_time),
        str(stat.count),
        f'"{clean_string_for_csv(stat.query, max_length)}"',
    ])


def format_connection_row(bucket: ConnectionBucket, max_length: int = MAX_CELL_STRING_LENGTH) -> str:
    queries = "\n".join(bucket.queries)
    return ",".join([
        format_unix_timestamp(bucket.unix_timestamp),
        str(bucket.count),
        f'"{clean_string_for_csv(queries, max_length)}"',
    ])


def write_timings_csv(
    stats: Iterable[AggregatedStat],
    path: Union[str, Path],
    max_length: int = MAX_CELL_STRING_LENGTH,
) -> int:
    """
    輸出查詢耗時報表

    Args:
        stats: 已排序的統計資料
        path: 輸出檔案路徑
        max_length: 單一欄位長度上限

    Returns:
        int: 寫入的資料列數
    """
    logger.info("寫入查詢耗時報表: %s", path)
    rows = 0
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(TIMINGS_HEADER + "\n")
        for stat in stats:
            f.write(format_timing_row(stat, max_length) + "\n")
            rows += 1
    return rows


def write_connections_csv(
    buckets: Iterable[ConnectionBucket],
    path: Union[str, Path],
    max_length: int = MAX_CELL_STRING_LENGTH,
) -> int:
    """
    輸出連線數報表

    Args:
        buckets: 已依時間排序的分組
        path: 輸出檔案路徑
        max_length: 單一欄位長度上限

    Returns:
        int: 寫入的資料列數
    """
    logger.info("寫入連線數報表: %s", path)
    rows = 0
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(CONNECTIONS_HEADER + "\n")
        for bucket in buckets:
            f.write(format_connection_row(bucket, max_length) + "\n")
            rows += 1
    return rows
