"""
MySQL 慢查詢 LOG 解析器

逐行掃描 LOG，依固定前綴判斷每一行的類型，將欄位累積到組裝中的記錄，
遇到下一筆記錄的 `# Time:` 邊界時才把上一筆記錄交出。
"""

import logging
import re
from enum import Enum
from typing import Iterable, Iterator, Optional

from core.sql_analyzer import SQLAnalyzer
from models.schemas import RawEntry

logger = logging.getLogger(__name__)

BOUNDARY_MARKER = "# Time:"

QUERY_TIME_PATTERN = re.compile(
    r"# Query_time: ([0-9.]+) +Lock_time: ([0-9.]+) +Rows_sent: ([0-9.]+) +Rows_examined: ([0-9.]+)"
)
TIMESTAMP_PATTERN = re.compile(r"SET timestamp=([0-9]+)")
THREAD_ID_PATTERN = re.compile(r"# Thread_id: *([0-9]+)")
USER_HOST_PATTERN = re.compile(r"# User@Host: .* Id: *([0-9]+)")

# 不含查詢內容的行
IGNORED_PREFIXES = (
    "#",
    "Tcp port:",
    "use ",
    "/* ",
    "/rdsdbbin",
    "@timestamp,@message",
    "Time         ",
)


class LogFormat(str, Enum):
    """LOG 格式"""
    STANDARD = "standard"
    CLOUDWATCH = "cloudwatch"


class ParserState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


class SlowLogParseError(ValueError):
    """LOG 中的標記行格式錯誤"""

    def __init__(self, line_number: int, line: str, reason: str):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"第 {line_number} 行解析失敗 ({reason}): {line!r}")


def read_lines(path: str) -> Iterator[str]:
    """逐行讀取 LOG 檔案（單次、不可重播）"""
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        for line in f:
            yield line


class LogParser:
    """MySQL 慢查詢 LOG 解析器"""

    def __init__(self, log_format: LogFormat = LogFormat.STANDARD):
        self.log_format = LogFormat(log_format)
        self.pending = RawEntry()
        self.line_number = 0

    @property
    def state(self) -> ParserState:
        if self.pending.is_empty():
            return ParserState.IDLE
        return ParserState.ACCUMULATING

    def parse_lines(self, lines: Iterable[str]) -> Iterator[RawEntry]:
        """
        依序解析所有行，每遇到邊界就產出上一筆完整記錄

        最後一筆記錄之後若沒有 `# Time:` 邊界，該筆記錄不會被產出。

        Args:
            lines: LOG 行序列

        Returns:
            Iterator[RawEntry]: 完整的查詢記錄
        """
        for line in lines:
            entry = self.process_line(line)
            if entry is not None:
                yield entry

    def process_line(self, line: str) -> Optional[RawEntry]:
        """
        處理單行 LOG

        Args:
            line: 單行文字（可含結尾換行）

        Returns:
            Optional[RawEntry]: 只有在邊界行提交上一筆記錄時才回傳
        """
        self.line_number += 1
        line = line.rstrip("\r\n")

        if self._is_boundary(line):
            return self._commit()

        if line.startswith("# Query_time"):
            m = self._match(QUERY_TIME_PATTERN, line, "Query_time")
            try:
                self.pending.query_time = float(m.group(1))
                self.pending.lock_time = float(m.group(2))
            except ValueError as e:
                raise SlowLogParseError(self.line_number, line, "Query_time") from e
        elif line.startswith("SET timestamp="):
            m = self._match(TIMESTAMP_PATTERN, line, "SET timestamp")
            self.pending.unix_timestamp = int(m.group(1))
        elif line.startswith("# Thread_id:"):
            m = self._match(THREAD_ID_PATTERN, line, "Thread_id")
            self.pending.connection_id = int(m.group(1))
        elif line.startswith("# User@Host"):
            m = self._match(USER_HOST_PATTERN, line, "User@Host")
            self.pending.connection_id = int(m.group(1))
        elif line.startswith(IGNORED_PREFIXES):
            pass
        else:
            self.pending.query_text += line
        return None

    def _is_boundary(self, line: str) -> bool:
        if self.log_format is LogFormat.CLOUDWATCH:
            return BOUNDARY_MARKER in line
        return line.startswith(BOUNDARY_MARKER)

    def _match(self, pattern: re.Pattern, line: str, marker: str) -> re.Match:
        m = pattern.search(line)
        if not m:
            raise SlowLogParseError(self.line_number, line, marker)
        return m

    def _commit(self) -> Optional[RawEntry]:
        entry, self.pending = self.pending, RawEntry()
        if entry.query_text:
            entry.normalized_query = SQLAnalyzer.normalize_sql(entry.query_text)
        if not entry.normalized_query:
            if not entry.is_empty():
                logger.debug("第 %d 行：略過沒有查詢內容的記錄", self.line_number)
            return None
        return entry
