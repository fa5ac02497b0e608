"""
設定模組 — 由環境變數載入的 frozen dataclass
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AnalyzerConfig:
    data_dir: str = "analysis_data"
    timings_filename: str = "query-timings-mysql.csv"
    connections_filename: str = "connections-mysql.csv"
    # Google Sheets 單一儲存格最多 50k 字元
    max_cell_length: int = 50000
    progress_interval: int = 10000
    host: str = "0.0.0.0"
    port: int = 8000


def load_config() -> AnalyzerConfig:
    """從環境變數建立 AnalyzerConfig，未設定時使用預設值"""
    return AnalyzerConfig(
        data_dir=os.environ.get("SLOWLOG_DATA_DIR", AnalyzerConfig.data_dir),
        timings_filename=os.environ.get("SLOWLOG_TIMINGS_FILE", AnalyzerConfig.timings_filename),
        connections_filename=os.environ.get("SLOWLOG_CONNECTIONS_FILE", AnalyzerConfig.connections_filename),
        max_cell_length=int(os.environ.get("SLOWLOG_MAX_CELL_LENGTH", AnalyzerConfig.max_cell_length)),
        progress_interval=int(os.environ.get("SLOWLOG_PROGRESS_INTERVAL", AnalyzerConfig.progress_interval)),
        host=os.environ.get("SLOWLOG_HOST", AnalyzerConfig.host),
        port=int(os.environ.get("SLOWLOG_PORT", AnalyzerConfig.port)),
    )
