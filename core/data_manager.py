"""
分析資料管理器
"""

import io
import json
import logging
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core.config import AnalyzerConfig
from core.log_parser import LogFormat, LogParser
from core.report_writer import write_connections_csv, write_timings_csv
from core.sql_analyzer import SQLAnalyzer, group_by_timestamp
from models.schemas import AggregatedStat, AnalysisMetadata, CurrentAnalysis

logger = logging.getLogger(__name__)

DEFAULT_ANALYSIS = "預設分析"
REPORT_NAMES = ("timings", "connections")


class DataManager:
    """分析資料管理器"""

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or AnalyzerConfig()
        self.data_dir = Path(self.config.data_dir)
        self.current_analysis = CurrentAnalysis(name=DEFAULT_ANALYSIS)

    def analyze_lines(
        self,
        lines: Iterable[str],
        log_format: LogFormat = LogFormat.STANDARD,
    ) -> Tuple[SQLAnalyzer, int]:
        """
        單次掃描所有 LOG 行並累計統計

        Args:
            lines: LOG 行序列
            log_format: LOG 格式

        Returns:
            Tuple[SQLAnalyzer, int]: 累計後的分析器與讀取的行數
        """
        parser = LogParser(log_format)
        analyzer = SQLAnalyzer()
        interval = self.config.progress_interval
        start_time = time.monotonic()

        for line in lines:
            entry = parser.process_line(line)
            if entry is not None:
                analyzer.merge(entry)
            if interval and parser.line_number % interval == 0:
                elapsed = time.monotonic() - start_time
                logger.info(
                    "已讀取 %s 行，不同查詢數: %s，耗時: %.3fs",
                    f"{parser.line_number:,}", f"{len(analyzer.stats):,}", elapsed,
                )
                start_time = time.monotonic()

        if not parser.pending.is_empty():
            logger.debug("LOG 結尾沒有 # Time: 邊界，最後一筆記錄未計入")
        return analyzer, parser.line_number

    def write_reports(self, analyzer: SQLAnalyzer, output_dir: Path) -> Tuple[Path, Path]:
        """
        輸出兩份 CSV 報表

        Args:
            analyzer: 已累計完成的分析器
            output_dir: 輸出目錄

        Returns:
            Tuple[Path, Path]: 查詢耗時報表與連線數報表的路徑
        """
        output_dir = Path(output_dir)
        timings_path = output_dir / self.config.timings_filename
        connections_path = output_dir / self.config.connections_filename
        write_timings_csv(analyzer.timing_rows(), timings_path, self.config.max_cell_length)
        write_connections_csv(analyzer.connection_buckets(), connections_path, self.config.max_cell_length)
        return timings_path, connections_path

    def save_analysis(
        self,
        analysis_name: str,
        log_content: str,
        original_filename: str,
        log_format: LogFormat = LogFormat.STANDARD,
    ) -> Dict[str, Any]:
        """
        儲存新的分析資料

        Args:
            analysis_name: 分析檔案名稱
            log_content: LOG 檔案內容
            original_filename: 原始檔案名稱
            log_format: LOG 格式

        Returns:
            Dict[str, Any]: 儲存結果資訊
        """
        analysis_path = self._analysis_path(analysis_name)
        analysis_path.mkdir(parents=True, exist_ok=True)

        try:
            # 儲存原始檔案
            with open(analysis_path / f"original_{Path(original_filename).name}", "w", encoding="utf-8") as f:
                f.write(log_content)

            # 與讀檔相同的換行規則（\n、\r、\r\n）
            lines = io.StringIO(log_content, newline=None)
            analyzer, lines_read = self.analyze_lines(lines, log_format)
        except Exception:
            # 清理失敗的目錄
            shutil.rmtree(analysis_path, ignore_errors=True)
            raise

        return self.store_analysis(analysis_name, analyzer, lines_read, original_filename, log_format)

    def store_analysis(
        self,
        analysis_name: str,
        analyzer: SQLAnalyzer,
        lines_read: int,
        original_filename: str,
        log_format: LogFormat = LogFormat.STANDARD,
    ) -> Dict[str, Any]:
        """將分析結果（報表、統計、元資料）寫入分析目錄並設為當前分析"""
        analysis_path = self._analysis_path(analysis_name)
        analysis_path.mkdir(parents=True, exist_ok=True)

        try:
            self.write_reports(analyzer, analysis_path)

            stats_dict = [stat.to_dict() for stat in analyzer.stats.values()]
            with open(analysis_path / "stats.json", "w", encoding="utf-8") as f:
                json.dump(stats_dict, f, ensure_ascii=False, indent=2)

            buckets = analyzer.connection_buckets()
            metadata = AnalysisMetadata(
                original_filename=original_filename,
                upload_time=datetime.now().isoformat(),
                log_format=LogFormat(log_format).value,
                lines_read=lines_read,
                total_entries=analyzer.entries_merged,
                total_templates=len(analyzer.stats),
                total_buckets=len(buckets),
            )
            with open(analysis_path / "metadata.json", "w", encoding="utf-8") as f:
                json.dump(metadata.to_dict(), f, ensure_ascii=False, indent=2)
        except Exception:
            shutil.rmtree(analysis_path, ignore_errors=True)
            raise

        self.current_analysis = CurrentAnalysis(
            name=analysis_name,
            stats=analyzer.timing_rows(),
            buckets=buckets,
        )
        logger.info("✅ 分析 '%s' 已儲存到 %s", analysis_name, analysis_path)

        return {
            "success": True,
            "message": f"LOG檔案 '{original_filename}' 上傳並分析完成",
            "analysis_name": analysis_name,
            "lines_read": lines_read,
            "total_entries": analyzer.entries_merged,
            "total_templates": len(analyzer.stats),
            "total_buckets": len(buckets),
        }

    def load_analysis_data(self, analysis_name: str = DEFAULT_ANALYSIS) -> CurrentAnalysis:
        """
        載入指定的分析資料

        Args:
            analysis_name: 分析檔案名稱

        Returns:
            CurrentAnalysis: 當前分析資料
        """
        if analysis_name == DEFAULT_ANALYSIS:
            self.current_analysis = CurrentAnalysis(name=DEFAULT_ANALYSIS)
            return self.current_analysis

        analysis_path = self._analysis_path(analysis_name)
        if not (analysis_path / "stats.json").exists():
            raise FileNotFoundError(f"分析檔案不存在: {analysis_name}")

        with open(analysis_path / "stats.json", "r", encoding="utf-8") as f:
            stats = [AggregatedStat(**item) for item in json.load(f)]

        self.current_analysis = CurrentAnalysis(
            name=analysis_name,
            stats=sorted(stats, key=lambda s: s.total_time, reverse=True),
            buckets=group_by_timestamp(stats),
        )
        return self.current_analysis

    def delete_analysis(self, analysis_name: str) -> Dict[str, Any]:
        """
        刪除指定的分析檔案

        Args:
            analysis_name: 分析檔案名稱

        Returns:
            Dict[str, Any]: 刪除結果資訊
        """
        if analysis_name == DEFAULT_ANALYSIS:
            raise ValueError("無法刪除預設分析")

        analysis_path = self._analysis_path(analysis_name)
        if not analysis_path.exists():
            raise FileNotFoundError("分析檔案不存在")

        shutil.rmtree(analysis_path)

        # 如果刪除的是當前分析，切換回預設
        if self.current_analysis.name == analysis_name:
            self.load_analysis_data(DEFAULT_ANALYSIS)

        return {
            "success": True,
            "message": f"分析檔案 '{analysis_name}' 已刪除",
            "current_analysis": self.current_analysis.name,
        }

    def get_analysis_files(self) -> List[Dict[str, Any]]:
        """獲取所有分析檔案列表（新到舊）"""
        analysis_files = []
        if not self.data_dir.exists():
            return []
        for analysis_path in self.data_dir.iterdir():
            if analysis_path.is_dir() and (analysis_path / "stats.json").exists():
                analysis_files.append({
                    "name": analysis_path.name,
                    "is_current": analysis_path.name == self.current_analysis.name,
                    "metadata": self._load_metadata(analysis_path.name),
                })
        return sorted(analysis_files, key=lambda x: x["metadata"].get("upload_time", ""), reverse=True)

    def get_report_path(self, analysis_name: str, report: str) -> Path:
        """取得已儲存分析的 CSV 報表路徑"""
        if report not in REPORT_NAMES:
            raise ValueError(f"未知的報表類型: {report}")
        filename = self.config.timings_filename if report == "timings" else self.config.connections_filename
        report_path = self._analysis_path(analysis_name) / filename
        if not report_path.exists():
            raise FileNotFoundError(f"報表不存在: {analysis_name}/{report}")
        return report_path

    def get_current_analysis_info(self) -> Dict[str, Any]:
        """獲取當前分析的基本資訊"""
        stats = self.current_analysis.stats
        total_time = sum(stat.total_time for stat in stats)
        return {
            "name": self.current_analysis.name,
            "total_templates": len(stats),
            "total_entries": sum(stat.count for stat in stats),
            "total_buckets": len(self.current_analysis.buckets),
            "total_time": total_time,
            "upload_time": self._load_metadata(self.current_analysis.name).get("upload_time", "未知"),
        }

    def _load_metadata(self, analysis_name: str) -> Dict[str, Any]:
        """載入分析檔案的元資料"""
        metadata_file = self.data_dir / analysis_name / "metadata.json"
        if metadata_file.exists():
            try:
                with open(metadata_file, "r", encoding="utf-8") as f:
                    return json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("⚠️ 載入元資料失敗: %s", e)

        # 返回預設元資料
        return {
            "total_entries": 0,
            "total_templates": 0,
            "upload_time": "未知",
        }

    def _analysis_path(self, analysis_name: str) -> Path:
        if (
            not analysis_name
            or analysis_name in (".", "..")
            or "/" in analysis_name
            or "\\" in analysis_name
        ):
            raise ValueError(f"無效的分析名稱: {analysis_name!r}")
        return self.data_dir / analysis_name
