"""
MySQL 慢查詢 LOG 分析工具（命令列）

讀取標準或 CloudWatch 匯出的慢查詢 LOG，輸出查詢耗時報表與連線數報表。
"""

import logging
import sys
from argparse import ArgumentParser
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from core.config import load_config
from core.data_manager import DataManager
from core.log_parser import LogFormat, SlowLogParseError, read_lines

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    """建立命令列參數解析器"""
    parser = ArgumentParser(
        prog="slow-log-analyzer",
        description="MySQL Slow Log Analyzer: per-query timings and per-timestamp connections as CSV.",
        add_help=False,
    )
    parser.add_argument(
        "-h", "--help", "-?",
        action="help",
        help="Show this help message and exit",
    )
    parser.add_argument(
        "filename",
        help="Slow query log file",
    )
    parser.add_argument(
        "--cloudwatch-format",
        action="store_true",
        help="Input was exported from CloudWatch (markers may appear mid-line)",
    )
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory for the CSV reports (default: current directory)",
    )
    parser.add_argument(
        "--timings-file",
        help="File name of the query timings report",
    )
    parser.add_argument(
        "--connections-file",
        help="File name of the connections report",
    )
    parser.add_argument(
        "--save-as",
        metavar="NAME",
        help="Also store the analysis under the data directory with this name",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )
    return parser


def run(args) -> int:
    """執行分析流程，回傳結束代碼"""
    config = load_config()
    overrides = {}
    if args.timings_file:
        overrides["timings_filename"] = args.timings_file
    if args.connections_file:
        overrides["connections_filename"] = args.connections_file
    if overrides:
        config = replace(config, **overrides)

    log_format = LogFormat.CLOUDWATCH if args.cloudwatch_format else LogFormat.STANDARD
    data_manager = DataManager(config)

    logger.info("讀取 %s ...", args.filename)
    try:
        analyzer, lines_read = data_manager.analyze_lines(read_lines(args.filename), log_format)
    except OSError as e:
        logger.error("無法讀取 LOG 檔案: %s", e)
        return 1
    except SlowLogParseError as e:
        logger.error("LOG 格式錯誤: %s", e)
        return 1

    output_dir = Path(args.output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        timings_path, connections_path = data_manager.write_reports(analyzer, output_dir)
    except OSError as e:
        logger.error("無法寫入報表: %s", e)
        return 1

    if args.save_as:
        try:
            data_manager.store_analysis(
                args.save_as, analyzer, lines_read, Path(args.filename).name, log_format
            )
        except ValueError as e:
            logger.error("無法儲存分析: %s", e)
            return 1

    logger.info(
        "✅ 完成：%d 行，%d 筆查詢，%d 種查詢樣板 -> %s, %s",
        lines_read, analyzer.entries_merged, len(analyzer.stats), timings_path, connections_path,
    )
    if analyzer.entries_without_timing:
        logger.warning("⚠️ %d 筆查詢缺少 Query_time，耗時以 0 計算", analyzer.entries_without_timing)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    return run(args)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
