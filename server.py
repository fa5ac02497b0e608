"""
慢查詢分析 API 服務
"""

import logging
from typing import Optional

from fastapi import FastAPI

from api.analysis import create_analysis_routes
from api.queries import create_query_routes
from api.upload import create_upload_routes
from core.config import AnalyzerConfig, load_config
from core.data_manager import DataManager

logger = logging.getLogger(__name__)


def create_app(data_manager: Optional[DataManager] = None) -> FastAPI:
    """建立 FastAPI 應用並掛上所有路由"""
    data_manager = data_manager or DataManager(load_config())

    app = FastAPI(title="MySQL Slow Log Analyzer")
    app.state.data_manager = data_manager
    app.include_router(create_upload_routes(data_manager))
    app.include_router(create_analysis_routes(data_manager))
    app.include_router(create_query_routes(data_manager))
    return app


def main(config: Optional[AnalyzerConfig] = None):
    import uvicorn

    config = config or load_config()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("🚀 啟動 SQL 慢查詢分析服務...")
    logger.info("📊 服務器地址: http://%s:%d", config.host, config.port)
    uvicorn.run(create_app(DataManager(config)), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
