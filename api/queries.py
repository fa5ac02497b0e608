"""
查詢相關 API 路由
"""

from fastapi import APIRouter, Query
from core.data_manager import DataManager
from core.report_writer import format_unix_timestamp
from core.sql_analyzer import SQLAnalyzer


def create_query_routes(data_manager: DataManager):
    """創建查詢相關路由"""

    # 在函數內創建 router，確保每次都是新的實例
    router = APIRouter(prefix="/api", tags=["queries"])

    @router.get("/timings")
    async def get_timings(
        page: int = Query(1, ge=1),
        size: int = Query(50, ge=1, le=1000),
        search: str = Query("", description="搜尋關鍵字"),
        min_time: float = Query(0, ge=0, description="最小總耗時"),
        sql_type: str = Query("", description="SQL類型篩選")
    ):
        """取得當前分析的查詢耗時統計，支援分頁和篩選"""

        # 篩選資料（已依總耗時降序）
        filtered_data = []
        for stat in data_manager.current_analysis.stats:
            if stat.total_time < min_time:
                continue
            if sql_type and SQLAnalyzer.get_sql_type(stat.query) != sql_type:
                continue
            if search and search.lower() not in stat.query.lower():
                continue
            filtered_data.append(stat)

        # 分頁
        total = len(filtered_data)
        start = (page - 1) * size
        page_data = filtered_data[start:start + size]

        return {
            "data": [
                {
                    "query": stat.query,
                    "sql_type": SQLAnalyzer.get_sql_type(stat.query),
                    "count": stat.count,
                    "total_time": stat.total_time,
                    "query_time": stat.query_time,
                    "lock_time": stat.lock_time,
                    "average_time": stat.average_time
                }
                for stat in page_data
            ],
            "total": total,
            "page": page,
            "size": size,
            "total_pages": (total + size - 1) // size
        }

    @router.get("/connections")
    async def get_connections(
        page: int = Query(1, ge=1),
        size: int = Query(50, ge=1, le=1000)
    ):
        """取得當前分析依時間戳記分組的查詢數"""
        buckets = data_manager.current_analysis.buckets
        total = len(buckets)
        start = (page - 1) * size

        return {
            "data": [
                {
                    "time": format_unix_timestamp(bucket.unix_timestamp),
                    "unix_timestamp": bucket.unix_timestamp,
                    "count": bucket.count,
                    "queries": bucket.queries
                }
                for bucket in buckets[start:start + size]
            ],
            "total": total,
            "page": page,
            "size": size,
            "total_pages": (total + size - 1) // size
        }

    @router.get("/summary")
    async def get_summary():
        """取得當前分析的基本資訊"""
        return data_manager.get_current_analysis_info()

    return router
