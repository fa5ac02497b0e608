"""
分析管理相關 API 路由
"""

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse
from core.data_manager import DataManager


def create_analysis_routes(data_manager: DataManager):
    """創建分析管理相關路由"""

    router = APIRouter(prefix="/api", tags=["analysis"])

    @router.post("/switch_analysis/{analysis_name}")
    async def switch_analysis(analysis_name: str):
        """切換到指定的分析檔案"""
        try:
            data_manager.load_analysis_data(analysis_name)
        except FileNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {
            "success": True,
            "message": f"已切換到分析檔案: {analysis_name}",
            "current_analysis": data_manager.current_analysis.name
        }

    @router.get("/analysis_files")
    async def get_analysis_files():
        """取得可用的分析檔案列表"""
        return {"analysis_files": data_manager.get_analysis_files()}

    @router.delete("/analysis_files/{analysis_name}")
    async def delete_analysis(analysis_name: str):
        """刪除指定的分析檔案"""
        try:
            return data_manager.delete_analysis(analysis_name)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except FileNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    @router.get("/reports/{analysis_name}/{report}")
    async def download_report(analysis_name: str, report: str):
        """下載已儲存分析的 CSV 報表"""
        try:
            report_path = data_manager.get_report_path(analysis_name, report)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except FileNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return FileResponse(report_path, media_type="text/csv", filename=report_path.name)

    return router
