"""
檔案上傳相關 API 路由
"""

from fastapi import APIRouter, UploadFile, File, Form, HTTPException
from core.data_manager import DataManager
from core.log_parser import LogFormat, SlowLogParseError


def create_upload_routes(data_manager: DataManager):
    """創建上傳相關路由"""

    router = APIRouter(prefix="/api", tags=["upload"])

    @router.post("/upload_log")
    async def upload_log(
        file: UploadFile = File(...),
        analysis_name: str = Form(...),
        cloudwatch_format: bool = Form(False)
    ):
        """上傳慢查詢 LOG 並產生報表"""

        # 讀取檔案內容
        content = await file.read()
        log_content = content.decode("utf-8", errors="ignore")

        # 確保檔案名稱不為 None
        filename = file.filename or "unknown_file"
        log_format = LogFormat.CLOUDWATCH if cloudwatch_format else LogFormat.STANDARD

        try:
            return data_manager.save_analysis(analysis_name, log_content, filename, log_format)
        except SlowLogParseError as e:
            raise HTTPException(status_code=400, detail=f"LOG 格式錯誤: {e}")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"處理檔案時發生錯誤: {str(e)}")

    return router
