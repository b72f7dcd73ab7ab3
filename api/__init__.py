"""
API 層

FastAPI routers，只負責 HTTP 轉換與錯誤對應：
- rooms：房間與隊伍查詢
- rounds：隊伍決策、提交、現金流預覽、歷史紀錄
- game：回合開始與回合結算
"""
