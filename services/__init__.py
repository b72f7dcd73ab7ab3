"""
服務層

這個 package 包含純計算邏輯，不負責狀態轉換：
- game_state / market_config：資料型別與遊戲平衡常數
- demand_service：市場需求
- market_share_service：競價市佔分配
- financial_service：單一隊伍的損益與資產結轉
- valuation_service：資產估值與排行榜
- settlement_service：整個回合的結算流程
- cash_flow_service：現金流預覽
- history_service / naming_service：查詢與命名
"""
