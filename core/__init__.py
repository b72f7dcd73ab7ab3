"""
核心業務邏輯層

這個 package 包含所有回合流程的協調邏輯，包括：
- 狀態機：集中管理房間與決策紀錄的狀態轉換
- Manager：管理 Room 和 Round 的生命週期（讀取 -> 凍結 -> 計算 -> 寫回）
- Locks：並發控制工具
"""
