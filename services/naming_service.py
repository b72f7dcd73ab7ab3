"""
命名服務：生成 Room Code 和隊伍名稱

純計算邏輯，不涉及狀態轉換
"""
import random
import string


def generate_room_code() -> str:
    """
    生成隨機的 4 位大寫字母房間代碼

    範例：ABCD, XYZA

    注意：
    - 不檢查唯一性（由呼叫者負責）
    - 26^4 = 456,976 種可能，同時存在的房間不多，碰撞機率低
    """
    return ''.join(random.choices(string.ascii_uppercase, k=4))


def generate_team_name(position: int) -> str:
    """
    依加入順序產生隊伍名稱

    範例：
        generate_team_name(1) -> "Team 1"
    """
    return f"Team {position}"
