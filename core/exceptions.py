"""
自定義異常類別

集中管理所有業務邏輯異常，方便 API 層統一處理
"""


class BizSimException(Exception):
    """所有遊戲異常的基類"""
    pass


# ============ Room 相關異常 ============

class RoomNotFound(BizSimException):
    """房間不存在"""
    def __init__(self, room_code):
        self.room_code = room_code
        super().__init__(f"Room {room_code} not found")


class InvalidTeamCount(BizSimException):
    """隊伍數量不符合要求（2 ~ 12 隊）"""
    pass


# ============ Team 相關異常 ============

class TeamNotFound(BizSimException):
    """隊伍不存在"""
    def __init__(self, team_id):
        self.team_id = team_id
        super().__init__(f"Team {team_id} not found")


# ============ Round 相關異常 ============

class InvalidRoundNumber(BizSimException):
    """回合數必須在 1 ~ 4 之間"""
    def __init__(self, round_number):
        self.round_number = round_number
        super().__init__(f"Round must be between 1 and 4, got {round_number}")


class DecisionAlreadySubmitted(BizSimException):
    """決策已提交，不能再修改"""
    pass


class TechLevelLocked(BizSimException):
    """本回合尚未開放此製程技術等級"""
    pass


class ApprovalsMissing(BizSimException):
    """其他五個職務尚未全部核准，CEO 不能提交"""
    def __init__(self, missing):
        self.missing = missing
        super().__init__(f"Waiting for approval from: {', '.join(missing)}")


# ============ 狀態轉換異常 ============

class InvalidStateTransition(BizSimException):
    """非法的狀態轉換"""
    pass
