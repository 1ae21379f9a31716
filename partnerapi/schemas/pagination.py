# 엔드포인트별 페이지네이션 제한
class PaginationLimits:
    POINTS_HISTORY = {"min": 1, "max": 100, "default": 50}
    DEALS = {"min": 1, "max": 100, "default": 20}
    REDEMPTIONS = {"min": 1, "max": 100, "default": 50}
    USER_LIST = {"min": 1, "max": 100, "default": 20}
    NOTIFICATIONS = {"min": 1, "max": 100, "default": 20}
    LEADERBOARD = {"min": 1, "max": 50, "default": 5}
