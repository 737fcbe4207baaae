"""
Catan Score Bot Configuration
=============================

1. 환경 변수 로드
2. Discord 설정
3. Google Sheets 설정
4. 게임 규칙 (플레이어 수 / 점수 범위)
5. 세션 수명
6. Health check 서버
7. 로깅 설정
"""
import os
from dotenv import load_dotenv
import logging

# ============================================================================
# 1. 환경 변수 로드
# ============================================================================
load_dotenv()


def _int_env(name: str):
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


# ============================================================================
# 2. DISCORD 설정
# ============================================================================
# 보안상 중요한 값은 환경변수로 유지합니다.
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
GUILD_ID = _int_env("GUILD_ID")  # 비워두면 slash command 를 전역으로 등록
COMMAND_PREFIX = "!"

# /endgame 은 이 채널에서만 사용할 수 있습니다.
SCORING_CHANNEL_ID = _int_env("SCORING_CHANNEL_ID")
# 게임 요약(공개 메시지)이 올라가는 채널
LEADERBOARD_CHANNEL_ID = _int_env("LEADERBOARD_CHANNEL_ID")

ENABLE_PREFLIGHT_CHECKS = True

# ============================================================================
# 3. GOOGLE SHEETS 설정
# ============================================================================
SHEET_ID = os.getenv("SHEET_ID")
GOOGLE_SERVICE_EMAIL = os.getenv("GOOGLE_SERVICE_EMAIL")
GOOGLE_SERVICE_ACCOUNT_JSON = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON")
GOOGLE_SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
GOOGLE_SHEETS_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"

# 탭 이름
SCORES_SHEET_TITLE = "Endgames_scores_FROM BOT"
RANKING_SHEET_TITLE = "Ranking"
TEASING_SHEET_TITLE = "Teasing"

# /myrank 조회용 lookup 셀 (시트 수식이 결과 행을 계산)
# - 비워두면 Ranking 탭 전체를 읽어서 직접 찾습니다.
RANK_LOOKUP_INPUT_CELL = os.getenv("RANK_LOOKUP_INPUT_CELL", "")      # 예: "Lookup!A2"
RANK_LOOKUP_RESULT_RANGE = os.getenv("RANK_LOOKUP_RESULT_RANGE", "")  # 예: "Lookup!B2:E2"

SHEETS_HTTP_TIMEOUT_TOTAL_SECONDS = 10.0
SHEETS_HTTP_TIMEOUT_CONNECT_SECONDS = 3.0

# ============================================================================
# 4. 게임 규칙
# ============================================================================
MIN_PLAYERS = 2
MAX_PLAYERS = 6
# 한 판의 점수(VP)로 허용하는 범위
SCORE_MIN = 0
SCORE_MAX = 99
# /ladder 에 표시할 인원
LADDER_TOP_N = 5

# ============================================================================
# 5. 세션 수명
# ============================================================================
# /endgame 으로 시작한 입력 세션은 30분 후 만료됩니다.
SESSION_TTL_SECONDS = 30 * 60
SESSION_SWEEP_INTERVAL_SECONDS = 60.0

# ============================================================================
# 6. HEALTH CHECK 서버 (호스팅 환경의 keep-alive 용)
# ============================================================================
HEALTH_ENABLED = True
HEALTH_HOST = os.getenv("HEALTH_HOST", "0.0.0.0")
PORT = _int_env("PORT") or 3000

# ============================================================================
# 7. 로깅 설정
# ============================================================================
LOG_LEVEL = logging.INFO  # logging.DEBUG로 변경하면 상세 로그 출력
LOG_FILE = None           # "bot.log"로 설정하면 파일에 로그 저장
