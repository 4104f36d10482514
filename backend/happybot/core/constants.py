"""Engine constants shared by the scheduler, content chain and commands."""

from pathlib import Path

from shared.models.content import Category

APP_NAME = "Happy Manager"
APP_VERSION = "0.2.0"

HAPPYBOT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = HAPPYBOT_DIR / "data"
HAPPY_PACK_PATH = DATA_DIR / "happy-pack.json"
KUDOS_PATH = DATA_DIR / "kudos.json"

# Content filters
MAX_LENGTH = 600
MAX_EMOJIS = 2
ANTI_REPETITION_DAYS = 30
MAX_PICK_ATTEMPTS = 10
SENT_RETENTION_DAYS = 90

# Scheduler
TICK_SECONDS = 60
# Longer than one tick so a cron firing at :00 and :59 of the same minute
# cannot send twice.
SLOT_LOCK_SECONDS = 90
MIDDAY_SLOT = "12:45"
EXTENDED_CADENCE = 3

SLOT_CATEGORY_MAP: dict[str, Category] = {
    "09:15": "motivation",
    "12:45": "wellbeing",
    "16:30": "team",
}

# Cooldowns (seconds)
NOW_COMMAND_COOLDOWN = 60
KUDOS_COMMAND_COOLDOWN = 5 * 60
CONTEXTUAL_COOLDOWN = 6 * 60 * 60
MAINTENANCE_INTERVAL_HOURS = 1

KUDOS_CATEGORY_LABELS: dict[str, str] = {
    "sales": "Sales",
    "focus": "Discipline / Focus",
    "teamwork": "Teamwork / Contribution",
    "leadership": "Leadership",
    "creativity": "Creativity / Innovation",
    "resilience": "Perseverance / Resilience",
}

# /happy test previews
PREVIEW_DEFAULT_COUNT = 3
PREVIEW_MAX_COUNT = 5

# Remote quote API
API_TIMEOUT_SECONDS = 3.0
API_MAX_RETRIES = 2
API_RETRY_DELAY_SECONDS = 1.0
API_MAX_QUOTE_LENGTH = 500

BANNED_WORDS: tuple[str, ...] = (
    # Medical / psychological
    "suicide",
    "depression",
    "anxiety",
    "therapy",
    "therapist",
    "medication",
    "pills",
    "antidepressant",
    "psychiatrist",
    "diagnosis",
    "disorder",
    # Profanity
    "fuck",
    "shit",
    "damn",
    "hell",
    "ass",
    "bitch",
    # Religion
    "god",
    "jesus",
    "allah",
    "religion",
    "pray",
    "prayer",
    # Politics
    "politics",
    "election",
    "government",
    "president",
    # Guilt-inducing
    "must",
    "should",
    "have to",
    "need to",
    "failure",
    "lazy",
)

CONTEXTUAL_KEYWORDS: tuple[str, ...] = (
    "stress",
    "stressed",
    "down",
    "tired",
    "fatigu\u00e9",
    "fatigue",
    "exhausted",
    "procrastine",
    "procrastinate",
    "procrastinating",
    "overwhelmed",
    "d\u00e9bord\u00e9",
    "burnout",
    "burn out",
)

# Embed colors
COLOR_SUCCESS = 0x57F287
COLOR_ERROR = 0xED4245
COLOR_INFO = 0x5865F2
