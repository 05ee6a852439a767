# Chapters shipped with the game, identified by number.
CHAPTER_NUMBERS = (1, 2, 3)
# Every chapter currently holds the same number of scenes.
SCENES_PER_CHAPTER = 8

# Bounded character stats live in [STAT_MIN, STAT_MAX].
STAT_MIN = 0
STAT_MAX = 100

# Document field name -> starting value. Bounded stats first, counters after.
DEFAULT_STATS = {
    "integrity": 100,
    "reputation": 50,
    "moralPath": 50,  # 0 = corrupt, 100 = righteous
    "influence": 10,
    "totalPlayTime": 0,
    "choicesMade": 0,
}
BOUNDED_STATS = ("integrity", "reputation", "moralPath", "influence")

# Ascending inclusive upper bounds shared by every stat label table.
STAT_LABEL_THRESHOLDS = (20, 40, 60, 80, 100)
STAT_LABELS = {
    "integrity": ("Corrupted", "Compromised", "Wavering", "Strong", "Unwavering"),
    "reputation": ("Notorious", "Poor", "Neutral", "Respected", "Renowned"),
    "moralPath": ("Corrupt", "Pragmatic", "Undecided", "Principled", "Righteous"),
    "influence": ("Minimal", "Growing", "Moderate", "Significant", "Powerful"),
}
UNKNOWN_STAT_LABEL = "Unknown"

# Chapter number -> title of the achievement granted on completion.
CHAPTER_ACHIEVEMENT_TITLES = {
    1: "Office Chaos Master",
    2: "Field Operations Expert",
    3: "Final Confrontation Victor",
}
ACHIEVEMENT_CATALOG = {
    "chapter1_complete": "Office Chaos Master",
    "chapter2_complete": "Field Operations Expert",
    "chapter3_complete": "Final Confrontation Victor",
    "first_choice": "Decision Maker",
    "integrity_high": "Unwavering Integrity",
    "reputation_high": "Well Respected",
}
DEFAULT_ACHIEVEMENT_TITLE = "Achievement Unlocked"

ACHIEVEMENT_TOAST_TITLE = "🏆 Achievement Unlocked!"
ACHIEVEMENT_TOAST_DURATION_MS = 5000

# Seconds between play-time accruals while the game is running.
PLAY_TIME_INTERVAL = 60.0
# Seconds between tick events emitted by the asyncio ticker.
TICK_PERIOD = 1.0

# Local device storage documents.
LOCAL_PROGRESS_FILE = "gameProgress.json"
LOCAL_STATS_FILE = "gameStats.json"

# Remote document store layout.
REMOTE_USERS_COLLECTION = "users"
REMOTE_PROGRESS_FIELD = "progress"
REMOTE_STATS_FIELD = "stats"
