import os


SYSTEM_ROLE = "system"
USER_ROLE = "user"

GEMINI_2_FLASH = "gemini-2.0-flash"
TRIVIA_MODEL_NAME = os.getenv("TRIVIA_MODEL_NAME", GEMINI_2_FLASH)
TRIVIA_GENERATION_TIMEOUT = float(os.getenv("TRIVIA_GENERATION_TIMEOUT", "8"))


SERVICE_CONFIG = {
    "gemini": {
        "base_url": os.getenv(
            "GEMINI_BASE_URL",
            "https://generativelanguage.googleapis.com/v1beta/openai/",
        ),
        "api_key_env_var": "GEMINI_API_KEY",
    },
}

GENERATION_CONFIG = {
    "temperature": 0.7,
    "top_p": 0.8,
    "top_k": 40,
    "max_tokens": 8192,
}


# Trivia domain
DIFFICULTIES = ("easy", "medium", "hard")
DEFAULT_DIFFICULTY = "medium"

ANCHOR_YEAR = 2024
EPOCH_YEAR = 2009  # Bitcoin genesis block
YEAR_DECREMENT = {"easy": 1, "medium": 2, "hard": 3}

CATEGORY_SETS = {
    "current": (
        "development",
        "memes-nfts-tokens",
        "scams-incidents",
        "crypto-characters",
    ),
    "legacy": (
        "development",
        "memes-nfts",
        "scams",
        "incidents",
    ),
}
TRIVIA_CATEGORY_SET = os.getenv("TRIVIA_CATEGORY_SET", "current").strip().lower()
if TRIVIA_CATEGORY_SET not in CATEGORY_SETS:
    raise ValueError(
        f"Unknown TRIVIA_CATEGORY_SET '{TRIVIA_CATEGORY_SET}', expected one of {sorted(CATEGORY_SETS)}"
    )
TRIVIA_CATEGORIES = CATEGORY_SETS[TRIVIA_CATEGORY_SET]

OPTIONS_PER_QUESTION = 4
DEFAULT_QUESTION_COUNT = 8
MAX_QUESTIONS_PER_REQUEST = 50
HARDCODED_BATCH_SIZE = 8


# Pipeline
SOURCE_POLICY_GENERATE_FIRST = "generate_first"
SOURCE_POLICY_CACHE_FIRST = "cache_first"
TRIVIA_SOURCE_POLICY = os.getenv("TRIVIA_SOURCE_POLICY", SOURCE_POLICY_GENERATE_FIRST)
TRIVIA_CACHE_WATERMARK = int(os.getenv("TRIVIA_CACHE_WATERMARK", "20"))
TRIVIA_MAX_REPLENISH_BATCH = int(os.getenv("TRIVIA_MAX_REPLENISH_BATCH", "30"))

QUESTION_COUNT_CACHE_TTL = 60
