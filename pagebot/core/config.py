from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    VERIFY_TOKEN: str = ""
    META_APP_SECRET: str | None = None
    GRAPH_API_BASE_URL: str = "https://graph.facebook.com"
    GRAPH_API_VERSION: str = "v21.0"
    AUTO_REPLY_ENABLED: bool = True

    SHEET_ID: str | None = None
    GOOGLE_SHEETS_ACCESS_TOKEN: str | None = None
    SHEETS_API_BASE_URL: str = "https://sheets.googleapis.com/v4"
    PAGE_CONFIG_CACHE_SECONDS: float = 300.0
    LOCAL_CONFIG_PATH: str = "./data/pagebot.json"
    LOCAL_DATA_DIR: str = "./data"

    SEMAPHORE_API_KEY: str | None = None
    SEMAPHORE_SENDER_NAME: str = "KIARA"
    SEMAPHORE_ENDPOINT: str = "https://api.semaphore.co/api/v4/messages"

    BUSINESS_TIMEZONE: str = "Asia/Manila"

    SESSION_TTL_SECONDS: float = 30 * 60
    SESSION_SWEEP_INTERVAL_SECONDS: float = 10 * 60
    DEDUP_CAPACITY: int = 1000
    DEDUP_RESET_INTERVAL_SECONDS: float = 60 * 60

    TYPING_DELAY_SECONDS: float = 1.0
    FOLLOWUP_DELAY_SECONDS: float = 0.5
    COMMENT_DM_DELAY_SECONDS: float = 2.0
    COMMENT_BOOKING_DELAY_SECONDS: float = 5.0

    HTTP_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
