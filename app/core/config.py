from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Storefront API"
    DATABASE_URL: str = "sqlite:///./storefront.db"
    SECRET_KEY: str = "supersecretkey_change_me_in_production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day

    LOG_LEVEL: str = "INFO"

    # Catalog pagination
    PRODUCTS_DEFAULT_LIMIT: int = 10
    PRODUCTS_MAX_LIMIT: int = 100

    # Order placement
    ORDER_TIMEOUT_SECONDS: float = 10.0
    # Never waits longer than ORDER_TIMEOUT_SECONDS, see create_app
    SQLITE_BUSY_TIMEOUT_SECONDS: float = 5.0

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
