from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load the .env file from the project root when the service is started from there
load_dotenv()

class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)

    # JWT
    JWT_SECRET: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # MongoDB (transactions need a replica set)
    MONGO_URL: str
    DB_NAME: str

    # Transaction retry on write conflicts
    TRANSACTION_MAX_ATTEMPTS: int = 5
    TRANSACTION_RETRY_BACKOFF: float = 0.05

    # Inbox
    NOTIFICATION_PAGE_SIZE: int = 50

settings = Settings()
