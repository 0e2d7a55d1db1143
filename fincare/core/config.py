import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME: str = "FinCare API"
    MONGODB_URI: str = os.getenv("MONGODB_URI")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "fincare_db")
    # Atlas clusters need TLS; a local mongod usually does not
    MONGODB_TLS: bool = _as_bool(os.getenv("MONGODB_TLS"), default=False)
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    ADMIN_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ADMIN_TOKEN_EXPIRE_MINUTES", str(24 * 60)))
    ADMIN_SESSION_COOKIE: str = os.getenv("ADMIN_SESSION_COOKIE", "admin_session")
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:3000")

    # Loan pricing used until an admin stores loan settings (percent values)
    DEFAULT_INTEREST_RATE: float = float(os.getenv("DEFAULT_INTEREST_RATE", "10"))
    DEFAULT_PROCESSING_FEE_RATE: float = float(os.getenv("DEFAULT_PROCESSING_FEE_RATE", "1"))
    DEFAULT_MIN_LOAN_AMOUNT: float = 1000
    DEFAULT_MAX_LOAN_AMOUNT: float = 100000
    DEFAULT_LOAN_DURATION: int = 12


settings = Settings()

if not settings.JWT_SECRET_KEY:
    print("WARNING: JWT_SECRET_KEY is missing or empty! Token signing will fail.")
