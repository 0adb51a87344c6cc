import os


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip().lower() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:5173"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "1440"))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

ALLOWED_EMAIL_DOMAINS = _get_list(
    os.getenv("ALLOWED_EMAIL_DOMAINS"),
    ["college.edu", "students.college.edu", "kiet.edu", "iit.edu", "nit.edu"],
)

# Month (1-12) from which a graduation-year cohort counts as graduated.
GRADUATION_CUTOFF_MONTH = int(os.getenv("GRADUATION_CUTOFF_MONTH", "7"))

SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_START_TLS = _get_bool(os.getenv("SMTP_START_TLS"), default=True)
EMAIL_FROM = os.getenv("EMAIL_FROM", SMTP_USER or "noreply@collegeconnect.local")
EMAIL_FROM_NAME = os.getenv("EMAIL_FROM_NAME", "CollegeConnect")

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if not 1 <= GRADUATION_CUTOFF_MONTH <= 12:
        raise RuntimeError("GRADUATION_CUTOFF_MONTH must be between 1 and 12.")
