import os

def get_settings_module() -> str:
    # APP_ENV selects the settings module; defaults to 'development'
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def split_emails(value: str) -> tuple:
    """Comma separated e-mail list from an env var, lower-cased."""
    return tuple(e.strip().lower() for e in (value or "").split(",") if e.strip())
