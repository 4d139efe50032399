import os


def get_settings_module() -> str:
    # APP_ENV selects the settings module; development is the default.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "site_attendance.config.production"

    if env in {"test", "testing"}:
        return "site_attendance.config.testing"

    return "site_attendance.config.development"
