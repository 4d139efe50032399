from .base import *  # noqa: F401,F403

SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
ENABLE_SCHEDULER = False
MAX_WORKERS = 4
STEP_TIMEOUT_SECONDS = 30.0
