import os


def log_dir() -> str:
    return os.environ.get("ATM_LOG_DIR", os.path.join(os.getcwd(), "logs"))

def log_level() -> str:
    return os.environ.get("ATM_LOG_LEVEL", "INFO").upper()

def log_to_file() -> bool:
    return os.environ.get("ATM_LOG_TO_FILE", "1") != "0"

def seed_enabled() -> bool:
    return os.environ.get("ATM_DISABLE_SEED") != "1"

def bootstrap_file() -> str | None:
    """Path of a bootstrap file for the HTTP app, if one is configured."""
    return os.environ.get("ATM_BOOTSTRAP_FILE") or None

def host() -> str:
    return os.environ.get("ATM_HOST", "127.0.0.1")

def port() -> int:
    return int(os.environ.get("ATM_PORT", "8000"))
