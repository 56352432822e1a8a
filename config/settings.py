import os

# Project root directory (stocklens/)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _env_int(name, default):
    """Read an integer override from the environment, ignoring junk values."""
    raw_value = os.environ.get(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


# Local log output for the UI and the offline runner
LOG_DIR = os.environ.get("STOCKLENS_LOG_DIR") or os.path.join(BASE_DIR, "logs")

# Generated charts and PDF exports
REPORTS_DIR = os.path.join(BASE_DIR, "reports")

# Upload ceiling, enforced before any parsing happens
MAX_UPLOAD_MB = _env_int("STOCKLENS_MAX_UPLOAD_MB", 50)
MAX_UPLOAD_BYTES = MAX_UPLOAD_MB * 1024 * 1024

# Minimum rows a normalized series must keep to be usable
MIN_ROWS = _env_int("STOCKLENS_MIN_ROWS", 5)

# Seed for gap-filling; unset means a fresh random source per upload
RANDOM_SEED = _env_int("STOCKLENS_RANDOM_SEED", None)

DELIMITED_EXTENSIONS = (".csv", ".txt", ".tsv")
SPREADSHEET_EXTENSIONS = (".xlsx", ".xls", ".xlsm", ".xlsb", ".xltx")
SUPPORTED_EXTENSIONS = DELIMITED_EXTENSIONS + SPREADSHEET_EXTENSIONS

# Ensure required local directories exist
os.makedirs(LOG_DIR, exist_ok=True)
