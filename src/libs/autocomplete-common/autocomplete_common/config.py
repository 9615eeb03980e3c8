# src/libs/autocomplete-common/autocomplete_common/config.py
import os
from dotenv import load_dotenv

# Load environment variables from a .env file for local development.
load_dotenv()


# Database Configurations
POSTGRES_USER = os.getenv("POSTGRES_USER", "user")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "password")
POSTGRES_DB = os.getenv("POSTGRES_DB", "autocomplete_db")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "postgres")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")

# Request Signing
AUTOCOMPLETE_SECRET = os.getenv("AUTOCOMPLETE_SECRET", "change-me")
AUTOCOMPLETE_SIGNATURE_TTL = int(os.getenv("AUTOCOMPLETE_SIGNATURE_TTL", "600"))

# Rendering
AUTOCOMPLETE_DEFAULT_THEME = os.getenv("AUTOCOMPLETE_DEFAULT_THEME", "default")
AUTOCOMPLETE_ALLOWED_THEMES = [
    theme.strip()
    for theme in os.getenv("AUTOCOMPLETE_ALLOWED_THEMES", "default,dark,cards,bootstrap-5").split(",")
    if theme.strip()
]

# Search Behaviour
AUTOCOMPLETE_DEFAULT_LOCALE = os.getenv("AUTOCOMPLETE_DEFAULT_LOCALE", "en")
AUTOCOMPLETE_DEFAULT_LIMIT = int(os.getenv("AUTOCOMPLETE_DEFAULT_LIMIT", "10"))
AUTOCOMPLETE_MAX_LIMIT = int(os.getenv("AUTOCOMPLETE_MAX_LIMIT", "100"))

# Provider Wiring
# Comma separated "package.module:EnumClass" entries made resolvable at startup.
AUTOCOMPLETE_ENUM_CLASSES = [
    entry.strip()
    for entry in os.getenv("AUTOCOMPLETE_ENUM_CLASSES", "").split(",")
    if entry.strip()
]
AUTOCOMPLETE_TRANSLATIONS_DIR = os.getenv("AUTOCOMPLETE_TRANSLATIONS_DIR", "")
