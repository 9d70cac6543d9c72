import os
from dotenv import load_dotenv

load_dotenv()

# Gemini
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# Cohere embeddings
COHERE_API_KEY = os.getenv("COHERE_API_KEY", "")
COHERE_API_URL = os.getenv("COHERE_API_URL", "https://api.cohere.com/v2/embed")
COHERE_EMBED_MODEL = os.getenv("COHERE_EMBED_MODEL", "embed-english-v3.0")
EMBEDDING_CACHE_DIR = os.getenv(
    "EMBEDDING_CACHE_DIR", os.path.join(os.getcwd(), "cache", "embeddings")
)

# Google Cloud Speech (REST, API key auth)
GOOGLE_STT_API_KEY = os.getenv("GOOGLE_STT_API_KEY", "")
GOOGLE_TTS_API_KEY = os.getenv("GOOGLE_TTS_API_KEY", "")
STT_POLL_INTERVAL = float(os.getenv("STT_POLL_INTERVAL", "5"))
STT_MAX_POLLS = int(os.getenv("STT_MAX_POLLS", "60"))  # ~5 minutes at 5s

# Tavily web search
TAVILY_API_KEY = os.getenv("TAVILY_API_KEY", "")
TAVILY_API_URL = os.getenv("TAVILY_API_URL", "https://api.tavily.com")

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "")

# Uploads
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))  # 10 MB
MAX_CONTENT_CHARS = int(os.getenv("MAX_CONTENT_CHARS", "10000"))

# Frontend URL for CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "3000"))

REQUIRED_ENV_VARS = [
    "GEMINI_API_KEY",
    "COHERE_API_KEY",
    "GOOGLE_STT_API_KEY",
    "GOOGLE_TTS_API_KEY",
    "TAVILY_API_KEY",
    "SUPABASE_URL",
]
OPTIONAL_ENV_VARS = [
    "SUPABASE_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_JWT_SECRET",
    "FRONTEND_URL",
    "EMBEDDING_CACHE_DIR",
    "PORT",
    "LOG_LEVEL",
]


def mask_secret(value: str) -> str:
    if len(value) > 8:
        return f"{value[:4]}...{value[-4:]}"
    return "***masked***"


def check_environment() -> dict:
    """Report which environment variables are configured, with secrets masked."""
    report = {"required": {}, "optional": {}, "ok": True}
    for name in REQUIRED_ENV_VARS:
        value = os.getenv(name)
        report["required"][name] = mask_secret(value) if value else None
        if not value:
            report["ok"] = False
    for name in OPTIONAL_ENV_VARS:
        report["optional"][name] = os.getenv(name) or None
    return report


def main() -> int:
    """Console entry point: print the environment report and exit non-zero when incomplete."""
    report = check_environment()
    print("Required environment variables:")
    for name, value in report["required"].items():
        print(f"  {'OK ' if value else 'MISSING'} {name}: {value or 'NOT SET'}")
    print("Optional environment variables:")
    for name, value in report["optional"].items():
        print(f"  {name}: {value or 'not set (using default)'}")
    if not report["ok"]:
        print("Missing required environment variables. Add them to a .env file in the project root.")
        return 1
    print("Environment configuration looks good!")
    return 0
