import os

# Supabase project credentials. Missing values are reported at login/signup time, not at startup.
# The VITE_ names are accepted so the same .env works for the browser build.
SUPABASE_URL = os.getenv("SUPABASE_URL", os.getenv("VITE_SUPABASE_URL", ""))
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", os.getenv("VITE_SUPABASE_ANON_KEY", ""))

# Storage buckets for verification artifacts
DOCUMENTS_BUCKET = os.getenv("DOCUMENTS_BUCKET", "documents")
SELFIES_BUCKET = os.getenv("SELFIES_BUCKET", "selfies")

# Simulated face match: fixed wait, then a Bernoulli draw
MATCH_DELAY_SECONDS = float(os.getenv("MATCH_DELAY_SECONDS", "3"))
MATCH_SUCCESS_RATE = float(os.getenv("MATCH_SUCCESS_RATE", "0.8"))

# Verification sessions untouched for this long are dropped from the registry
WIZARD_IDLE_SECONDS = float(os.getenv("WIZARD_IDLE_SECONDS", "1800"))

# Selfie encoding (0.8 on the canvas scale)
SELFIE_JPEG_QUALITY = 80

# ID document size shown to users; logged when exceeded, never enforced
MAX_DOCUMENT_BYTES = 5 * 1024 * 1024
MIN_PASSWORD_LENGTH = 6

# Dashboard figures (no payment ledger exists, these are display proxies)
EARNINGS_RATE_PER_JOB = 400
MONTHLY_SHARE = 0.3

# API Configuration
API_HOST = os.getenv("FASTAPI_HOST", "0.0.0.0")
API_PORT = int(os.getenv("FASTAPI_PORT", "8000"))


def is_backend_configured() -> bool:
    """True when both Supabase credentials are present."""
    return bool(SUPABASE_URL and SUPABASE_ANON_KEY)
