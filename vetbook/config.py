import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./vetbook.db")

# Frontend base URL used in QR verification links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "VetBook <noreply@vetbook.app>")

# OTP staging: "memory" (process-lifetime) or "redis" (shared across instances)
OTP_STORE_BACKEND = os.getenv("OTP_STORE_BACKEND", "memory").lower()
OTP_TTL_MINUTES = int(os.getenv("OTP_TTL_MINUTES", "5"))

# Display / receipts
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₱")
FOLLOW_UP_DAYS = int(os.getenv("FOLLOW_UP_DAYS", "7"))
