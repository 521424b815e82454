import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinicflow.db")

# Clinics operate in a single local timezone; "today" and reminder windows use it
CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "Asia/Kolkata")
HOME_COUNTRY_CODE = os.getenv("HOME_COUNTRY_CODE", "91")

# Booking defaults
DEFAULT_SLOT_DURATION = int(os.getenv("DEFAULT_SLOT_DURATION", "15"))  # minutes

# MSG91 Configuration (primary SMS provider, also offers WhatsApp)
MSG91_AUTH_KEY = os.getenv("MSG91_AUTH_KEY")
MSG91_SENDER_ID = os.getenv("MSG91_SENDER_ID", "CLINIC")
MSG91_WHATSAPP_NUMBER = os.getenv("MSG91_WHATSAPP_NUMBER")

# Twilio Configuration (secondary provider, WhatsApp)
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_WHATSAPP_NUMBER = os.getenv("TWILIO_WHATSAPP_NUMBER", "whatsapp:+14155238886")

# Channel preference, first to last. "simulation" always succeeds and should stay last.
NOTIFICATION_CHANNELS = [
    c.strip()
    for c in os.getenv("NOTIFICATION_CHANNELS", "msg91_sms,twilio_whatsapp,simulation").split(",")
    if c.strip()
]
NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "10"))

# Pause between consecutive reminder sends (provider rate limits)
REMINDER_SEND_DELAY_SECONDS = float(os.getenv("REMINDER_SEND_DELAY_SECONDS", "1.0"))

# Shared secret for the cron-triggered reminder endpoint; unset disables the check
CRON_SECRET = os.getenv("CRON_SECRET")

# Frontend base URL (CORS default)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
