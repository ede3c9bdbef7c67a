# marketplace/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

STORAGE_PATH = os.getenv("MARKETPLACE_STORAGE_PATH", ".marketplace/storage.json")
NAMESPACE = os.getenv("MARKETPLACE_NAMESPACE", "marketplace")
NOTIFICATION_SECONDS = float(os.getenv("MARKETPLACE_NOTIFICATION_SECONDS", 5))
AUTH_DELAY_SECONDS = float(os.getenv("MARKETPLACE_AUTH_DELAY_SECONDS", 0.5))
API_URL = os.getenv("MARKETPLACE_API_URL", "http://127.0.0.1:8085")
LOG_LEVEL = os.getenv("MARKETPLACE_LOG_LEVEL", "INFO")
