from dotenv import load_dotenv
import os

load_dotenv()

TOKEN = os.getenv("BOT_TOKEN")
DB_URL = os.getenv("DB_URL", "sqlite:///nutribot.db")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "meta-llama/llama-4-scout:free")
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN")
MEDIA_DIR = os.getenv("MEDIA_DIR", "media")
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Europe/Istanbul")
MEAL_CHECK_MINUTES = int(os.getenv("MEAL_CHECK_MINUTES", "30"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
