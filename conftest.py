import os

# Load .env.test for tests when present, e.g. to point at a real Bitable app
from dotenv import load_dotenv

env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

# Settings are read at import time by libs.db.config, so defaults must be in
# place before any application module is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("FEISHU_APP_ID", "cli_test")
os.environ.setdefault("FEISHU_APP_SECRET", "test-secret")
os.environ.setdefault("FEISHU_BASE_APP_TOKEN", "app_test")
os.environ.setdefault("FEISHU_STOCK_TABLE_ID", "tbl_stock")
os.environ.setdefault("FEISHU_ORDER_TABLE_ID", "tbl_orders")

from libs.common.config import get_settings  # noqa: E402

# Clear cached settings to reload with new env vars
get_settings.cache_clear()
