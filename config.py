import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./sessions.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    REDIS_SOCKET_TIMEOUT = float(data.get("REDIS_SOCKET_TIMEOUT", 5.0))
    CACHE_BACKEND = data.get("CACHE_BACKEND", "redis")
    STORE_BACKEND = data.get("STORE_BACKEND", "sql")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_ALGORITHM = data.get("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(data.get("ACCESS_TOKEN_EXPIRE_MINUTES", 15))
    REFRESH_TOKEN_EXPIRE_DAYS = int(data.get("REFRESH_TOKEN_EXPIRE_DAYS", 90))
    REFRESH_TOKEN_BYTES = max(64, int(data.get("REFRESH_TOKEN_BYTES", 64)))
    REFRESH_COOKIE_NAME = data.get("REFRESH_COOKIE_NAME", "refreshToken")
    REFRESH_COOKIE_SECURE = bool(data.get("REFRESH_COOKIE_SECURE", True))
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")
