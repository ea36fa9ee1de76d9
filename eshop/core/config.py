import os

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/eshop_db")

# Application Metadata
PROJECT_NAME = os.getenv("PROJECT_NAME", "EShop Modular Monolith")
VERSION = "1.0.0"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Outbox Dispatcher Configuration
OUTBOX_POLL_INTERVAL = float(os.getenv("OUTBOX_POLL_INTERVAL", 10)) # Seconds between dispatcher cycles
OUTBOX_BATCH_SIZE = int(os.getenv("OUTBOX_BATCH_SIZE", 100)) # Pending messages fetched per cycle
OUTBOX_MAX_ATTEMPTS = int(os.getenv("OUTBOX_MAX_ATTEMPTS", 5)) # Failed attempts before a message is dead-lettered
OUTBOX_RETENTION_DAYS = int(os.getenv("OUTBOX_RETENTION_DAYS", 7)) # 0 keeps processed messages forever
OUTBOX_DISPATCHER_ENABLED = os.getenv("OUTBOX_DISPATCHER_ENABLED", "true").lower() in ("1", "true", "yes")

# Basket read cache. Empty REDIS_URL falls back to the in-process cache.
REDIS_URL = os.getenv("REDIS_URL", "")
BASKET_CACHE_TTL = int(os.getenv("BASKET_CACHE_TTL", 300))
