"""
Test settings for Livepoll project.
"""

import os

# Base settings require these; tests never talk to PostgreSQL
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DB_NAME", "livepoll_test")
os.environ.setdefault("DB_USER", "livepoll")
os.environ.setdefault("DB_PASSWORD", "livepoll")

from .base import *  # noqa: F403, F401, E402

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
        "TEST": {
            "NAME": ":memory:",
        },
    }
}

# Password hashing for tests (faster)
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# Disable security features for tests
SECURE_SSL_REDIRECT = False
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

# Celery configuration for tests (synchronous execution)
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

# Disable logging during tests
LOGGING_CONFIG = None

# Override cache configuration for tests to use dummy backend
# This avoids Redis connection issues during tests
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.dummy.DummyCache",
    }
}

# In-memory channel layer so consumers can be tested without Redis
CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

# Deterministic identity policy; tests pick other policies explicitly
VOTER_IDENTITY_POLICY = "cookie"
VOTE_RATE_LIMIT_NEW = None
VOTE_RATE_LIMIT_CHANGE = None
VOTE_RATE_WINDOW_SECONDS = None
