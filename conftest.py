"""Global pytest configuration."""

import os

# Settings are read at import time; set the required ones before any imports
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("FIREBASE_API_KEY", "test-api-key")
os.environ.setdefault("FIREBASE_PROJECT_ID", "notes-cafe-test")
os.environ.setdefault("DOCUMENT_STORE_BACKEND", "memory")
os.environ.setdefault("ENVIRONMENT", "development")
