"""
PostgreSQL database access (Supabase)

This module centralizes every way the application reaches the database:
- SQLAlchemy (schema definition and table creation)
- psycopg2 direct connections (raw SQL in repositories)
- Supabase client (Storage bucket for the media library)

Engine and clients are created on first use so the package can be imported
without a configured environment (tests, tooling).

Author: TM3
Updated: 2025-10-17
"""
import time
import logging

import psycopg2
from psycopg2.extras import RealDictCursor
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from supabase import create_client, Client

from .config import settings

logger = logging.getLogger(__name__)

# Seconds psycopg2 waits for the server before giving up
CONNECTION_TIMEOUT = 10


# ============================================================================
# SQLAlchemy Configuration (for ORM models)
# ============================================================================

_engine = None

# Base for models
Base = declarative_base()


def get_engine():
    """Return the shared SQLAlchemy engine, creating it on first call"""
    global _engine
    if _engine is None:
        if not settings.DATABASE_URL:
            raise Exception("DATABASE_URL not configured")
        _engine = create_engine(
            settings.DATABASE_URL,
            pool_pre_ping=True,  # Check connection before use
            pool_size=10,
            max_overflow=20,
        )
    return _engine


# ============================================================================
# psycopg2 Direct Connections (for raw SQL queries)
# ============================================================================


def get_db_connection_dict():
    """
    Get a database connection with RealDictCursor (returns dictionaries)

    Use this for:
    - Repository queries
    - API responses (easier to serialize to JSON)

    Example:
        conn = get_db_connection_dict()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM orders")
        results = cursor.fetchall()  # Returns list of dicts
        cursor.close()
        conn.close()
    """
    database_url = settings.DATABASE_URL
    if not database_url:
        raise Exception("DATABASE_URL not configured")

    return psycopg2.connect(database_url, cursor_factory=RealDictCursor, connect_timeout=CONNECTION_TIMEOUT)


# ============================================================================
# Supabase Client (Storage)
# ============================================================================

_supabase: Client = None


def get_supabase() -> Client:
    """
    FastAPI dependency that returns the Supabase client

    Usage:
        @app.get("/data")
        def get_data(sb: Client = Depends(get_supabase)):
            ...
    """
    global _supabase
    if _supabase is None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise Exception("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not configured")
        _supabase = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    return _supabase


# ============================================================================
# Database Connection with Retry Logic (SSL Failure Recovery)
# ============================================================================


def get_db_connection_with_retry(max_retries=3, retry_delay=1.0, cursor_factory=None):
    """
    Get a psycopg2 connection with automatic retry on SSL/connection failures

    Retries failed connections up to max_retries times with exponential
    backoff between attempts.

    Args:
        max_retries: Maximum number of connection attempts (default: 3)
        retry_delay: Initial delay between retries in seconds (default: 1.0)
        cursor_factory: Optional cursor factory (e.g. RealDictCursor)

    Returns:
        psycopg2 connection object

    Raises:
        psycopg2.OperationalError: If all retry attempts fail
    """
    database_url = settings.DATABASE_URL
    if not database_url:
        raise Exception("DATABASE_URL not configured")

    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            if cursor_factory:
                conn = psycopg2.connect(database_url, cursor_factory=cursor_factory, connect_timeout=CONNECTION_TIMEOUT)
            else:
                conn = psycopg2.connect(database_url, connect_timeout=CONNECTION_TIMEOUT)

            # Test connection with a simple query
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()

            logger.debug(f"Database connection successful on attempt {attempt}")
            return conn

        except psycopg2.OperationalError as e:
            last_error = e
            error_msg = str(e)

            if "SSL connection has been closed unexpectedly" in error_msg:
                logger.warning(f"SSL connection error on attempt {attempt}/{max_retries}: {error_msg}")
            else:
                logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {error_msg}")

            if attempt < max_retries:
                # Exponential backoff
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)
            else:
                logger.error(f"All {max_retries} connection attempts failed")
                raise

    raise last_error if last_error else Exception("Connection failed after all retries")

