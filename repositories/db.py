"""
Database connection pool for MySQL.

Framework-agnostic: uses mysql-connector-python's built-in pooling so
the level catalogue and the rate cache share one pool whether they run
inside the Flask app or a plain script.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Generator

import mysql.connector
from mysql.connector import pooling


_pool: pooling.MySQLConnectionPool | None = None


def init_pool(
    host: str | None = None,
    port: int | None = None,
    user: str | None = None,
    password: str | None = None,
    database: str | None = None,
    pool_size: int = 5,
) -> pooling.MySQLConnectionPool:
    """Initialise (or re-initialise) the global connection pool.

    Parameters fall back to environment variables when not supplied:
        DB_HOST, DB_PORT, DB_USER, DB_PASSWORD, DB_NAME
    """
    global _pool

    _pool = pooling.MySQLConnectionPool(
        pool_name='local_pricing_pool',
        pool_size=pool_size,
        pool_reset_session=True,
        host=host or os.getenv('DB_HOST', 'localhost'),
        port=port or int(os.getenv('DB_PORT', '3306')),
        user=user or os.getenv('DB_USER', 'root'),
        password=password or os.getenv('DB_PASSWORD', ''),
        database=database or os.getenv('DB_NAME', 'membership'),
    )
    return _pool


def get_pool() -> pooling.MySQLConnectionPool:
    """Return the current pool, initialising it from env vars if needed."""
    global _pool
    if _pool is None:
        init_pool()
    return _pool


@contextmanager
def get_connection() -> Generator[mysql.connector.MySQLConnection, None, None]:
    """Yield a connection from the pool; returns it automatically on exit."""
    conn = get_pool().get_connection()
    try:
        yield conn
    finally:
        conn.close()  # returns to pool


# Tables read by LevelRepository and written by MySQLRateCache.
SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS membership_levels (
        id INT UNSIGNED AUTO_INCREMENT PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        initial_payment DECIMAL(18, 8) NOT NULL DEFAULT 0,
        billing_amount DECIMAL(18, 8) NOT NULL DEFAULT 0,
        cycle_number INT NOT NULL DEFAULT 0,
        cycle_period VARCHAR(10) NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS discount_codes (
        id INT UNSIGNED AUTO_INCREMENT PRIMARY KEY,
        code VARCHAR(32) NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS discount_codes_levels (
        code_id INT UNSIGNED NOT NULL,
        level_id INT UNSIGNED NOT NULL,
        initial_payment DECIMAL(18, 8) NOT NULL DEFAULT 0,
        billing_amount DECIMAL(18, 8) NOT NULL DEFAULT 0,
        cycle_number INT NOT NULL DEFAULT 0,
        cycle_period VARCHAR(10) NULL,
        PRIMARY KEY (code_id, level_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS local_pricing_exchange_rates (
        base_currency CHAR(3) NOT NULL PRIMARY KEY,
        rates_json MEDIUMTEXT NOT NULL,
        fetched_at DOUBLE NOT NULL,
        expires_at DOUBLE NOT NULL
    )
    """,
)


def create_schema() -> None:
    """Create any missing tables. Safe to run repeatedly."""
    with get_connection() as conn:
        cursor = conn.cursor()
        for statement in SCHEMA:
            cursor.execute(statement)
        conn.commit()
        cursor.close()
