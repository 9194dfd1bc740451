from typing import Optional
from time import perf_counter

from sqlalchemy import text

from config import DatabaseConfig
from logging_config import setup_logging

logger = setup_logging(__name__)

TABLES = (
    "products",
    "product_attribute_groups",
    "product_attribute_values",
    "generic_product_prices",
    "price_list_templates",
    "design_assets",
)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS products (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        slug TEXT,
        pricing_structure TEXT,
        generator_state TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # product_id NULL marks a library group
    """
    CREATE TABLE IF NOT EXISTS product_attribute_groups (
        id TEXT PRIMARY KEY,
        product_id TEXT REFERENCES products(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        kind TEXT NOT NULL DEFAULT 'other',
        ui_mode TEXT NOT NULL DEFAULT 'buttons',
        library_group_id TEXT,
        source TEXT NOT NULL DEFAULT 'product',
        sort_order INTEGER NOT NULL DEFAULT 0,
        enabled INTEGER NOT NULL DEFAULT 1,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS product_attribute_values (
        id TEXT PRIMARY KEY,
        group_id TEXT NOT NULL REFERENCES product_attribute_groups(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        enabled INTEGER NOT NULL DEFAULT 1,
        width_mm REAL,
        height_mm REAL,
        key TEXT,
        sort_order INTEGER NOT NULL DEFAULT 0,
        meta TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS generic_product_prices (
        id TEXT PRIMARY KEY,
        product_id TEXT NOT NULL REFERENCES products(id) ON DELETE CASCADE,
        variant_name TEXT NOT NULL,
        variant_value TEXT NOT NULL,
        quantity INTEGER NOT NULL,
        price REAL NOT NULL,
        extra_data TEXT,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (product_id, variant_name, variant_value, quantity)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS price_list_templates (
        id TEXT PRIMARY KEY,
        product_id TEXT REFERENCES products(id) ON DELETE SET NULL,
        name TEXT NOT NULL,
        spec TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS design_assets (
        id TEXT PRIMARY KEY,
        kind TEXT NOT NULL,
        name TEXT NOT NULL,
        file_url TEXT NOT NULL,
        description TEXT,
        icon_url TEXT,
        product_id TEXT REFERENCES products(id) ON DELETE SET NULL,
        storage_path TEXT,
        meta TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_groups_product ON product_attribute_groups(product_id)",
    "CREATE INDEX IF NOT EXISTS idx_values_group ON product_attribute_values(group_id)",
    "CREATE INDEX IF NOT EXISTS idx_prices_product ON generic_product_prices(product_id)",
    "CREATE INDEX IF NOT EXISTS idx_assets_kind ON design_assets(kind)",
)


def verify_db_content(db: DatabaseConfig) -> bool:
    """Check that every application table exists."""
    try:
        existing = set(db.get_table_list())
    except Exception as e:
        logger.warning(f"DB content verification failed for {db.alias}: {e}")
        return False
    missing = [t for t in TABLES if t not in existing]
    if missing:
        logger.info(f"Missing tables in {db.alias}: {missing}")
        return False
    return True


def init_db(db: Optional[DatabaseConfig] = None) -> bool:
    """Create the schema if it is not there yet.

    Safe to run repeatedly; every statement is IF NOT EXISTS.

    Returns True when all tables are present afterwards.
    """
    start_time = perf_counter()
    db = db or DatabaseConfig()
    logger.info("-" * 100)
    logger.info(f"initializing database {db.alias}")
    logger.info("-" * 100)

    with db.engine.begin() as conn:
        for statement in SCHEMA:
            conn.execute(text(statement))

    ok = verify_db_content(db)
    elapsed = round((perf_counter() - start_time) * 1000, 2)
    if ok:
        logger.info(f"database {db.alias} ready in {elapsed} ms")
    else:
        logger.error(f"database {db.alias} is missing tables after init")
    return ok


if __name__ == "__main__":
    init_db()
