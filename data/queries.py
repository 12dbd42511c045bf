"""
SQL queries as constants for better maintainability.

All queries are defined here to avoid SQL string literals scattered
throughout the codebase. This makes it easier to:
- Review SQL security
- Optimize queries
- Update schema changes
"""

# ==================== Schema ====================

CREATE_SCHEMA = """
    CREATE TABLE IF NOT EXISTS product_extractions (
        product_id TEXT PRIMARY KEY,
        product_name TEXT,
        extractions_json TEXT NOT NULL,
        default_types_json TEXT,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS selection_state (
        session_id TEXT PRIMARY KEY,
        state_json TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
"""

# ==================== Product Extraction Queries ====================

UPSERT_PRODUCT_EXTRACTIONS = """
    INSERT INTO product_extractions (product_id, product_name, extractions_json)
    VALUES (?, ?, ?)
    ON CONFLICT(product_id) DO UPDATE SET
        product_name = COALESCE(excluded.product_name, product_extractions.product_name),
        extractions_json = excluded.extractions_json,
        updated_at = CURRENT_TIMESTAMP
"""

SELECT_PRODUCT_EXTRACTIONS = """
    SELECT extractions_json
    FROM product_extractions
    WHERE product_id = ?
"""

SELECT_ALL_PRODUCT_EXTRACTIONS = """
    SELECT product_id, product_name, extractions_json, updated_at
    FROM product_extractions
    ORDER BY product_id
"""

DELETE_PRODUCT_EXTRACTIONS = """
    DELETE FROM product_extractions WHERE product_id = ?
"""

UPDATE_DEFAULT_TYPES = """
    UPDATE product_extractions
    SET default_types_json = ?, updated_at = CURRENT_TIMESTAMP
    WHERE product_id = ?
"""

INSERT_DEFAULT_TYPES_ONLY = """
    INSERT INTO product_extractions (product_id, extractions_json, default_types_json)
    VALUES (?, '[]', ?)
"""

SELECT_DEFAULT_TYPES = """
    SELECT default_types_json
    FROM product_extractions
    WHERE product_id = ?
"""

# ==================== Selection State Queries ====================

UPSERT_SELECTION_STATE = """
    INSERT INTO selection_state (session_id, state_json)
    VALUES (?, ?)
    ON CONFLICT(session_id) DO UPDATE SET
        state_json = excluded.state_json,
        updated_at = CURRENT_TIMESTAMP
"""

SELECT_SELECTION_STATE = """
    SELECT state_json
    FROM selection_state
    WHERE session_id = ?
"""

DELETE_SELECTION_STATE = """
    DELETE FROM selection_state WHERE session_id = ?
"""
