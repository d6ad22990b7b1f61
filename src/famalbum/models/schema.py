"""
Database schema definitions for famalbum.

DuckDB has no ``ON DELETE CASCADE``, so the join tables carry no foreign
keys; the repository deletes dependent rows in the same transaction as
their parent.
"""

USERS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    first_name TEXT,
    middle_name TEXT,
    last_name TEXT,
    birthday DATE,
    collections TEXT[] NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

COLLECTIONS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS collections (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    owner_id TEXT NOT NULL,
    members TEXT[] NOT NULL,
    related_collections TEXT[] NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

COLLECTION_MEMBERS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS collection_members (
    collection_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    joined_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (collection_id, user_id)
);
"""

COLLECTION_RELATIONS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS collection_relations (
    collection_id_1 TEXT NOT NULL,
    collection_id_2 TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (collection_id_1, collection_id_2),
    CHECK (collection_id_1 != collection_id_2)
);
"""

IMAGES_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS images (
    id TEXT PRIMARY KEY,
    title TEXT,
    filename TEXT NOT NULL,
    original_key TEXT,
    thumbnail_key TEXT,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

IMAGE_COLLECTIONS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS image_collections (
    image_id TEXT NOT NULL,
    collection_id TEXT NOT NULL,
    PRIMARY KEY (image_id, collection_id)
);
"""

TABLE_SCHEMAS = {
    "users": USERS_TABLE_SCHEMA,
    "collections": COLLECTIONS_TABLE_SCHEMA,
    "collection_members": COLLECTION_MEMBERS_TABLE_SCHEMA,
    "collection_relations": COLLECTION_RELATIONS_TABLE_SCHEMA,
    "images": IMAGES_TABLE_SCHEMA,
    "image_collections": IMAGE_COLLECTIONS_TABLE_SCHEMA,
}

INDEX_STATEMENTS = [
    "CREATE INDEX IF NOT EXISTS idx_collection_members_user ON collection_members(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_collection_relations_second ON collection_relations(collection_id_2);",
    "CREATE INDEX IF NOT EXISTS idx_image_collections_collection ON image_collections(collection_id);",
]

# Columns each table must expose for the engine to work
REQUIRED_COLUMNS = {
    "users": {"id", "email", "first_name", "last_name", "birthday", "collections"},
    "collections": {"id", "name", "owner_id", "members", "related_collections", "created_at", "updated_at"},
    "collection_members": {"collection_id", "user_id", "joined_at"},
    "collection_relations": {"collection_id_1", "collection_id_2"},
    "images": {"id", "original_key", "thumbnail_key"},
    "image_collections": {"image_id", "collection_id"},
}


def get_schema_statements() -> list[str]:
    """
    Get all database schema creation statements.

    Returns:
        List of SQL statements to create tables and indexes, tables first
    """
    return list(TABLE_SCHEMAS.values()) + INDEX_STATEMENTS


def validate_schema_compatibility() -> bool:
    """Check that every required column appears in its table definition."""
    for table, columns in REQUIRED_COLUMNS.items():
        schema_lower = TABLE_SCHEMAS[table].lower()
        for column in columns:
            if column not in schema_lower:
                return False
    return True
