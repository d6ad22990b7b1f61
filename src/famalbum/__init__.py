"""
famalbum - collection engine for a family photo-sharing application

Collections group users around shared photos:
- Membership with an always-present owner
- A symmetric "related collections" graph
- Cascading deletion across DuckDB and Google Cloud Storage
"""

__version__ = "0.1.0"
__author__ = "famalbum"
__description__ = "Collection membership, relation graph and cascading deletion for family photo sharing"
