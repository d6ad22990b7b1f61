"""
Administrative tasks for famalbum, run with invoke.

    famalbum-admin init-db
    famalbum-admin create-user --email ada@example.com --first-name Ada
    famalbum-admin create-collection --name Trip --owner-id <user-id>
    famalbum-admin delete-collection --collection-id <id>

Every task reads an optional ``.env`` file first, then the environment.
"""

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from dotenv import load_dotenv
from invoke import Collection, Context, Program, task
from invoke.exceptions import Exit

from .. import __version__
from ..config import get_db_path
from ..errors import ErrorHandler, FamAlbumError
from ..health import get_health_status
from ..logging_config import configure_structured_logging
from ..models.database import DatabaseManager, get_database_manager
from ..services.collections import CollectionService
from ..services.membership import MembershipManager
from ..services.relations import RelationGraph
from ..services.repository import CollectionRepository
from ..services.storage import StorageService
from ..services.users import UserDirectory

logger = structlog.get_logger()
error_handler = ErrorHandler()


def _load_env(env_file: str) -> None:
    if os.path.exists(env_file):
        load_dotenv(dotenv_path=env_file)
        logger.debug("env_file_loaded", env_file=env_file)
    else:
        logger.debug("env_file_missing", env_file=env_file)
    configure_structured_logging()


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


@contextmanager
def _database(env_file: str, db_path: str | None) -> Iterator[DatabaseManager]:
    """Open the configured database for the duration of a task, mapping errors to an exit code."""
    _load_env(env_file)
    db_manager = get_database_manager(db_path or get_db_path())
    try:
        yield db_manager
    except FamAlbumError as e:
        info = error_handler.handle_error(e)
        logger.error("task_failed", code=info.code, http_status=info.http_status, message=info.message)
        raise Exit(f"Error: {info.message}", code=1) from e
    finally:
        db_manager.close()


@task
def init_db(c: Context, env_file: str = ".env", db_path: str | None = None):
    """Create the database file and schema if missing."""
    with _database(env_file, db_path) as db:
        print(f"Database ready at {db.db_path}")


@task
def create_user(
    c: Context,
    email: str,
    first_name: str | None = None,
    last_name: str | None = None,
    env_file: str = ".env",
    db_path: str | None = None,
):
    """Create a user that collections can be owned by or shared with."""
    with _database(env_file, db_path) as db:
        user = UserDirectory(db).create_user(email, first_name=first_name, last_name=last_name)
        _print({"id": user.id, "email": user.email, "name": user.display_name})


@task
def create_collection(c: Context, name: str, owner_id: str, env_file: str = ".env", db_path: str | None = None):
    """Create a collection owned by OWNER_ID."""
    with _database(env_file, db_path) as db:
        repository = CollectionRepository(db)
        collection = MembershipManager(db, repository, UserDirectory(db)).create(name, owner_id)
        _print(collection.to_dict())


@task
def add_member(c: Context, collection_id: str, user_id: str, env_file: str = ".env", db_path: str | None = None):
    """Add a user to a collection."""
    with _database(env_file, db_path) as db:
        MembershipManager(db, CollectionRepository(db), UserDirectory(db)).add_member(collection_id, user_id)
        print(f"User {user_id} is a member of {collection_id}")


@task
def remove_member(c: Context, collection_id: str, user_id: str, env_file: str = ".env", db_path: str | None = None):
    """Remove a non-owner user from a collection."""
    with _database(env_file, db_path) as db:
        MembershipManager(db, CollectionRepository(db), UserDirectory(db)).remove_member(collection_id, user_id)
        print(f"User {user_id} removed from {collection_id}")


@task
def members(c: Context, collection_id: str, env_file: str = ".env", db_path: str | None = None):
    """List the members of a collection."""
    with _database(env_file, db_path) as db:
        rows = MembershipManager(db, CollectionRepository(db), UserDirectory(db)).get_members(collection_id)
        _print([member.to_dict() for member in rows])


@task
def relate(c: Context, collection_id: str, related_id: str, env_file: str = ".env", db_path: str | None = None):
    """Relate two collections."""
    with _database(env_file, db_path) as db:
        RelationGraph(db, CollectionRepository(db)).add_relation(collection_id, related_id)
        print(f"Related {collection_id} <-> {related_id}")


@task
def unrelate(c: Context, collection_id: str, related_id: str, env_file: str = ".env", db_path: str | None = None):
    """Remove the relation between two collections."""
    with _database(env_file, db_path) as db:
        RelationGraph(db, CollectionRepository(db)).remove_relation(collection_id, related_id)
        print(f"Unrelated {collection_id} <-> {related_id}")


@task
def related(c: Context, collection_id: str, env_file: str = ".env", db_path: str | None = None):
    """List the collections related to a collection."""
    with _database(env_file, db_path) as db:
        rows = RelationGraph(db, CollectionRepository(db)).get_related(collection_id)
        _print([row.to_dict() for row in rows])


@task
def delete_collection(c: Context, collection_id: str, env_file: str = ".env", db_path: str | None = None):
    """Delete a collection together with the images only it references."""
    with _database(env_file, db_path) as db:
        report = CollectionService(db, StorageService()).delete(collection_id)
        _print(report.to_dict())
        if report.failures:
            print(f"\nCollection deleted; {len(report.failures)} image(s) could not be purged.")


@task
def health(c: Context, env_file: str = ".env", db_path: str | None = None, skip_storage: bool = False):
    """Report database and storage health."""
    with _database(env_file, db_path) as db:
        status = get_health_status(db, None if skip_storage else StorageService())
        _print(status)
        if status["status"] != "healthy":
            raise Exit(code=1)


namespace = Collection(
    init_db,
    create_user,
    create_collection,
    add_member,
    remove_member,
    members,
    relate,
    unrelate,
    related,
    delete_collection,
    health,
)

program = Program(namespace=namespace, version=__version__, name="famalbum-admin", binary="famalbum-admin")


def main() -> None:
    program.run()
