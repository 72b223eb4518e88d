"""SQLite database connection provider.

Opens a read-write connection to the chat database file, creating the file
and the schema on first use.
"""

import sqlite3
from pathlib import Path

from database.schema import SCHEMA_SQL

_MEMORY = ":memory:"


class DatabaseProvider:
    """Manage a single SQLite connection shared by the request handlers.

    The connection is opened with ``check_same_thread=False`` because
    streamed responses are produced on a worker thread; callers serialise
    access themselves (see ``ChatRepository``).
    """

    def __init__(self, db_path: str) -> None:
        """Open (and if necessary create) the database at ``db_path``.

        Args:
            db_path: Filesystem path to the SQLite database, or
                ``":memory:"`` for a throwaway in-process database.

        Raises:
            FileNotFoundError: If the parent directory cannot be created.
            ConnectionError: If SQLite cannot open the file or apply the schema.
        """
        if db_path == _MEMORY:
            target = _MEMORY
        else:
            path = Path(db_path)
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FileNotFoundError(
                    f"Could not prepare database directory for '{db_path}': {e}"
                ) from e
            target = str(path.resolve())

        try:
            self._connection = sqlite3.connect(target, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
            self._connection.executescript(SCHEMA_SQL)
        except sqlite3.Error as e:
            raise ConnectionError(
                f"Failed to open database at '{target}': {e}"
            ) from e

    def get_connection(self) -> sqlite3.Connection:
        """Return the underlying SQLite connection."""
        return self._connection

    def close(self) -> None:
        self._connection.close()
