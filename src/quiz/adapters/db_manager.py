import os
import sqlite3
from typing import Any

from src.shared.telemetry import Telemetry, measure_time


class DatabaseManager:
    """
    Responsible for:
    1. Managing the SQLite connection lifecycle.
    2. Creating the progress, explanation cache and batch tables.
    3. Staying pickle-safe inside Streamlit session state.
    """

    def __init__(self, db_path: str = "data/quiz.db") -> None:
        self.db_path = db_path
        self.telemetry = Telemetry("DatabaseManager")
        self._shared_connection: sqlite3.Connection | None = None

        self._ensure_db_dir()

        # An in-memory database only lives as long as its connection
        if self.db_path == ":memory:":
            self._shared_connection = sqlite3.connect(
                ":memory:", check_same_thread=False
            )

        self._init_schema()

    # --- Pickle Safety ---
    def __getstate__(self) -> dict[str, Any]:
        state = self.__dict__.copy()
        state.pop("_shared_connection", None)
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        # Reconnects lazily in get_connection(); ":memory:" data does not survive.
        self.__dict__.update(state)
        self._shared_connection = None

    @property
    def keeps_connection(self) -> bool:
        return self._shared_connection is not None

    def get_connection(self) -> sqlite3.Connection:
        """Returns a usable database connection, reconnecting if necessary."""
        if self._shared_connection:
            try:
                self._shared_connection.execute("SELECT 1")
                return self._shared_connection
            except sqlite3.ProgrammingError:
                # Closed behind our back
                self._shared_connection = None

        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        if self.db_path != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL")

        self._shared_connection = conn
        return conn

    def close(self) -> None:
        if self._shared_connection:
            self._shared_connection.close()
            self._shared_connection = None

    def _ensure_db_dir(self) -> None:
        if self.db_path == ":memory:":
            return
        dir_name = os.path.dirname(self.db_path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)

    @measure_time("db_init_schema")
    def _init_schema(self) -> None:
        conn = self.get_connection()
        try:
            # One AttemptStats document per question
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS question_progress
                (
                    question_id TEXT PRIMARY KEY,
                    json_data   TEXT NOT NULL,
                    updated_at  DATETIME DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

            # Cached explanations, one per (question, answered correctly?)
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS explanations
                (
                    question_id TEXT,
                    is_correct  BOOLEAN,
                    json_data   TEXT NOT NULL,
                    PRIMARY KEY (question_id, is_correct)
                )
                """
            )

            # The in-progress batch, stored verbatim in order
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS current_batch
                (
                    position  INTEGER PRIMARY KEY,
                    json_data TEXT NOT NULL
                )
                """
            )
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error("Schema Init Failed", e)
