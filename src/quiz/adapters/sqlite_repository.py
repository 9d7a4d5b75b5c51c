import json
import sqlite3
from typing import Any

from pydantic import ValidationError

from src.quiz.adapters.db_manager import DatabaseManager
from src.quiz.domain.models import (
    AttemptStats,
    Explanation,
    ProgressMap,
    Question,
    utc_now,
)
from src.quiz.domain.ports import IProgressRepository
from src.shared.telemetry import Telemetry, measure_time

# Export/import envelope keys, compatible with earlier JSON backups
OUTCOME_KEYS = {True: "correct", False: "incorrect"}


class SQLiteProgressRepository(IProgressRepository):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteRepository")
        self.db_manager = db_manager

    def _get_connection(self) -> sqlite3.Connection:
        return self.db_manager.get_connection()

    # --- Progress ---
    @measure_time("db_load_progress")
    def load_progress(self) -> ProgressMap:
        try:
            conn = self._get_connection()
            cursor = conn.execute("SELECT question_id, json_data FROM question_progress")
            return {
                question_id: AttemptStats.model_validate_json(json_data)
                for question_id, json_data in cursor.fetchall()
            }
        except (sqlite3.Error, ValidationError) as e:
            self.telemetry.log_error("load_progress failed, starting empty", e)
            return {}

    @measure_time("db_save_progress")
    def save_progress(self, progress: ProgressMap) -> None:
        conn = self._get_connection()
        try:
            # Whole-map replace: the last writer wins.
            conn.execute("DELETE FROM question_progress")
            conn.executemany(
                "INSERT INTO question_progress (question_id, json_data, updated_at) "
                "VALUES (?, ?, CURRENT_TIMESTAMP)",
                [
                    (question_id, stats.model_dump_json(by_alias=True))
                    for question_id, stats in progress.items()
                ],
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            self.telemetry.log_error("save_progress failed", e, entries=len(progress))

    # --- Current Batch ---
    def load_current_batch(self) -> list[Question] | None:
        try:
            conn = self._get_connection()
            cursor = conn.execute("SELECT json_data FROM current_batch ORDER BY position")
            batch = [Question.model_validate_json(row[0]) for row in cursor.fetchall()]
        except (sqlite3.Error, ValidationError) as e:
            self.telemetry.log_error("load_current_batch failed", e)
            return None
        return batch or None

    def save_current_batch(self, batch: list[Question]) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM current_batch")
            conn.executemany(
                "INSERT INTO current_batch (position, json_data) VALUES (?, ?)",
                [(i, q.model_dump_json()) for i, q in enumerate(batch)],
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            self.telemetry.log_error("save_current_batch failed", e)

    def clear_current_batch(self) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM current_batch")
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error("clear_current_batch failed", e)

    # --- Explanation Cache ---
    def get_explanation(self, question_id: str, is_correct: bool) -> Explanation | None:
        try:
            conn = self._get_connection()
            row = conn.execute(
                "SELECT json_data FROM explanations WHERE question_id = ? AND is_correct = ?",
                (question_id, is_correct),
            ).fetchone()
            return Explanation.model_validate_json(row[0]) if row else None
        except (sqlite3.Error, ValidationError) as e:
            self.telemetry.log_error("get_explanation failed", e, q_id=question_id)
            return None

    def save_explanation(self, question_id: str, explanation: Explanation) -> None:
        stamped = explanation.model_copy(update={"generated_at": utc_now()})
        conn = self._get_connection()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO explanations (question_id, is_correct, json_data) "
                "VALUES (?, ?, ?)",
                (question_id, explanation.is_correct, stamped.model_dump_json()),
            )
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error("save_explanation failed", e, q_id=question_id)

    def _load_explanations(self) -> dict[str, dict[str, Any]]:
        conn = self._get_connection()
        cursor = conn.execute("SELECT question_id, is_correct, json_data FROM explanations")
        explanations: dict[str, dict[str, Any]] = {}
        for question_id, is_correct, json_data in cursor.fetchall():
            explanations.setdefault(question_id, {})[OUTCOME_KEYS[bool(is_correct)]] = (
                json.loads(json_data)
            )
        return explanations

    # --- Backup ---
    @measure_time("db_export_all")
    def export_all_data(self) -> dict[str, Any]:
        try:
            explanations = self._load_explanations()
        except sqlite3.Error as e:
            self.telemetry.log_error("export explanations failed", e)
            explanations = {}

        return {
            "progress": {
                question_id: stats.model_dump(mode="json", by_alias=True)
                for question_id, stats in self.load_progress().items()
            },
            "explanations": explanations,
            "exportedAt": utc_now().isoformat(),
        }

    @measure_time("db_import_all")
    def import_all_data(self, data: dict[str, Any]) -> bool:
        try:
            progress = {
                str(question_id): AttemptStats.model_validate(stats)
                for question_id, stats in (data.get("progress") or {}).items()
            }
            explanations = [
                (str(question_id), is_correct, Explanation.model_validate(payload))
                for question_id, outcomes in (data.get("explanations") or {}).items()
                for is_correct, key in OUTCOME_KEYS.items()
                if (payload := outcomes.get(key)) is not None
            ]
        except (ValidationError, AttributeError) as e:
            self.telemetry.log_error("import_all_data rejected backup", e)
            return False

        conn = self._get_connection()
        try:
            if "progress" in data:
                conn.execute("DELETE FROM question_progress")
                conn.executemany(
                    "INSERT INTO question_progress (question_id, json_data) VALUES (?, ?)",
                    [(qid, s.model_dump_json(by_alias=True)) for qid, s in progress.items()],
                )
            if "explanations" in data:
                conn.execute("DELETE FROM explanations")
                conn.executemany(
                    "INSERT INTO explanations (question_id, is_correct, json_data) "
                    "VALUES (?, ?, ?)",
                    [(qid, ok, e.model_dump_json()) for qid, ok, e in explanations],
                )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            self.telemetry.log_error("import_all_data failed", e)
            return False

        self.telemetry.log_info(
            "Backup imported", progress=len(progress), explanations=len(explanations)
        )
        return True

    def clear_all_data(self) -> bool:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM question_progress")
            conn.execute("DELETE FROM explanations")
            conn.execute("DELETE FROM current_batch")
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            self.telemetry.log_error("clear_all_data failed", e)
            return False
        return True
