import sqlite3
import aiosqlite
import datetime
import logging
import uuid
from contextlib import contextmanager, asynccontextmanager
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from algorithms.workout_math import WorkoutMath
from models import (
    User,
    UserPreferences,
    Workout,
    WorkoutExercise,
    WorkoutSet,
    WorkoutStats,
    WorkoutStatus,
    TemplateCategory,
    TemplateDifficulty,
    TemplateExercise,
    TemplateStats,
    WorkoutTemplate,
    format_timestamp,
)

logger = logging.getLogger(__name__)

# aiosqlite surfaces the sqlite3 exception hierarchy unchanged.
StoreError = sqlite3.Error


class NotFoundError(LookupError):
    """Raised when an operation references a workout that was never stored."""


class InvalidTransitionError(ValueError):
    """Raised when a status change is not allowed by the workout lifecycle."""


class Database:
    """Provides SQLite connection management and schema initialization."""

    SCHEMA_VERSION = 3

    _TABLE_DEFINITIONS = {
        "users": (
            """CREATE TABLE users (
                    user_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    last_active_at TEXT NOT NULL,
                    body_part_xp TEXT
                );""",
            ["user_id", "name", "created_at", "last_active_at", "body_part_xp"],
        ),
        "user_preferences": (
            """CREATE TABLE user_preferences (
                    user_id TEXT PRIMARY KEY,
                    default_weight_unit TEXT NOT NULL DEFAULT 'kg',
                    default_rest_time INTEGER NOT NULL DEFAULT 90,
                    favorite_body_parts TEXT,
                    sound_enabled INTEGER NOT NULL DEFAULT 1,
                    vibration_enabled INTEGER NOT NULL DEFAULT 1,
                    FOREIGN KEY(user_id) REFERENCES users(user_id) ON DELETE CASCADE
                );""",
            [
                "user_id",
                "default_weight_unit",
                "default_rest_time",
                "favorite_body_parts",
                "sound_enabled",
                "vibration_enabled",
            ],
        ),
        "workouts": (
            """CREATE TABLE workouts (
                    workout_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    target_body_parts TEXT,
                    planned_duration_minutes INTEGER NOT NULL,
                    created_at TEXT NOT NULL,
                    started_at TEXT,
                    completed_at TEXT,
                    status TEXT NOT NULL DEFAULT 'planned',
                    notes TEXT
                );""",
            [
                "workout_id",
                "user_id",
                "name",
                "target_body_parts",
                "planned_duration_minutes",
                "created_at",
                "started_at",
                "completed_at",
                "status",
                "notes",
            ],
        ),
        "workout_exercises": (
            """CREATE TABLE workout_exercises (
                    workout_exercise_id TEXT PRIMARY KEY,
                    workout_id TEXT NOT NULL,
                    exercise_id TEXT NOT NULL,
                    exercise_name TEXT NOT NULL,
                    body_parts TEXT,
                    notes TEXT,
                    order_index INTEGER NOT NULL,
                    FOREIGN KEY(workout_id) REFERENCES workouts(workout_id) ON DELETE CASCADE
                );""",
            [
                "workout_exercise_id",
                "workout_id",
                "exercise_id",
                "exercise_name",
                "body_parts",
                "notes",
                "order_index",
            ],
        ),
        "workout_sets": (
            """CREATE TABLE workout_sets (
                    set_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    workout_exercise_id TEXT NOT NULL,
                    weight REAL NOT NULL,
                    reps INTEGER NOT NULL,
                    set_number INTEGER NOT NULL,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    completed_at TEXT,
                    notes TEXT,
                    rest_time_seconds INTEGER,
                    FOREIGN KEY(workout_exercise_id) REFERENCES workout_exercises(workout_exercise_id) ON DELETE CASCADE
                );""",
            [
                "set_id",
                "workout_exercise_id",
                "weight",
                "reps",
                "set_number",
                "is_completed",
                "completed_at",
                "notes",
                "rest_time_seconds",
            ],
        ),
        "workout_templates": (
            """CREATE TABLE workout_templates (
                    template_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT,
                    target_body_parts TEXT,
                    estimated_duration_minutes INTEGER,
                    difficulty TEXT NOT NULL DEFAULT 'beginner',
                    category TEXT NOT NULL DEFAULT 'custom',
                    is_favorite INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    last_used_at TEXT,
                    usage_count INTEGER NOT NULL DEFAULT 0
                );""",
            [
                "template_id",
                "user_id",
                "name",
                "description",
                "target_body_parts",
                "estimated_duration_minutes",
                "difficulty",
                "category",
                "is_favorite",
                "created_at",
                "updated_at",
                "last_used_at",
                "usage_count",
            ],
        ),
        "template_exercises": (
            """CREATE TABLE template_exercises (
                    template_exercise_id TEXT PRIMARY KEY,
                    template_id TEXT NOT NULL,
                    exercise_id TEXT NOT NULL,
                    exercise_name TEXT NOT NULL,
                    body_parts TEXT,
                    order_index INTEGER NOT NULL,
                    suggested_sets INTEGER NOT NULL DEFAULT 3,
                    suggested_reps_min INTEGER NOT NULL DEFAULT 8,
                    suggested_reps_max INTEGER NOT NULL DEFAULT 12,
                    suggested_weight REAL,
                    rest_time_seconds INTEGER NOT NULL DEFAULT 90,
                    notes TEXT,
                    FOREIGN KEY(template_id) REFERENCES workout_templates(template_id) ON DELETE CASCADE
                );""",
            [
                "template_exercise_id",
                "template_id",
                "exercise_id",
                "exercise_name",
                "body_parts",
                "order_index",
                "suggested_sets",
                "suggested_reps_min",
                "suggested_reps_max",
                "suggested_weight",
                "rest_time_seconds",
                "notes",
            ],
        ),
    }

    _INDEXES = [
        "CREATE INDEX IF NOT EXISTS idx_workouts_user_id ON workouts (user_id);",
        "CREATE INDEX IF NOT EXISTS idx_workouts_status ON workouts (status);",
        "CREATE INDEX IF NOT EXISTS idx_workouts_created_at ON workouts (created_at);",
        "CREATE INDEX IF NOT EXISTS idx_workout_exercises_workout_id ON workout_exercises (workout_id);",
        "CREATE INDEX IF NOT EXISTS idx_workout_exercises_order ON workout_exercises (workout_id, order_index);",
        "CREATE INDEX IF NOT EXISTS idx_workout_sets_exercise_id ON workout_sets (workout_exercise_id);",
        "CREATE INDEX IF NOT EXISTS idx_workout_sets_set_number ON workout_sets (workout_exercise_id, set_number);",
        "CREATE INDEX IF NOT EXISTS idx_templates_user_id ON workout_templates (user_id);",
        "CREATE INDEX IF NOT EXISTS idx_templates_category ON workout_templates (category);",
        "CREATE INDEX IF NOT EXISTS idx_templates_is_favorite ON workout_templates (is_favorite);",
        "CREATE INDEX IF NOT EXISTS idx_templates_usage_count ON workout_templates (usage_count);",
        "CREATE INDEX IF NOT EXISTS idx_template_exercises_order ON template_exercises (template_id, order_index);",
    ]

    _COLUMN_DEFAULTS = {
        "status": "'planned'",
        "planned_duration_minutes": "0",
        "is_completed": "0",
        "default_weight_unit": "'kg'",
        "default_rest_time": "90",
        "sound_enabled": "1",
        "vibration_enabled": "1",
        "difficulty": "'beginner'",
        "category": "'custom'",
        "is_favorite": "0",
        "usage_count": "0",
        "suggested_sets": "3",
        "suggested_reps_min": "8",
        "suggested_reps_max": "12",
    }

    def __init__(self, db_path: str = "liftlog.db") -> None:
        self._db_path = db_path
        self._ensure_schema()
        self._ensure_indexes()

    @property
    def db_path(self) -> str:
        return self._db_path

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("PRAGMA foreign_keys=off;")
            # keep child foreign keys pointing at the rebuilt table
            cursor.execute("PRAGMA legacy_alter_table=on;")
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)
            cursor.execute("PRAGMA legacy_alter_table=off;")
            cursor.execute("PRAGMA foreign_keys=on;")
            cursor.execute(f"PRAGMA user_version = {self.SCHEMA_VERSION};")

    def _ensure_indexes(self) -> None:
        with self._connection() as conn:
            for sql in self._INDEXES:
                conn.execute(sql)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        logger.info("migrating table %s: %s -> %s", table, existing_cols, columns)
        conn.execute(f"DROP TABLE IF EXISTS {table}_old;")
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)

        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            missing = [c for c in columns if c not in existing_cols]
            if missing:
                defaults = ", ".join(
                    self._COLUMN_DEFAULTS.get(c, "NULL") for c in missing
                )
                conn.execute(
                    f"INSERT INTO {table} ({cols}, {', '.join(missing)}) SELECT {cols}, {defaults} FROM {table}_old;"
                )
            else:
                conn.execute(
                    f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
                )
        conn.execute(f"DROP TABLE {table}_old;")

    def vacuum(self) -> None:
        """Run SQLite VACUUM to reduce database size."""
        with self._connection() as conn:
            conn.execute("VACUUM;")


class AsyncDatabase(Database):
    """Store handle owning one ``aiosqlite`` connection for its lifetime."""

    def __init__(self, db_path: str = "liftlog.db") -> None:
        super().__init__(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._closed = False

    async def connect(self) -> aiosqlite.Connection:
        if self._closed:
            raise sqlite3.ProgrammingError("Cannot operate on a closed database.")
        if self._conn is None:
            conn = await aiosqlite.connect(self._db_path)
            conn.row_factory = aiosqlite.Row
            await conn.execute("PRAGMA foreign_keys=ON;")
            self._conn = conn
        return self._conn

    @asynccontextmanager
    async def _async_connection(self):
        conn = await self.connect()
        try:
            yield conn
            await conn.commit()
        except BaseException:
            await conn.rollback()
            raise

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
        self._closed = True

    async def __aenter__(self) -> "AsyncDatabase":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def is_healthy(self) -> bool:
        """Return ``True`` when every required table exists."""
        async with self._async_connection() as conn:
            rows = await conn.execute_fetchall(
                "SELECT name FROM sqlite_master WHERE type='table';"
            )
        names = {r[0] for r in rows}
        return all(t in names for t in self._TABLE_DEFINITIONS)

    async def info(self) -> dict:
        async with self._async_connection() as conn:
            version = (await conn.execute_fetchall("PRAGMA user_version;"))[0][0]
            counts = {}
            for table in self._TABLE_DEFINITIONS:
                rows = await conn.execute_fetchall(f"SELECT COUNT(*) FROM {table};")
                counts[table] = rows[0][0]
        return {
            "version": version,
            "path": self._db_path,
            "is_healthy": await self.is_healthy(),
            "tables": counts,
        }


class AsyncBaseRepository:
    """Base repository running queries through a shared ``AsyncDatabase``."""

    def __init__(self, store: AsyncDatabase) -> None:
        self.store = store

    async def execute(self, query: str, params: Tuple = ()) -> int:
        async with self.store._async_connection() as conn:
            cursor = await conn.execute(query, params)
            return cursor.lastrowid

    async def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        async with self.store._async_connection() as conn:
            rows = await conn.execute_fetchall(query, params)
            return list(rows)

    @staticmethod
    async def _insert(
        conn: aiosqlite.Connection,
        table: str,
        row: dict,
        conflict_key: str | None = None,
    ) -> None:
        cols = list(row.keys())
        query = (
            f"INSERT INTO {table} ({', '.join(cols)}) "
            f"VALUES ({', '.join('?' for _ in cols)})"
        )
        if conflict_key is not None:
            updates = ", ".join(f"{c}=excluded.{c}" for c in cols if c != conflict_key)
            query += f" ON CONFLICT({conflict_key}) DO UPDATE SET {updates}"
        await conn.execute(query + ";", tuple(row[c] for c in cols))

    async def close(self) -> None:
        """Release the underlying store connection."""
        await self.store.close()

    async def __aenter__(self):
        await self.store.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class AsyncWorkoutRepository(AsyncBaseRepository):
    """Async repository for workouts, their exercises and sets."""

    _TRANSITIONS = {
        WorkoutStatus.PLANNED: {WorkoutStatus.IN_PROGRESS, WorkoutStatus.CANCELLED},
        WorkoutStatus.IN_PROGRESS: {WorkoutStatus.COMPLETED, WorkoutStatus.CANCELLED},
        WorkoutStatus.COMPLETED: set(),
        WorkoutStatus.CANCELLED: set(),
    }

    # sqlite caps bound parameters per statement
    _CHUNK = 500

    def __init__(
        self,
        store: AsyncDatabase,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        super().__init__(store)
        self._clock = clock or datetime.datetime.now

    @staticmethod
    def _check_ids(workout: Workout) -> None:
        if not workout.workout_id:
            raise ValueError("workout_id must not be empty")
        if not workout.user_id:
            raise ValueError("user_id must not be empty")
        workout.check_parents()

    async def _write_workout(self, conn: aiosqlite.Connection, workout: Workout) -> None:
        await self._insert(conn, "workouts", workout.to_row(), conflict_key="workout_id")
        await self._delete_children(conn, workout.workout_id)
        for exercise in workout.exercises:
            await self._insert(conn, "workout_exercises", exercise.to_row())
            for workout_set in exercise.sets:
                await self._insert(conn, "workout_sets", workout_set.to_row())

    @staticmethod
    async def _delete_children(conn: aiosqlite.Connection, workout_id: str) -> None:
        await conn.execute(
            "DELETE FROM workout_sets WHERE workout_exercise_id IN "
            "(SELECT workout_exercise_id FROM workout_exercises WHERE workout_id = ?);",
            (workout_id,),
        )
        await conn.execute(
            "DELETE FROM workout_exercises WHERE workout_id = ?;", (workout_id,)
        )

    @staticmethod
    async def _exists(conn: aiosqlite.Connection, workout_id: str) -> bool:
        rows = await conn.execute_fetchall(
            "SELECT 1 FROM workouts WHERE workout_id = ?;", (workout_id,)
        )
        return bool(rows)

    async def _hydrate(
        self, conn: aiosqlite.Connection, workout_rows: Iterable[aiosqlite.Row]
    ) -> List[Workout]:
        """Attach ordered exercises and sets to ``workout_rows``, keeping their order."""
        workout_rows = [dict(r) for r in workout_rows]
        ids = [r["workout_id"] for r in workout_rows]
        exercise_rows: Dict[str, List[dict]] = {wid: [] for wid in ids}
        set_rows: Dict[str, List[WorkoutSet]] = {}
        for start in range(0, len(ids), self._CHUNK):
            chunk = ids[start : start + self._CHUNK]
            marks = ", ".join("?" for _ in chunk)
            rows = await conn.execute_fetchall(
                f"SELECT * FROM workout_exercises WHERE workout_id IN ({marks}) "
                "ORDER BY order_index ASC;",
                tuple(chunk),
            )
            for row in rows:
                exercise_rows[row["workout_id"]].append(dict(row))
            rows = await conn.execute_fetchall(
                "SELECT s.* FROM workout_sets s JOIN workout_exercises e "
                "ON s.workout_exercise_id = e.workout_exercise_id "
                f"WHERE e.workout_id IN ({marks}) ORDER BY s.set_number ASC, s.set_id ASC;",
                tuple(chunk),
            )
            for row in rows:
                set_rows.setdefault(row["workout_exercise_id"], []).append(
                    WorkoutSet.from_row(dict(row))
                )
        workouts = []
        for row in workout_rows:
            exercises = []
            for ex in exercise_rows[row["workout_id"]]:
                exercise = WorkoutExercise.from_row(ex)
                # rows written before schema version 3 carry an older id format
                sets = [
                    s.copy_with(workout_exercise_id=exercise.row_id)
                    for s in set_rows.get(ex["workout_exercise_id"], [])
                ]
                exercises.append(exercise.copy_with(sets=sets))
            workouts.append(Workout.from_row(row, exercises=exercises))
        return workouts

    async def save_workout(self, workout: Workout) -> str:
        """Insert or fully replace ``workout`` including exercises and sets."""
        self._check_ids(workout)
        logger.debug(
            "saving workout %s (%d exercises)",
            workout.workout_id,
            len(workout.exercises),
        )
        async with self.store._async_connection() as conn:
            await self._write_workout(conn, workout)
        logger.info("workout saved: %s", workout.workout_id)
        return workout.workout_id

    async def get_workout(self, workout_id: str) -> Optional[Workout]:
        """Return the hydrated workout or ``None`` when it does not exist."""
        async with self.store._async_connection() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM workouts WHERE workout_id = ?;", (workout_id,)
            )
            if not rows:
                logger.debug("workout not found: %s", workout_id)
                return None
            workouts = await self._hydrate(conn, rows)
        return workouts[0]

    async def update_workout(self, workout: Workout) -> None:
        """Replace the stored state of an existing workout."""
        self._check_ids(workout)
        async with self.store._async_connection() as conn:
            if not await self._exists(conn, workout.workout_id):
                raise NotFoundError(f"workout not found: {workout.workout_id}")
            await self._write_workout(conn, workout)
        logger.info("workout updated: %s", workout.workout_id)

    async def delete_workout(self, workout_id: str) -> None:
        async with self.store._async_connection() as conn:
            if not await self._exists(conn, workout_id):
                raise NotFoundError(f"workout not found: {workout_id}")
            await self._delete_children(conn, workout_id)
            await conn.execute("DELETE FROM workouts WHERE workout_id = ?;", (workout_id,))
        logger.info("workout deleted: %s", workout_id)

    async def _transition(self, workout_id: str, target: WorkoutStatus) -> None:
        async with self.store._async_connection() as conn:
            rows = await conn.execute_fetchall(
                "SELECT status, started_at, completed_at FROM workouts WHERE workout_id = ?;",
                (workout_id,),
            )
            if not rows:
                raise NotFoundError(f"workout not found: {workout_id}")
            current = WorkoutStatus(rows[0]["status"])
            if current != target and target not in self._TRANSITIONS[current]:
                raise InvalidTransitionError(
                    f"cannot move workout {workout_id} from {current.value} to {target.value}"
                )
            now = format_timestamp(self._clock())
            fields = {}
            if current != target:
                fields["status"] = target.value
            if target is WorkoutStatus.IN_PROGRESS and rows[0]["started_at"] is None:
                fields["started_at"] = now
            if target is WorkoutStatus.COMPLETED and rows[0]["completed_at"] is None:
                fields["completed_at"] = now
            if not fields:
                logger.debug("workout %s already %s", workout_id, target.value)
                return
            assignments = ", ".join(f"{k} = ?" for k in fields)
            await conn.execute(
                f"UPDATE workouts SET {assignments} WHERE workout_id = ?;",
                (*fields.values(), workout_id),
            )
        logger.info("workout %s: %s -> %s", workout_id, current.value, target.value)

    async def start_workout(self, workout_id: str) -> None:
        await self._transition(workout_id, WorkoutStatus.IN_PROGRESS)

    async def complete_workout(self, workout_id: str) -> None:
        await self._transition(workout_id, WorkoutStatus.COMPLETED)

    async def cancel_workout(self, workout_id: str) -> None:
        await self._transition(workout_id, WorkoutStatus.CANCELLED)

    async def get_workouts(
        self,
        user_id: str,
        status: WorkoutStatus | str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> List[Workout]:
        """Return the user's workouts, most recently created first."""
        query = "SELECT * FROM workouts WHERE user_id = ?"
        params: list[str | int] = [user_id]
        if status is not None:
            query += " AND status = ?"
            params.append(WorkoutStatus(status).value)
        query += " ORDER BY created_at DESC, workout_id DESC"
        if limit is not None:
            if limit < 0:
                raise ValueError("limit must be non-negative")
            query += " LIMIT ?"
            params.append(limit)
        if offset is not None:
            if offset < 0:
                raise ValueError("offset must be non-negative")
            if limit is None:
                query += " LIMIT -1"
            query += " OFFSET ?"
            params.append(offset)
        query += ";"
        async with self.store._async_connection() as conn:
            rows = await conn.execute_fetchall(query, tuple(params))
            return await self._hydrate(conn, rows)

    async def get_workouts_by_date_range(
        self,
        user_id: str,
        start_date: datetime.date | datetime.datetime,
        end_date: datetime.date | datetime.datetime,
    ) -> List[Workout]:
        """Return workouts created within ``[start_date, end_date]`` inclusive.

        Plain dates cover the whole day at either end of the range.
        """
        if not isinstance(start_date, datetime.datetime):
            start_date = datetime.datetime.combine(start_date, datetime.time.min)
        if not isinstance(end_date, datetime.datetime):
            end_date = datetime.datetime.combine(end_date, datetime.time.max)
        async with self.store._async_connection() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM workouts WHERE user_id = ? AND created_at >= ? AND created_at <= ? "
                "ORDER BY created_at DESC, workout_id DESC;",
                (user_id, format_timestamp(start_date), format_timestamp(end_date)),
            )
            return await self._hydrate(conn, rows)

    async def get_workout_stats(self, user_id: str) -> WorkoutStats:
        """Aggregate counts, completed volume and average duration in one read."""
        async with self.store._async_connection() as conn:
            rows = await conn.execute_fetchall(
                """SELECT w.status, w.started_at, w.completed_at, w.planned_duration_minutes,
                          COALESCE((
                              SELECT SUM(s.weight * s.reps)
                              FROM workout_sets s
                              JOIN workout_exercises e ON s.workout_exercise_id = e.workout_exercise_id
                              WHERE e.workout_id = w.workout_id
                          ), 0.0) AS volume
                   FROM workouts w
                   WHERE w.user_id = ?;""",
                (user_id,),
            )
        return WorkoutMath.summarize_workouts(tuple(r) for r in rows)

    async def get_volume_by_body_part(self, user_id: str) -> Dict[str, float]:
        async with self.store._async_connection() as conn:
            rows = await conn.execute_fetchall(
                """SELECT e.body_parts, SUM(s.weight * s.reps) AS volume
                   FROM workout_sets s
                   JOIN workout_exercises e ON s.workout_exercise_id = e.workout_exercise_id
                   JOIN workouts w ON e.workout_id = w.workout_id
                   WHERE w.user_id = ?
                   GROUP BY e.body_parts;""",
                (user_id,),
            )
        return WorkoutMath.body_part_volume((r[0], r[1]) for r in rows)


class AsyncUserRepository(AsyncBaseRepository):
    """Async repository for users and their preferences."""

    MOCK_USER_ID = "mock_user_1"
    MOCK_USER_NAME = "Fitness Enthusiast"

    def __init__(
        self,
        store: AsyncDatabase,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        super().__init__(store)
        self._clock = clock or datetime.datetime.now

    async def create(self, user: User) -> str:
        if not user.user_id:
            raise ValueError("user_id must not be empty")
        async with self.store._async_connection() as conn:
            await self._insert(conn, "users", user.to_row(), conflict_key="user_id")
            await self._insert(
                conn,
                "user_preferences",
                user.preferences.to_row(user.user_id),
                conflict_key="user_id",
            )
        return user.user_id

    async def get(self, user_id: str) -> Optional[User]:
        async with self.store._async_connection() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM users WHERE user_id = ?;", (user_id,)
            )
            if not rows:
                return None
            prefs = await conn.execute_fetchall(
                "SELECT * FROM user_preferences WHERE user_id = ?;", (user_id,)
            )
        preferences = UserPreferences.from_row(dict(prefs[0])) if prefs else None
        return User.from_row(dict(rows[0]), preferences=preferences)

    async def ensure_mock_user(self) -> str:
        """Create the single local user on first run and return its id."""
        if await self.get(self.MOCK_USER_ID) is not None:
            return self.MOCK_USER_ID
        now = self._clock()
        await self.create(
            User(
                user_id=self.MOCK_USER_ID,
                name=self.MOCK_USER_NAME,
                created_at=now,
                last_active_at=now,
            )
        )
        logger.info("created local user %s", self.MOCK_USER_ID)
        return self.MOCK_USER_ID

    async def update_preferences(self, user_id: str, preferences: UserPreferences) -> None:
        async with self.store._async_connection() as conn:
            rows = await conn.execute_fetchall(
                "SELECT 1 FROM users WHERE user_id = ?;", (user_id,)
            )
            if not rows:
                raise NotFoundError(f"user not found: {user_id}")
            await self._insert(
                conn,
                "user_preferences",
                preferences.to_row(user_id),
                conflict_key="user_id",
            )

    async def touch(self, user_id: str) -> None:
        """Record activity for ``user_id`` now."""
        await self.execute(
            "UPDATE users SET last_active_at = ? WHERE user_id = ?;",
            (format_timestamp(self._clock()), user_id),
        )


class AsyncTemplateRepository(AsyncBaseRepository):
    """Async repository for reusable workout templates."""

    _CHUNK = AsyncWorkoutRepository._CHUNK

    def __init__(
        self,
        store: AsyncDatabase,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        super().__init__(store)
        self._clock = clock or datetime.datetime.now

    @staticmethod
    def _check_ids(template: WorkoutTemplate) -> None:
        if not template.template_id:
            raise ValueError("template_id must not be empty")
        if not template.user_id:
            raise ValueError("user_id must not be empty")
        template.check_parents()

    async def _write_template(
        self, conn: aiosqlite.Connection, template: WorkoutTemplate
    ) -> None:
        await self._insert(
            conn, "workout_templates", template.to_row(), conflict_key="template_id"
        )
        await conn.execute(
            "DELETE FROM template_exercises WHERE template_id = ?;",
            (template.template_id,),
        )
        for exercise in template.exercises:
            await self._insert(conn, "template_exercises", exercise.to_row())

    async def _hydrate(
        self, conn: aiosqlite.Connection, rows: Iterable[aiosqlite.Row]
    ) -> List[WorkoutTemplate]:
        rows = [dict(r) for r in rows]
        children: Dict[str, List[TemplateExercise]] = {r["template_id"]: [] for r in rows}
        ids = list(children)
        for start in range(0, len(ids), self._CHUNK):
            chunk = ids[start : start + self._CHUNK]
            marks = ", ".join("?" for _ in chunk)
            found = await conn.execute_fetchall(
                f"SELECT * FROM template_exercises WHERE template_id IN ({marks}) "
                "ORDER BY order_index ASC;",
                tuple(chunk),
            )
            for row in found:
                children[row["template_id"]].append(TemplateExercise.from_row(dict(row)))
        return [
            WorkoutTemplate.from_row(r, exercises=children[r["template_id"]])
            for r in rows
        ]

    async def _select(self, where: str, params: Tuple, tail: str = "") -> List[WorkoutTemplate]:
        async with self.store._async_connection() as conn:
            rows = await conn.execute_fetchall(
                f"SELECT * FROM workout_templates WHERE {where} {tail};", params
            )
            return await self._hydrate(conn, rows)

    async def save_template(self, template: WorkoutTemplate) -> str:
        """Insert or fully replace ``template`` including its exercises."""
        self._check_ids(template)
        async with self.store._async_connection() as conn:
            await self._write_template(conn, template)
        logger.info("template saved: %s", template.template_id)
        return template.template_id

    async def get_template(self, template_id: str) -> Optional[WorkoutTemplate]:
        found = await self._select("template_id = ?", (template_id,))
        if not found:
            logger.debug("template not found: %s", template_id)
            return None
        return found[0]

    async def get_templates(
        self,
        user_id: str,
        category: TemplateCategory | str | None = None,
        difficulty: TemplateDifficulty | str | None = None,
        is_favorite: bool | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> List[WorkoutTemplate]:
        """Return the user's templates, most recently updated first."""
        where = "user_id = ?"
        params: list = [user_id]
        if category is not None:
            where += " AND category = ?"
            params.append(TemplateCategory(category).value)
        if difficulty is not None:
            where += " AND difficulty = ?"
            params.append(TemplateDifficulty(difficulty).value)
        if is_favorite is not None:
            where += " AND is_favorite = ?"
            params.append(1 if is_favorite else 0)
        if search:
            where += " AND (name LIKE ? OR description LIKE ?)"
            params.extend([f"%{search}%", f"%{search}%"])
        tail = "ORDER BY updated_at DESC, template_id DESC"
        if limit is not None:
            if limit < 0:
                raise ValueError("limit must be non-negative")
            tail += " LIMIT ?"
            params.append(limit)
        if offset is not None:
            if offset < 0:
                raise ValueError("offset must be non-negative")
            if limit is None:
                tail += " LIMIT -1"
            tail += " OFFSET ?"
            params.append(offset)
        return await self._select(where, tuple(params), tail)

    async def get_templates_by_category(
        self, user_id: str, category: TemplateCategory | str
    ) -> List[WorkoutTemplate]:
        return await self.get_templates(user_id, category=category)

    async def update_template(self, template: WorkoutTemplate) -> WorkoutTemplate:
        """Replace an existing template and stamp ``updated_at``."""
        self._check_ids(template)
        updated = template.copy_with(updated_at=self._clock())
        async with self.store._async_connection() as conn:
            rows = await conn.execute_fetchall(
                "SELECT 1 FROM workout_templates WHERE template_id = ?;",
                (template.template_id,),
            )
            if not rows:
                raise NotFoundError(f"template not found: {template.template_id}")
            await self._write_template(conn, updated)
        logger.info("template updated: %s", template.template_id)
        return updated

    async def delete_template(self, template_id: str) -> None:
        async with self.store._async_connection() as conn:
            cursor = await conn.execute(
                "DELETE FROM workout_templates WHERE template_id = ?;", (template_id,)
            )
            if cursor.rowcount == 0:
                raise NotFoundError(f"template not found: {template_id}")
        logger.info("template deleted: %s", template_id)

    async def _bump(self, template_id: str, assignments: str, params: Tuple) -> None:
        async with self.store._async_connection() as conn:
            cursor = await conn.execute(
                f"UPDATE workout_templates SET {assignments} WHERE template_id = ?;",
                (*params, template_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError(f"template not found: {template_id}")

    async def toggle_favorite(self, template_id: str) -> None:
        await self._bump(
            template_id,
            "is_favorite = 1 - is_favorite, updated_at = ?",
            (format_timestamp(self._clock()),),
        )

    async def record_usage(self, template_id: str) -> None:
        """Count one more use of the template and stamp ``last_used_at``."""
        await self._bump(
            template_id,
            "usage_count = usage_count + 1, last_used_at = ?",
            (format_timestamp(self._clock()),),
        )
        logger.debug("template used: %s", template_id)

    async def get_template_stats(self, user_id: str) -> TemplateStats:
        rows = await self.fetch_all(
            """SELECT COUNT(*),
                      COALESCE(SUM(is_favorite), 0),
                      COALESCE(SUM(usage_count), 0),
                      COALESCE(AVG(usage_count), 0.0),
                      COALESCE(SUM(CASE WHEN usage_count > 0 THEN 1 ELSE 0 END), 0)
               FROM workout_templates WHERE user_id = ?;""",
            (user_id,),
        )
        total, favorites, usage, average, used = rows[0]
        return TemplateStats(
            total_templates=total,
            favorite_templates=favorites,
            total_usage=usage,
            average_usage=float(average),
            used_templates=used,
        )

    async def get_popular_templates(self, user_id: str, limit: int = 5) -> List[WorkoutTemplate]:
        return await self._select(
            "user_id = ?",
            (user_id, limit),
            "ORDER BY usage_count DESC, template_id ASC LIMIT ?",
        )

    async def get_recent_templates(self, user_id: str, limit: int = 5) -> List[WorkoutTemplate]:
        return await self._select(
            "user_id = ? AND last_used_at IS NOT NULL",
            (user_id, limit),
            "ORDER BY last_used_at DESC, template_id ASC LIMIT ?",
        )

    async def create_template_from_workout(
        self,
        workout: Workout,
        name: str,
        description: str | None = None,
        difficulty: TemplateDifficulty | str = TemplateDifficulty.BEGINNER,
        category: TemplateCategory | str = TemplateCategory.CUSTOM,
        template_id: str | None = None,
    ) -> WorkoutTemplate:
        """Save a template whose prescriptions follow the workout's completed sets.

        Each exercise suggests as many sets as were completed, the completed rep
        range and their average weight. Exercises without completed sets fall
        back to 3 sets of 8-12 reps and no weight.
        """
        template_id = template_id or uuid.uuid4().hex
        now = self._clock()
        exercises = []
        for exercise in workout.exercises:
            done = [s for s in exercise.sets if s.is_completed]
            reps = [s.reps for s in done]
            exercises.append(
                TemplateExercise(
                    exercise_id=exercise.exercise_id,
                    exercise_name=exercise.exercise_name,
                    body_parts=list(exercise.body_parts),
                    order_index=exercise.order_index,
                    template_id=template_id,
                    suggested_sets=len(done) or 3,
                    suggested_reps_min=min(reps) if reps else 8,
                    suggested_reps_max=max(reps) if reps else 12,
                    suggested_weight=(
                        sum(s.weight for s in done) / len(done) if done else None
                    ),
                    notes=exercise.notes,
                )
            )
        template = WorkoutTemplate(
            template_id=template_id,
            user_id=workout.user_id,
            name=name,
            target_body_parts=list(workout.target_body_parts),
            created_at=now,
            updated_at=now,
            description=description,
            estimated_duration_minutes=workout.planned_duration_minutes,
            difficulty=TemplateDifficulty(difficulty),
            category=TemplateCategory(category),
            exercises=exercises,
        )
        await self.save_template(template)
        return template

    async def create_workout_from_template(
        self,
        template_id: str,
        user_id: str,
        workout_id: str | None = None,
        name: str | None = None,
    ) -> Workout:
        """Build a planned workout from a stored template and count the use.

        The workout is returned unsaved; the caller stores it.
        """
        template = await self.get_template(template_id)
        if template is None:
            raise NotFoundError(f"template not found: {template_id}")
        workout = template.to_workout(
            workout_id or uuid.uuid4().hex, user_id, self._clock(), name=name
        )
        await self.record_usage(template_id)
        return workout
