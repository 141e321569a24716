import csv
import datetime
import io
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Response

from config import APP_VERSION, load_settings
from db import (
    AsyncDatabase,
    AsyncTemplateRepository,
    AsyncUserRepository,
    AsyncWorkoutRepository,
    InvalidTransitionError,
    NotFoundError,
    StoreError,
)
from models import (
    TemplateCategory,
    TemplateDifficulty,
    Workout,
    WorkoutStatus,
    WorkoutTemplate,
)
from stats_service import StatisticsService

logger = logging.getLogger(__name__)


class WorkoutAPI:
    """Provides REST endpoints for workout planning, logging and review."""

    def __init__(
        self,
        db_path: str | None = None,
        yaml_path: str = "settings.yaml",
        *,
        clock=None,
    ) -> None:
        self.settings = load_settings(yaml_path)
        self.store = AsyncDatabase(db_path or self.settings.db_path)
        self.workouts = AsyncWorkoutRepository(self.store, clock=clock)
        self.users = AsyncUserRepository(self.store, clock=clock)
        self.templates = AsyncTemplateRepository(self.store, clock=clock)
        self.statistics = StatisticsService(self.workouts, self.settings.weight_unit)

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await self.store.connect()
            yield
            await self.store.close()

        self.app = FastAPI(
            title="Liftlog API",
            description="REST API for workout logging and statistics",
            version=APP_VERSION,
            lifespan=lifespan,
            dependencies=[Depends(self._check_api_key)],
        )
        self._setup_routes()

    async def _check_api_key(self, x_api_key: Optional[str] = Header(None)) -> None:
        expected = self.settings.api_key
        if expected and x_api_key != expected:
            raise HTTPException(status_code=401, detail="invalid api key")

    @staticmethod
    def _parse_workout(payload: dict) -> Workout:
        try:
            return Workout.from_dict(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise HTTPException(status_code=400, detail=f"invalid workout: {e}")

    @staticmethod
    def _parse_template(payload: dict) -> WorkoutTemplate:
        try:
            return WorkoutTemplate.from_dict(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise HTTPException(status_code=400, detail=f"invalid template: {e}")

    async def _get_or_404(self, workout_id: str) -> Workout:
        workout = await self.workouts.get_workout(workout_id)
        if workout is None:
            raise HTTPException(status_code=404, detail="workout not found")
        return workout

    def _setup_routes(self) -> None:
        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify API and database connectivity.",
        )
        async def health():
            """Return API and database connection status."""
            try:
                info = await self.store.info()
            except StoreError as e:  # pragma: no cover - connectivity failure
                raise HTTPException(status_code=500, detail=str(e))
            return {"status": "ok" if info["is_healthy"] else "degraded", **info}

        @self.app.post("/users/mock", summary="Ensure local user")
        async def ensure_mock_user():
            return {"user_id": await self.users.ensure_mock_user()}

        @self.app.post(
            "/workouts",
            summary="Save workout",
            description="Insert or replace a workout with its exercises and sets.",
        )
        async def save_workout(payload: dict = Body(...)):
            workout = self._parse_workout(payload)
            try:
                wid = await self.workouts.save_workout(workout)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"id": wid}

        @self.app.get(
            "/workouts",
            summary="List workouts",
            description="Workouts for a user, most recent first.",
        )
        async def list_workouts(
            user_id: str,
            status: Optional[WorkoutStatus] = None,
            limit: Optional[int] = None,
            offset: Optional[int] = None,
        ):
            try:
                workouts = await self.workouts.get_workouts(
                    user_id, status=status, limit=limit, offset=offset
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return [w.to_dict() for w in workouts]

        @self.app.get("/workouts/range")
        async def workouts_in_range(user_id: str, start_date: str, end_date: str):
            try:
                start = datetime.date.fromisoformat(start_date)
                end = datetime.date.fromisoformat(end_date)
            except ValueError:
                raise HTTPException(
                    status_code=400,
                    detail="dates must be in YYYY-MM-DD format",
                )
            workouts = await self.workouts.get_workouts_by_date_range(
                user_id, start, end
            )
            return [w.to_dict() for w in workouts]

        @self.app.get("/workouts/{workout_id}")
        async def get_workout(workout_id: str):
            return (await self._get_or_404(workout_id)).to_dict()

        @self.app.put("/workouts/{workout_id}")
        async def update_workout(workout_id: str, payload: dict = Body(...)):
            workout = self._parse_workout({**payload, "workout_id": workout_id})
            try:
                await self.workouts.update_workout(workout)
            except NotFoundError as e:
                raise HTTPException(status_code=404, detail=str(e))
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"status": "updated"}

        @self.app.delete("/workouts/{workout_id}")
        async def delete_workout(workout_id: str):
            try:
                await self.workouts.delete_workout(workout_id)
            except NotFoundError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return {"status": "deleted"}

        transitions = {
            "start": self.workouts.start_workout,
            "complete": self.workouts.complete_workout,
            "cancel": self.workouts.cancel_workout,
        }

        @self.app.post("/workouts/{workout_id}/{action}")
        async def change_status(workout_id: str, action: str):
            handler = transitions.get(action)
            if handler is None:
                raise HTTPException(status_code=404, detail=f"unknown action: {action}")
            try:
                await handler(workout_id)
            except NotFoundError as e:
                raise HTTPException(status_code=404, detail=str(e))
            except InvalidTransitionError as e:
                logger.warning("rejected %s on %s: %s", action, workout_id, e)
                raise HTTPException(status_code=409, detail=str(e))
            workout = await self._get_or_404(workout_id)
            return {"id": workout_id, "status": workout.status.value}

        @self.app.get("/workouts/{workout_id}/export_json")
        async def export_workout_json(workout_id: str):
            workout = await self._get_or_404(workout_id)
            return Response(
                content=json.dumps(workout.to_dict(), indent=2),
                media_type="application/json",
                headers={
                    "Content-Disposition": f"attachment; filename=workout_{workout_id}.json"
                },
            )

        @self.app.get("/workouts/{workout_id}/export_csv")
        async def export_workout_csv(workout_id: str):
            workout = await self._get_or_404(workout_id)
            return Response(
                content=workout_to_csv(workout),
                media_type="text/csv",
                headers={
                    "Content-Disposition": f"attachment; filename=workout_{workout_id}.csv"
                },
            )

        @self.app.get("/users/{user_id}/stats")
        async def user_stats(user_id: str):
            return await self.statistics.overview(user_id)

        @self.app.get("/users/{user_id}/volume_by_body_part")
        async def volume_by_body_part(user_id: str):
            return await self.workouts.get_volume_by_body_part(user_id)

        @self.app.get("/users/{user_id}/weekly_volume")
        async def weekly_volume(user_id: str, weeks: int = 4):
            try:
                return await self.statistics.weekly_volume(user_id, weeks)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

        @self.app.get("/users/{user_id}/personal_records")
        async def personal_records(user_id: str):
            records = await self.statistics.personal_records(user_id)
            return [r.to_dict() for r in records]

        @self.app.post("/templates", summary="Save template")
        async def save_template(payload: dict = Body(...)):
            template = self._parse_template(payload)
            try:
                tid = await self.templates.save_template(template)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"id": tid}

        @self.app.get(
            "/templates",
            summary="List templates",
            description="Templates for a user, most recently updated first.",
        )
        async def list_templates(
            user_id: str,
            category: Optional[TemplateCategory] = None,
            difficulty: Optional[TemplateDifficulty] = None,
            is_favorite: Optional[bool] = None,
            search: Optional[str] = None,
            limit: Optional[int] = None,
            offset: Optional[int] = None,
        ):
            try:
                templates = await self.templates.get_templates(
                    user_id,
                    category=category,
                    difficulty=difficulty,
                    is_favorite=is_favorite,
                    search=search,
                    limit=limit,
                    offset=offset,
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return [t.to_dict() for t in templates]

        @self.app.get("/templates/{template_id}")
        async def get_template(template_id: str):
            template = await self.templates.get_template(template_id)
            if template is None:
                raise HTTPException(status_code=404, detail="template not found")
            return template.to_dict()

        @self.app.put("/templates/{template_id}")
        async def update_template(template_id: str, payload: dict = Body(...)):
            template = self._parse_template({**payload, "template_id": template_id})
            try:
                await self.templates.update_template(template)
            except NotFoundError as e:
                raise HTTPException(status_code=404, detail=str(e))
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"status": "updated"}

        @self.app.delete("/templates/{template_id}")
        async def delete_template(template_id: str):
            try:
                await self.templates.delete_template(template_id)
            except NotFoundError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return {"status": "deleted"}

        @self.app.post("/templates/{template_id}/favorite")
        async def toggle_favorite(template_id: str):
            try:
                await self.templates.toggle_favorite(template_id)
            except NotFoundError as e:
                raise HTTPException(status_code=404, detail=str(e))
            template = await self.templates.get_template(template_id)
            return {"id": template_id, "is_favorite": template.is_favorite}

        @self.app.post(
            "/templates/{template_id}/use",
            summary="Plan workout from template",
            description="Save a planned workout with the template's exercises.",
        )
        async def use_template(template_id: str, user_id: str, name: Optional[str] = None):
            try:
                workout = await self.templates.create_workout_from_template(
                    template_id, user_id, name=name
                )
            except NotFoundError as e:
                raise HTTPException(status_code=404, detail=str(e))
            await self.workouts.save_workout(workout)
            return workout.to_dict()

        @self.app.post("/templates/from_workout/{workout_id}")
        async def template_from_workout(
            workout_id: str,
            name: str,
            description: Optional[str] = None,
            difficulty: TemplateDifficulty = TemplateDifficulty.BEGINNER,
            category: TemplateCategory = TemplateCategory.CUSTOM,
        ):
            workout = await self._get_or_404(workout_id)
            template = await self.templates.create_template_from_workout(
                workout, name, description, difficulty, category
            )
            return template.to_dict()

        @self.app.get("/users/{user_id}/template_stats")
        async def template_stats(user_id: str):
            return (await self.templates.get_template_stats(user_id)).to_dict()


def workout_to_csv(workout: Workout) -> str:
    """Flatten ``workout`` into one CSV line per set."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(
        ["exercise", "body_parts", "set_number", "weight", "reps", "volume", "completed"]
    )
    for exercise in workout.exercises:
        for workout_set in exercise.sets:
            writer.writerow(
                [
                    exercise.exercise_name,
                    "|".join(exercise.body_parts),
                    workout_set.set_number,
                    workout_set.weight,
                    workout_set.reps,
                    workout_set.volume,
                    int(workout_set.is_completed),
                ]
            )
    return buf.getvalue()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(WorkoutAPI().app)
