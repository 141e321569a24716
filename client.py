import requests
from typing import Optional

from models import Workout, WorkoutStats


class LiftlogClient:
    """Simple REST client for the workout API."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        api_key: Optional[str] = None,
        session=None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.headers = {"X-API-Key": api_key} if api_key else {}

    def _request(self, method: str, path: str, **kwargs):
        resp = self.session.request(
            method, f"{self.base_url}{path}", headers=self.headers, **kwargs
        )
        resp.raise_for_status()
        return resp.json()

    def save_workout(self, workout: Workout) -> str:
        return self._request("POST", "/workouts", json=workout.to_dict())["id"]

    def get_workout(self, workout_id: str) -> Optional[Workout]:
        resp = self.session.request(
            "GET", f"{self.base_url}/workouts/{workout_id}", headers=self.headers
        )
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return Workout.from_dict(resp.json())

    def list_workouts(self, user_id: str, **params) -> list[Workout]:
        data = self._request("GET", "/workouts", params={"user_id": user_id, **params})
        return [Workout.from_dict(w) for w in data]

    def start_workout(self, workout_id: str) -> str:
        return self._request("POST", f"/workouts/{workout_id}/start")["status"]

    def complete_workout(self, workout_id: str) -> str:
        return self._request("POST", f"/workouts/{workout_id}/complete")["status"]

    def cancel_workout(self, workout_id: str) -> str:
        return self._request("POST", f"/workouts/{workout_id}/cancel")["status"]

    def stats(self, user_id: str) -> WorkoutStats:
        data = self._request("GET", f"/users/{user_id}/stats")
        return WorkoutStats(
            total_workouts=data["total_workouts"],
            completed_workouts=data["completed_workouts"],
            total_volume=data["total_volume"],
            average_duration_minutes=data["average_duration_minutes"],
        )
