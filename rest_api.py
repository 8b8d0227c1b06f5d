import datetime
import logging
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException
from pydantic import BaseModel, Field, ValidationError

from config import APP_VERSION

_LOGGER = logging.getLogger(__name__)

EXTRA_LIFTS = [
    {"name": "Push ups", "defaultWeight": 0, "weightIncrement": 0},
    {"name": "Pull ups", "defaultWeight": 0, "weightIncrement": 5},
    {"name": "Dumbbell Tricep Extension", "defaultWeight": 25, "weightIncrement": 5},
    {"name": "Rear Delt Rows on Bench", "defaultWeight": 20, "weightIncrement": 5},
    {"name": "Machine Preacher Curl", "defaultWeight": 40, "weightIncrement": 5},
]


class WorkoutDataIn(BaseModel):
    user_id: int = Field(alias="userId", strict=True)
    data: Any


class RepQuestServer:
    """Reference server for the lift catalog and workout archive.

    Everything is kept in memory; a restart loses all stored data.
    """

    def __init__(self) -> None:
        self.lifts: Dict[int, dict] = {}
        self.workout_data: Dict[int, dict] = {}
        self._next_lift_id = 1
        self._next_data_id = 1
        self.app = FastAPI(title="RepQuest API", version=APP_VERSION)
        self._setup_routes()

    def add_lift(
        self, name: str, default_weight: float = 0, weight_increment: float = 5
    ) -> dict:
        lift = {
            "id": self._next_lift_id,
            "name": name,
            "defaultWeight": default_weight,
            "weightIncrement": weight_increment,
        }
        self.lifts[lift["id"]] = lift
        self._next_lift_id += 1
        return lift

    def list_lifts(self) -> List[dict]:
        """Stored lifts followed by the extra lifts missing from them by name."""
        lifts = list(self.lifts.values())
        names = {lift["name"] for lift in lifts}
        extras = [
            {"id": len(lifts) + i, **extra}
            for i, extra in enumerate(EXTRA_LIFTS, start=1)
        ]
        return lifts + [e for e in extras if e["name"] not in names]

    def save_workout_data(self, user_id: int, data: Any) -> dict:
        record = self.workout_data.get(user_id)
        now = datetime.datetime.now(datetime.timezone.utc).isoformat()
        if record is None:
            record = {"id": self._next_data_id, "userId": user_id}
            self._next_data_id += 1
        record = {**record, "data": data, "updatedAt": now}
        self.workout_data[user_id] = record
        return record

    def get_workout_data(self, user_id: int) -> Optional[Any]:
        record = self.workout_data.get(user_id)
        return record["data"] if record else None

    def _setup_routes(self) -> None:
        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify the API is up.",
        )
        def health():
            return {"status": "ok"}

        @self.app.get("/api/lifts")
        def get_lifts():
            return self.list_lifts()

        @self.app.post("/api/workout-data")
        def post_workout_data(payload: Any = Body(None)):
            try:
                body = WorkoutDataIn.model_validate(payload)
            except ValidationError as e:
                _LOGGER.info("Rejected workout data: %s", e)
                raise HTTPException(status_code=400, detail="Invalid workout data")
            return self.save_workout_data(body.user_id, body.data)

        @self.app.get("/api/workout-data/{user_id}")
        def get_workout_data(user_id: str):
            try:
                uid = int(user_id)
            except ValueError:
                raise HTTPException(status_code=400, detail="Invalid user ID")
            return self.get_workout_data(uid)


api = RepQuestServer()
app = api.app

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, port=5000)
