from typing import Literal

from pydantic import BaseModel, Field, ValidationError


class SettingsSchema(BaseModel):
    db_path: str = "repquest.db"
    api_base_url: str = "http://localhost:5000"
    user_id: int = 1
    request_timeout: float = Field(10.0, gt=0)
    default_sets: int = Field(3, ge=1)
    default_reps: int = Field(8, ge=1)
    rep_range: str = "8-12 reps"
    history_mode: Literal["append", "replace"] = "append"
    undo_retracts_history: bool = False
    volume_window_days: int = Field(30, ge=1)
    calendar_days: int = Field(14, ge=1)
    chart_points: int = Field(6, ge=1)
    sync_max_attempts: int = Field(10, ge=0)
    log_level: str = "INFO"


def validate_settings(data: dict) -> SettingsSchema:
    try:
        return SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
