from typing import Literal, Optional

from pydantic import BaseModel, ValidationError

class SettingsSchema(BaseModel):
    db_path: str = "liftlog.db"
    user_id: str = "mock_user_1"
    weight_unit: Literal["kg", "lb"] = "kg"
    default_rest_time: int = 90
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    api_key: Optional[str] = None

def validate_settings(data: dict) -> SettingsSchema:
    try:
        return SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
