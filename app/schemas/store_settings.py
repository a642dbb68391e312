from pydantic import BaseModel
from typing import Any


class StoreSettingUpdateRequest(BaseModel):
    value: Any
