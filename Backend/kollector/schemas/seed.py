import datetime
from typing import Dict

from pydantic import BaseModel


class SeedResponse(BaseModel):
    status: str = "Success"
    message: str
    seeded: Dict[str, int] = {}
    timestamp: datetime.datetime
