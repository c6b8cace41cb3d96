from pydantic import BaseModel


class ResetResponse(BaseModel):
    habits_deleted: int
    logs_deleted: int
    stats_deleted: int
