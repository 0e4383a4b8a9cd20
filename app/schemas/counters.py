"""Counter audit records."""
from pydantic import BaseModel


class CounterDrift(BaseModel):
    table: str
    row_id: int
    column: str
    cached: int
    actual: int
