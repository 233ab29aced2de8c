from app.schemas.common import CamelModel


class DayOut(CamelModel):
    id: int
    name: str
    day_order: int
