from events_api.schemas.common import CamelModel


class CategoryStat(CamelModel):
    name: str | None
    value: int


class EarningsPoint(CamelModel):
    name: str
    amount: float


class AdminStatsOut(CamelModel):
    total_events: int
    total_users: int
    total_joined: int
    total_earnings: float
    category_stats: list[CategoryStat]
    chart_data: list[EarningsPoint]
