from typing import Annotated

from fastapi import Query

LimitParam = Annotated[int, Query(ge=1, le=500, description="Maximum number of bookings to return")]
OffsetParam = Annotated[int, Query(ge=0, description="Number of bookings to skip")]
