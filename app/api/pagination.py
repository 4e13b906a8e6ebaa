from typing import Annotated

from fastapi import Query

from app.core.config import settings

PageParam = Annotated[int, Query(ge=1)]
LimitParam = Annotated[int, Query(ge=1, le=settings.max_page_limit)]
