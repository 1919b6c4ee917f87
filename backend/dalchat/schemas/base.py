from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel

from dalchat.database import as_utc

# Timestamps always leave the API timezone-aware, whatever the database returned.
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class SuccessResponse(BaseModel):
    success: bool = True
