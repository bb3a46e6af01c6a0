from typing import Optional
from pydantic import BaseModel, ConfigDict


class AuthenticatedUser(BaseModel):
    """Caller identity passed through authentication dependencies"""

    model_config = ConfigDict(from_attributes=True)

    account_id: str  # Identity provider subject id
    email: Optional[str] = None
