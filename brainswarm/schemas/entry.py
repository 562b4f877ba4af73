"""
Brainswarm Backend — Entry Schemas
===================================

What:  Create/update payloads and the entry representation.

Update payloads are partial: services read them with
`model_dump(exclude_unset=True)` so that only fields the client actually
sent are applied and fed into the priority merge.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import (
    AfterValidator,
    AnyHttpUrl,
    BaseModel,
    Field,
    TypeAdapter,
    ValidationError as PydanticValidationError,
    field_validator,
)

from brainswarm.core.priority import Effort
from brainswarm.schemas.auth import UserPublic


_url_adapter = TypeAdapter(AnyHttpUrl)


def _check_link(v: Optional[str]) -> Optional[str]:
    """Accepts http(s) URLs, keeping the string exactly as submitted."""
    if v is None:
        return None
    v = v.strip()
    try:
        _url_adapter.validate_python(v)
    except PydanticValidationError:
        raise ValueError("The link format is invalid.")
    return v


Link = Annotated[Optional[str], AfterValidator(_check_link)]


class EntryCreateRequest(BaseModel):
    problem: str = Field(min_length=1)
    solution: str = Field(min_length=1)
    area: str = Field(min_length=1, max_length=255)
    time_saved_per_year: Optional[int] = Field(default=None, ge=0)
    gross_profit_per_year: Optional[int] = None
    effort: Effort
    monetary_explanation: str = Field(min_length=1)
    link: Link = Field(default=None, max_length=2048)
    anonymous: bool = False
    manual_override_prio: int = 0


class EntryUpdateRequest(BaseModel):
    problem: Optional[str] = Field(default=None, min_length=1)
    solution: Optional[str] = Field(default=None, min_length=1)
    area: Optional[str] = Field(default=None, min_length=1, max_length=255)
    time_saved_per_year: Optional[int] = Field(default=None, ge=0)
    gross_profit_per_year: Optional[int] = None
    effort: Optional[Effort] = None
    monetary_explanation: Optional[str] = Field(default=None, min_length=1)
    link: Link = Field(default=None, max_length=2048)
    anonymous: Optional[bool] = None
    manual_override_prio: Optional[int] = None

    @field_validator(
        "problem",
        "solution",
        "area",
        "effort",
        "monetary_explanation",
        "anonymous",
        "manual_override_prio",
    )
    @classmethod
    def not_null(cls, v):
        # These columns are NOT NULL: they may be omitted, never cleared
        if v is None:
            raise ValueError("may be omitted but not set to null")
        return v


class EntryResponse(BaseModel):
    id: int
    team_id: int
    user_id: int
    problem: str
    solution: str
    area: str
    time_saved_per_year: Optional[int] = None
    gross_profit_per_year: Optional[int] = None
    effort: Effort
    monetary_explanation: str
    link: Optional[str] = None
    anonymous: bool
    manual_override_prio: int
    final_prio: int
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None
    user: Optional[UserPublic] = Field(
        default=None, description="Author of the entry; null when anonymous"
    )

    model_config = {"from_attributes": True}


class EntryEnvelope(BaseModel):
    entry: EntryResponse


class EntryListResponse(BaseModel):
    entries: List[EntryResponse]


class EntryMessageResponse(BaseModel):
    message: str
    entry: EntryResponse
