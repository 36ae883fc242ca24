"""
Scope Schemas.

Page context sent by the host page and the scope derived from it.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ContextLevel = Literal["system", "user", "course", "module"]


class PageContext(BaseModel):
    """Where the drawer was opened."""

    context_level: ContextLevel = Field(description="Context level of the current page")
    instance_id: int = Field(default=0, ge=0, description="Id of the context instance")
    course_id: int = Field(default=0, ge=0, description="Course the page belongs to")
    url_path: str = Field(default="", description="Path of the current page URL")
    url_params: dict[str, str] = Field(default_factory=dict, description="Query parameters of the page URL")
    actor_id: int = Field(default=0, ge=0, description="User viewing the page")


class Scope(BaseModel):
    """The (user, course, module) triple a note is about."""

    user_id: int = 0
    course_id: int = 0
    module_id: int = 0

    model_config = ConfigDict(frozen=True)
