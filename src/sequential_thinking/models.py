"""
Data models for the Sequential Thinking MCP Server

Pydantic models validating tool arguments before they reach the engine.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .thinking.record import ThoughtRecord


class ThoughtInput(BaseModel):
    """Arguments of one sequential_thinking call."""

    model_config = ConfigDict(extra="forbid")

    thought: str = Field(..., description="The reasoning step")
    thought_number: int = Field(..., ge=1)
    total_thoughts: int = Field(..., ge=1)
    next_thought_needed: bool = True

    # Revision
    is_revision: bool = False
    revises_thought: Optional[int] = Field(None, ge=1)

    # Branching
    branch_from_thought: Optional[int] = Field(None, ge=1)
    branch_id: Optional[str] = None
    parent_branch_id: Optional[str] = None

    needs_more_thoughts: bool = False

    @field_validator("thought")
    @classmethod
    def thought_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("thought must not be empty")
        return value

    @field_validator("branch_id", "parent_branch_id")
    @classmethod
    def blank_branch_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def check_references(self) -> "ThoughtInput":
        if self.is_revision and self.revises_thought is None:
            raise ValueError("is_revision requires revises_thought")
        if self.revises_thought is not None and self.revises_thought >= self.thought_number:
            raise ValueError("revises_thought must be lower than thought_number")
        if self.branch_from_thought is not None and self.branch_id is None:
            raise ValueError("branch_from_thought requires branch_id")
        if self.parent_branch_id is not None and self.branch_id is None:
            raise ValueError("parent_branch_id requires branch_id")
        return self

    def to_record(self) -> ThoughtRecord:
        return ThoughtRecord(
            text=self.thought,
            number=self.thought_number,
            declared_total=self.total_thoughts,
            continues=self.next_thought_needed,
            revision_of=self.revises_thought,
            branch_point=self.branch_from_thought,
            branch_id=self.branch_id,
            needs_expansion=self.needs_more_thoughts,
        )
