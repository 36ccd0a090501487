"""Pydantic models for the review and test-generation workflows."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


class FileAnalysis(BaseModel):
    path: str = ""
    analysis: str = ""


class ReviewResult(BaseModel):
    """Review parsed from the model's ``<review>`` block."""

    summary: str = ""
    file_analyses: list[FileAnalysis] = Field(default_factory=list)
    overall_suggestions: list[str] = Field(default_factory=list)
    error: Optional[str] = Field(default=None, description="Set when generation or parsing failed")


class GatingDecision(BaseModel):
    """Structured output of the gating call: should tests be generated for this PR?"""

    should_generate_tests: bool = Field(
        description="True when the changes warrant new or updated front-end tests"
    )
    reasoning: str = Field(description="Short explanation of the decision")
    recommendation: Optional[str] = Field(
        default=None,
        description="Which files or behaviours the generated tests should focus on",
    )


class GatingResult(BaseModel):
    should_generate: bool
    reason: str
    recommendation: Optional[str] = None


class TestProposal(BaseModel):
    """A single test file to create, update or rename on the PR branch."""

    filename: str
    test_type: Literal["unit", "e2e"] = "unit"
    test_content: str
    action: Literal["create", "update", "rename"] = "create"
    old_filename: Optional[str] = None

    @model_validator(mode="after")
    def check_rename_source(self) -> "TestProposal":
        if self.action == "rename" and (not self.old_filename or self.old_filename == self.filename):
            raise ValueError("rename proposal needs an old_filename different from filename")
        return self


class TestParseResult(BaseModel):
    proposals: list[TestProposal] = Field(default_factory=list)
    error: Optional[str] = None


class CommitOutcome(BaseModel):
    """Paths written and deleted by the commit step, in the order applied."""

    committed: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
