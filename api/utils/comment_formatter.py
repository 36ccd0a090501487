from typing import Optional

from deepagent.models.agent_schemas import FileAnalysis, ReviewResult

REVIEW_IN_PROGRESS = "🤖 AI Code Review in progress..."
REVIEW_FAILED = "❌ Error during code review. Please check the logs."
TESTS_IN_PROGRESS = "🧪 AI Test Generation in progress..."
TESTS_FAILED = "❌ Error generating tests. Please check the logs."
NO_PROPOSALS = "⚠️ No test proposals were generated."


# ── Helpers ───────────────────────────────────────────────────────────────────

def _render_file_analysis(analysis: FileAnalysis) -> list[str]:
    return [f"**File:** {analysis.path}", "Analysis:", analysis.analysis]


# ── Public API ────────────────────────────────────────────────────────────────

def format_review_comment(review: ReviewResult) -> str:
    """
    Render a parsed review as the PR comment body.

    Every section is always present, even when empty, so the layout stays the
    same whatever the model returned.
    """
    parts: list[str] = []

    parts.append("### AI Code Review")
    parts.append("")
    parts.append("**Summary**")
    parts.append(review.summary)
    parts.append("")

    for analysis in review.file_analyses:
        parts.extend(_render_file_analysis(analysis))
        parts.append("")

    parts.append("**Suggestions**")
    for suggestion in review.overall_suggestions:
        parts.append(f"- {suggestion}")

    return "\n".join(parts) + "\n"


def format_skip_comment(reason: str) -> str:
    return f"⏭️ Skipping test generation: {reason}"


def format_test_results_comment(head_ref: str, committed: list[str]) -> str:
    parts = ["### AI Test Generator", ""]
    if committed:
        parts.append(f"✅ Added/updated these test files on branch `{head_ref}`:")
        parts.extend(f"- **{filename}**" for filename in committed)
        parts.append("")
        parts.append("*(Pull from that branch to see & modify them.)*")
    else:
        parts.append(NO_PROPOSALS)
    return "\n".join(parts)


def format_test_failure_comment(committed: list[str], deleted: Optional[list[str]] = None) -> str:
    """Failure notice; lists files already committed or removed before the error."""
    deleted = deleted or []
    if not committed and not deleted:
        return TESTS_FAILED
    lines = [TESTS_FAILED]
    if committed:
        lines.extend(["", "These test files were committed before the error:"])
        lines.extend(f"- **{filename}**" for filename in committed)
    if deleted:
        lines.extend(["", "These test files were removed before the error:"])
        lines.extend(f"- **{filename}**" for filename in deleted)
    return "\n".join(lines)
