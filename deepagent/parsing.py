"""
Parsers for the XML-tagged answers the model is asked to produce.

The model's output is untrusted: it may wrap the block in prose, forget tags,
or put raw ``<``/``&`` inside test code (JSX, generics). The parsers read the
expected structure tag by tag instead of requiring well-formed XML, default
every missing field, and never raise.
"""

import html
import logging
import re
from typing import Optional

from pydantic import ValidationError

from deepagent.models.agent_schemas import FileAnalysis, ReviewResult, TestParseResult, TestProposal

logger = logging.getLogger(__name__)

_CDATA_RE = re.compile(r"^\s*<!\[CDATA\[(.*)\]\]>\s*$", re.DOTALL)

REVIEW_MISSING_SUMMARY = "Could not parse AI response."
REVIEW_PARSE_ERROR_SUMMARY = "Parsing error from AI response."

_TEST_TYPES = {"unit", "e2e"}
_ACTIONS = {"create", "update", "rename"}


def _tag_re(tag: str) -> re.Pattern:
    return re.compile(rf"<{tag}>(.*?)</{tag}>", re.DOTALL)


def extract_block(text: str, tag: str) -> Optional[str]:
    """Return the inner text of the first ``<tag>...</tag>`` span, or None."""
    start_tag, end_tag = f"<{tag}>", f"</{tag}>"
    start = text.find(start_tag)
    if start == -1:
        return None
    end = text.find(end_tag, start)
    if end == -1:
        return None
    return text[start + len(start_tag):end]


def _decode(raw: str) -> str:
    cdata = _CDATA_RE.match(raw)
    if cdata:
        return cdata.group(1)
    return html.unescape(raw)


def _first(block: str, tag: str) -> Optional[str]:
    match = _tag_re(tag).search(block)
    return _decode(match.group(1)) if match else None


def _all(block: str, tag: str) -> list[str]:
    return [_decode(m.group(1)) for m in _tag_re(tag).finditer(block)]


def _all_raw(block: str, tag: str) -> list[str]:
    """Like ``_all`` but without decoding, for container elements."""
    return [m.group(1) for m in _tag_re(tag).finditer(block)]


def parse_review(text: str) -> ReviewResult:
    """Parse a ``<review>`` answer into a ReviewResult."""
    try:
        block = extract_block(text, "review")
        if block is None:
            logger.warning("No <review> XML found in AI output.")
            return ReviewResult(summary=REVIEW_MISSING_SUMMARY, error="missing <review> block")

        analyses_block = extract_block(block, "fileAnalyses") or ""
        file_analyses = [
            FileAnalysis(
                path=(_first(raw, "path") or "").strip(),
                analysis=(_first(raw, "analysis") or "").strip(),
            )
            for raw in _all_raw(analyses_block, "file")
        ]

        suggestions_block = extract_block(block, "overallSuggestions") or ""
        suggestions = [s.strip() for s in _all(suggestions_block, "suggestion") if s.strip()]

        return ReviewResult(
            summary=(_first(block, "summary") or "").strip(),
            file_analyses=file_analyses,
            overall_suggestions=suggestions,
        )
    except Exception as exc:
        logger.error("Error parsing review XML: %s", exc, exc_info=exc)
        return ReviewResult(summary=REVIEW_PARSE_ERROR_SUMMARY, error=str(exc))


def _parse_proposal(raw: str) -> Optional[TestProposal]:
    content_match = _tag_re("testContent").search(raw)
    test_content = _decode(content_match.group(1)).strip("\n") if content_match else ""
    # Look for the remaining fields outside the test body so code that happens
    # to contain e.g. "<filename>" cannot shadow the real field.
    rest = raw[:content_match.start()] + raw[content_match.end():] if content_match else raw

    filename = (_first(rest, "filename") or "").strip()
    if not filename or not test_content.strip():
        logger.warning("Skipping incomplete proposal (missing filename or testContent).")
        return None

    test_type = (_first(rest, "testType") or "").strip().lower()
    actions_block = extract_block(rest, "actions")
    action_source = actions_block if actions_block is not None else rest
    action = (_first(action_source, "action") or "").strip().lower()
    old_filename = (_first(action_source, "oldFilename") or _first(rest, "oldFilename") or "").strip() or None

    if action not in _ACTIONS:
        action = "create"
    if action == "rename" and (not old_filename or old_filename == filename):
        logger.warning("Rename proposal for %s has no usable oldFilename, treating as update", filename)
        action = "update"

    return TestProposal(
        filename=filename,
        test_type=test_type if test_type in _TEST_TYPES else "unit",
        test_content=test_content,
        action=action,
        old_filename=old_filename,
    )


def parse_test_proposals(text: str) -> TestParseResult:
    """Parse a ``<tests>`` answer into test proposals, skipping incomplete ones."""
    try:
        block = extract_block(text, "tests")
        if block is None:
            logger.warning("Could not locate <tests> tags in AI output.")
            return TestParseResult(error="missing <tests> block")

        proposals_block = extract_block(block, "testProposals")
        if proposals_block is None:
            logger.warning("No <testProposals> found in the parsed XML.")
            return TestParseResult(error="missing <testProposals> block")

        proposals: list[TestProposal] = []
        for raw in _all_raw(proposals_block, "proposal"):
            try:
                proposal = _parse_proposal(raw)
            except ValidationError as exc:
                logger.warning("Skipping invalid proposal: %s", exc)
                continue
            if proposal is not None:
                proposals.append(proposal)

        return TestParseResult(proposals=proposals)
    except Exception as exc:
        logger.error("Error parsing AI-generated test XML: %s", exc, exc_info=exc)
        return TestParseResult(error=str(exc))