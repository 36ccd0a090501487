"""Gating, generation and filename finalisation for test proposals."""

import pytest

from common.pr_models import ChangedFile, ExistingTestFile, PullRequestContextWithTests
from deepagent.agent.test_pipeline import (
    GATING_ERROR_REASON,
    check_should_generate_tests,
    finalize_proposals,
    generate_test_proposals,
    is_ui_related,
    logical_name,
)
from deepagent.models.agent_schemas import GatingDecision, TestProposal
from tests.fakes import FakeModelClient


def _changed(filename: str, content: str = "export const x = 1") -> ChangedFile:
    return ChangedFile(filename=filename, status="modified", patch="+x", content=content)


def _proposal(filename: str, **kwargs) -> TestProposal:
    return TestProposal(filename=filename, test_content='it("works", () => {})', **kwargs)


@pytest.fixture
def context() -> PullRequestContextWithTests:
    return PullRequestContextWithTests(
        owner="acme",
        repo="webapp",
        pull_number=7,
        head_ref="feature/banner",
        base_ref="main",
        title="Add greeting banner",
        changed_files=[
            _changed("app/Banner.tsx", 'import React from "react"'),
            ChangedFile(filename="yarn.lock", status="modified", excluded=True),
        ],
        commit_messages=["feat: banner"],
        existing_test_files=[ExistingTestFile(filename="__tests__/unit/HomePage.test.tsx", content="// home")],
    )


# ── Gating ───────────────────────────────────────────────────────────────────

async def test_gating_passes_decision_through(context):
    model = FakeModelClient(
        structured={"should_generate_tests": True, "reasoning": "UI changed", "recommendation": "Test Banner"}
    )

    gate = await check_should_generate_tests(context, model)

    assert gate.should_generate is True
    assert gate.reason == "UI changed"
    assert gate.recommendation == "Test Banner"
    prompt, schema = model.structured_prompts[0]
    assert schema is GatingDecision
    assert "app/Banner.tsx" in prompt
    assert "__tests__/unit/HomePage.test.tsx" in prompt


async def test_gating_failure_never_generates(context):
    model = FakeModelClient(structured=RuntimeError("schema validation failed"))

    gate = await check_should_generate_tests(context, model)

    assert gate.should_generate is False
    assert gate.reason == GATING_ERROR_REASON


# ── Generation ───────────────────────────────────────────────────────────────

async def test_generation_prompt_carries_recommendation_and_excluded_marker(context):
    model = FakeModelClient(text="<tests><testProposals></testProposals></tests>")

    proposals = await generate_test_proposals(context, model, recommendation="Cover the empty name case")

    assert proposals == []
    prompt = model.text_prompts[0]
    assert "Cover the empty name case" in prompt
    assert "File: yarn.lock\nStatus: modified\n[EXCLUDED FROM PROMPT]" in prompt
    assert "// home" in prompt


async def test_generation_model_failure_yields_no_proposals(context):
    model = FakeModelClient(text=ConnectionError("provider down"))

    assert await generate_test_proposals(context, model) == []


# ── Finalisation ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "path, expected",
    [
        ("__tests__/unit/Banner.test.tsx", "Banner"),
        ("__tests__/e2e/home.spec.ts", "home"),
        ("app/Banner.tsx", "Banner"),
        ("lib/greet.js", "greet"),
        ("README.md", "README.md"),
    ],
)
def test_logical_name(path, expected):
    assert logical_name(path) == expected


def test_ui_import_forces_tsx_suffix():
    changed = [_changed("lib/foo.ts", 'import { useState } from "react";\nexport function foo() {}')]

    (final,) = finalize_proposals([_proposal("__tests__/unit/foo.test.ts")], changed)

    assert final.filename == "__tests__/unit/foo.test.tsx"


def test_non_ui_code_forces_ts_suffix():
    changed = [_changed("lib/math.ts", "export const add = (a, b) => a + b")]

    (final,) = finalize_proposals([_proposal("__tests__/unit/math.test.tsx")], changed)

    assert final.filename == "__tests__/unit/math.test.ts"


def test_matching_file_decides_over_unrelated_ui_files():
    changed = [
        _changed("lib/math.ts", "export const add = 1"),
        _changed("app/Banner.tsx", 'import React from "react"'),
    ]

    math_test, banner_test = finalize_proposals(
        [_proposal("__tests__/unit/math.test.tsx"), _proposal("__tests__/unit/Banner.test.ts")],
        changed,
    )

    assert math_test.filename == "__tests__/unit/math.test.ts"
    assert banner_test.filename == "__tests__/unit/Banner.test.tsx"


def test_without_matching_file_any_ui_change_counts():
    changed = [_changed("components/Header.jsx", "export default () => null")]

    assert is_ui_related(_proposal("__tests__/unit/layout.test.ts"), changed)


def test_page_root_is_ui_but_api_routes_are_not():
    page = [_changed("app/about/page.ts", "export default 1")]
    route = [_changed("app/api/hook/route.ts", "export async function POST() {}")]

    assert is_ui_related(_proposal("__tests__/unit/page.test.ts"), page)
    assert not is_ui_related(_proposal("__tests__/unit/route.test.ts"), route)


def test_spec_suffix_and_missing_extension_are_normalized():
    changed = [_changed("lib/util.ts")]

    finals = finalize_proposals(
        [_proposal("__tests__/e2e/util.spec.ts", test_type="e2e"), _proposal("__tests__/unit/util")],
        changed,
    )

    assert [p.filename for p in finals] == ["__tests__/e2e/util.test.ts", "__tests__/unit/util.test.ts"]


def test_finalize_keeps_order_and_other_fields():
    changed = [_changed("lib/a.ts"), _changed("lib/b.ts")]
    proposals = [
        _proposal("b.test.ts", action="update"),
        _proposal("a.test.tsx", action="rename", old_filename="old_a.test.ts"),
    ]

    finals = finalize_proposals(proposals, changed)

    assert [p.filename for p in finals] == ["b.test.ts", "a.test.ts"]
    assert finals[1].action == "rename"
    assert finals[1].old_filename == "old_a.test.ts"
