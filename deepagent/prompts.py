"""Prompt builders for the review, gating and test-generation calls."""

from typing import Optional

from common.pr_models import ChangedFile, ExistingTestFile, PullRequestContext, PullRequestContextWithTests

EXCLUDED_MARKER = "[EXCLUDED FROM PROMPT]"

REVIEW_FORMAT = """\
Return ONLY valid XML in the following structure (no extra commentary):
<review>
  <summary>[short summary of these changes]</summary>
  <fileAnalyses>
    <file>
      <path>[filename]</path>
      <analysis>[analysis for that file]</analysis>
    </file>
  </fileAnalyses>
  <overallSuggestions>
    <suggestion>[single bullet suggestion]</suggestion>
  </overallSuggestions>
</review>

ONLY return the <review> XML with the summary, fileAnalyses, and overallSuggestions. Do not add extra commentary.
"""

TESTS_FORMAT = """\
Output MUST be valid XML with a single root <tests>.
Inside it, place <testProposals> containing one or more <proposal>.
For each <proposal>:
  <filename> (the file path in __tests__/...),
  <testType> (either "unit" or "e2e"),
  <testContent> (the ENTIRE updated or new test file content, no code blocks),
  <actions> containing <action> ("create", "update" or "rename") and, for a
  rename only, <oldFilename> (the existing test file being replaced).

Example:
<tests>
  <testProposals>
    <proposal>
      <filename>__tests__/unit/MyUtil.test.ts</filename>
      <testType>unit</testType>
      <testContent>// entire updated code here</testContent>
      <actions>
        <action>create</action>
      </actions>
    </proposal>
  </testProposals>
</tests>

ONLY return the <tests> XML with proposals. Do not add extra commentary.
"""


def format_commit_messages(messages: list[str]) -> str:
    return "\n".join(f"- {msg}" for msg in messages)


def format_changed_file(file: ChangedFile) -> str:
    """One prompt block per changed file. Excluded files stay visible by name."""
    if file.excluded:
        return f"File: {file.filename}\nStatus: {file.status}\n{EXCLUDED_MARKER}\n"
    return (
        f"File: {file.filename}\n"
        f"Status: {file.status}\n"
        f"Patch (diff):\n{file.patch}\n"
        f"Current Content:\n{file.content}\n"
    )


def format_changed_files(files: list[ChangedFile]) -> str:
    return "\n---\n".join(format_changed_file(f) for f in files)


def format_existing_tests(files: list[ExistingTestFile]) -> str:
    if not files:
        return "(none)"
    return "\n".join(f"Existing test file: {f.filename}\n---\n{f.content}\n---\n" for f in files)


def build_review_prompt(context: PullRequestContext) -> str:
    return f"""\
You are an expert code reviewer. Provide feedback on the following pull request changes in clear, concise paragraphs.
Do not use code blocks for regular text. Format any suggestions as single-line bullet points.
Files marked {EXCLUDED_MARKER} changed but their content is not shown (removed, lockfile or too large).

PR Title: {context.title}
Commit Messages:
{format_commit_messages(context.commit_messages)}
Changed Files:
{format_changed_files(context.changed_files)}

{REVIEW_FORMAT}"""


def build_gating_prompt(context: PullRequestContextWithTests) -> str:
    changed_list = "\n".join(f"- {f.filename} ({f.status})" for f in context.changed_files)
    existing_list = "\n".join(f"- {f.filename}" for f in context.existing_test_files) or "(none)"
    return f"""\
You are an expert developer focusing on Next.js front-end code.
We only generate tests for front-end related changes (e.g., .tsx files in 'app/' or 'components/', custom React hooks, etc.).
We do not generate tests for purely backend or config files.

PR Title: {context.title}
Commit Messages:
{format_commit_messages(context.commit_messages)}

Here is the list of changed files:
{changed_list}

Existing test files:
{existing_list}

Analyze whether any of the changes warrant front-end tests. Provide a boolean (should_generate_tests),
a short reasoning, and, when tests are warranted, a recommendation describing what the tests should cover.
"""


def build_test_generation_prompt(
    context: PullRequestContextWithTests, recommendation: Optional[str] = None
) -> str:
    recommendation_section = f"\nGuidance from the gating review:\n{recommendation}\n" if recommendation else ""
    return f"""\
You are an expert software developer specializing in writing tests for a Next.js codebase.
We have two categories of tests:
1) Unit tests (Jest + Testing Library), typically in __tests__/unit/.
2) E2E tests (Playwright), typically in __tests__/e2e/.

We allow updating existing tests or creating new ones. If a file below matches
the functionality of a changed file, update that existing test instead of
creating a new one. If an existing test file should move to a new name, use the
"rename" action. Return the full final content for every file you modify
and for every new file you create.

Also note:
- If a React component is a **Server Component** (no "use client" at the top, or it uses server APIs),
  we must handle it asynchronously in tests. The test function should be `async` and the component
  must be awaited before rendering, e.g.:

  ```ts
  it("renders MyServerComp properly", async () => {{
    render(await MyServerComp());
    // assertions...
  }});
  ```
- If the component is a Client Component (explicit "use client" at the top), we can test it normally
  with synchronous `render(<MyClientComp />)`.
- Tests that render JSX must use the .test.tsx extension; other tests use .test.ts.
{recommendation_section}
Analyze this pull request:
Title: {context.title}
Commit Messages:
{format_commit_messages(context.commit_messages)}

Changed Files:
{format_changed_files(context.changed_files)}

Existing Test Files:
{format_existing_tests(context.existing_test_files)}

{TESTS_FORMAT}"""
