"""
Tests for the script injection patch synthesizer.
"""

import os
import re
import sys

import pytest
import yaml

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from repoaudit.remediation.patch import (
    PatchCache, env_var_name, normalize_expression, parse_workflow, synthesize_patch
)


WORKFLOW = """\
name: triage
on:
  issues:
    types: [opened]

jobs:
  greet:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - name: echo title
        run: |
          echo "${{ github.event.issue.title }}"
          # ${{ github.event.issue.title }}
          echo "again ${{github.event.issue.title}}"
"""

# 1-based line of the first injection in WORKFLOW.
INJECTION_LINE = 13

WITH_ENV = """\
name: triage
on: issues
env:
  GREETING: hello
jobs:
    greet:
        runs-on: ubuntu-latest
        env:
            ISSUE_TITLE: something else
        steps:
            - run: echo "${{ github.event.issue.title }}"
"""

REUSE_ENV = """\
on: issues
env:
  TITLE: ${{ github.event.issue.title }}
jobs:
  greet:
    runs-on: ubuntu-latest
    steps:
      - run: echo "${{ github.event.issue.title }}"
"""


def _load(text):
    return yaml.safe_load(text)


def _step_count(doc):
    return sum(len(job.get("steps", [])) for job in doc["jobs"].values())


HUNK_HEADER = re.compile(r"@@ -(\d+)(?:,(\d+))? \+\d+(?:,\d+)? @@")


def _apply(original, diff):
    """Apply a single-file unified diff the way patch(1) would."""
    source = original.splitlines(keepends=True)
    diff_lines = diff.splitlines(keepends=True)
    result = []
    pos = 0
    i = 0
    while i < len(diff_lines):
        header = HUNK_HEADER.match(diff_lines[i])
        i += 1
        if not header:
            continue
        start, length = int(header.group(1)), int(header.group(2) or 1)
        hunk_start = start - 1 if length else start
        result.extend(source[pos:hunk_start])
        pos = hunk_start
        while i < len(diff_lines) and diff_lines[i][:1] in (" ", "-", "+"):
            tag, text = diff_lines[i][0], diff_lines[i][1:]
            i += 1
            if i < len(diff_lines) and diff_lines[i].startswith("\\"):
                text = text[:-1]
                i += 1
            if tag != "+":
                assert source[pos] == text
                pos += 1
            if tag != "-":
                result.append(text)
    result.extend(source[pos:])
    return "".join(result)


class TestSynthesizePatch:
    """Tests for synthesize_patch()."""

    def test_new_env_block(self):
        """Test moving the expression into a new workflow-level env block."""
        patch = synthesize_patch(".github/workflows/triage.yml", WORKFLOW, INJECTION_LINE,
                                 " github.event.issue.title ")
        assert patch is not None
        assert patch.env_var == "ISSUE_TITLE"

        doc = _load(patch.fixed)
        assert doc["env"] == {"ISSUE_TITLE": "${{ github.event.issue.title }}"}
        script = doc["jobs"]["greet"]["steps"][1]["run"]
        assert 'echo "$ISSUE_TITLE"' in script
        assert 'echo "again $ISSUE_TITLE"' in script
        # Shell comments are left alone.
        assert "# ${{ github.event.issue.title }}" in script

    def test_reparses_with_same_shape(self):
        """Test that the patched workflow keeps its jobs and steps."""
        patch = synthesize_patch("w.yml", WORKFLOW, INJECTION_LINE, "github.event.issue.title")
        before, after = _load(WORKFLOW), _load(patch.fixed)
        assert list(before["jobs"]) == list(after["jobs"])
        assert _step_count(before) == _step_count(after)

    def test_blank_line_style(self):
        """Test that the new env block follows the blank-line separation of the document."""
        patch = synthesize_patch("w.yml", WORKFLOW, INJECTION_LINE, "github.event.issue.title")
        assert "    types: [opened]\n\nenv:\n  ISSUE_TITLE: ${{ github.event.issue.title }}\n\njobs:\n" in patch.fixed

        compact = WORKFLOW.replace("[opened]\n\njobs:", "[opened]\njobs:")
        patch = synthesize_patch("w.yml", compact, INJECTION_LINE - 1, "github.event.issue.title")
        assert "[opened]\nenv:\n  ISSUE_TITLE: ${{ github.event.issue.title }}\njobs:\n" in patch.fixed

    def test_diff(self):
        """Test the unified diff headers and content."""
        patch = synthesize_patch(".github/workflows/triage.yml", WORKFLOW, INJECTION_LINE,
                                 "github.event.issue.title")
        assert patch.diff.startswith("--- a/.github/workflows/triage.yml\n+++ b/.github/workflows/triage.yml\n")
        assert "+env:\n" in patch.diff
        assert '-          echo "${{ github.event.issue.title }}"\n' in patch.diff
        assert '+          echo "$ISSUE_TITLE"\n' in patch.diff

    def test_existing_env_and_indentation(self):
        """Test appending to an existing env block and avoiding name clashes."""
        patch = synthesize_patch("w.yml", WITH_ENV, 11, "github.event.issue.title")
        assert patch is not None
        # ISSUE_TITLE is taken by the job-level env.
        assert patch.env_var == "ISSUE_TITLE_1"
        assert "env:\n  GREETING: hello\n  ISSUE_TITLE_1: ${{ github.event.issue.title }}\njobs:\n" in patch.fixed
        doc = _load(patch.fixed)
        assert doc["jobs"]["greet"]["steps"][0]["run"] == 'echo "$ISSUE_TITLE_1"'
        assert doc["jobs"]["greet"]["env"]["ISSUE_TITLE"] == "something else"

    def test_reuse_existing_variable(self):
        """Test that a workflow variable holding the expression is reused."""
        patch = synthesize_patch("w.yml", REUSE_ENV, 8, "github.event.issue.title")
        assert patch.env_var == "TITLE"
        assert patch.fixed == REUSE_ENV.replace('echo "${{ github.event.issue.title }}"', 'echo "$TITLE"')

    def test_indentation_unit(self):
        """Test that a new env block uses the document's indentation."""
        four = WITH_ENV.replace("env:\n  GREETING: hello\n", "")
        patch = synthesize_patch("w.yml", four, 9, "github.event.pull_request.title")
        assert patch is None  # the expression is not in that step

        four = four.replace("github.event.issue.title", "github.event.pull_request.title")
        patch = synthesize_patch("w.yml", four, 9, "github.event.pull_request.title")
        assert "env:\n    PR_TITLE: ${{ github.event.pull_request.title }}\njobs:\n" in patch.fixed

    def test_trailing_newline_and_line_endings(self):
        """Test that line endings and a missing final newline are kept."""
        crlf = WORKFLOW.replace("\n", "\r\n")
        patch = synthesize_patch("w.yml", crlf, INJECTION_LINE, "github.event.issue.title")
        assert "\r\nenv:\r\n  ISSUE_TITLE: ${{ github.event.issue.title }}\r\n" in patch.fixed
        assert "\n" not in patch.fixed.replace("\r\n", "")

        bare = WORKFLOW.rstrip("\n")
        patch = synthesize_patch("w.yml", bare, INJECTION_LINE, "github.event.issue.title")
        assert not patch.fixed.endswith("\n")
        assert patch.fixed.endswith('echo "again $ISSUE_TITLE"')

    @pytest.mark.parametrize("content", [
        WORKFLOW,
        WORKFLOW.rstrip("\n"),
        WORKFLOW + "      - run: echo done",
        WORKFLOW.replace("\n", "\r\n").rstrip("\r\n"),
        WITH_ENV,
    ])
    def test_diff_applies_to_original(self, content):
        """Test that applying the diff to the original gives the fixed text."""
        offset = 11 if content is WITH_ENV else INJECTION_LINE
        patch = synthesize_patch("w.yml", content, offset, "github.event.issue.title")
        assert patch.diff.startswith("--- a/w.yml\n+++ b/w.yml\n")
        assert _apply(patch.original, patch.diff) == patch.fixed

    def test_diff_marks_missing_final_newline(self):
        """Test the no-newline marker on both sides of a changed last line."""
        bare = WORKFLOW.rstrip("\n")
        patch = synthesize_patch("w.yml", bare, INJECTION_LINE, "github.event.issue.title")
        assert patch.diff.endswith(
            '-          echo "again ${{github.event.issue.title}}"\n'
            "\\ No newline at end of file\n"
            '+          echo "again $ISSUE_TITLE"\n'
            "\\ No newline at end of file\n"
        )

        patch = synthesize_patch("w.yml", WORKFLOW, INJECTION_LINE, "github.event.issue.title")
        assert "No newline" not in patch.diff

    def test_single_quoted_expression_declined(self):
        """Test that an expression inside shell single quotes is left alone."""
        quoted = (
            "on: issues\n"
            "jobs:\n"
            "  greet:\n"
            "    runs-on: ubuntu-latest\n"
            "    steps:\n"
            "      - run: \"echo '${{ github.event.issue.title }}'\"\n"
        )
        assert synthesize_patch("w.yml", quoted, 6, "github.event.issue.title") is None

        block = quoted.replace(
            "      - run: \"echo '${{ github.event.issue.title }}'\"\n",
            "      - run: |\n"
            "          echo \"${{ github.event.issue.title }}\"\n"
            "          echo '${{ github.event.issue.title }}'\n",
        )
        assert synthesize_patch("w.yml", block, 7, "github.event.issue.title") is None

    def test_apostrophes_outside_single_quotes(self):
        """Test that apostrophes in double quotes or comments do not block a patch."""
        content = (
            "on: issues\n"
            "jobs:\n"
            "  greet:\n"
            "    runs-on: ubuntu-latest\n"
            "    steps:\n"
            "      - run: |\n"
            "          echo 'hi' # it's\n"
            "          echo \"it's ${{ github.event.issue.title }}\"\n"
        )
        patch = synthesize_patch("w.yml", content, 8, "github.event.issue.title")
        assert "echo \"it's $ISSUE_TITLE\"\n" in patch.fixed

    def test_unparsable_workflow(self):
        """Test that invalid YAML yields no patch instead of an error."""
        assert synthesize_patch("w.yml", "jobs: [unclosed", 1, "github.event.issue.title") is None
        assert synthesize_patch("w.yml", "name: no jobs\n", 1, "github.event.issue.title") is None

    def test_offset_outside_steps(self):
        """Test that an offset outside any run step yields no patch."""
        assert synthesize_patch("w.yml", WORKFLOW, 1, "github.event.issue.title") is None
        assert synthesize_patch("w.yml", WORKFLOW, 10, "github.event.issue.title") is None

    def test_flow_style_env_declined(self):
        """Test that a flow-style env mapping is not edited."""
        flow = REUSE_ENV.replace("env:\n  TITLE: ${{ github.event.issue.title }}\n", "env: {A: b}\n")
        assert synthesize_patch("w.yml", flow, 7, "github.event.issue.title") is None


class TestPatchCache:
    """Tests for patch sharing within one probe run."""

    def test_duplicates_share_patch(self):
        """Test that the same expression in the same step shares one patch."""
        cache = PatchCache()
        first = synthesize_patch("w.yml", WORKFLOW, INJECTION_LINE, "github.event.issue.title", cache=cache)
        second = synthesize_patch("w.yml", WORKFLOW, INJECTION_LINE + 2, " github.event.issue.title ", cache=cache)
        assert first is second

    def test_document_parsed_once(self):
        """Test that a document is parsed once per cache."""
        cache = PatchCache()
        assert cache.document("w.yml", WORKFLOW) is cache.document("w.yml", WORKFLOW)


class TestHelpers:
    """Tests for naming helpers."""

    @pytest.mark.parametrize("expression,name", [
        ("github.event.issue.title", "ISSUE_TITLE"),
        ("github.event.pull_request.body", "PR_BODY"),
        ("github.event.comment.body", "COMMENT_BODY"),
        ("github.event.review_comment.body", "REVIEW_COMMENT_BODY"),
        ("github.event.pages[0].page_name", "PAGE_NAME"),
        ("github.event.head_commit.message", "COMMIT_MESSAGE"),
        ("github.event.head_commit.author.email", "AUTHOR_EMAIL"),
        ("github.event.pull_request.head.ref", "PR_HEAD_REF"),
        ("github.head_ref", "HEAD_REF"),
        ("github.event.workflow_run.head_branch", "HEAD_BRANCH"),
    ])
    def test_env_var_name(self, expression, name):
        """Test variable names for untrusted contexts."""
        assert env_var_name(expression) == name

    def test_normalize_expression(self):
        """Test stripping whitespace and the expression delimiters."""
        assert normalize_expression("  a.b ") == "a.b"
        assert normalize_expression("${{ a.b }}") == "a.b"

    def test_parse_workflow_steps(self):
        """Test step boundaries of the parsed model."""
        parsed = parse_workflow(WORKFLOW)
        assert parsed.job_count == 1
        assert [(s.start_line, s.end_line) for s in parsed.steps] == [(9, 9), (10, 14)]
        assert parsed.steps[0].run is None
        assert parsed.step_at(INJECTION_LINE).index == 1
