"""
Automatic fixes for script injection in GitHub Actions workflows.

A ``run`` step that interpolates attacker-controlled context directly into
its script, e.g.::

    run: echo "${{ github.event.issue.title }}"

is rewritten to read the value from an environment variable declared at
workflow level::

    env:
      ISSUE_TITLE: ${{ github.event.issue.title }}
    ...
    run: echo "$ISSUE_TITLE"

The workflow is edited as text so comments, quoting and indentation are kept
as the author wrote them. PyYAML's composer is only used to find the lines
that belong to each node. Every failure results in no patch; the finding
that asked for it is still reported.

Only the workflow-level ``env`` mapping is searched for a variable to reuse.
Variables declared on a job or a step are only used to avoid name clashes.
An expression inside a shell single-quoted string is never rewritten.
"""

import difflib
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import yaml


logger = logging.getLogger(__name__)

DEFAULT_INDENT = 2

# Untrusted contexts and the variable name used for them. First match wins.
UNSAFE_CONTEXT_NAMES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"issue\.title"), "ISSUE_TITLE"),
    (re.compile(r"issue\.body"), "ISSUE_BODY"),
    (re.compile(r"pull_request\.title"), "PR_TITLE"),
    (re.compile(r"pull_request\.body"), "PR_BODY"),
    (re.compile(r"review_comment\.body"), "REVIEW_COMMENT_BODY"),
    (re.compile(r"comment\.body"), "COMMENT_BODY"),
    (re.compile(r"review\.body"), "REVIEW_BODY"),
    (re.compile(r"pages.*\.page_name"), "PAGE_NAME"),
    (re.compile(r"head_commit\.message"), "COMMIT_MESSAGE"),
    (re.compile(r"commits.*\.message"), "COMMIT_MESSAGE"),
    (re.compile(r"head_commit\.author\.email"), "AUTHOR_EMAIL"),
    (re.compile(r"head_commit\.author\.name"), "AUTHOR_NAME"),
    (re.compile(r"commits.*\.author\.email"), "AUTHOR_EMAIL"),
    (re.compile(r"commits.*\.author\.name"), "AUTHOR_NAME"),
    (re.compile(r"pull_request\.head\.ref"), "PR_HEAD_REF"),
    (re.compile(r"pull_request\.head\.label"), "PR_HEAD_LABEL"),
    (re.compile(r"pull_request\.head\.repo\.default_branch"), "PR_DEFAULT_BRANCH"),
    (re.compile(r"github\.head_ref"), "HEAD_REF"),
]


@dataclass
class WorkflowPatch:
    """A fix for one workflow file."""
    path: str
    original: str
    fixed: str
    diff: str
    env_var: str


@dataclass
class WorkflowStep:
    """Position of one job step, as 0-based inclusive line numbers."""
    job: str
    index: int
    start_line: int
    end_line: int
    run: Optional[yaml.Node] = None


@dataclass
class ParsedWorkflow:
    """Line-oriented view of a workflow document."""
    content: str
    lines: List[str]
    newline: str
    jobs_key: yaml.Node
    job_count: int
    steps: List[WorkflowStep] = field(default_factory=list)
    env_key: Optional[yaml.Node] = None
    env_value: Optional[yaml.Node] = None
    env_names: Set[str] = field(default_factory=set)
    indent_unit: int = DEFAULT_INDENT

    def step_at(self, line: int) -> Optional[WorkflowStep]:
        """Find the ``run`` step that contains a 1-based line number."""
        for step in self.steps:
            if step.run is not None and step.start_line <= line - 1 <= step.end_line:
                return step
        return None

    def workflow_env(self) -> Dict[str, str]:
        """Variables of the workflow-level ``env`` mapping, in document order."""
        env: Dict[str, str] = {}
        if isinstance(self.env_value, yaml.MappingNode):
            for key, value in self.env_value.value:
                if isinstance(value, yaml.ScalarNode):
                    env[key.value] = value.value
        return env


def _get(node: yaml.Node, key: str) -> Tuple[Optional[yaml.Node], Optional[yaml.Node]]:
    if isinstance(node, yaml.MappingNode):
        for k, v in node.value:
            if isinstance(k, yaml.ScalarNode) and k.value == key:
                return k, v
    return None, None


def _is_filler(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def _last_line(node: yaml.Node, lines: List[str]) -> int:
    """Last line holding content of ``node``, ignoring trailing blanks and comments."""
    start = node.start_mark.line
    # Block collections end at the next token, so measure their last child instead.
    while isinstance(node, (yaml.MappingNode, yaml.SequenceNode)) and not node.flow_style and node.value:
        last = node.value[-1]
        node = last[1] if isinstance(node, yaml.MappingNode) else last
    end = node.end_mark.line
    if node.end_mark.column == 0:
        end -= 1
    end = min(end, len(lines) - 1)
    while end > start and _is_filler(lines[end]):
        end -= 1
    return max(end, start)


def _collect_env_names(node: yaml.Node, names: Set[str]) -> None:
    if isinstance(node, yaml.MappingNode):
        for key, value in node.value:
            if isinstance(key, yaml.ScalarNode) and key.value == "env" and isinstance(value, yaml.MappingNode):
                for env_key, _ in value.value:
                    if isinstance(env_key, yaml.ScalarNode):
                        names.add(env_key.value)
            _collect_env_names(value, names)
    elif isinstance(node, yaml.SequenceNode):
        for item in node.value:
            _collect_env_names(item, names)


def parse_workflow(content: str) -> Optional[ParsedWorkflow]:
    """
    Parse a workflow into a line-oriented model.

    Returns None if the document is not valid YAML or has no ``jobs``
    mapping.
    """
    try:
        root = yaml.compose(content, Loader=yaml.SafeLoader)
    except yaml.YAMLError as e:
        logger.debug("workflow does not parse: %s", e)
        return None

    jobs_key, jobs = _get(root, "jobs")
    if not isinstance(jobs, yaml.MappingNode):
        return None

    lines = content.splitlines(keepends=True)
    parsed = ParsedWorkflow(
        content=content,
        lines=lines,
        newline="\r\n" if "\r\n" in content else "\n",
        jobs_key=jobs_key,
        job_count=len(jobs.value),
    )

    if jobs.value:
        first_job_key = jobs.value[0][0]
        unit = first_job_key.start_mark.column - jobs_key.start_mark.column
        if unit > 0:
            parsed.indent_unit = unit

    for job_key, job in jobs.value:
        _, steps = _get(job, "steps")
        if not isinstance(steps, yaml.SequenceNode):
            continue
        for index, step in enumerate(steps.value):
            _, run = _get(step, "run")
            parsed.steps.append(WorkflowStep(
                job=job_key.value,
                index=index,
                start_line=step.start_mark.line,
                end_line=_last_line(step, lines),
                run=run if isinstance(run, yaml.ScalarNode) else None,
            ))

    parsed.env_key, parsed.env_value = _get(root, "env")
    _collect_env_names(root, parsed.env_names)
    return parsed


def normalize_expression(expression: str) -> str:
    """Strip whitespace and any surrounding ``${{ }}`` from an expression."""
    expr = expression.strip()
    if expr.startswith("${{") and expr.endswith("}}"):
        expr = expr[3:-2].strip()
    return expr


def _expression_pattern(expression: str) -> re.Pattern:
    return re.compile(r"\$\{\{\s*" + re.escape(expression) + r"\s*\}\}")


def env_var_name(expression: str) -> str:
    """Pick a variable name for an untrusted expression."""
    for pattern, name in UNSAFE_CONTEXT_NAMES:
        if pattern.search(expression):
            return name
    parts = [p for p in re.split(r"[^A-Za-z0-9]+", expression) if p]
    parts = [p for p in parts if p.lower() not in ("github", "event")] or parts
    name = "_".join(parts[-2:]).upper()
    if not name or name[0].isdigit():
        name = "UNTRUSTED_" + name
    return name


def _unique_name(name: str, taken: Set[str]) -> str:
    lowered = {t.lower() for t in taken}
    candidate = name
    suffix = 1
    while candidate.lower() in lowered:
        candidate = f"{name}_{suffix}"
        suffix += 1
    return candidate


def _single_quoted(script: str, pos: int) -> bool:
    """Whether ``pos`` falls inside a single-quoted span of a shell script."""
    quote = None
    i = 0
    while i < pos:
        c = script[i]
        if quote == "'":
            if c == "'":
                quote = None
        elif c == "\\":
            i += 1
        elif c == "\"":
            quote = None if quote == "\"" else "\""
        elif quote is None and c == "'":
            quote = "'"
        elif quote is None and c == "#" and (i == 0 or script[i - 1].isspace()):
            end = script.find("\n", i, pos)
            if end < 0:
                return False
            i = end
        i += 1
    return quote == "'"


def _rewrite_script(lines: List[str], step: WorkflowStep, pattern: re.Pattern, name: str) -> int:
    start = step.run.start_mark.line
    end = min(_last_line(step.run, lines), step.end_line)
    count = 0
    for i in range(start, end + 1):
        line = lines[i]
        if line.lstrip().startswith("#"):
            continue
        new_line, n = pattern.subn("$" + name, line)
        if n:
            lines[i] = new_line
            count += n
    return count


def _insert_lines(lines: List[str], pos: int, new_lines: List[str], newline: str) -> None:
    if pos >= len(lines) and lines and not lines[-1].endswith(("\n", "\r")):
        # Appending at EOF of a file without a final newline: keep that convention.
        lines[-1] += newline
        new_lines = list(new_lines)
        new_lines[-1] = new_lines[-1].rstrip("\r\n")
    lines[pos:pos] = new_lines


def _declare_env_var(parsed: ParsedWorkflow, lines: List[str], declaration: str) -> bool:
    newline = parsed.newline
    env = parsed.env_value

    if env is None:
        base = parsed.jobs_key.start_mark.column
        pos = parsed.jobs_key.start_mark.line
        while pos > 0 and lines[pos - 1].strip().startswith("#"):
            pos -= 1
        block = [
            " " * base + "env:" + newline,
            " " * (base + parsed.indent_unit) + declaration + newline,
        ]
        if pos > 0 and not lines[pos - 1].strip():
            block.append(newline)
        _insert_lines(lines, pos, block, newline)
        return True

    if isinstance(env, yaml.MappingNode) and env.value and not env.flow_style:
        indent = env.value[0][0].start_mark.column
        last_value = env.value[-1][1]
        pos = _last_line(last_value, lines) + 1
        _insert_lines(lines, pos, [" " * indent + declaration + newline], newline)
        return True

    if isinstance(env, yaml.ScalarNode) and env.tag == "tag:yaml.org,2002:null" and not env.value:
        indent = parsed.env_key.start_mark.column + parsed.indent_unit
        pos = parsed.env_key.start_mark.line + 1
        _insert_lines(lines, pos, [" " * indent + declaration + newline], newline)
        return True

    logger.debug("workflow-level env has an unsupported layout; not patching")
    return False


def _step_count(parsed: ParsedWorkflow) -> int:
    return len(parsed.steps)


NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


def _format_range(start: int, stop: int) -> str:
    beginning = start + 1
    length = stop - start
    if length == 1:
        return str(beginning)
    if not length:
        beginning -= 1
    return f"{beginning},{length}"


def unified_diff(old: List[str], new: List[str], fromfile: str, tofile: str, context: int = 3) -> str:
    """
    Unified diff of two line lists that ``patch`` and ``git apply`` accept.

    Unlike :func:`difflib.unified_diff`, a last line without a newline is
    followed by a ``\\ No newline at end of file`` marker.
    """
    old_open = bool(old) and not old[-1].endswith("\n")
    new_open = bool(new) and not new[-1].endswith("\n")

    def emit(prefix: str, lines: List[str], index: int, open_end: bool) -> List[str]:
        line = lines[index]
        if open_end and index == len(lines) - 1:
            return [prefix + line + "\n", NO_NEWLINE_MARKER]
        return [prefix + line]

    out: List[str] = []
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)
    for group in matcher.get_grouped_opcodes(context):
        if not out:
            out.append(f"--- {fromfile}\n")
            out.append(f"+++ {tofile}\n")
        first, last = group[0], group[-1]
        out.append(f"@@ -{_format_range(first[1], last[2])} +{_format_range(first[3], last[4])} @@\n")
        for tag, i1, i2, j1, j2 in group:
            if tag == "equal":
                for i in range(i1, i2):
                    out.extend(emit(" ", old, i, old_open))
                continue
            for i in range(i1, i2):
                out.extend(emit("-", old, i, old_open))
            for j in range(j1, j2):
                out.extend(emit("+", new, j, new_open))
    return "".join(out)


def _build_patch(
    path: str,
    parsed: ParsedWorkflow,
    step: WorkflowStep,
    expression: str,
) -> Optional[WorkflowPatch]:
    pattern = _expression_pattern(expression)
    script = step.run.value
    if any(_single_quoted(script, m.start()) for m in pattern.finditer(script)):
        logger.debug("%s: %s is single-quoted in step %s[%d]; not patching", path, expression, step.job, step.index)
        return None
    lines = list(parsed.lines)

    name = None
    for key, value in parsed.workflow_env().items():
        if pattern.fullmatch(value.strip()):
            name = key
            break
    reuse = name is not None
    if name is None:
        name = _unique_name(env_var_name(expression), parsed.env_names)

    if _rewrite_script(lines, step, pattern, name) == 0:
        logger.debug("%s: %s not found in step %s[%d]", path, expression, step.job, step.index)
        return None

    if not reuse:
        declaration = f"{name}: ${{{{ {expression} }}}}"
        if not _declare_env_var(parsed, lines, declaration):
            return None

    fixed = "".join(lines)
    reparsed = parse_workflow(fixed)
    if reparsed is None:
        logger.debug("%s: patched workflow does not parse", path)
        return None
    if reparsed.job_count != parsed.job_count or _step_count(reparsed) != _step_count(parsed):
        logger.debug("%s: patched workflow changed its jobs or steps", path)
        return None
    if name not in reparsed.workflow_env():
        logger.debug("%s: %s missing from patched workflow env", path, name)
        return None

    diff = unified_diff(parsed.lines, fixed.splitlines(keepends=True), f"a/{path}", f"b/{path}")
    return WorkflowPatch(path=path, original=parsed.content, fixed=fixed, diff=diff, env_var=name)


class PatchCache:
    """
    Parsed workflows and generated patches for one probe run.

    Patches are keyed by file, step and expression, so several findings for
    the same expression in the same step share a single patch.
    """

    def __init__(self):
        self._documents: Dict[str, Optional[ParsedWorkflow]] = {}
        self._patches: Dict[Tuple[str, str, int, str], Optional[WorkflowPatch]] = {}

    def document(self, path: str, content: str) -> Optional[ParsedWorkflow]:
        if path not in self._documents:
            self._documents[path] = parse_workflow(content)
        return self._documents[path]

    def patch(self, path: str, content: str, offset: int, expression: str) -> Optional[WorkflowPatch]:
        parsed = self.document(path, content)
        if parsed is None:
            return None
        step = parsed.step_at(offset)
        if step is None:
            logger.debug("%s: no run step at line %d", path, offset)
            return None
        expr = normalize_expression(expression)
        if not expr:
            return None
        key = (path, step.job, step.index, expr)
        if key not in self._patches:
            self._patches[key] = _build_patch(path, parsed, step, expr)
        return self._patches[key]


def synthesize_patch(
    path: str,
    content: str,
    offset: int,
    expression: str,
    cache: Optional[PatchCache] = None,
) -> Optional[WorkflowPatch]:
    """
    Build a fix for a script injection.

    Args:
        path: Path of the workflow file, used in the diff headers.
        content: Full text of the workflow.
        offset: 1-based line inside the ``run`` step that holds the injection.
        expression: The injected expression, with or without ``${{ }}``.
        cache: Optional cache shared by the findings of one probe run.

    Returns:
        The patch, or None when no safe patch can be produced.
    """
    cache = cache if cache is not None else PatchCache()
    try:
        return cache.patch(path, content, offset, expression)
    except Exception as e:
        logger.debug("%s: patch synthesis failed: %s", path, e, exc_info=True)
        return None
