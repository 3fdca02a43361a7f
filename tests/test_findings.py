"""
Tests for findings, outcomes and the builder chain.
"""

import json
import os
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import (
    FileType, Finding, Location, Outcome, Remediation, RemediationEffort, worst_outcome
)
from repoaudit.errors import DefinitionNotFoundError, RemediationMissingError


@pytest.fixture
def bundle(tmp_path):
    (tmp_path / "binaryProbe.yml").write_text(
        "id: binaryProbe\n"
        "lifecycle: Stable\n"
        "short: A test probe.\n"
        "motivation: Test.\n"
        "implementation: Test.\n"
        "remediation:\n"
        "  onOutcome: False\n"
        "  effort: Low\n"
        "  text:\n"
        "    - Remove ${{ finding.location.path }} from ${{ branch }}.\n"
        "  markdown:\n"
        "    - Remove `${{ finding.location.path }}` from `${{ branch }}`.\n"
    )
    (tmp_path / "trueProbe.yml").write_text(
        "id: trueProbe\n"
        "short: Remediation on a positive answer.\n"
        "motivation: Test.\n"
        "implementation: Test.\n"
        "remediation:\n"
        "  onOutcome: True\n"
        "  effort: High\n"
        "  text:\n"
        "    - Fix it.\n"
    )
    (tmp_path / "bareProbe.yml").write_text(
        "id: bareProbe\n"
        "short: No remediation.\n"
        "motivation: Test.\n"
        "implementation: Test.\n"
    )
    return DefinitionBundle(tmp_path)


class TestOutcome:
    """Tests for the outcome ordering."""

    def test_total_order(self):
        """Test that outcomes are ordered worst first."""
        order = [
            Outcome.FALSE,
            Outcome.NOT_AVAILABLE,
            Outcome.ERROR,
            Outcome.TRUE,
            Outcome.NOT_SUPPORTED,
            Outcome.NOT_APPLICABLE,
        ]
        assert sorted(reversed(order)) == order
        for worse, better in zip(order, order[1:]):
            assert worse.worse_than(better)
            assert not better.worse_than(worse)

    def test_legacy_aliases(self):
        """Test that the legacy names alias the current members."""
        assert Outcome.NEGATIVE is Outcome.FALSE
        assert Outcome.POSITIVE is Outcome.TRUE
        assert len(list(Outcome)) == 6

    def test_worst_outcome(self):
        """Test picking the representative outcome of a finding list."""
        findings = [
            Finding(probe="p", outcome=Outcome.NOT_APPLICABLE),
            Finding(probe="p", outcome=Outcome.ERROR),
            Finding(probe="p", outcome=Outcome.TRUE),
        ]
        assert worst_outcome(findings) == Outcome.ERROR
        assert worst_outcome([]) is None


class TestLocation:
    """Tests for finding locations."""

    def test_line_range_validation(self):
        """Test that inverted line ranges are rejected."""
        with pytest.raises(ValueError):
            Location(path="a.py", line_start=5, line_end=3)
        with pytest.raises(ValueError):
            Location(path="a.py", line_end=3)

    def test_string_type_is_coerced(self):
        """Test that file types given as strings become enum members."""
        location = Location(path="a.bin", type="binary", line_start=1)
        assert location.type == FileType.BINARY
        assert str(location) == "a.bin:1"


class TestFindingBuilders:
    """Tests for Finding.new and the with_* builders."""

    def test_new_seeds_from_definition(self, bundle):
        """Test that a new finding copies the definition's remediation."""
        finding = Finding.new(bundle, "binaryProbe")
        assert finding.probe == "binaryProbe"
        assert finding.outcome == Outcome.FALSE
        assert finding.remediation.effort == RemediationEffort.LOW

    def test_new_does_not_share_remediation(self, bundle):
        """Test that findings never alias the definition's remediation."""
        first = Finding.new(bundle, "binaryProbe").with_patch("diff")
        second = Finding.new(bundle, "binaryProbe")
        assert first.remediation.patch == "diff"
        assert second.remediation.patch is None
        assert bundle.get("binaryProbe").remediation.patch is None

    def test_unknown_probe(self, bundle):
        """Test that an unknown probe identifier is a configuration error."""
        with pytest.raises(DefinitionNotFoundError):
            Finding.new(bundle, "noSuchProbe")

    @pytest.mark.parametrize("outcome", [o for o in Outcome if o != Outcome.FALSE])
    def test_remediation_dropped_for_other_outcomes(self, bundle, outcome):
        """Test that remediation is discarded for non-trigger outcomes."""
        finding = Finding.new(bundle, "binaryProbe").with_outcome(outcome)
        assert finding.remediation is None

    def test_remediation_kept_for_trigger_outcome(self, bundle):
        """Test that remediation survives the trigger outcome."""
        finding = Finding.new(bundle, "binaryProbe").with_outcome(Outcome.FALSE)
        assert finding.remediation is not None

    def test_remediation_on_true(self, bundle):
        """Test a definition that asks for remediation on a positive answer."""
        finding = Finding.new(bundle, "trueProbe")
        assert finding.outcome == Outcome.TRUE
        assert finding.with_outcome(Outcome.TRUE).remediation is not None
        assert finding.with_outcome(Outcome.FALSE).remediation is None

    def test_location_fills_reserved_token(self, bundle):
        """Test that attaching a location renders the location path."""
        finding = Finding.new(bundle, "binaryProbe").with_location(Location(path="bin/tool.exe"))
        assert finding.remediation.text == "Remove bin/tool.exe from ${{ branch }}."
        assert finding.remediation.markdown == "Remove `bin/tool.exe` from `${{ branch }}`."

    def test_new_with(self, bundle):
        """Test the one-call constructor."""
        location = Location(path="bin/tool.exe", type=FileType.BINARY)
        finding = Finding.new_with(bundle, "binaryProbe", "found binary", location, Outcome.FALSE)
        assert finding.message == "found binary"
        assert finding.location is location
        assert "bin/tool.exe" in finding.remediation.text

    def test_remediation_metadata(self, bundle):
        """Test that metadata placeholders are substituted."""
        finding = Finding.new(bundle, "binaryProbe").with_remediation_metadata({"branch": "main"})
        assert finding.remediation.text == "Remove ${{ finding.location.path }} from main."

    def test_patch_without_remediation(self, bundle):
        """Test that attaching a patch needs remediation."""
        finding = Finding.new(bundle, "bareProbe")
        assert finding.remediation is None
        with pytest.raises(RemediationMissingError):
            finding.with_patch("--- a/x\n+++ b/x\n")

    def test_values(self, bundle):
        """Test key/value annotations."""
        finding = Finding.new(bundle, "binaryProbe").with_value("a", "1").with_values({"b": "2"})
        assert finding.values == {"a": "1", "b": "2"}

    def test_to_dict(self, bundle):
        """Test conversion to plain data."""
        finding = Finding.new_with(
            bundle, "binaryProbe", "msg", Location(path="x", line_start=2, line_end=4), Outcome.FALSE
        )
        data = finding.to_dict()
        assert data["probe"] == "binaryProbe"
        assert data["outcome"] == "False"
        assert data["location"]["line_start"] == 2
        assert data["remediation"]["effort"] == "Low"
        assert "patch" not in data["remediation"]

    def test_to_json(self, bundle):
        """Test that JSON output matches the dictionary form."""
        finding = Finding.new_with(
            bundle, "binaryProbe", "msg", Location(path="bin/tool.exe", line_start=1), Outcome.FALSE
        )
        data = json.loads(finding.to_json())
        assert data == finding.to_dict()
        assert data["outcome"] == "False"
        assert data["remediation"]["text"] == "Remove bin/tool.exe from ${{ branch }}."
        assert "\n  \"probe\"" in finding.to_json()
        assert "\n" not in finding.to_json(indent=None)


class TestRemediation:
    """Tests for the remediation value type."""

    def test_copy_is_independent(self):
        """Test that copies do not share state."""
        original = Remediation(effort=RemediationEffort.MEDIUM, text="t", markdown="m")
        copy = original.copy()
        copy.text = "changed"
        assert original.text == "t"
        assert copy.effort == RemediationEffort.MEDIUM
