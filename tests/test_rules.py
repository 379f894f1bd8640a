"""Tests for lintcheck.rules package."""

from __future__ import annotations

from pathlib import Path

import pytest

from lintcheck.blocks import iter_blocks
from lintcheck.config import DeniedPattern, LintConfig
from lintcheck.parser import parse_source
from lintcheck.rules import Rule, RuleReport, Severity, Violation
from lintcheck.rules.conventions import (
    ContextWordingRule,
    DescriptionLengthRule,
    DiscouragedSyntaxRule,
    DuplicateContextRule,
    NamingPrefixRule,
    ShouldDescriptionRule,
    SingleExpectationRule,
)


def _check(rule: Rule, text: str) -> list[Violation]:
    """Helper to run one rule over every block of a parsed file."""
    root = parse_source(text, "thing_spec.rb")
    out: list[Violation] = []
    for block, ancestors in iter_blocks(root):
        out.extend(rule.check(block, ancestors))
    return out


def _example(*lines: str, label: str = "works") -> str:
    """Helper to wrap statement lines in a describe/it pair."""
    body = "".join(f"    {line}\n" for line in lines)
    return f"describe 'Thing' do\n  it '{label}' do\n{body}  end\nend\n"


class TestViolation:
    """Tests for Violation NamedTuple."""

    def test_violation_fields(self, tmp_path: Path) -> None:
        v = Violation(
            file=tmp_path,
            line_no=42,
            rule="test-rule",
            severity=Severity.ERROR,
            message="test message",
        )
        assert v.file == tmp_path
        assert v.line_no == 42
        assert v.rule == "test-rule"
        assert v.severity is Severity.ERROR
        assert v.message == "test message"

    def test_violation_is_immutable(self, tmp_path: Path) -> None:
        v = Violation(tmp_path, 1, "r", Severity.INFO, "m")
        with pytest.raises(AttributeError):
            setattr(v, "line_no", 2)  # noqa: B010


class TestRuleReport:
    """Tests for RuleReport NamedTuple."""

    def test_rule_report_fields(self) -> None:
        r = RuleReport(name="test-rule", violations=5)
        assert r.name == "test-rule"
        assert r.violations == 5


class TestSeverity:
    """Tests for Severity ordering."""

    def test_order(self) -> None:
        assert Severity.ERROR.at_least(Severity.WARNING)
        assert Severity.WARNING.at_least(Severity.WARNING)
        assert not Severity.INFO.at_least(Severity.WARNING)
        assert [s.rank for s in Severity] == [0, 1, 2]

    def test_from_value(self) -> None:
        assert Severity("warning") is Severity.WARNING


class TestNamingPrefixRule:
    """Tests for NamingPrefixRule."""

    def test_rule_name(self, config: LintConfig) -> None:
        rule = NamingPrefixRule(config)
        assert rule.name == "naming-prefix"
        assert rule.severity is Severity.WARNING

    def test_flags_unprefixed_method_describe(self, config: LintConfig) -> None:
        text = "describe User do\n  describe 'authenticate' do\n  end\nend\n"
        violations = _check(NamingPrefixRule(config), text)

        assert len(violations) == 1
        assert violations[0].line_no == 2
        assert violations[0].severity is Severity.WARNING
        assert "'.authenticate'" in violations[0].message

    def test_flags_unprefixed_method_example(self, config: LintConfig) -> None:
        text = "describe User do\n  it 'admin?' do\n  end\nend\n"
        violations = _check(NamingPrefixRule(config), text)

        assert [v.line_no for v in violations] == [2]

    @pytest.mark.parametrize("label", [".authenticate", "#admin?", "#save!", ".find_by(name)"])
    def test_never_flags_prefixed_labels(self, config: LintConfig, label: str) -> None:
        text = f"describe User do\n  describe '{label}' do\n  end\n  it '{label}' do\n  end\nend\n"
        assert _check(NamingPrefixRule(config), text) == []

    def test_ignores_sentences(self, config: LintConfig) -> None:
        text = "describe User do\n  it 'returns the user' do\n  end\nend\n"
        assert _check(NamingPrefixRule(config), text) == []

    def test_ignores_contexts_and_deeper_blocks(self, config: LintConfig) -> None:
        text = (
            "describe User do\n"
            "  context 'valid' do\n"
            "    it 'save' do\n"
            "    end\n"
            "  end\n"
            "end\n"
        )
        assert _check(NamingPrefixRule(config), text) == []

    def test_ignores_top_level_describe(self, config: LintConfig) -> None:
        text = "describe 'authenticate' do\nend\n"
        assert _check(NamingPrefixRule(config), text) == []

    def test_custom_method_pattern(self) -> None:
        config = LintConfig(method_label_pattern=r"^[a-z_]+[?!]$")
        text = "describe User do\n  it 'save' do\n  end\n  it 'save!' do\n  end\nend\n"
        violations = _check(NamingPrefixRule(config), text)
        assert [v.line_no for v in violations] == [4]


class TestSingleExpectationRule:
    """Tests for SingleExpectationRule."""

    def test_rule_name(self, config: LintConfig) -> None:
        rule = SingleExpectationRule(config)
        assert rule.name == "single-expectation"
        assert rule.severity is Severity.ERROR

    def test_flags_two_expectations(self, config: LintConfig) -> None:
        text = _example("expect(a).to eq 1", "expect(b).to eq 2")
        violations = _check(SingleExpectationRule(config), text)

        assert len(violations) == 1
        assert violations[0].line_no == 2
        assert violations[0].severity is Severity.ERROR
        assert "2 assertions" in violations[0].message

    def test_single_expectation_passes(self, config: LintConfig) -> None:
        text = _example("user.save!", "expect(user).to be_persisted")
        assert _check(SingleExpectationRule(config), text) == []

    def test_example_without_statements_passes(self, config: LintConfig) -> None:
        assert _check(SingleExpectationRule(config), _example()) == []

    def test_counts_occurrences_on_one_line(self, config: LintConfig) -> None:
        text = _example("expect(a).to eq(1); expect(b).to eq(2)")
        violations = _check(SingleExpectationRule(config), text)
        assert len(violations) == 1

    def test_ignores_markers_inside_strings(self, config: LintConfig) -> None:
        text = _example("expect(page).to have_content('expect(x) and is_expected')")
        assert _check(SingleExpectationRule(config), text) == []

    def test_counts_should_and_block_expectations(self, config: LintConfig) -> None:
        rule = SingleExpectationRule(config)
        text = _example("a.should eq 1", "b.should_not eq 2", "expect { c }.to change { d }")
        root = parse_source(text)
        example = root.children[0].children[0]
        assert rule.count_assertions(example) == 3

    def test_one_liner_with_is_expected(self, config: LintConfig) -> None:
        text = "describe 'Thing' do\n  it { is_expected.to be_valid }\nend\n"
        assert _check(SingleExpectationRule(config), text) == []

    def test_custom_markers(self) -> None:
        config = LintConfig(assertion_markers=(r"\bverify\b",))
        text = _example("verify x", "verify y", "expect(z).to eq 1")
        violations = _check(SingleExpectationRule(config), text)
        assert len(violations) == 1
        assert "2 assertions" in violations[0].message

    def test_no_markers_counts_nothing(self) -> None:
        rule = SingleExpectationRule(LintConfig(assertion_markers=()))
        text = _example("expect(1).to eq 1", "expect(2).to eq 2")
        assert _check(rule, text) == []

    def test_empty_matches_are_not_assertions(self) -> None:
        rule = SingleExpectationRule(LintConfig(assertion_markers=(r"(?:verify)?",)))
        text = _example("expect(1).to eq 1")
        example = parse_source(text).children[0].children[0]
        assert rule.count_assertions(example) == 0
        assert _check(rule, text) == []


class TestDuplicateContextRule:
    """Tests for DuplicateContextRule."""

    def _contexts(self, *labels: str) -> str:
        body = "".join(f"  context '{label}' do\n  end\n" for label in labels)
        return f"describe 'Thing' do\n{body}end\n"

    def test_rule_name(self, config: LintConfig) -> None:
        rule = DuplicateContextRule(config)
        assert rule.name == "duplicate-context"
        assert rule.severity is Severity.ERROR

    def test_flags_identical_siblings(self, config: LintConfig) -> None:
        text = self._contexts("when valid", "when valid")
        violations = _check(DuplicateContextRule(config), text)

        assert len(violations) == 1
        assert violations[0].line_no == 4
        assert violations[0].severity is Severity.ERROR
        assert "line 2" in violations[0].message

    def test_distinct_labels_pass(self, config: LintConfig) -> None:
        text = self._contexts("when valid", "when invalid")
        assert _check(DuplicateContextRule(config), text) == []

    def test_whitespace_is_normalised(self, config: LintConfig) -> None:
        text = self._contexts("when valid", " when  valid ")
        assert len(_check(DuplicateContextRule(config), text)) == 1

    def test_case_sensitive_by_default(self, config: LintConfig) -> None:
        text = self._contexts("when valid", "When Valid")
        assert _check(DuplicateContextRule(config), text) == []

    def test_case_insensitive_option(self) -> None:
        config = LintConfig(case_sensitive_contexts=False)
        text = self._contexts("when valid", "When Valid")
        assert len(_check(DuplicateContextRule(config), text)) == 1

    def test_three_identical_siblings(self, config: LintConfig) -> None:
        text = self._contexts("when valid", "when valid", "when valid")
        violations = _check(DuplicateContextRule(config), text)
        assert [v.line_no for v in violations] == [4, 6]

    def test_same_label_under_different_parents(self, config: LintConfig) -> None:
        text = (
            "describe 'Thing' do\n"
            "  describe '#a' do\n"
            "    context 'when valid' do\n"
            "    end\n"
            "  end\n"
            "  describe '#b' do\n"
            "    context 'when valid' do\n"
            "    end\n"
            "  end\n"
            "end\n"
        )
        assert _check(DuplicateContextRule(config), text) == []


class TestDiscouragedSyntaxRule:
    """Tests for DiscouragedSyntaxRule."""

    def test_rule_name(self, config: LintConfig) -> None:
        rule = DiscouragedSyntaxRule(config)
        assert rule.name == "discouraged-syntax"
        assert rule.severity is Severity.INFO

    def test_flags_should_syntax(self, config: LintConfig) -> None:
        violations = _check(DiscouragedSyntaxRule(config), _example("user.should be_valid"))

        assert len(violations) == 1
        assert violations[0].line_no == 3
        assert violations[0].severity is Severity.INFO
        assert violations[0].message.startswith("should-syntax:")

    def test_flags_lambda_raise(self, config: LintConfig) -> None:
        text = _example("lambda { user.save! }.should raise_error(Error)")
        names = sorted(v.message.split(":")[0] for v in _check(DiscouragedSyntaxRule(config), text))
        assert names == ["lambda-raise", "should-syntax"]

    def test_flags_double_negative(self, config: LintConfig) -> None:
        text = _example("expect(user).not_to be_invalid")
        violations = _check(DiscouragedSyntaxRule(config), text)
        assert [v.message.split(":")[0] for v in violations] == ["double-negative"]

    def test_flags_expect_lambda(self, config: LintConfig) -> None:
        text = _example("expect(-> { user.save! }).to raise_error")
        violations = _check(DiscouragedSyntaxRule(config), text)
        assert "expect-lambda" in [v.message.split(":")[0] for v in violations]

    def test_preferred_forms_pass(self, config: LintConfig) -> None:
        text = _example(
            "expect { user.save! }.to raise_error(Error)",
            "expect(user).to be_valid",
            "expect(user).not_to be_nil",
        )
        assert _check(DiscouragedSyntaxRule(config), text) == []

    def test_custom_deny_list(self) -> None:
        config = LintConfig(
            denied_patterns=(DeniedPattern("sleep", r"\bsleep\b", "time helpers"),)
        )
        text = _example("sleep 1", "user.should be_valid")
        violations = _check(DiscouragedSyntaxRule(config), text)
        assert [v.message for v in violations] == ["sleep: prefer time helpers"]


class TestDescriptionRules:
    """Tests for the description wording rules."""

    def test_should_description_flagged(self) -> None:
        violations = _check(ShouldDescriptionRule(), _example(label="should not change timings"))
        assert len(violations) == 1
        assert violations[0].rule == "should-description"
        assert violations[0].severity is Severity.WARNING

    def test_third_person_description_passes(self) -> None:
        assert _check(ShouldDescriptionRule(), _example(label="shows the name")) == []

    def test_long_description_flagged(self, config: LintConfig) -> None:
        label = "x" * 41
        violations = _check(DescriptionLengthRule(config), _example(label=label))
        assert len(violations) == 1
        assert "41 characters" in violations[0].message

    def test_description_at_limit_passes(self, config: LintConfig) -> None:
        assert _check(DescriptionLengthRule(config), _example(label="x" * 40)) == []

    def test_context_wording(self, config: LintConfig) -> None:
        text = (
            "describe 'Thing' do\n"
            "  context 'valid user' do\n"
            "  end\n"
            "  context 'With a user' do\n"
            "  end\n"
            "  context 'without a name' do\n"
            "  end\n"
            "end\n"
        )
        violations = _check(ContextWordingRule(config), text)
        assert [v.line_no for v in violations] == [2]
        assert violations[0].severity is Severity.INFO

    def test_context_wording_disabled_with_no_prefixes(self) -> None:
        config = LintConfig(context_prefixes=())
        text = "describe 'Thing' do\n  context 'valid user' do\n  end\nend\n"
        assert _check(ContextWordingRule(config), text) == []
