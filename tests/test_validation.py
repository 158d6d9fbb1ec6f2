"""Tests for latitude_sync.validation: PromptL checker, suggestions and batch reports."""

import pytest
from unittest.mock import MagicMock

from promptl_ai import Error, ErrorPosition, PromptlError, ScanPromptResult

from latitude_sync.validation import (
    CompileDiagnostic,
    CompileError,
    ERROR_SUGGESTIONS,
    Location,
    PromptChecker,
    PromptLChecker,
    PromptValidator,
    format_report,
)
from latitude_sync.validation.suggestions import GENERIC_SUGGESTION, lookup


def _codes(diags):
    return [d.code for d in diags]


def _scan_result(errors=(), config=None, resolved="Hi"):
    return ScanPromptResult(
        hash="h",
        resolved_prompt=resolved,
        config=config or {},
        errors=list(errors),
        parameters=[],
        is_chain=False,
        included_prompt_paths=[],
    )


@pytest.fixture
def compiler():
    fake = MagicMock()
    fake.prompts.scan.return_value = _scan_result()
    return fake


# ── PromptLChecker over a stubbed compiler ──────────────────────────


class TestPromptLChecker:
    def test_passes_path_to_compiler(self, compiler):
        PromptLChecker(compiler).scan("Hi", "support/triage")
        compiler.prompts.scan.assert_called_once_with("Hi", full_path="support/triage")

    def test_compiler_errors_become_diagnostics(self, compiler):
        compiler.prompts.scan.return_value = _scan_result(
            errors=[
                Error(
                    code="message-tag-inside-message",
                    message="Message tags cannot be nested",
                    start=ErrorPosition(line=6, column=3, character=52),
                    frame="> 6 |   <system>",
                )
            ]
        )
        diags = PromptLChecker(compiler).scan("x", "p")
        assert diags == [
            CompileDiagnostic(
                code="message-tag-inside-message",
                message="Message tags cannot be nested",
                start=Location(line=6, column=3),
                frame="> 6 |   <system>",
            )
        ]

    def test_error_without_code_or_position(self, compiler):
        compiler.prompts.scan.return_value = _scan_result(errors=[Error(message="odd")])
        diag = PromptLChecker(compiler).scan("x", "p")[0]
        assert diag.code == "compile-error"
        assert diag.start is None
        assert diag.severity == "error"

    def test_fatal_error_raises_compile_error(self, compiler):
        compiler.prompts.scan.side_effect = PromptlError(
            Error(code="parse-error", message="Unexpected token", start=ErrorPosition(line=2, column=4, character=9))
        )
        with pytest.raises(CompileError) as exc_info:
            PromptLChecker(compiler).scan("x", "p")
        assert exc_info.value.code == "parse-error"
        assert exc_info.value.start == Location(line=2, column=4)
        assert isinstance(exc_info.value.__cause__, PromptlError)

    def test_other_failures_propagate(self, compiler):
        compiler.prompts.scan.side_effect = RuntimeError("wasm trap")
        with pytest.raises(RuntimeError):
            PromptLChecker(compiler).scan("x", "p")

    def test_no_config_is_fine_by_default(self, compiler):
        assert PromptLChecker(compiler).scan("Hi", "p") == []

    def test_require_config(self, compiler):
        diags = PromptLChecker(compiler, require_config=True).scan("Hi", "p")
        assert _codes(diags) == ["config-not-found"]

    def test_missing_model_is_warning(self, compiler):
        compiler.prompts.scan.return_value = _scan_result(config={"provider": "openai"})
        diags = PromptLChecker(compiler).scan("x", "p")
        assert _codes(diags) == ["config-missing-model"]
        assert diags[0].severity == "warning"

    def test_empty_body_is_warning(self, compiler):
        compiler.prompts.scan.return_value = _scan_result(config={"model": "gpt-4o"}, resolved="\n")
        diags = PromptLChecker(compiler).scan("x", "p")
        assert _codes(diags) == ["empty-prompt"]
        assert diags[0].severity == "warning"

    def test_policy_checks_skipped_when_compiler_reports_errors(self, compiler):
        compiler.prompts.scan.return_value = _scan_result(errors=[Error(code="parse-error", message="bad")], resolved="")
        diags = PromptLChecker(compiler, require_config=True).scan("x", "p")
        assert _codes(diags) == ["parse-error"]

    def test_compiler_loaded_lazily(self, monkeypatch, compiler):
        monkeypatch.setattr("latitude_sync.validation.checker.default_promptl", lambda: compiler)
        checker = PromptLChecker()
        assert checker.promptl is compiler


# ── PromptLChecker against the real compiler ────────────────────────


class TestCompiler:
    @pytest.fixture(scope="class")
    def checker(self):
        return PromptLChecker()

    def test_valid_prompt(self, checker, valid_prompt):
        assert [d for d in checker.scan(valid_prompt, "p") if d.severity == "error"] == []

    def test_plain_text(self, checker):
        assert checker.scan("Hello {{ name }}", "p") == []

    def test_incomplete_expression(self, checker):
        diags = checker.scan("---\nmodel: gpt-4o\n---\n<user>{{ 1 + }}</user>\n", "p")
        assert "parse-error" in _codes(diags)

    def test_horizontal_rule_in_body_is_not_config(self, checker):
        src = "---\nmodel: gpt-4o\n---\n<user>\n---\nNote: hi\n---\n</user>\n"
        assert [d for d in checker.scan(src, "p") if d.severity == "error"] == []

    def test_nested_message_tags(self, checker, broken_prompt):
        diags = checker.scan(broken_prompt, "p")
        assert any(d.severity == "error" for d in diags)

    def test_loop_block(self, checker):
        src = "---\nmodel: gpt-4o\n---\n{{ for item in items }}\n<user>{{ item }}</user>\n{{ endfor }}\n"
        assert [d for d in checker.scan(src, "p") if d.severity == "error"] == []


# ── suggestions ─────────────────────────────────────────────────────


class TestSuggestions:
    def test_known_code(self):
        hint = lookup("unclosed-block", "msg")
        assert hint == ERROR_SUGGESTIONS["unclosed-block"]

    def test_unknown_code_echoes_message(self):
        hint = lookup("something-new", "the message")
        assert hint.root_cause == "the message"
        assert hint.suggestion == GENERIC_SUGGESTION

    def test_locally_emitted_codes_are_mapped(self):
        for code in ("config-not-found", "config-missing-model", "empty-prompt", "parse-error"):
            assert code in ERROR_SUGGESTIONS


# ── PromptValidator ─────────────────────────────────────────────────


class _StubChecker(PromptChecker):
    def __init__(self, result=None, raises=None, failing=()):
        self.result = result or []
        self.raises = raises
        self.failing = set(failing)

    def scan(self, content, path):
        if self.raises:
            raise self.raises
        if path in self.failing:
            return [CompileDiagnostic(code="parse-error", message="Unexpected token", start=Location(line=6, column=3))]
        return self.result


class TestPromptValidator:
    def test_issue_enriched(self):
        diag = CompileDiagnostic(
            code="message-tag-inside-message", message="nested", start=Location(line=6, column=3), frame="> 6 |"
        )
        issues = PromptValidator(_StubChecker(result=[diag])).validate("x", "p")
        assert len(issues) == 1
        issue = issues[0]
        assert issue.type == "error"
        assert issue.code == "message-tag-inside-message"
        assert issue.root_cause == ERROR_SUGGESTIONS["message-tag-inside-message"].root_cause
        assert issue.location.line == 6
        assert issue.code_frame == "> 6 |"

    def test_compile_error_becomes_single_issue(self):
        err = CompileError("parse-error", "Unexpected end", start=Location(line=1, column=1))
        issues = PromptValidator(_StubChecker(raises=err)).validate("{{ name", "p")
        assert [i.code for i in issues] == ["parse-error"]
        assert issues[0].location == Location(line=1, column=1)

    def test_unmapped_compile_error_fallback(self):
        validator = PromptValidator(_StubChecker(raises=CompileError("odd-thing", "Odd")))
        issue = validator.validate("x", "p")[0]
        assert issue.root_cause == "Odd"
        assert issue.suggestion == "Fix the syntax error at the indicated location."

    def test_unmapped_diagnostic_fallback(self):
        diag = CompileDiagnostic(code="odd-thing", message="Odd", severity="warning")
        issue = PromptValidator(_StubChecker(result=[diag])).validate("x", "p")[0]
        assert issue.type == "warning"
        assert issue.suggestion == GENERIC_SUGGESTION

    def test_unexpected_checker_failure(self):
        validator = PromptValidator(_StubChecker(raises=RuntimeError("boom")))
        issues = validator.validate("x", "p")
        assert [i.code for i in issues] == ["unknown-error"]
        assert issues[0].message == "boom"

    def test_default_checker_is_promptl(self):
        validator = PromptValidator(require_config=True)
        assert isinstance(validator.checker, PromptLChecker)
        assert validator.checker.require_config is True

    def test_incomplete_expression_blocks_document(self):
        issues = PromptValidator().validate("<user>{{ 1 + }}</user>", "p")
        assert any(i.type == "error" for i in issues)


class TestValidateAll:
    def test_all_valid(self, valid_prompt):
        report = PromptValidator().validate_all([("a", valid_prompt), ("b", "Hello")])
        assert report.valid is True
        assert report.errors == []
        assert report.checked == 2

    def test_one_failure_fails_batch(self):
        validator = PromptValidator(_StubChecker(failing={"b", "c"}))
        report = validator.validate_all([("a", "ok"), ("b", "bad"), ("c", "bad")])
        assert report.valid is False
        assert report.failed_paths == ["b", "c"]
        assert report.checked == 3

    def test_real_compiler_failure_fails_batch(self, valid_prompt):
        report = PromptValidator().validate_all([("a", valid_prompt), ("b", "<user>{{ 1 + }}</user>")])
        assert report.failed_paths == ["b"]

    def test_warnings_do_not_fail(self):
        report = PromptValidator().validate_all([("w", "---\nprovider: x\n---\nHi")])
        assert report.valid is True
        assert [w.name for w in report.warnings] == ["w"]
        assert report.warnings[0].issues[0].code == "config-missing-model"

    def test_mapping_input(self):
        report = PromptValidator(_StubChecker(failing={"a"})).validate_all([{"path": "a", "content": "x"}])
        assert report.failed_paths == ["a"]

    def test_format_report(self):
        report = PromptValidator(_StubChecker(failing={"support/bad"})).validate_all([("support/bad", "x")])
        text = format_report(report)
        assert text.startswith("1 document(s) failed local validation:")
        assert "## support/bad" in text
        assert "`parse-error` (line 6, column 3): Unexpected token" in text
