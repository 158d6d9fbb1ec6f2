"""Diagnostic code -> (root cause, suggestion) lookup."""

from __future__ import annotations

from typing import NamedTuple


class Suggestion(NamedTuple):
    root_cause: str
    suggestion: str


GENERIC_SUGGESTION = "Review the PromptL documentation for correct syntax."

ERROR_SUGGESTIONS: dict[str, Suggestion] = {
    "message-tag-inside-message": Suggestion(
        "Message/role tags (<system>, <user>, <assistant>, <tool>) cannot be nested inside each other.",
        "Move the nested tag outside its parent. If showing an example, use a code block "
        "(```yaml) instead of actual role tags.",
    ),
    "content-tag-inside-content": Suggestion(
        "Content tags (<text>, <image>, <file>, <tool-call>) must be directly inside message tags.",
        "Restructure so content tags are direct children of message tags, not nested in other content.",
    ),
    "step-tag-inside-step": Suggestion(
        "Step/response tags cannot be nested inside each other.",
        "Move the <response> tag outside its parent <response> tag.",
    ),
    "config-not-found": Suggestion(
        "PromptL files require a YAML configuration section at the top.",
        "Add config at the beginning:\n---\nprovider: openai\nmodel: gpt-4\n---",
    ),
    "config-already-declared": Suggestion(
        "Only one configuration section is allowed per file.",
        "Remove the duplicate --- config --- section.",
    ),
    "invalid-config": Suggestion(
        "The YAML configuration has syntax or validation errors.",
        "Check YAML syntax. Required fields: model. Optional: provider, temperature, schema.",
    ),
    "config-missing-model": Suggestion(
        "The configuration section does not declare a model.",
        "Add a `model:` entry to the --- config --- section.",
    ),
    "unclosed-block": Suggestion(
        "A tag or block was opened but never closed.",
        "Add the missing closing tag. Check for typos in tag names.",
    ),
    "unexpected-closing-tag": Suggestion(
        "A closing tag or block end has no matching opening.",
        "Remove the stray closing tag, or add the opening tag it belongs to.",
    ),
    "parse-error": Suggestion(
        "The PromptL parser could not read this part of the prompt.",
        "Check the expression or tag at the indicated location for typos and missing operands.",
    ),
    "unexpected-eof": Suggestion(
        "The file ended unexpectedly, likely due to unclosed tags or blocks.",
        "Ensure all opened tags ({{ if }}, {{ for }}, <system>, etc.) and expressions are properly closed.",
    ),
    "variable-not-defined": Suggestion(
        "A variable is used but not provided in parameters.",
        "Either pass this variable when calling the prompt, or define it with {{ name = value }}.",
    ),
    "invalid-tool-call-placement": Suggestion(
        "Tool calls (<tool-call>) can only appear inside <assistant> messages.",
        "Move the <tool-call> tag inside an <assistant> block.",
    ),
    "empty-prompt": Suggestion(
        "The prompt has no content besides its configuration.",
        "Add at least one message or a block of text to the prompt.",
    ),
}


def lookup(code: str, message: str, fallback: str = GENERIC_SUGGESTION) -> Suggestion:
    """Suggestion for *code*; unmapped codes echo the message with *fallback* guidance."""
    return ERROR_SUGGESTIONS.get(code) or Suggestion(message, fallback)
