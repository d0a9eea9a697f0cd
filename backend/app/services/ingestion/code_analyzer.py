"""Deprecated-API and syntax-error analysis of code snippets via LLM.

Extends ``BaseLLMExtractor``; only prompt preparation and result parsing are
custom. Snippets are analyzed in concurrent windows of three and a failed
snippet is skipped.
"""

import asyncio
import logging
from typing import Any, Optional

from app.models.ingestion import (
    CodeSnippet,
    DeprecatedCodeFinding,
    EnhancedCodeAnalysis,
    SyntaxErrorFinding,
)
from app.services.ingestion.constants import (
    CODE_ANALYSIS_BATCH_SIZE,
    CODE_ANALYSIS_MAX_TOKENS,
    MIN_ANALYZABLE_CODE_CHARS,
)
from app.services.llm.base_extractor import BaseLLMExtractor
from app.services.progress import ProgressPublisher

logger = logging.getLogger(__name__)

SnippetFindings = tuple[list[DeprecatedCodeFinding], list[SyntaxErrorFinding]]


def is_simple_code(code: str) -> bool:
    """Snippets too trivial to be worth a model call."""
    trimmed = code.strip()
    lines = trimmed.split("\n")
    if len(trimmed) < MIN_ANALYZABLE_CODE_CHARS:
        return True
    # Plain CSS
    if "{" in trimmed and ":" in trimmed and ";" in trimmed and "function" not in trimmed:
        return True
    # Short markup
    if trimmed.startswith("<") and trimmed.endswith(">") and len(lines) < 3:
        return True
    # Short configuration without logic
    if (
        "=" in trimmed
        and "function" not in trimmed
        and "class" not in trimmed
        and len(lines) < 5
    ):
        return True
    return False


class CodeSnippetAnalyzer(BaseLLMExtractor):
    """Finds deprecated methods and definite syntax errors in one snippet."""

    batch_size = CODE_ANALYSIS_BATCH_SIZE

    # ------------------------------------------------------------------
    # Template hooks
    # ------------------------------------------------------------------

    def _prepare_content(self, snippet: CodeSnippet, block_number: int = 1, **kwargs: Any) -> str:
        return (
            f"Analyze this {snippet.language or 'unknown'} code snippet for deprecated "
            "methods and syntax errors.\n\n"
            f"Code snippet (block {block_number}):\n"
            f"```{snippet.language or ''}\n{snippet.code}\n```\n\n"
            "Please identify:\n"
            "1. Deprecated methods, functions, or patterns with version information\n"
            "2. Definite syntax errors that would prevent code execution\n\n"
            "Return your analysis in this JSON format:\n"
            "{\n"
            '  "deprecatedCode": [\n'
            "    {\n"
            '      "language": "javascript",\n'
            '      "method": "componentWillMount",\n'
            f'      "location": "code block {block_number}, line 5",\n'
            '      "deprecatedIn": "React 16.3",\n'
            '      "removedIn": "React 17",\n'
            '      "replacement": "useEffect() or componentDidMount()",\n'
            '      "confidence": "high",\n'
            '      "codeFragment": "componentWillMount() {"\n'
            "    }\n"
            "  ],\n"
            '  "syntaxErrors": [\n'
            "    {\n"
            '      "language": "python",\n'
            f'      "location": "code block {block_number}, line 8",\n'
            '      "errorType": "SyntaxError",\n'
            '      "description": "Unclosed string literal",\n'
            '      "codeFragment": "message = \\"Hello world",\n'
            '      "confidence": "high"\n'
            "    }\n"
            "  ]\n"
            "}\n\n"
            "Important guidelines:\n"
            "- Only report HIGH CONFIDENCE findings to avoid false positives\n"
            "- For deprecated code: Include specific version information when known\n"
            "- For syntax errors: Only report definite errors, not style issues\n"
            '- Handle incomplete code snippets gracefully (snippets with "..." are often partial)\n'
            "- Skip simple configuration or markup that isn't executable code\n"
            '- If uncertain, mark confidence as "medium" or "low"'
        )

    def _parse_result(
        self, data: dict, snippet: CodeSnippet, block_number: int = 1, **kwargs: Any
    ) -> SnippetFindings:
        location = f"code block {block_number}"
        language = snippet.language or "unknown"

        deprecated = [
            DeprecatedCodeFinding(
                language=item.get("language") or language,
                method=item.get("method") or "unknown",
                location=item.get("location") or location,
                deprecated_in=item.get("deprecatedIn") or "unknown version",
                removed_in=item.get("removedIn"),
                replacement=item.get("replacement") or "see documentation",
                confidence=item.get("confidence") or "medium",
                code_fragment=item.get("codeFragment") or item.get("method") or "",
            )
            for item in data.get("deprecatedCode") or []
        ]
        syntax_errors = [
            SyntaxErrorFinding(
                language=item.get("language") or language,
                location=item.get("location") or location,
                error_type=item.get("errorType") or "SyntaxError",
                description=item.get("description") or "syntax error detected",
                code_fragment=item.get("codeFragment") or "",
                confidence=item.get("confidence") or "medium",
            )
            for item in data.get("syntaxErrors") or []
        ]
        return deprecated, syntax_errors

    def _empty_result(self) -> SnippetFindings:
        return [], []

    def _max_tokens(self) -> int:
        return CODE_ANALYSIS_MAX_TOKENS

    # ------------------------------------------------------------------
    # Batch analysis
    # ------------------------------------------------------------------

    async def analyze(
        self,
        snippets: list[CodeSnippet],
        progress: Optional[ProgressPublisher] = None,
    ) -> EnhancedCodeAnalysis:
        """Analyze every non-trivial snippet and fold the findings in block order."""
        if not snippets:
            return EnhancedCodeAnalysis()

        if progress:
            await progress.info(
                f"Analyzing {len(snippets)} code snippets for deprecation and syntax issues..."
            )

        deprecated: list[DeprecatedCodeFinding] = []
        syntax_errors: list[SyntaxErrorFinding] = []

        analyzable = [
            (block_number, snippet)
            for block_number, snippet in enumerate(snippets, start=1)
            if not is_simple_code(snippet.code)
        ]

        for start in range(0, len(analyzable), self.batch_size):
            window = analyzable[start : start + self.batch_size]
            results = await asyncio.gather(
                *(self.extract(snippet, block_number=number) for number, snippet in window)
            )

            for (block_number, _), (found_deprecated, found_errors) in zip(window, results):
                deprecated.extend(found_deprecated)
                syntax_errors.extend(found_errors)

                if progress:
                    for finding in found_deprecated:
                        await progress.info(
                            f"Deprecated: {finding.method} in code block {block_number}"
                        )
                    for finding in found_errors:
                        await progress.info(
                            f"Syntax error: {finding.description} in code block {block_number}"
                        )

        if progress:
            await progress.success(
                f"Code analysis complete: {len(deprecated)} deprecated, "
                f"{len(syntax_errors)} syntax errors"
            )

        confidences = [f.confidence for f in [*deprecated, *syntax_errors]]
        return EnhancedCodeAnalysis(
            deprecated_code_findings=deprecated,
            syntax_error_findings=syntax_errors,
            analyzed_snippets=len(snippets),
            confidence_distribution={
                level: confidences.count(level) for level in ("high", "medium", "low")
            },
        )
