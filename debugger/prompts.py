"""System prompt and user message builder for provider analysis."""

from __future__ import annotations

from debugger.models import AnalysisDepth


# ── Persona ──────────────────────────────────────────────────────────────────

PERSONA = """You are a senior software engineer debugging code submitted by a colleague.
You read every line, trace every code path, and assume nothing works until you have checked it.
Every problem you report comes with a concrete, production-ready fix."""


# ── analyze_code ─────────────────────────────────────────────────────────────

ANALYZE_SYSTEM = f"""{PERSONA}

You must respond ONLY with valid JSON. No markdown, no commentary outside the JSON structure.

Focus on:
- Logical errors, syntax issues and potential bugs
- Performance problems and algorithmic complexity
- Security issues (injection, unsafe input handling, secrets in code)
- Best practices and idiomatic style for the language

Assign an overall severity:
- critical: data loss, security hole, or crash on common input
- high: wrong results on common input
- medium: wrong results on edge cases, or significant maintainability problems
- low: style, naming, minor improvements

Respond with this exact JSON structure:
{{
  "explanation": "Clear, concise explanation of the issues found",
  "fixedCode": "Complete corrected code with proper formatting",
  "fixExplanation": "Detailed breakdown of why the fixes work",
  "severity": "low|medium|high|critical",
  "tips": ["Practical tip 1", "Practical tip 2"],
  "complexity": {{
    "time": "Time complexity of the fixed code, e.g. O(n)",
    "space": "Space complexity of the fixed code, e.g. O(1)",
    "improvement": "How the fix changes complexity, if at all"
  }},
  "security": "Security assessment of the code"
}}"""


_DEPTH_INSTRUCTIONS = {
    AnalysisDepth.QUICK: (
        "Perform a quick pass: report only the most serious defect and its fix. "
        "Keep tips to at most two."
    ),
    AnalysisDepth.STANDARD: (
        "Report every correctness defect and its fix. Mention performance and "
        "security only where they are clearly at risk."
    ),
    AnalysisDepth.COMPREHENSIVE: (
        "Perform a comprehensive analysis: correctness, edge cases, performance, "
        "security and best practice. Fill in every field of the JSON structure."
    ),
}


def build_analysis_message(
    code: str,
    language: str,
    depth: AnalysisDepth = AnalysisDepth.COMPREHENSIVE,
) -> str:
    """Build the user message for analyze_code."""
    parts = [
        f"## Code to Analyze ({language})\n",
        f"```{language}\n{code}\n```\n",
        "## Instructions\n",
        _DEPTH_INSTRUCTIONS[depth],
        "",
        f"The fixedCode field must be complete, runnable {language} code. "
        "Return ONLY the JSON structure specified in your instructions.",
    ]
    return "\n".join(parts)
