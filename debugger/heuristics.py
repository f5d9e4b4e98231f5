"""Heuristic pattern engine: deterministic fallback when no provider answers.

Rules are evaluated in order and the first match wins, so more specific
rules come first. The last rule matches everything. Every fixed-code
builder is a text transformation of the submitted code (substitution or
appended comment); nothing here depends on time, randomness or I/O.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from debugger.models import AnalysisReport, Complexity, RuleKind, Severity

logger = logging.getLogger(__name__)


# ── Patterns ─────────────────────────────────────────────────────────────────

_NUMERIC_FIELDS = r"(?:price|amount|cost|total|subtotal|quantity|qty|tax|discount)"

# price: "10.99" / "quantity": '2' / total = "0"
QUOTED_NUMERIC_FIELD = re.compile(
    r"""(?P<key>["']?\b""" + _NUMERIC_FIELDS + r"""\b["']?\s*[:=]\s*)"""
    r"""(?P<quote>["'])(?P<number>-?\d+(?:\.\d+)?)(?P=quote)""",
    re.IGNORECASE,
)

ARITHMETIC_ON_FIELD = re.compile(
    r"""\b""" + _NUMERIC_FIELDS + r"""\b["'\]]*\s*[*+/-]"""
    r"""|[*+/-]\s*[\w.\[\]"']*?\b""" + _NUMERIC_FIELDS + r"""\b""",
    re.IGNORECASE,
)

LOOSE_EQUALITY = re.compile(r"(?<![=!<>])(?P<op>==|!=)(?!=)")

# i <= arr.length / j <= items.size() / k <= len(xs)
INCLUSIVE_LENGTH_BOUND = re.compile(
    r"(?P<index>\b[A-Za-z_$][\w$]*)\s*<=\s*"
    r"(?P<bound>[A-Za-z_$][\w$.]*\.(?:length\b|Length\b|Count\b|size\(\)|count\(\))"
    r"|len\([^()]*\))"
)

# Condition clause of for (init; cond; step), or everything after `while` up
# to the block opener. Bounds are only rewritten inside these clauses;
# `if (n <= arr.length)` guards are left alone.
LOOP_CONDITION = re.compile(
    r"\bfor\s*\([^;\n]*;(?P<for_cond>[^;\n]*);"
    r"|\bwhile\b(?P<while_cond>[^\n{]*)"
)

# for i in range(len(xs) + 1)
RANGE_PAST_LENGTH = re.compile(
    r"(?P<head>\bfor\s+[\w, ]+?\s+in\s+)"
    r"(?P<range>range\(\s*(?P<bound>len\([^()]*\))\s*\+\s*1\s*\))"
)

AWAIT_SYNTAX = re.compile(r"\bawait\b|\basync\s+(?:def|function)\b|\basync\s*\(")

CALLBACK_STYLE = re.compile(
    r"\.then\s*\("
    r"|\bfunction\s*\(\s*err(?:or)?\s*[,)]"
    r"|\(\s*err(?:or)?\s*,[^)]*\)\s*=>"
    r"|\b(?:callback|cb|done)\s*\("
    r"|add_done_callback\s*\("
)

_HASH_COMMENT_LANGUAGES = {"python", "ruby"}

_STRICT_EQUALITY_LANGUAGES = {"javascript", "typescript"}


def comment_prefix(language: str) -> str:
    return "#" if language in _HASH_COMMENT_LANGUAGES else "//"


def _append_comment(code: str, language: str, lines: tuple[str, ...]) -> str:
    prefix = comment_prefix(language)
    comment = "\n".join(f"{prefix} {line}" for line in lines)
    return f"{code.rstrip()}\n\n{comment}\n"


# ── Rules ────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class HeuristicRule:
    """A predicate over the code paired with a report builder."""

    kind: RuleKind
    matches: Callable[[str], bool]
    build: Callable[[str, str], AnalysisReport]


def _matches_mixed_type_arithmetic(code: str) -> bool:
    return bool(QUOTED_NUMERIC_FIELD.search(code) and ARITHMETIC_ON_FIELD.search(code))


def _build_mixed_type_arithmetic(code: str, language: str) -> AnalysisReport:
    fields = [m.group(0) for m in QUOTED_NUMERIC_FIELD.finditer(code)]
    fixed = QUOTED_NUMERIC_FIELD.sub(r"\g<key>\g<number>", code)

    loose = language in _STRICT_EQUALITY_LANGUAGES and bool(LOOSE_EQUALITY.search(code))
    if loose:
        fixed = LOOSE_EQUALITY.sub(lambda m: m.group("op") + "=", fixed)

    if language == "python":
        rounding = ("Round money at the boundary: round(total, 2), or use decimal.Decimal.",)
    else:
        rounding = ("Round money at the boundary: Math.round(total * 100) / 100.",)
    fixed = _append_comment(fixed, language, rounding)

    explanation = (
        f"Numeric values are stored as strings ({', '.join(fields[:3])}) and then used "
        f"in arithmetic. Depending on the operator this concatenates text instead of "
        f"adding, or silently coerces, and floating-point results are never rounded."
    )
    if loose:
        explanation += " Loose equality (==) compares these mixed types with implicit coercion."

    return AnalysisReport(
        explanation=explanation,
        fixed_code=fixed,
        fix_explanation=(
            "The quoted numeric literals were replaced by real numbers so arithmetic "
            "operates on numbers, a rounding step is noted for currency results"
            + (", and loose equality was replaced by strict equality." if loose else ".")
        ),
        severity=Severity.CRITICAL if loose else Severity.HIGH,
        tips=[
            "Parse numeric input (parseFloat / Number / float) before doing arithmetic.",
            "Round currency only for display or at storage boundaries, not mid-calculation.",
            "Prefer strict equality (===) so comparisons never coerce types.",
            "Consider integer cents or a decimal type for money.",
        ],
        complexity=Complexity(
            time="O(n) over the items being totalled",
            space="O(1)",
            improvement="No complexity change; the fix removes implicit conversions.",
        ),
        security=(
            "Unvalidated numeric strings can carry unexpected values; validate and "
            "parse input before use."
        ),
    )


def _condition_group(match: re.Match) -> str:
    return "for_cond" if match.group("for_cond") is not None else "while_cond"


def _inclusive_loop_bounds(code: str) -> list[str]:
    bounds = []
    for loop in LOOP_CONDITION.finditer(code):
        condition = loop.group(_condition_group(loop))
        bounds += [m.group(0) for m in INCLUSIVE_LENGTH_BOUND.finditer(condition)]
    return bounds


def _tighten_loop_condition(loop: re.Match) -> str:
    group = _condition_group(loop)
    offset = loop.start()
    cond_start, cond_end = loop.start(group) - offset, loop.end(group) - offset
    header = loop.group(0)
    condition = INCLUSIVE_LENGTH_BOUND.sub(r"\g<index> < \g<bound>", header[cond_start:cond_end])
    return header[:cond_start] + condition + header[cond_end:]


def _matches_off_by_one(code: str) -> bool:
    return bool(_inclusive_loop_bounds(code) or RANGE_PAST_LENGTH.search(code))


def _build_off_by_one(code: str, language: str) -> AnalysisReport:
    bounds = _inclusive_loop_bounds(code)
    bounds += [m.group("range") for m in RANGE_PAST_LENGTH.finditer(code)]

    fixed = LOOP_CONDITION.sub(_tighten_loop_condition, code)
    fixed = RANGE_PAST_LENGTH.sub(r"\g<head>range(\g<bound>)", fixed)

    return AnalysisReport(
        explanation=(
            f"Loop bound `{bounds[0]}` runs one iteration past the last valid index. "
            f"Indexes go from 0 to length - 1, so the final iteration reads an element "
            f"that does not exist."
        ),
        fixed_code=fixed,
        fix_explanation=(
            "The inclusive bound (<=) against the length was changed to an exclusive "
            "bound (<), so the loop stops at the last valid index."
        ),
        severity=Severity.HIGH,
        tips=[
            "Loop with index < length; length itself is never a valid index.",
            "Prefer for...of / for-each style iteration when the index is not needed.",
            "Add a test with an empty collection and a single-element collection.",
        ],
        complexity=Complexity(
            time="O(n)",
            space="O(1)",
            improvement="One fewer iteration; no asymptotic change.",
        ),
        security=(
            "Out-of-bounds reads return undefined or raise; in lower-level languages "
            "they can expose adjacent memory."
        ),
    )


def _matches_async_style_mix(code: str) -> bool:
    return bool(AWAIT_SYNTAX.search(code) and CALLBACK_STYLE.search(code))


def _build_async_style_mix(code: str, language: str) -> AnalysisReport:
    if language == "python":
        advice = (
            "Mixed concurrency styles: use await throughout instead of done-callbacks.",
            "Wrap callback APIs once with loop.run_in_executor or an asyncio.Future.",
        )
    else:
        advice = (
            "Mixed concurrency styles: use async/await throughout instead of .then()/callbacks.",
            "Wrap callback APIs once with util.promisify or new Promise(...).",
        )
    return AnalysisReport(
        explanation=(
            "The code mixes callback-style continuations with async/await. Errors raised "
            "inside callbacks escape the surrounding try/catch, and execution order "
            "becomes hard to follow."
        ),
        fixed_code=_append_comment(code, language, advice),
        fix_explanation=(
            "Using one concurrency style lets a single try/catch handle every failure "
            "and keeps the order of operations visible in the source."
        ),
        severity=Severity.MEDIUM,
        tips=[
            "Pick one concurrency style per module and stick to it.",
            "Always await or return promises; never leave them floating.",
            "Handle rejections with try/catch around awaited calls.",
        ],
        complexity=Complexity(
            time="Unchanged",
            space="Unchanged",
            improvement="Readability and error propagation improve; performance is unaffected.",
        ),
        security="Unhandled rejections can leave resources open or requests hanging.",
    )


def _matches_anything(code: str) -> bool:
    return True


def _build_generic(code: str, language: str) -> AnalysisReport:
    return AnalysisReport(
        explanation=(
            "No known defect pattern was detected. The code was reviewed for common "
            "issues; consider the general recommendations below."
        ),
        fixed_code=_append_comment(
            code,
            language,
            ("Suggested improvements: validate inputs, handle errors explicitly,",
             "and cover edge cases (empty, null, very large input) with tests."),
        ),
        fix_explanation=(
            "No functional change was made. The appended note lists improvements that "
            "make the code more robust."
        ),
        severity=Severity.MEDIUM,
        tips=[
            "Validate inputs at function boundaries.",
            "Handle errors explicitly instead of letting them propagate silently.",
            "Write tests for empty, null and boundary inputs.",
            "Use descriptive names for variables and functions.",
        ],
        complexity=Complexity(
            time="Not assessed",
            space="Not assessed",
            improvement="Profile before optimizing.",
        ),
        security="Review any handling of external input for validation and escaping.",
    )


RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule(
        RuleKind.MIXED_TYPE_ARITHMETIC,
        _matches_mixed_type_arithmetic,
        _build_mixed_type_arithmetic,
    ),
    HeuristicRule(RuleKind.OFF_BY_ONE_LOOP, _matches_off_by_one, _build_off_by_one),
    HeuristicRule(
        RuleKind.ASYNC_STYLE_MIX, _matches_async_style_mix, _build_async_style_mix
    ),
    HeuristicRule(RuleKind.GENERIC, _matches_anything, _build_generic),
)


def select_rule(code: str) -> HeuristicRule:
    """Return the first rule matching ``code``; GENERIC always matches."""
    return next(rule for rule in RULES if rule.matches(code))


def heuristic_analyze(code: str, language: str) -> AnalysisReport:
    """Analyze ``code`` with the rule table. Never fails."""
    rule = select_rule(code)
    logger.info("Heuristic rule %s matched (%s, %d chars)", rule.kind, language, len(code))
    return rule.build(code, language)
