# assessment_engine/services/policy.py
"""
Lateness and auto-grade rules. Pure functions, no store access.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Optional


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back naive; they were written in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_is_late(deadline: Optional[datetime], submitted_at: datetime) -> bool:
    if deadline is None:
        return False
    return _as_utc(submitted_at) > _as_utc(deadline)


def canonical(value: Any) -> str:
    """
    Canonical string form used to compare a student's answer with the
    stored correct answer, so that ``4``, ``4.0`` and ``"4"`` all match.
    """
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(canonical(v) for v in value) + "]"
    if isinstance(value, dict):
        items = sorted((str(k), canonical(v)) for k, v in value.items())
        return "map[" + " ".join(f"{k}:{v}" for k, v in items) + "]"
    return str(value)


def _answer_map(answers: Any) -> dict[int, Any]:
    amap: dict[int, Any] = {}
    if not isinstance(answers, list):
        return amap
    for entry in answers:
        if not isinstance(entry, dict):
            continue
        try:
            idx = int(entry.get("question_index"))
        except (TypeError, ValueError):
            continue
        # a later entry for the same index replaces the earlier one
        amap[idx] = entry.get("answer")
    return amap


def auto_grade(questions: Any, answers: Any) -> tuple[float, float]:
    """
    Score a quiz attempt against the stored question set.

    One point per question whose ``correct_answer`` is set and equals the
    student's answer for that index. Questions without a correct answer
    (essay, free text) score nothing but still count toward ``max_score``,
    which is always the number of questions.
    """
    if not isinstance(questions, list):
        return 0.0, 0.0

    max_score = float(len(questions))
    amap = _answer_map(answers)

    score = 0.0
    for i, question in enumerate(questions):
        correct = question.get("correct_answer") if isinstance(question, dict) else None
        if correct is None:
            continue
        if i in amap and canonical(amap[i]) == canonical(correct):
            score += 1

    return score, max_score


def mean(values: Iterable[Any]) -> float:
    present = [float(v) for v in values if v is not None]
    if not present:
        return 0.0
    return sum(present) / len(present)
