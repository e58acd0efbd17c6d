"""
Rule-based interpretation of free text into a task patch.

Recognized markers:
- ``#tag`` -> tags (case kept, in order)
- ``!high`` / ``!med`` / ``!low`` -> priority (checked in that order)
- ``YYYY-MM-DD`` -> due date at 00:00 UTC; otherwise ``tomorrow`` (09:00 UTC)
  or ``today`` (18:00 UTC)
- ``done`` -> completed; ``todo`` -> not completed
- a leading verb (call, email, buy) plus the following word -> title
"""
import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone as dt_timezone
from typing import Optional

from django.utils import timezone

from apps.core.exceptions import InvalidInput
from .dtos import TaskPatch

REASON = "Rule-based heuristics"

BASE_CONFIDENCE = 0.2
PRIORITY_BONUS = 0.2
DATE_BONUS = 0.15
RELATIVE_DATE_BONUS = 0.1
DONE_BONUS = 0.05
TITLE_BONUS = 0.1
TAG_BONUS = 0.15

TITLE_VERBS = ('call', 'email', 'buy')
FALLBACK_TITLE_MAX = 80
FALLBACK_TITLE_TRUNCATE = 60

TAG_RE = re.compile(r'#(\w+)')
PRIORITY_RE = re.compile(r'!(high|med|low)\b', re.IGNORECASE)
ISO_DATE_RE = re.compile(r'\b(\d{4})-(\d{2})-(\d{2})\b')
WORD_SPLIT_RE = re.compile(r'[\s,.]+')


@dataclass
class Proposal:
    task_patch: TaskPatch
    reason: str
    confidence: float


def _has_word(lowered: str, word: str) -> bool:
    return re.search(rf'\b{word}\b', lowered) is not None


def _word_after(text: str, verb: str) -> Optional[str]:
    """
    First word after ``verb`` (split on whitespace, commas and dots), or ""
    when nothing follows it. None when the verb is absent.
    """
    match = re.search(rf'\b{verb}\b', text, re.IGNORECASE)
    if match is None:
        return None
    rest = text[match.end():].lstrip()
    words = [w for w in WORD_SPLIT_RE.split(rest) if w]
    return words[0] if words else ""


def _parse_iso_date(text: str) -> Optional[datetime]:
    match = ISO_DATE_RE.search(text)
    if match is None:
        return None
    year, month, day = (int(g) for g in match.groups())
    try:
        return datetime(year, month, day, tzinfo=dt_timezone.utc)
    except ValueError:
        return None


def _fallback_title(text: str) -> Optional[str]:
    core = TAG_RE.sub(' ', text)
    core = PRIORITY_RE.sub(' ', core)
    core = ISO_DATE_RE.sub(' ', core)
    core = ' '.join(core.split())
    if not core or len(core) > FALLBACK_TITLE_MAX:
        return None
    if len(core) > FALLBACK_TITLE_TRUNCATE:
        return core[:FALLBACK_TITLE_TRUNCATE] + "..."
    return core


def interpret(text: Optional[str], now: Optional[datetime] = None) -> Proposal:
    """
    Turn a one-line description into a proposed task patch.

    Nothing is stored; the caller decides whether to apply the proposal.

    Raises:
        InvalidInput: text is missing or blank.
    """
    if text is None or not text.strip():
        raise InvalidInput("Text is required")

    now = now or timezone.now()
    today = now.astimezone(dt_timezone.utc).date()
    lowered = text.lower()
    confidence = BASE_CONFIDENCE
    patch = {}

    tags = TAG_RE.findall(text)
    if tags:
        patch['tags'] = tags
        confidence += TAG_BONUS

    markers = {m.lower() for m in PRIORITY_RE.findall(text)}
    for marker, label in (('high', "High"), ('med', "Medium"), ('low', "Low")):
        if marker in markers:
            patch['priority'] = label
            confidence += PRIORITY_BONUS
            break

    due = _parse_iso_date(text)
    if due is not None:
        patch['due_date'] = due
        confidence += DATE_BONUS
    elif _has_word(lowered, 'tomorrow'):
        patch['due_date'] = datetime.combine(today + timedelta(days=1), time(9), tzinfo=dt_timezone.utc)
        confidence += RELATIVE_DATE_BONUS
    elif _has_word(lowered, 'today'):
        patch['due_date'] = datetime.combine(today, time(18), tzinfo=dt_timezone.utc)
        confidence += RELATIVE_DATE_BONUS

    if _has_word(lowered, 'done'):
        patch['completed'] = True
        confidence += DONE_BONUS
    elif _has_word(lowered, 'todo'):
        patch['completed'] = False

    for verb in TITLE_VERBS:
        word = _word_after(text, verb)
        if word is not None:
            patch['title'] = f"{verb.capitalize()} {word}"
            confidence += TITLE_BONUS
            break
    else:
        title = _fallback_title(text)
        if title is not None:
            patch['title'] = title

    return Proposal(
        task_patch=TaskPatch(**patch),
        reason=REASON,
        confidence=round(min(confidence, 1.0), 2),
    )
