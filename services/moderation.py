"""Message and username moderation.

Checks run in a fixed order and stop at the first match:

1. structure (empty or too long) - hard reject, not counted
2. profanity - soft reject, counted toward the kick threshold
3. spam (character runs, shouting) - hard reject, not counted

Only profanity escalates; structural and spam rejects are noise filtering.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern, Sequence, Tuple

from utils.settings import DEFAULT_PROFANITY_WORDS

ACCEPT = "accept"
REJECT = "reject"
SOFT = "soft"
HARD = "hard"

REASON_INVALID = "invalid message"
REASON_PROFANITY = "inappropriate content"
REASON_SPAM = "spam detected"

_REPEATED_CHAR = re.compile(r"(.)\1{10,}")
_USERNAME_STRIP = re.compile(r"[^\u0590-\u05FFa-zA-Z0-9\s]")
_ASCII_LETTERS = re.compile(r"[^a-zA-Z]")
_ASCII_UPPER = re.compile(r"[^A-Z]")


@dataclass(frozen=True)
class ModerationResult:
	"""Outcome of classifying one candidate message."""

	action: str
	reason: Optional[str] = None
	severity: Optional[str] = None

	@property
	def accepted(self) -> bool:
		return self.action == ACCEPT

	@property
	def counts_as_violation(self) -> bool:
		return self.action == REJECT and self.severity == SOFT


ACCEPTED = ModerationResult(action=ACCEPT)


def is_valid_message(text, max_length: int = 500) -> bool:
	if not isinstance(text, str):
		return False
	trimmed = text.strip()
	return 0 < len(trimmed) <= max_length


class ProfanityFilter:
	"""Match case-folded text against a block-list.

	Each word is tried with word boundaries and as a raw substring; the second
	form catches scripts that are written without clear word boundaries.
	"""

	def __init__(self, words: Iterable[str] = DEFAULT_PROFANITY_WORDS) -> None:
		self.words: Tuple[str, ...] = tuple(w.casefold() for w in words if w)
		self._patterns: Sequence[Pattern[str]] = [
			re.compile(rf"\b{re.escape(word)}\b") for word in self.words
		]

	def contains(self, text: str) -> bool:
		folded = text.casefold()
		for word, pattern in zip(self.words, self._patterns):
			if pattern.search(folded):
				return True
			if word in folded:
				return True
		return False


def is_spam(text: str) -> bool:
	if _REPEATED_CHAR.search(text):
		return True
	letters = _ASCII_LETTERS.sub("", text)
	if len(letters) > 10:
		caps = _ASCII_UPPER.sub("", text)
		if len(caps) / len(letters) > 0.7:
			return True
	return False


def classify_message(
	text,
	max_length: int = 500,
	profanity: Optional[ProfanityFilter] = None,
) -> ModerationResult:
	"""Classify ``text`` as accepted or rejected with a reason and severity."""
	if not is_valid_message(text, max_length):
		return ModerationResult(action=REJECT, reason=REASON_INVALID, severity=HARD)
	profanity = profanity or ProfanityFilter()
	if profanity.contains(text):
		return ModerationResult(action=REJECT, reason=REASON_PROFANITY, severity=SOFT)
	if is_spam(text):
		return ModerationResult(action=REJECT, reason=REASON_SPAM, severity=HARD)
	return ACCEPTED


def sanitize_username(raw) -> str:
	"""Keep Hebrew and Latin letters, digits and whitespace, then trim."""
	if not isinstance(raw, str):
		return ""
	return _USERNAME_STRIP.sub("", raw).strip()


def is_valid_username(cleaned: str, min_length: int = 2, max_length: int = 20) -> bool:
	if not cleaned or not isinstance(cleaned, str):
		return False
	return min_length <= len(cleaned) <= max_length
