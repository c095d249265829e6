"""
sentiment.py - Lexicon-based mood classification for journal entries

Scores entry text by summing the VADER lexicon valence of every word it
recognises (a word right after a negation such as "not" or "didn't" is
flipped and dampened the way VADER does it), then maps the score to one of
three mood labels:

    score >  1  -> "positive"
    score < -1  -> "negative"
    otherwise   -> "neutral"

The same threshold rule is reused for daily averages in stats.py, so it
lives here as mood_for_score().

Example:
- "What a wonderful, happy day" scores well above 1 -> positive.
- "The meeting moved to noon" matches no lexicon word -> 0 -> neutral.
"""

import string
import logging
from typing import NamedTuple, Optional

from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer, N_SCALAR, negated

_logger = logging.getLogger(__name__)

MOOD_POSITIVE = "positive"
MOOD_NEUTRAL = "neutral"
MOOD_NEGATIVE = "negative"
MOODS = (MOOD_POSITIVE, MOOD_NEUTRAL, MOOD_NEGATIVE)

# Strictly above / below these bounds a score leaves "neutral".
POSITIVE_THRESHOLD = 1
NEGATIVE_THRESHOLD = -1


class SentimentResult(NamedTuple):
    score: float
    mood: str


def mood_for_score(score: float) -> str:
    """Map a (possibly averaged) sentiment score to a mood label."""
    if score > POSITIVE_THRESHOLD:
        return MOOD_POSITIVE
    if score < NEGATIVE_THRESHOLD:
        return MOOD_NEGATIVE
    return MOOD_NEUTRAL


class SentimentClassifier:
    """
    Stateless text -> (score, mood) classifier.

    Loading the VADER lexicon reads a file from disk, so build one instance
    at startup and share it between requests.
    """

    def __init__(self, analyzer: Optional[SentimentIntensityAnalyzer] = None):
        self._lexicon = (analyzer or SentimentIntensityAnalyzer()).lexicon
        _logger.debug("Sentiment lexicon loaded with %d terms", len(self._lexicon))

    def _valence(self, token: str) -> float:
        # Emoticons such as ":)" live in the lexicon with their punctuation.
        lowered = token.lower()
        if lowered in self._lexicon:
            return self._lexicon[lowered]
        return self._lexicon.get(lowered.strip(string.punctuation), 0.0)

    def score(self, text: str) -> float:
        """Sum of lexicon valences for the words in `text`; 0 for empty text."""
        if not text or not text.strip():
            return 0.0

        tokens = text.split()
        total = 0.0
        for i, token in enumerate(tokens):
            valence = self._valence(token)
            if not valence:
                continue
            if i > 0 and negated([tokens[i - 1].strip(string.punctuation)]):
                valence *= N_SCALAR
            total += valence
        return round(total, 2)

    def classify(self, text: str) -> SentimentResult:
        score = self.score(text)
        return SentimentResult(score=score, mood=mood_for_score(score))
