"""Feedback statistics for the host analytics dashboard."""

import re
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List

from app.constants.constants import FEEDBACK_STOP_WORDS, NEGATIVE_FEEDBACK_TERMS, POSITIVE_FEEDBACK_TERMS
from app.schemas.analyticsSchema import (
    EmojiCount,
    FeedbackTypeCount,
    HourlyFeedback,
    KeywordCount,
    SentimentSplit,
)
from app.utils.analytics.funnel import percent

_NON_WORD = re.compile(r"[^\w\s]")


def feedback_per_hour(feedbacks: List, start: datetime, end: datetime) -> List[HourlyFeedback]:
    """Bucket feedback into one-hour windows from ``start`` until ``end`` (rounded up)."""
    if not feedbacks or end <= start:
        return []
    duration = end - start
    hours = int(duration // timedelta(hours=1)) + (1 if duration % timedelta(hours=1) else 0)

    buckets = []
    for i in range(hours):
        hour_start = start + timedelta(hours=i)
        hour_end = hour_start + timedelta(hours=1)
        count = sum(1 for f in feedbacks if f.created_at and hour_start <= f.created_at < hour_end)
        buckets.append(HourlyFeedback(hour=hour_start, count=count))
    return buckets


def top_emojis(feedbacks: Iterable, limit: int = 5) -> List[EmojiCount]:
    counts = Counter(f.emoji for f in feedbacks if f.emoji)
    return [EmojiCount(emoji=emoji, count=count) for emoji, count in counts.most_common(limit)]


def top_keywords(feedbacks: Iterable, limit: int = 10) -> List[KeywordCount]:
    counts = Counter()
    for f in feedbacks:
        if not f.content:
            continue
        words = _NON_WORD.sub("", f.content.lower()).split()
        counts.update(w for w in words if len(w) > 2 and w not in FEEDBACK_STOP_WORDS)
    return [KeywordCount(word=word, count=count) for word, count in counts.most_common(limit)]


def sentiment_split(feedbacks: List) -> SentimentSplit:
    positive = negative = neutral = 0
    for f in feedbacks:
        text = (f.content or "").lower() + (f" {f.emoji}" if f.emoji else "")
        has_positive = any(term in text for term in POSITIVE_FEEDBACK_TERMS)
        has_negative = any(term in text for term in NEGATIVE_FEEDBACK_TERMS)
        if has_positive and not has_negative:
            positive += 1
        elif has_negative and not has_positive:
            negative += 1
        else:
            neutral += 1

    total = positive + negative + neutral
    if not total:
        return SentimentSplit()
    return SentimentSplit(
        positive=percent(positive, total),
        negative=percent(negative, total),
        neutral=percent(neutral, total),
    )


def feedback_types(feedbacks: List) -> List[FeedbackTypeCount]:
    if not feedbacks:
        return []
    with_emoji = sum(1 for f in feedbacks if f.emoji)
    with_text = sum(1 for f in feedbacks if f.content and f.content.strip())
    return [
        FeedbackTypeCount(type="Emoji", count=with_emoji, percentage=percent(with_emoji, len(feedbacks))),
        FeedbackTypeCount(type="Text", count=with_text, percentage=percent(with_text, len(feedbacks))),
    ]
