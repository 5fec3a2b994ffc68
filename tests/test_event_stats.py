from datetime import datetime, timedelta
from types import SimpleNamespace

from app.utils.analytics.event_stats import (
    feedback_per_hour,
    feedback_types,
    sentiment_split,
    top_emojis,
    top_keywords,
)

START = datetime(2026, 3, 14, 10, 0)
END = datetime(2026, 3, 14, 12, 30)


def feedback(minute_offset: int = 0, content: str = None, emoji: str = None):
    created = START + timedelta(minutes=minute_offset)
    return SimpleNamespace(created_at=created, content=content, emoji=emoji)


def test_feedback_per_hour_rounds_duration_up():
    items = [feedback(15), feedback(45), feedback(130)]
    buckets = feedback_per_hour(items, START, END)

    assert [b.count for b in buckets] == [2, 0, 1]
    assert buckets[1].hour == datetime(2026, 3, 14, 11, 0)


def test_feedback_per_hour_without_feedback():
    assert feedback_per_hour([], START, END) == []


def test_top_emojis_limited_and_ordered():
    items = [feedback(emoji=e) for e in "👍👍👍🔥🔥🎉😀😍💩"]
    result = top_emojis(items, limit=3)
    assert [(r.emoji, r.count) for r in result] == [("👍", 3), ("🔥", 2), ("🎉", 1)]


def test_top_keywords_skip_stop_words_and_short_words():
    items = [
        feedback(content="The talk was great, and great fun!"),
        feedback(content="Great venue"),
    ]
    keywords = {k.word: k.count for k in top_keywords(items)}
    assert keywords["great"] == 3
    assert "the" not in keywords
    assert "was" not in keywords


def test_sentiment_split_percentages():
    items = [
        feedback(content="Great talk"),
        feedback(emoji="👍"),
        feedback(content="So boring"),
        feedback(content="ok"),
    ]
    split = sentiment_split(items)
    assert (split.positive, split.negative, split.neutral) == (50, 25, 25)


def test_sentiment_split_empty():
    split = sentiment_split([])
    assert (split.positive, split.negative, split.neutral) == (0, 0, 0)


def test_feedback_types():
    items = [feedback(content="nice", emoji="🔥"), feedback(emoji="🎉"), feedback(content="  ")]
    types = {t.type: t for t in feedback_types(items)}
    assert types["Emoji"].count == 2
    assert types["Emoji"].percentage == 67
    assert types["Text"].count == 1
    assert feedback_types([]) == []
