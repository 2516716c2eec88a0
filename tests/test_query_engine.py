from pathlib import Path

import pytest

from template_index.models.template import FileRecord
from template_index.modules.path_resolver import encode_id
from template_index.modules.query_engine import (
    MAX_LIMIT,
    matches,
    normalize_text,
    paginate,
    reduce_tokens,
    resolve_window,
    score_record,
    search,
    tokenize,
)


def make(relative_path: str) -> FileRecord:
    segments = relative_path.split("/")
    return FileRecord(
        id=encode_id(relative_path),
        name=segments[-1],
        relative_path=relative_path,
        absolute_path=Path("/templates") / relative_path,
        size=10,
        mtime_ms=0.0,
        category=segments[0] if len(segments) > 1 else "",
    )


@pytest.fixture
def records():
    paths = ["a/backup.json", "a/notify-slack.json", "b/notify-email.json"]
    return [make(p) for p in sorted(paths)]


def paths_of(items):
    return [r.relative_path for r in items]


def test_tokenize_strips_punctuation_and_keeps_unicode():
    assert tokenize("  Notify-Slack, (v2)!! ") == ["notify", "slack", "v2"]
    assert tokenize("calendário  ação") == ["calendário", "ação"]
    assert tokenize("!!! ...") == []


def test_normalize_text_strips_diacritics():
    assert normalize_text("  Calendário   AÇÃO ") == "calendario acao"


def test_reduce_tokens_canonicalizes_and_drops_stopwords():
    assert reduce_tokens(tokenize("How to build the GCal workflow")) == ["calendar"]
    assert reduce_tokens(tokenize("calendário yt")) == ["calendar", "youtube"]
    assert reduce_tokens(tokenize("x")) == ["twitter"]
    assert reduce_tokens(tokenize("slack slack e")) == ["slack"]


def test_reduce_tokens_drops_soft_stopwords_only_for_broad_queries():
    assert reduce_tokens(tokenize("google notify slack ai")) == ["notify", "slack"]
    assert reduce_tokens(tokenize("google notify")) == ["google", "notify"]


def test_reduce_tokens_never_empties_a_broad_query():
    assert reduce_tokens(tokenize("google openai gemini")) == ["google", "openai", "gemini"]
    assert reduce_tokens(tokenize("the google of openai gemini")) == ["google", "openai", "gemini"]


def test_match_modes(records):
    slack = records[1]
    assert matches(["notify", "slack"], slack, "all")
    assert not matches(["notify", "email"], slack, "all")
    assert matches(["notify", "email"], slack, "any")


def test_score_weights():
    record = make("a/notify-slack.json")
    # name 5 + path 3, all matched 3, phrase in name 2
    assert score_record(["notify"], record) == 13
    assert score_record(["zzz"], record) == 0
    # token "a" hits name, path and category
    assert score_record(["a"], record) == 5 + 3 + 2 + 3 + 2
    # dir boosts: exact category 4, path prefix 3
    assert score_record(["notify"], record, "a") == 13 + 4 + 3
    assert score_record(["notify", "slack"], record) == 8 + 8 + 3


def test_notify_query_ranks_and_ties(records):
    result = search(records, q="notify")
    assert paths_of(result.items) == ["a/notify-slack.json", "b/notify-email.json"]
    assert result.tokens == ["notify"]
    assert result.simplified_to == ""

    narrowed = search(records, q="notify", dir_value="a")
    assert paths_of(narrowed.items) == ["a/notify-slack.json"]


def test_more_specific_match_ranks_first(records):
    result = search(records, q="email notify")
    assert paths_of(result.items) == ["b/notify-email.json", "a/notify-slack.json"]


def test_all_mode_requires_every_token(records):
    result = search(records, q="notify slack", q_mode="all")
    assert paths_of(result.items) == ["a/notify-slack.json"]


def test_unknown_mode_behaves_as_any(records):
    result = search(records, q="notify slack", q_mode="weird")
    assert len(result.items) == 2


def test_empty_result_falls_back_to_strongest_token(records):
    result = search(records, q="google notify zebra", q_mode="all")
    # "google" is a soft stopword and is dropped from the three-token query
    assert result.tokens == ["notify", "zebra"]
    assert result.simplified_to == "notify"
    assert paths_of(result.items) == ["a/notify-slack.json", "b/notify-email.json"]


def test_fallback_skips_soft_stopwords_when_choosing_token(records):
    result = search(records, q="gemini backup", q_mode="all")
    assert result.simplified_to == "backup"
    assert paths_of(result.items) == ["a/backup.json"]


def test_single_token_without_matches_has_no_fallback(records):
    result = search(records, q="zebra")
    assert result.items == []
    assert result.simplified_to == ""


def test_empty_query_returns_index_order(records):
    assert paths_of(search(records, q="").items) == paths_of(records)
    assert paths_of(search(records).items) == paths_of(records)
    stopwords_only = search(records, q="the of")
    assert paths_of(stopwords_only.items) == paths_of(records)
    assert stopwords_only.tokens == []


def test_dir_filter_by_prefix_or_category(records):
    assert paths_of(search(records, dir_value="a").items) == ["a/backup.json", "a/notify-slack.json"]
    assert paths_of(search(records, dir_value="a/").items) == ["a/backup.json", "a/notify-slack.json"]
    assert search(records, dir_value="missing").items == []


def test_dir_filter_with_nested_prefix():
    recs = [make("a/nested/deep.json"), make("a/top.json")]
    assert paths_of(search(recs, dir_value="a\\nested").items) == ["a/nested/deep.json"]


def test_resolve_window_defaults_and_clamps():
    assert resolve_window() == {"limit": 50, "offset": 0}
    assert resolve_window(limit="0") == {"limit": 1, "offset": 0}
    assert resolve_window(limit="999")["limit"] == MAX_LIMIT
    assert resolve_window(limit="abc")["limit"] == 50
    assert resolve_window(limit="10abc")["limit"] == 10
    assert resolve_window(offset="-5")["offset"] == 0
    assert resolve_window(per_page="3")["limit"] == 3


def test_page_is_equivalent_to_offset():
    assert resolve_window(limit="10", page="2") == resolve_window(limit="10", offset="10")
    assert resolve_window(limit="10", page="1")["offset"] == 0
    assert resolve_window(limit="10", page="-3")["offset"] == 0
    # explicit offset wins over page
    assert resolve_window(limit="10", offset="5", page="3")["offset"] == 5
    assert resolve_window(per_page="5", page="3") == {"limit": 5, "offset": 10}


def test_paginate_reports_counts():
    items = [make(f"a/{i:02d}.json") for i in range(5)]
    page = paginate(items, limit=2, offset=4)
    assert page.total == 5
    assert page.count == 1
    assert page.limit == 2
    assert page.offset == 4
    assert paths_of(page.items) == ["a/04.json"]

    beyond = paginate(items, limit=2, offset=10)
    assert beyond.count == 0
    assert beyond.items == []
