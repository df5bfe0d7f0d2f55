from listing import filter_rows, get_field, paginate, sort_rows
from models import Rank
from ranks import classify_rank, resolve_rank_id

ROWS = [
    {"id": 1, "full_name": "bravo", "might": 300, "troop_type": "Infantry", "player": {"full_name": "Zed"}},
    {"id": 2, "full_name": "Alpha", "might": None, "troop_type": "Rider", "player": {"full_name": "amy"}},
    {"id": 3, "full_name": "charlie", "might": 100, "troop_type": "Infantry", "player": None},
    {"id": 4, "full_name": "alpha", "might": 100, "troop_type": "Ranged", "player": {"full_name": "Bob"}},
]


def ids(rows):
    return [r["id"] for r in rows]


def test_get_field_follows_dotted_paths():
    assert get_field(ROWS[0], "player.full_name") == "Zed"
    assert get_field(ROWS[2], "player.full_name") is None
    assert get_field(ROWS[0], "missing") is None


def test_filter_by_search_is_case_insensitive_substring():
    assert ids(filter_rows(ROWS, "ALPH", ("full_name",))) == [2, 4]
    assert ids(filter_rows(ROWS, "b", ("player.full_name",))) == [4]


def test_filter_equality_ignores_all_and_none():
    assert ids(filter_rows(ROWS, equals={"troop_type": "Infantry"})) == [1, 3]
    assert ids(filter_rows(ROWS, equals={"troop_type": "all", "might": None})) == [1, 2, 3, 4]


def test_sort_is_stable_and_case_insensitive():
    assert ids(sort_rows(ROWS, "full_name")) == [2, 4, 1, 3]


def test_sort_puts_missing_values_lowest():
    assert ids(sort_rows(ROWS, "might")) == [2, 3, 4, 1]
    assert ids(sort_rows(ROWS, "might", "desc")) == [1, 3, 4, 2]


def test_sort_by_nested_field():
    assert ids(sort_rows(ROWS, "player.full_name")) == [3, 2, 4, 1]


def test_sort_without_field_keeps_order():
    assert ids(sort_rows(ROWS, None)) == [1, 2, 3, 4]


def test_paginate_slices_and_counts_pages():
    rows = [{"id": i} for i in range(23)]
    page = paginate(rows, page=3, per_page=10)
    assert ids(page["items"]) == [20, 21, 22]
    assert page["total"] == 23
    assert page["total_pages"] == 3


def test_paginate_clamps_page_and_handles_empty():
    assert paginate([{"id": 1}], page=9, per_page=10)["page"] == 1
    empty = paginate([], page=1, per_page=10)
    assert empty["items"] == []
    assert empty["total_pages"] == 1


def test_resolve_rank_id_matches_names_case_insensitively():
    ranks = [Rank(id=1, name="Elite", min_might=10), Rank(id=2, name="Commander", min_might=20)]
    assert resolve_rank_id("elite", ranks) == 1
    assert resolve_rank_id(" COMMANDER ", ranks) == 2
    assert resolve_rank_id("Elit", ranks) is None
    assert resolve_rank_id("", ranks) is None
    assert resolve_rank_id(None, ranks) is None


def test_classify_rank_picks_highest_reached_threshold():
    ranks = [Rank(id=1, name="Recruit", min_might=0), Rank(id=2, name="Elite", min_might=50),
             Rank(id=3, name="Commander", min_might=100)]
    assert classify_rank(75, ranks) == 2
    assert classify_rank(100, ranks) == 3
    assert classify_rank(0, ranks) == 1
    assert classify_rank(None, ranks) is None
    assert classify_rank(5, ranks[1:]) is None
