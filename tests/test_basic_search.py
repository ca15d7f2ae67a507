import pytest

from enjoyrecord.services.search import MANUAL_SOURCE, basic_search


@pytest.mark.parametrize(
    "media_type,label",
    [("book", "书籍"), ("film", "电影"), ("series", "剧集"), ("game", "游戏")],
)
def test_basic_search_returns_manual_placeholder(media_type, label):
    results = basic_search(media_type, "Some Title")
    assert len(results) == 1
    item = results[0]
    assert item.sources == [MANUAL_SOURCE]
    assert item.source_ids[MANUAL_SOURCE].isdigit()
    assert item.type == media_type
    assert item.title == "Some Title"
    assert item.summary == f"请手动编辑{label}信息"
    assert item.cover_url is None
