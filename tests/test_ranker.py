import math

import pytest

from minisearch.crawler.scheduler import CrawledPage
from minisearch.index.inverted_index import build_index
from minisearch.index.ranker import IndexHolder, SearchResult, idf, query_terms, search


def page(url, body, title=""):
    return CrawledPage(url=url, title=title, body_text=body, depth=0)


def test_three_document_scenario(sample_index):
    results = search(sample_index, "rust")

    assert [result.url for result in results] == ["http://a.test/c", "http://a.test/a"]
    assert results[0].score == pytest.approx(3 * math.log(3 / 2))
    assert results[1].score == pytest.approx(2 * math.log(3 / 2))
    assert results[0].score == pytest.approx(1.216, abs=1e-3)
    assert results[1].score == pytest.approx(0.811, abs=1e-3)
    assert results[0].title == "Page C"


def test_idf(sample_index):
    assert idf(sample_index, "rust") == pytest.approx(math.log(1.5))
    assert idf(sample_index, "python") == pytest.approx(math.log(3))
    assert idf(sample_index, "nothing") == 0.0


@pytest.mark.parametrize("query", ["", "   ", "!!!", "xyznotfound", "xyznotfound qqq"])
def test_queries_without_known_terms_return_nothing(sample_index, query):
    assert search(sample_index, query) == []


def test_query_is_case_and_punctuation_insensitive(sample_index):
    assert search(sample_index, "RUST!") == search(sample_index, "rust")


def test_repeated_query_terms_count_once(sample_index):
    assert search(sample_index, "rust rust Rust") == search(sample_index, "rust")
    assert query_terms("rust Go rust") == ["rust", "go"]


def test_scores_sum_over_distinct_terms(sample_index):
    scores = {result.url: result.score for result in search(sample_index, "rust python")}

    assert scores["http://a.test/c"] == pytest.approx(3 * math.log(1.5) + math.log(3))
    assert scores["http://a.test/a"] == pytest.approx(2 * math.log(1.5))
    assert "http://a.test/b" not in scores


def test_ties_are_broken_by_url():
    index = build_index([
        page("http://a.test/z", "apple"),
        page("http://a.test/m", "apple"),
        page("http://a.test/a", "apple"),
        page("http://a.test/other", "banana"),
    ])

    results = search(index, "apple")

    assert [result.url for result in results] == ["http://a.test/a", "http://a.test/m", "http://a.test/z"]
    assert len({result.score for result in results}) == 1


def test_higher_term_frequency_never_lowers_score():
    others = [page("http://a.test/x", "cat dog"), page("http://a.test/y", "bird")]
    previous = None
    for tf in range(1, 6):
        index = build_index(others + [page("http://a.test/d", " ".join(["cat"] * tf + ["fish"]))])
        score = {r.url: r.score for r in search(index, "cat fish")}["http://a.test/d"]
        if previous is not None:
            assert score >= previous
        previous = score


def test_term_in_every_document_contributes_nothing():
    index = build_index([page("http://a.test/1", "common rare"), page("http://a.test/2", "common")])

    assert search(index, "common") == []
    assert [result.url for result in search(index, "common rare")] == ["http://a.test/1"]
    assert all(result.score > 0 for result in search(index, "common rare"))


def test_limit(sample_index):
    assert len(search(sample_index, "rust", limit=1)) == 1
    assert search(sample_index, "rust", limit=1)[0].url == "http://a.test/c"


def test_result_serialization(sample_index):
    result = search(sample_index, "python")[0]

    assert isinstance(result, SearchResult)
    assert result.to_dict() == {"url": "http://a.test/c", "title": "Page C", "score": pytest.approx(math.log(3))}


def test_index_holder_swaps_snapshots(sample_index):
    holder = IndexHolder(sample_index)
    snapshot = holder.current

    replacement = build_index([page("http://b.test/", "rust only here"), page("http://b.test/go", "go only")])
    previous = holder.swap(replacement)

    assert previous is sample_index
    assert holder.current is replacement
    assert [r.url for r in search(snapshot, "rust")] == ["http://a.test/c", "http://a.test/a"]
    assert [r.url for r in holder.search("rust")] == ["http://b.test/"]
