import pytest

import scrapers
from scrapers import AUTO, detect_source, dispatch, dispatch_api, get_adapter, known_sources


def test_known_sources_in_trial_order():
    assert known_sources() == ["LinkedIn", "Indeed", "Otta", "Greenhouse", "Lever", "Ashby", "Rippling"]


def test_get_adapter_is_case_insensitive():
    assert get_adapter("GREENHOUSE").name == "Greenhouse"
    assert get_adapter(" lever ").name == "Lever"
    assert get_adapter("monster") is None
    assert get_adapter(None) is None


def test_indeed_precedes_greenhouse_in_detection():
    html = """
    <a href="https://uk.indeed.com/viewjob?jk=1">Indeed listing</a>
    <a href="https://boards.greenhouse.io/acme/jobs/2">Greenhouse listing</a>
    """
    assert detect_source(html) == "Indeed"


@pytest.mark.parametrize("html, expected", [
    ('<div class="job-card-container">x</div>', "LinkedIn"),
    ("<p>Powered by Greenhouse.io</p>", "Greenhouse"),
    ('<a href="https://jobs.lever.co/initech">x</a>', "Lever"),
    ('<script src="https://jobs.ashbyhq.com/embed.js"></script>', "Ashby"),
    ('<a href="https://ats.rippling.com/acme/jobs">x</a>', "Rippling"),
    ('<a href="https://app.otta.com/jobs/1">x</a>', "Otta"),
    ('<a href="https://app.otta.com/jobs/1">x</a><a href="https://www.linkedin.com/jobs/view/1">y</a>', "LinkedIn"),
    ("<p>nothing recognisable</p>", AUTO),
    ("", AUTO),
    (None, AUTO),
])
def test_detect_source(html, expected):
    assert detect_source(html) == expected


@pytest.mark.parametrize("name, expected_source", [
    ("linkedin_search.html", "LinkedIn"),
    ("indeed_search.html", "Indeed"),
    ("otta_search.html", "Otta"),
    ("greenhouse_board.html", "Greenhouse"),
    ("lever_board.html", "Lever"),
])
def test_auto_dispatch_detects_saved_pages(name, expected_source, load_fixture):
    html = load_fixture(name)
    assert detect_source(html) == expected_source
    postings = dispatch(html)
    assert postings
    assert {p.source for p in postings} == {expected_source}


def test_known_hint_bypasses_detection(load_fixture):
    # A LinkedIn page parsed as Otta uses Otta's link fallback, not the LinkedIn scraper
    postings = dispatch(load_fixture("linkedin_search.html"), "otta")
    assert postings
    assert {p.source for p in postings} == {"Otta"}


def test_unknown_hint_falls_back_to_detection(load_fixture):
    postings = dispatch(load_fixture("greenhouse_board.html"), "monster")
    assert [p.source for p in postings] == ["Greenhouse", "Greenhouse"]


def test_trial_order_used_when_detection_fails():
    # No source domain or class fingerprint: only the Lever scraper recognises this markup
    html = """
    <div class="posting">
      <a class="posting-title" href="/initech/abc"><h5>Platform Engineer</h5></a>
    </div>
    """
    assert detect_source(html) == AUTO
    postings = dispatch(html, AUTO)
    assert [(p.source, p.title, p.job_url) for p in postings] == [
        ("Lever", "Platform Engineer", "https://jobs.lever.co/initech/abc"),
    ]


def test_trial_returns_first_non_empty_result(monkeypatch):
    calls = []

    def fake(name, result):
        def parse_html(html):
            calls.append(name)
            return result
        return scrapers.SourceAdapter(name=name, domain=name, parse_html=parse_html)

    monkeypatch.setattr(scrapers, "ADAPTER_ORDER", [fake("A", []), fake("B", ["posting"]), fake("C", ["other"])])
    assert dispatch("<p>plain</p>") == ["posting"]
    assert calls == ["A", "B"]


@pytest.mark.parametrize("html", ["", "   ", None, 17])
def test_dispatch_empty_or_non_string(html):
    assert dispatch(html) == []
    assert dispatch(html, "LinkedIn") == []


def test_dispatch_nothing_found():
    assert dispatch("<html><body><p>Just a blog post</p></body></html>") == []


def test_dispatch_api_routes_by_source():
    payload = {"jobs": [{"title": "Backend Engineer", "location": {"name": "London"}, "absolute_url": "https://x/y"}]}
    postings = dispatch_api(payload, "greenhouse", "acme")
    assert [(p.company_name, p.job_url) for p in postings] == [("acme", "https://x/y")]


def test_dispatch_api_without_api_parser():
    assert dispatch_api({"jobs": []}, "LinkedIn", "acme") == []
    assert dispatch_api({"jobs": []}, "monster", "acme") == []


def test_fingerprints_include_each_source_domain():
    fingerprints = dict(scrapers.SOURCE_FINGERPRINTS)
    assert list(fingerprints) == ["LinkedIn", "Indeed", "Greenhouse", "Lever", "Ashby", "Rippling", "Otta"]
    for adapter in scrapers.ADAPTER_ORDER:
        assert fingerprints[adapter.name][0] == adapter.domain
