import json

from bgsubs.imdb import (
    extract_page_facts,
    kind_from_subnav,
    title_from_heading,
    year_from_release_link,
)
from bgsubs.models import MediaKind
from bs4 import BeautifulSoup


def page(head="", body=""):
    return f"<html><head>{head}</head><body>{body}</body></html>"


def json_ld(data):
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


def test_og_title_gives_title_year_and_series_kind():
    html = page(head='<meta property="og:title" content="Breaking Bad (TV Series 2008–2013) ⭐ 9.5 | Crime">')
    facts = extract_page_facts(html)
    assert facts.title == "Breaking Bad"
    assert facts.year == 2008
    assert facts.kind is MediaKind.SERIES


def test_og_title_movie_leaves_kind_to_later_strategies():
    html = page(
        head='<meta property="og:title" content="The Matrix (1999) - IMDb">'
        + json_ld({"@type": "Movie", "name": "The Matrix", "datePublished": "1999-03-31"})
    )
    facts = extract_page_facts(html)
    assert (facts.title, facts.year, facts.kind) == ("The Matrix", 1999, MediaKind.MOVIE)


def test_json_ld_used_when_og_missing():
    html = page(head=json_ld({"@type": "TVMiniSeries", "name": "Chernobyl", "datePublished": "2019-05-06"}))
    facts = extract_page_facts(html)
    assert (facts.title, facts.year, facts.kind) == ("Chernobyl", 2019, MediaKind.SERIES)


def test_fields_can_come_from_different_strategies():
    html = page(
        body=(
            '<h1 data-testid="hero__pageTitle"><span>Dune</span></h1>'
            '<a href="/title/tt1160419/releaseinfo?ref_=tt_ov_rdat">2021</a>'
        )
    )
    facts = extract_page_facts(html)
    assert facts.title == "Dune"
    assert facts.year == 2021
    assert facts.kind is None


def test_broken_json_ld_is_ignored():
    html = page(
        head='<script type="application/ld+json">{not json</script>',
        body='<h1 data-testid="hero__pageTitle">Heat</h1>',
    )
    assert extract_page_facts(html).title == "Heat"


def test_individual_strategies():
    soup = BeautifulSoup(
        page(
            body=(
                '<h1 data-testid="hero__pageTitle">Dark</h1>'
                '<a href="/title/tt5753856/releaseinfo">TV-MA</a>'
                '<a data-testid="hero-subnav-bar-series-episode-guide-button" href="#">Episode guide</a>'
            )
        ),
        "html.parser",
    )
    assert title_from_heading(soup) == "Dark"
    assert year_from_release_link(soup) is None
    assert kind_from_subnav(soup) is MediaKind.SERIES


def test_empty_page_has_no_facts():
    facts = extract_page_facts(page())
    assert facts.title is None and facts.year is None and facts.kind is None
