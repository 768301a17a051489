import pytest

from bgsubs.errors import MalformedIdentifier
from bgsubs.metadata import normalize_year, parse_media_id
from bgsubs.models import MediaKind, MediaReference


def test_parse_movie_id():
    ref = parse_media_id("tt0133093")
    assert ref == MediaReference("tt0133093", MediaKind.MOVIE)
    assert ref.season is None and ref.episode is None


def test_parse_series_id():
    ref = parse_media_id("tt0944947:1:2")
    assert ref.canonical_id == "tt0944947"
    assert ref.kind is MediaKind.SERIES
    assert (ref.season, ref.episode) == (1, 2)


def test_parse_encoded_once_and_twice():
    assert parse_media_id("tt0944947%3A1%3A2") == parse_media_id("tt0944947:1:2")
    assert parse_media_id("tt0944947%253A1%253A2") == parse_media_id("tt0944947:1:2")


def test_parse_strips_json_suffix():
    assert parse_media_id("tt0133093.json").canonical_id == "tt0133093"
    assert parse_media_id("tt0903747:2:3.json").episode == 3


def test_extra_segments_are_ignored():
    ref = parse_media_id("tt0903747:1:5:extra")
    assert (ref.season, ref.episode) == (1, 5)


@pytest.mark.parametrize(
    "raw",
    ["", "   ", "tt0944947:1", "tt0944947:x:2", "tt0944947:1:0", "tt0944947:-1:2", ":1:2"],
)
def test_parse_rejects_malformed(raw):
    with pytest.raises(MalformedIdentifier):
        parse_media_id(raw)


def test_malformed_identifier_is_a_value_error():
    with pytest.raises(ValueError):
        parse_media_id("tt1:2")


def test_reference_invariants():
    with pytest.raises(ValueError):
        MediaReference("tt1", MediaKind.SERIES, season=1)
    with pytest.raises(ValueError):
        MediaReference("tt1", MediaKind.MOVIE, season=1, episode=1)


@pytest.mark.parametrize(
    "raw,expected",
    [(1999, 1999), ("2008–2013", 2008), ("2019-05-01", 2019), (None, None), ("", None), ("n/a", None)],
)
def test_normalize_year(raw, expected):
    assert normalize_year(raw) == expected
