import json

import pytest

from bgsubs import cli
from bgsubs.errors import UnknownProvider
from bgsubs.models import MediaKind, MediaMetadata, MediaReference, NormalizedSubtitle, SubtitleRecord


class FakeService:
    def __init__(self, settings=None):
        self.settings = settings

    def parse(self, composite_id):
        return MediaReference("tt0133093", MediaKind.MOVIE)

    def resolve(self, composite_id):
        return MediaMetadata("The Matrix", 1999, MediaKind.MOVIE)

    async def search_all(self, metadata, season=None, episode=None, imdb_id=None):
        return [SubtitleRecord("subsunacs", "Subsunacs", "12345", "The Matrix", frame_rate="25")]

    async def subtitles_for(self, composite_id, ctx):
        return [{"id": "subsunacs-12345-0", "url": f"{ctx.base_url}/subtitle/subsunacs/12345.srt"}]

    def fetch(self, provider, external_id):
        if provider != "subsunacs":
            raise UnknownProvider(f"unknown provider {provider!r}")
        return NormalizedSubtitle(text="1\n00:00:01,000 --> 00:00:02,000\nЗдравей\n", encoding="cp1251")


@pytest.fixture(autouse=True)
def fake_service(monkeypatch, settings):
    monkeypatch.setattr(cli, "SubtitleService", FakeService)
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)


def test_resolve_prints_json(capsys):
    assert cli.main(["resolve", "tt0133093"]) == 0
    assert json.loads(capsys.readouterr().out) == {"title": "The Matrix", "year": 1999, "kind": "movie"}


def test_search_lists_records(capsys):
    assert cli.main(["search", "tt0133093"]) == 0
    out = capsys.readouterr().out
    assert "The Matrix (1999) [movie]: 1 subtitle(s)" in out
    assert "subsunacs/12345  [Subsunacs] The Matrix [25fps]" in out


def test_search_json_uses_base_url(capsys):
    assert cli.main(["search", "tt0133093", "--json", "--base-url", "https://addon.test/"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["subtitles"][0]["url"] == "https://addon.test/subtitle/subsunacs/12345.srt"


def test_fetch_writes_file(tmp_path, capsys):
    target = tmp_path / "matrix.srt"
    assert cli.main(["fetch", "subsunacs", "12345", "-o", str(target)]) == 0
    assert target.read_bytes().decode("utf-8").endswith("Здравей\n")
    assert "encoding=cp1251" in capsys.readouterr().err


def test_fetch_to_stdout(capsys):
    assert cli.main(["fetch", "subsunacs", "12345"]) == 0
    assert capsys.readouterr().out.startswith("1\n00:00:01,000")


def test_errors_exit_with_one(capsys):
    assert cli.main(["fetch", "opensubtitles", "1"]) == 1
    assert "UnknownProvider" in capsys.readouterr().err
