"""Tests for transcript, geocoding and thumbnail enrichment."""

import asyncio
import httpx
import pytest
from conftest import mock_client
from dcwatch.tools.captions import TranscriptFetcher, extract_caption_text, pick_track
from dcwatch.tools.geocoder import Geocoder, build_query
from dcwatch.tools.thumbnails import ThumbnailCache

CAPTION_XML = (
    '<?xml version="1.0" encoding="utf-8" ?><transcript>'
    '<text start="0.0" dur="2.1">The board will now hear</text>'
    '<text start="2.1" dur="3.0">comments on the  data\ncenter &amp;#39;rezoning&amp;#39;</text>'
    '<text start="5.1" dur="1.0">Q &amp;amp; A &lt;later&gt;</text>'
    '</transcript>'
)


class TestCaptionText:

    def test_decodes_and_collapses(self):
        text = extract_caption_text(CAPTION_XML)
        assert text == "The board will now hear comments on the data center 'rezoning' Q & A <later>"

    def test_no_segments(self):
        assert extract_caption_text("<transcript></transcript>") is None
        assert extract_caption_text("") is None

    def test_track_preference(self):
        tracks = [
            {"languageCode": "es", "baseUrl": "es"},
            {"languageCode": "en", "kind": "asr", "baseUrl": "en-asr"},
            {"languageCode": "en", "baseUrl": "en"},
        ]
        assert pick_track(tracks)["baseUrl"] == "en"
        assert pick_track(tracks[:2])["baseUrl"] == "en-asr"
        assert pick_track([{"languageCode": "fr", "kind": "asr", "baseUrl": "fr"}])["baseUrl"] == "fr"
        assert pick_track([]) is None


class TestTranscriptFetcher:

    def test_player_strategy(self):
        def handler(request):
            if request.url.path.endswith("/player"):
                return httpx.Response(200, json={"captions": {"playerCaptionsTracklistRenderer": {
                    "captionTracks": [{"languageCode": "en", "baseUrl": "https://www.youtube.com/api/timedtext?x=1"}]
                }}})
            return httpx.Response(200, text=CAPTION_XML)

        text = asyncio.run(TranscriptFetcher(mock_client(handler)).fetch("vid1"))
        assert text.startswith("The board will now hear")

    def test_falls_back_to_asr(self):
        calls = []

        def handler(request):
            calls.append(request.url)
            if request.url.path.endswith("/player"):
                return httpx.Response(403)
            if request.url.params.get("kind") == "asr":
                return httpx.Response(200, text='<transcript><text start="0">auto words</text></transcript>')
            return httpx.Response(200, text="")

        text = asyncio.run(TranscriptFetcher(mock_client(handler)).fetch("vid1"))
        assert text == "auto words"
        assert len(calls) == 3

    def test_all_strategies_fail(self):
        def handler(request):
            raise httpx.ConnectError("offline")

        assert asyncio.run(TranscriptFetcher(mock_client(handler)).fetch("vid1")) is None


class TestGeocoder:

    def test_query_prefers_city(self):
        assert build_query("Ashburn", "Loudoun", "VA") == "Ashburn, VA"
        assert build_query(None, "Loudoun", "VA") == "Loudoun, VA"
        assert build_query(None, None, "VA") is None

    def test_state_only_makes_no_call(self):
        calls = []
        geocoder = Geocoder("key", mock_client(lambda r: calls.append(r) or httpx.Response(500)))
        assert asyncio.run(geocoder.geocode(None, None, "TX")) is None
        assert calls == []

    def test_missing_key(self):
        calls = []
        geocoder = Geocoder(None, mock_client(lambda r: calls.append(r) or httpx.Response(500)))
        assert asyncio.run(geocoder.geocode("Ashburn", None, "VA")) is None
        assert calls == []

    def test_first_result_used(self):
        def handler(request):
            assert request.url.params["q"] == "Ashburn, VA"
            return httpx.Response(200, json={"results": [
                {"location": {"lat": 39.04, "lng": -77.48}},
                {"location": {"lat": 1.0, "lng": 2.0}},
            ]})

        coords = asyncio.run(Geocoder("key", mock_client(handler)).geocode("Ashburn", "Loudoun", "VA"))
        assert coords.latitude == pytest.approx(39.04)
        assert coords.longitude == pytest.approx(-77.48)

    @pytest.mark.parametrize("response", [
        httpx.Response(200, json={"results": []}),
        httpx.Response(422, json={"error": "bad"}),
        httpx.Response(200, text="not json"),
    ])
    def test_failures_are_absent(self, response):
        geocoder = Geocoder("key", mock_client(lambda r: response))
        assert asyncio.run(geocoder.geocode("Ashburn", None, "VA")) is None


class TestThumbnailCache:

    def test_downloads_once(self, tmp_path):
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(200, content=b"\xff\xd8jpeg")

        cache = ThumbnailCache(tmp_path / "thumbs", mock_client(handler))
        first = asyncio.run(cache.ensure("abc123", "https://i.ytimg.com/abc123/hq.jpg"))
        second = asyncio.run(cache.ensure("abc123", "https://i.ytimg.com/abc123/hq.jpg"))
        assert first == second == str(tmp_path / "thumbs" / "abc123.jpg")
        assert len(calls) == 1
        assert (tmp_path / "thumbs" / "abc123.jpg").read_bytes() == b"\xff\xd8jpeg"

    def test_http_error_leaves_no_file(self, tmp_path):
        cache = ThumbnailCache(tmp_path, mock_client(lambda r: httpx.Response(404)))
        assert asyncio.run(cache.ensure("gone", "https://i.ytimg.com/gone/hq.jpg")) is None
        assert list(tmp_path.iterdir()) == []

    def test_network_error(self, tmp_path):
        def handler(request):
            raise httpx.ReadTimeout("slow")

        cache = ThumbnailCache(tmp_path, mock_client(handler))
        assert asyncio.run(cache.ensure("slow", "https://i.ytimg.com/slow/hq.jpg")) is None

    def test_unsafe_id_skipped(self, tmp_path):
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(200, content=b"jpeg")

        cache = ThumbnailCache(tmp_path, mock_client(handler))
        assert asyncio.run(cache.ensure("a/b", "https://i.ytimg.com/ab/hq.jpg")) is None
        assert asyncio.run(cache.ensure("ab", "https://i.ytimg.com/ab/hq.jpg")) == str(tmp_path / "ab.jpg")
        assert len(calls) == 1
        with pytest.raises(ValueError):
            cache.path_for("../ab")
