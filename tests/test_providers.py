import httpx
import pytest

from enjoyrecord.services.providers import (
    ConfigurationError,
    GoogleBooksProvider,
    InvalidToken,
    NeoDBProvider,
    OMDbProvider,
    OpenLibraryProvider,
    ParseError,
    RawgProvider,
    SteamProvider,
    TMDBProvider,
    UpstreamHTTPError,
    UpstreamTimeout,
    redact_url,
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _json(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


def test_redact_url_hides_every_key_param():
    url = "https://api.example.com/search?query=x&api_key=SECRET1&apikey=SECRET2&key=SECRET3"
    redacted = redact_url(url)
    assert "SECRET" not in redacted
    assert "api_key=REDACTED" in redacted
    assert "apikey=REDACTED" in redacted
    assert "key=REDACTED" in redacted
    assert "query=x" in redacted


def test_redact_url_leaves_plain_urls_alone():
    assert redact_url("https://openlibrary.org/search.json?q=dune") == (
        "https://openlibrary.org/search.json?q=dune"
    )


@pytest.mark.anyio
async def test_open_library_sends_pinyin_and_maps_docs():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["q"] = request.url.params["q"]
        return _json(
            {
                "docs": [
                    {
                        "key": "/works/OL1W",
                        "title": "The Three-Body Problem",
                        "author_name": ["Liu Cixin", "Ken Liu"],
                        "publish_year": [2014, 2008],
                        "cover_i": 123,
                    },
                    {"key": "/works/OL2W", "title": "   "},
                    {"key": "/works/OL3W", "title": "Ball Lightning", "first_publish_year": 2004},
                    {"key": "/works/OL4W", "title": "Supernova Era"},
                ]
            }
        )

    async with _client(handler) as client:
        items = await OpenLibraryProvider(client).search("三体")

    assert seen["q"] == "san ti"
    # Only the first three rows are considered; the blank title is dropped.
    assert [i.title for i in items] == ["The Three-Body Problem", "Ball Lightning"]
    first = items[0]
    assert first.sources == ["openlibrary"]
    assert first.source_ids == {"openlibrary": "/works/OL1W"}
    assert first.type == "book"
    assert first.year == 2008
    assert first.summary == "作者：Liu Cixin / Ken Liu"
    assert first.cover_url == "https://covers.openlibrary.org/b/id/123-L.jpg"
    assert items[1].year == 2004
    assert items[1].cover_url is None


@pytest.mark.anyio
async def test_open_library_http_error_carries_status():
    async with _client(lambda request: _json({}, status_code=503)) as client:
        with pytest.raises(UpstreamHTTPError) as exc_info:
            await OpenLibraryProvider(client).search("dune")

    assert exc_info.value.status_code == 503
    assert "503" in exc_info.value.message


@pytest.mark.anyio
async def test_open_library_unparseable_body():
    async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
        with pytest.raises(ParseError):
            await OpenLibraryProvider(client).search("dune")


@pytest.mark.anyio
async def test_open_library_missing_docs_is_parse_error():
    async with _client(lambda request: _json({"numFound": 0})) as client:
        with pytest.raises(ParseError):
            await OpenLibraryProvider(client).search("dune")


@pytest.mark.anyio
async def test_timeout_becomes_upstream_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with _client(handler) as client:
        with pytest.raises(UpstreamTimeout) as exc_info:
            await OpenLibraryProvider(client).search("dune")

    assert exc_info.value.provider == "openlibrary"


@pytest.mark.anyio
async def test_tmdb_movie_search_maps_results():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return _json(
            {
                "results": [
                    {
                        "id": 157336,
                        "title": "星际穿越",
                        "original_title": "Interstellar",
                        "release_date": "2014-11-05",
                        "poster_path": "/gEU2Q.jpg",
                        "overview": "宇宙探索。",
                    }
                ]
            }
        )

    async with _client(handler) as client:
        items = await TMDBProvider(client, kind="movie", api_key="tmdb-key").search("星际穿越")

    assert seen["path"] == "/3/search/movie"
    assert seen["params"] == {"query": "星际穿越", "language": "zh-CN", "api_key": "tmdb-key"}
    assert len(items) == 1
    item = items[0]
    assert item.type == "film"
    assert item.source_ids == {"tmdb": "157336"}
    assert item.original_title == "Interstellar"
    assert item.year == 2014
    assert item.cover_url == "https://image.tmdb.org/t/p/w500/gEU2Q.jpg"
    assert item.summary == "宇宙探索。"


@pytest.mark.anyio
async def test_tmdb_tv_uses_name_and_first_air_date():
    async with _client(
        lambda request: _json(
            {"results": [{"id": 1396, "name": "绝命毒师", "original_name": "Breaking Bad", "first_air_date": "2008-01-20"}]}
        )
    ) as client:
        items = await TMDBProvider(client, kind="tv", api_key="k").search("绝命毒师")

    assert items[0].type == "series"
    assert items[0].title == "绝命毒师"
    assert items[0].original_title == "Breaking Bad"
    assert items[0].year == 2008
    assert items[0].cover_url is None


@pytest.mark.anyio
async def test_missing_key_raises_configuration_error_without_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with _client(handler) as client:
        provider = TMDBProvider(client, kind="movie", api_key=None)
        assert provider.config_error is not None
        with pytest.raises(ConfigurationError) as exc_info:
            await provider.search("x")

    assert exc_info.value.message == "缺少 TMDB_API_KEY"


@pytest.mark.anyio
async def test_omdb_response_false_is_empty():
    async with _client(lambda request: _json({"Response": "False", "Error": "Movie not found!"})) as client:
        items = await OMDbProvider(client, kind="movie", api_key="k").search("nothing")

    assert items == []


@pytest.mark.anyio
async def test_omdb_maps_search_rows():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return _json(
            {
                "Search": [
                    {"Title": "Interstellar", "Year": "2014", "imdbID": "tt0816692", "Poster": "http://img/p.jpg"},
                    {"Title": "Interstellar Wars", "Year": "2016–", "imdbID": "tt5083736", "Poster": "N/A"},
                ],
                "Response": "True",
            }
        )

    async with _client(handler) as client:
        items = await OMDbProvider(client, kind="series", api_key="omdb-key").search("Interstellar")

    assert seen["params"] == {"apikey": "omdb-key", "s": "Interstellar", "type": "series"}
    assert [i.type for i in items] == ["series", "series"]
    assert items[0].cover_url == "https://img/p.jpg"
    assert items[1].cover_url is None
    assert items[1].year == 2016


@pytest.mark.anyio
async def test_rawg_search_and_popular():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(dict(request.url.params))
        return _json(
            {
                "results": [
                    {
                        "id": 3328,
                        "name": "The Witcher 3",
                        "released": "2015-05-18",
                        "background_image": "https://media.rawg.io/w3.jpg",
                        "genres": [{"name": "Action"}, {"name": "RPG"}],
                    }
                ]
            }
        )

    async with _client(handler) as client:
        provider = RawgProvider(client, api_key="rawg-key")
        items = await provider.search("witcher")
        popular = await provider.popular()

    assert seen[0] == {"search": "witcher", "page_size": "3", "key": "rawg-key"}
    assert seen[1] == {"ordering": "-added", "page_size": "3", "key": "rawg-key"}
    assert items[0].summary == "Action / RPG"
    assert items[0].year == 2015
    assert popular[0].source_ids == {"rawg": "3328"}


@pytest.mark.anyio
async def test_steam_search_uses_chinese_storefront():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return _json({"total": 1, "items": [{"id": 292030, "name": "巫师 3：狂猎", "tiny_image": "http://cdn/w3.jpg"}]})

    async with _client(handler) as client:
        items = await SteamProvider(client).search("巫师")

    assert seen["params"] == {"term": "巫师", "l": "schinese", "cc": "cn"}
    assert items[0].source_ids == {"steam": "292030"}
    assert items[0].summary == "来源：Steam"
    assert items[0].cover_url == "https://cdn/w3.jpg"
    assert items[0].year is None


@pytest.mark.anyio
async def test_google_books_without_items_is_empty():
    async with _client(lambda request: _json({"kind": "books#volumes", "totalItems": 0})) as client:
        assert await GoogleBooksProvider(client).search("nothing") == []


@pytest.mark.anyio
async def test_google_books_maps_volume_info():
    async with _client(
        lambda request: _json(
            {
                "items": [
                    {
                        "id": "vol1",
                        "volumeInfo": {
                            "title": "活着",
                            "authors": ["余华"],
                            "publishedDate": "1993-06",
                            "imageLinks": {"thumbnail": "http://books.google.com/t.jpg"},
                        },
                    }
                ]
            }
        )
    ) as client:
        items = await GoogleBooksProvider(client).search("活着")

    assert items[0].summary == "作者：余华"
    assert items[0].year == 1993
    assert items[0].cover_url == "https://books.google.com/t.jpg"


@pytest.mark.anyio
async def test_neodb_search_sends_bearer_and_category():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        seen["params"] = dict(request.url.params)
        return _json(
            {
                "data": [
                    {
                        "uuid": "4Gh0t",
                        "category": "movie",
                        "display_title": "花样年华",
                        "orig_title": "In the Mood for Love",
                        "year": 2000,
                        "brief": "1962 年的香港。",
                        "cover_image_url": "https://neodb.social/m/cover.jpg",
                    },
                    {"uuid": "blank", "title": ""},
                ]
            }
        )

    async with _client(handler) as client:
        items = await NeoDBProvider(client, media_type="film", token=" tok ").search("花样年华")

    assert seen["auth"] == "Bearer tok"
    assert seen["params"] == {"query": "花样年华", "category": "movie"}
    assert len(items) == 1
    assert items[0].type == "film"
    assert items[0].title == "花样年华"
    assert items[0].original_title == "In the Mood for Love"
    assert items[0].source_ids == {"neodb": "4Gh0t"}


@pytest.mark.anyio
async def test_neodb_search_without_type_reads_category():
    async with _client(
        lambda request: _json({"data": [{"api_url": "/api/game/7xYz", "category": "game", "title": "Hades"}]})
    ) as client:
        items = await NeoDBProvider(client).search("hades")

    assert items[0].type == "game"
    assert items[0].source_ids == {"neodb": "7xYz"}


@pytest.mark.anyio
async def test_neodb_unauthorized_is_invalid_token():
    async with _client(lambda request: _json({"detail": "bad token"}, status_code=401)) as client:
        with pytest.raises(InvalidToken) as exc_info:
            await NeoDBProvider(client, token="bad").search("x")

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "NeoDB API Token 无效，请检查设置"


@pytest.mark.anyio
async def test_neodb_other_status_is_api_error():
    async with _client(lambda request: _json({}, status_code=500)) as client:
        with pytest.raises(UpstreamHTTPError) as exc_info:
            await NeoDBProvider(client).search("x")

    assert exc_info.value.message == "NeoDB API error: 500"


@pytest.mark.anyio
async def test_neodb_non_list_data_is_empty():
    async with _client(lambda request: _json({"data": None})) as client:
        assert await NeoDBProvider(client).search("x") == []


@pytest.mark.anyio
async def test_provider_logs_redacted_url(caplog):
    caplog.set_level("INFO", logger="enjoyrecord.services.providers.base")

    async with _client(lambda request: _json({"results": []})) as client:
        await TMDBProvider(client, kind="movie", api_key="very-secret").search("x")

    urls = [getattr(r, "url", "") for r in caplog.records]
    assert urls
    assert all("very-secret" not in u for u in urls)
    assert any("REDACTED" in u for u in urls)


@pytest.mark.anyio
async def test_unmappable_row_becomes_parse_error():
    class BrokenTMDB(TMDBProvider):
        def map_item(self, row):
            raise ValueError("bad row")

    payload = {"results": [{"id": 1, "title": "X"}]}
    async with _client(lambda request: _json(payload)) as client:
        with pytest.raises(ParseError) as exc_info:
            await BrokenTMDB(client, kind="movie", api_key="k").search("x")

    assert exc_info.value.provider == "tmdb"
    assert isinstance(exc_info.value.__cause__, ValueError)


@pytest.mark.anyio
async def test_tmdb_nan_release_date_leaves_year_empty():
    body = b'{"results": [{"id": 1, "title": "X", "release_date": NaN}]}'

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body, headers={"content-type": "application/json"})

    async with _client(handler) as client:
        items = await TMDBProvider(client, kind="movie", api_key="k").search("x")

    assert [(i.title, i.year) for i in items] == [("X", None)]
