"""Tests for the REST side of the hosting API client."""

import httpx
import pytest

from blogview.github.client import clamp_per_page, encode_path
from blogview.github.errors import (
    AuthenticationError,
    ForbiddenError,
    GitHubAPIError,
    NetworkError,
    NotFoundError,
)


def rest_commit(sha: str, date: str = "2024-01-02T03:04:05Z", author: str = "Ada", message: str = "Update post"):
    """A commit record shaped like the REST commits endpoint returns it."""
    return {
        "sha": sha,
        "commit": {
            "author": {"name": author, "date": date},
            "committer": {"name": author, "date": date},
            "message": message,
        },
    }


NEXT_LINK = '<https://api.github.com/repositories/1/commits?page=2>; rel="next", <https://api.github.com/repositories/1/commits?page=2>; rel="last"'


def test_encode_path_encodes_each_segment():
    """Segments are encoded individually while the separators survive."""
    assert encode_path("docs/a.md") == "docs/a.md"
    assert encode_path("文章/my post.md") == "%E6%96%87%E7%AB%A0/my%20post.md"


@pytest.mark.parametrize("requested, expected", [(0, 1), (-5, 1), (1, 1), (100, 100), (500, 500), (1000, 500)])
def test_clamp_per_page(requested, expected):
    assert clamp_per_page(requested) == expected


@pytest.mark.asyncio
async def test_get_file_commits_returns_record_unmodified(make_client):
    """A single fetch hands back the API's records untouched."""
    record = {"sha": "abc123", "committedDate": "2024-01-02T03:04:05Z"}
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[record])

    async with make_client(handler) as client:
        commits = await client.get_file_commits("octo", "blog", "docs/a.md", "main")

    assert commits == [record]
    request = seen[0]
    assert request.url.path == "/repos/octo/blog/commits"
    assert request.url.params["path"] == "docs/a.md"
    assert request.url.params["ref"] == "main"
    assert request.url.params["per_page"] == "1"
    assert request.headers["User-Agent"] == "Blog-App"
    assert request.headers["Accept"] == "application/json"
    assert "Authorization" not in request.headers


@pytest.mark.asyncio
async def test_token_is_sent_as_authorization_header(make_client):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    async with make_client(handler, token="s3cret") as client:
        await client.get_file_commits("octo", "blog", "docs/a.md", "main")

    assert seen[0].headers["Authorization"] == "token s3cret"


@pytest.mark.asyncio
async def test_non_ascii_path_is_percent_encoded(make_client):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    async with make_client(handler) as client:
        await client.get_file_commits("octo", "blog", "文章/my post.md", "main")

    assert seen[0].url.params["path"] == "文章/my post.md"
    assert b"my%20post.md" in seen[0].url.query


@pytest.mark.asyncio
async def test_not_found_message_contains_path(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Not Found"})

    async with make_client(handler) as client:
        with pytest.raises(NotFoundError) as exc_info:
            await client.get_file_commits("octo", "blog", "posts/gone.md", "main")

    assert "posts/gone.md" in str(exc_info.value)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_forbidden_is_distinguished(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "API rate limit exceeded"})

    async with make_client(handler) as client:
        with pytest.raises(ForbiddenError) as exc_info:
            await client.get_file_commits("octo", "blog", "docs/a.md", "main")

    assert "token" in str(exc_info.value)


@pytest.mark.asyncio
async def test_other_status_reports_status_text(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    async with make_client(handler) as client:
        with pytest.raises(GitHubAPIError) as exc_info:
            await client.get_file_commits("octo", "blog", "docs/a.md", "main")

    assert not isinstance(exc_info.value, (NotFoundError, ForbiddenError))
    assert str(exc_info.value) == "failed to fetch commits: Internal Server Error"


@pytest.mark.asyncio
async def test_transport_failure_raises_network_error(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(NetworkError):
            await client.get_file_commits("octo", "blog", "docs/a.md", "main")


@pytest.mark.asyncio
async def test_batch_follows_pagination_until_empty_page(make_client):
    """A full first page with a next link is followed by an empty second page."""
    pages = []

    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        pages.append(page)
        if page == 1:
            records = [rest_commit(f"sha{i}") for i in range(100)]
            return httpx.Response(200, json=records, headers={"Link": NEXT_LINK})
        return httpx.Response(200, json=[])

    async with make_client(handler) as client:
        results = await client.batch_get_file_commits("octo", "blog", ["docs/a.md"], "main")

    assert pages == [1, 2]
    assert len(results) == 1
    assert results[0].path == "docs/a.md"
    assert results[0].total == 100
    assert results[0].error is None


@pytest.mark.asyncio
async def test_batch_stops_without_next_link(make_client):
    pages = []

    def handler(request: httpx.Request) -> httpx.Response:
        pages.append(int(request.url.params["page"]))
        return httpx.Response(200, json=[rest_commit("a"), rest_commit("b")])

    async with make_client(handler) as client:
        results = await client.batch_get_file_commits("octo", "blog", ["docs/a.md"], "main", per_page=2)

    assert pages == [1]
    assert results[0].total == 2
    assert [c["sha"] for c in results[0].commits] == ["a", "b"]


@pytest.mark.asyncio
async def test_batch_clamps_per_page(make_client):
    sizes = []

    def handler(request: httpx.Request) -> httpx.Response:
        sizes.append(request.url.params["per_page"])
        return httpx.Response(200, json=[])

    async with make_client(handler) as client:
        await client.batch_get_file_commits("octo", "blog", ["a.md"], "main", per_page=1000)
        await client.batch_get_file_commits("octo", "blog", ["a.md"], "main", per_page=0)

    assert sizes == ["500", "1"]


@pytest.mark.asyncio
async def test_batch_isolates_failures_per_path(make_client):
    """One missing path reports its error while the others succeed."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.params["path"]
        if path == "posts/gone.md":
            return httpx.Response(404)
        if path == "posts/offline.md":
            raise httpx.ReadTimeout("timed out", request=request)
        return httpx.Response(200, json=[rest_commit(path)])

    paths = ["posts/a.md", "posts/gone.md", "posts/offline.md", "posts/b.md"]
    async with make_client(handler) as client:
        results = await client.batch_get_file_commits("octo", "blog", paths, "main")

    assert [r.path for r in results] == paths

    by_path = {r.path: r for r in results}
    assert by_path["posts/a.md"].total == 1
    assert by_path["posts/b.md"].error is None

    gone = by_path["posts/gone.md"]
    assert gone.commits == []
    assert gone.total == 0
    assert "posts/gone.md" in gone.error

    offline = by_path["posts/offline.md"]
    assert offline.total == 0
    assert offline.error.startswith("network error")
    assert offline.status_code is None
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_batch_isolates_decoding_errors(make_client):
    """A body that fails to decode only fails its own path."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["path"] == "bad.md":
            raise httpx.DecodingError("bad gzip", request=request)
        return httpx.Response(200, json=[rest_commit("good")])

    async with make_client(handler) as client:
        results = await client.batch_get_file_commits("octo", "blog", ["good.md", "bad.md"], "main")

    good, bad = results
    assert good.path == "good.md"
    assert good.total == 1
    assert good.error is None
    assert bad.path == "bad.md"
    assert bad.error.startswith("network error")


@pytest.mark.asyncio
async def test_too_many_redirects_raises_network_error(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

    async with make_client(handler) as client:
        with pytest.raises(NetworkError):
            await client.get_file_commits("octo", "blog", "docs/a.md", "main")


@pytest.mark.asyncio
async def test_batch_with_no_paths(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with make_client(handler) as client:
        assert await client.batch_get_file_commits("octo", "blog", [], "main") == []


@pytest.mark.asyncio
async def test_get_user_info_requires_token(make_client):
    async with make_client(lambda request: httpx.Response(200, json={})) as client:
        with pytest.raises(ValueError):
            await client.get_user_info()


@pytest.mark.asyncio
async def test_get_user_info_returns_identity(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/user"
        return httpx.Response(200, json={"login": "octocat"})

    async with make_client(handler, token="s3cret") as client:
        assert await client.get_user_info() == {"login": "octocat"}


@pytest.mark.asyncio
async def test_get_user_info_wraps_failure_with_api_reason(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "Bad credentials"})

    async with make_client(handler, token="wrong") as client:
        with pytest.raises(AuthenticationError) as exc_info:
            await client.get_user_info()

    assert "Bad credentials" in str(exc_info.value)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_get_rate_limit(make_client):
    body = {"resources": {"core": {"limit": 60, "remaining": 59}}}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/rate_limit"
        return httpx.Response(200, json=body)

    async with make_client(handler) as client:
        assert await client.get_rate_limit() == body


@pytest.mark.asyncio
async def test_get_rate_limit_propagates_errors_unwrapped(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    async with make_client(handler) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await client.get_rate_limit()
