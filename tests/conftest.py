"""Shared fixtures for the blog viewer tests."""

from typing import Callable

import httpx
import pytest

from blogview.github.client import GitHubClient


@pytest.fixture
def make_client() -> Callable[..., GitHubClient]:
    """Build a GitHubClient whose requests are answered by `handler`."""

    def factory(handler, token=None) -> GitHubClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GitHubClient(token=token, http_client=http_client)

    return factory
