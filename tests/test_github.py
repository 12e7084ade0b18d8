from unittest.mock import MagicMock

import pytest
import requests

from zemon.errors import RateLimitedError, RepoNotFoundError, TransportError
from zemon.github import GitHubClient, GitHubTranslator, validate_url


def make_response(status_code=200, json_data=None, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.text = ""
    response.json.return_value = json_data
    return response


REPO_PAYLOAD = {
    "name": "octo",
    "owner": {"login": "octocat"},
    "description": "An octopus",
    "stargazers_count": 120,
    "forks_count": 8,
    "language": "Go",
    "topics": ["cli", "tools"],
    "html_url": "https://github.com/octocat/octo",
}


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("https://github.com/octocat/octo", ("octocat", "octo")),
        ("http://www.github.com/octocat/octo.git", ("octocat", "octo")),
        ("https://github.com/octocat/octo/tree/main/src", ("octocat", "octo")),
        ("  https://github.com/a-b/c.d_e  ", ("a-b", "c.d_e")),
    ],
)
def test_validate_url_accepts_repository_urls(raw, expected):
    ref = validate_url(raw)
    assert (ref.owner, ref.name) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "https://gitlab.com/octocat/octo",
        "https://github.com/octocat",
        "github.com/octocat/octo",
        "not a url",
        "",
        None,
    ],
)
def test_validate_url_rejects_everything_else(raw):
    assert validate_url(raw) is None


def test_html_url_is_canonical():
    assert validate_url("http://www.github.com/octocat/octo.git/").html_url == "https://github.com/octocat/octo"


def test_translator_fills_defaults():
    metadata = GitHubTranslator.to_metadata({"name": "x", "owner": {"login": "y"}, "description": None}, 0)
    assert metadata.description == ""
    assert metadata.language is None
    assert metadata.topics == []
    assert metadata.github_url == "https://github.com/y/x"


def test_fetch_metadata_counts_contributors_from_link_header():
    session = MagicMock()
    session.get.side_effect = [
        make_response(json_data=REPO_PAYLOAD),
        make_response(
            json_data=[{"login": "first"}],
            headers={
                "Link": '<https://api.github.com/repositories/1/contributors?per_page=1&anon=true&page=2>; rel="next", '
                        '<https://api.github.com/repositories/1/contributors?per_page=1&anon=true&page=57>; rel="last"'
            },
        ),
    ]
    client = GitHubClient(token="secret", session=session)

    metadata = client.fetch_metadata("octocat", "octo")

    assert metadata.stars == 120
    assert metadata.forks == 8
    assert metadata.contributors == 57
    assert metadata.language == "Go"
    assert metadata.topics == ["cli", "tools"]
    first_call = session.get.call_args_list[0]
    assert first_call.args[0] == "https://api.github.com/repos/octocat/octo"
    assert first_call.kwargs["headers"]["Authorization"] == "Bearer secret"


def test_fetch_metadata_single_page_of_contributors():
    session = MagicMock()
    session.get.side_effect = [
        make_response(json_data=REPO_PAYLOAD),
        make_response(json_data=[{"login": "solo"}]),
    ]
    assert GitHubClient(session=session).fetch_metadata("octocat", "octo").contributors == 1


def test_empty_repository_has_no_contributors():
    session = MagicMock()
    session.get.side_effect = [make_response(json_data=REPO_PAYLOAD), make_response(status_code=204)]
    assert GitHubClient(session=session).fetch_metadata("octocat", "octo").contributors == 0


def test_missing_repository():
    session = MagicMock()
    session.get.return_value = make_response(status_code=404)
    with pytest.raises(RepoNotFoundError):
        GitHubClient(session=session).fetch_metadata("octocat", "nope")


def test_rate_limited():
    session = MagicMock()
    session.get.return_value = make_response(
        status_code=403, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"}
    )
    with pytest.raises(RateLimitedError) as excinfo:
        GitHubClient(session=session).fetch_metadata("octocat", "octo")
    assert excinfo.value.status_code == 429
    assert excinfo.value.reset_at == "1700000000"


def test_forbidden_without_rate_limit_is_transport_error():
    session = MagicMock()
    session.get.return_value = make_response(status_code=403, headers={"X-RateLimit-Remaining": "12"})
    with pytest.raises(TransportError):
        GitHubClient(session=session).fetch_metadata("octocat", "octo")


def test_network_failure():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("boom")
    with pytest.raises(TransportError) as excinfo:
        GitHubClient(session=session).fetch_metadata("octocat", "octo")
    assert excinfo.value.status_code == 502


def test_invalid_json_body():
    session = MagicMock()
    response = make_response()
    response.json.side_effect = ValueError("no json")
    session.get.return_value = response
    with pytest.raises(TransportError):
        GitHubClient(session=session).fetch_metadata("octocat", "octo")
