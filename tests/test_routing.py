import pytest

from webserv.routing import (
    DEFAULT_ENDPOINTS,
    EndpointError,
    Location,
    ServerConfig,
    allow_header,
    match_endpoint,
    match_location,
    normalise_segments,
)


@pytest.fixture
def config():
    return ServerConfig(
        root="/srv",
        exact_loc={"/exact": Location("/exact", root="/e")},
        prefer_loc={"/img": Location("/img"), "/img/big": Location("/img/big")},
        prefix_loc={"/": Location("/"), "/docs": Location("/docs")},
    )


def test_exact_match_wins(config):
    assert match_location(config, "/exact") is config.exact_loc["/exact"]


def test_preferred_prefix_longest(config):
    assert match_location(config, "/img/big/x.png") is config.prefer_loc["/img/big"]
    assert match_location(config, "/img/small.png") is config.prefer_loc["/img"]


def test_prefix_fallback(config):
    assert match_location(config, "/docs/readme") is config.prefix_loc["/docs"]
    assert match_location(config, "/other") is config.prefix_loc["/"]


def test_no_location():
    cfg = ServerConfig(prefix_loc={"/docs": Location("/docs")})
    assert match_location(cfg, "/other") is None


def test_empty_prefix_never_matches():
    cfg = ServerConfig(prefix_loc={"": Location("")})
    assert match_location(cfg, "/any") is None


def test_normalise_empty_is_root():
    assert normalise_segments("") == "/"
    assert normalise_segments("/../..") == "/"


def test_normalise_resolves_dots():
    assert normalise_segments("/a/./b/../c/") == "/a/c/"


@pytest.mark.parametrize("url", ["/a//b/./c", "x/y/../z/", "/srv/www/index.html"])
def test_normalise_idempotent(url):
    once = normalise_segments(url)
    assert normalise_segments(once) == once
    assert once.startswith("/")
    assert once.endswith("/") == url.endswith("/")


def test_endpoint_longest_match():
    assert match_endpoint("/uploads/file.txt", "POST") == "/uploads"
    assert match_endpoint("/index.html", "GET") == "/"


def test_endpoint_boundary_requires_slash():
    # "/uploadsx" is not under "/uploads", so only "/" covers it
    with pytest.raises(EndpointError) as info:
        match_endpoint("/uploadsx", "POST")
    assert info.value.status == 405
    assert info.value.allowed == DEFAULT_ENDPOINTS["/"]


def test_endpoint_not_found():
    with pytest.raises(EndpointError) as info:
        match_endpoint("/x", "GET", {"/api": ("GET",)})
    assert info.value.status == 404
    assert info.value.allowed == ()


def test_endpoint_method_not_allowed():
    with pytest.raises(EndpointError) as info:
        match_endpoint("/login", "DELETE")
    assert info.value.status == 405
    assert info.value.allowed == DEFAULT_ENDPOINTS["/login"]


def test_allow_header():
    assert allow_header(DEFAULT_ENDPOINTS["/uploads"]) == "POST, DELETE, GET"
    assert allow_header([]) == ""