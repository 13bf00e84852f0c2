import pytest

from webserv.status import error_page, status_text


@pytest.mark.parametrize(
    "code, text",
    [
        (200, "OK"),
        (404, "Not Found"),
        (413, "Content Too Large"),
        (505, "HTTP Version Not Supported"),
        (511, "Network Authentication Required"),
    ],
)
def test_status_text_known(code, text):
    assert status_text(code) == text


def test_status_text_unknown():
    assert status_text(999) == "Unknown Status Code"
    assert status_text(-1) == "Unknown Status Code"


def test_error_page_from_table():
    assert error_page(404) == "<html><body><h1>404 Not Found</h1></body></html>"
    assert error_page(413) == "<html><body><h1>413 Content Too Large</h1></body></html>"


@pytest.mark.parametrize("code", [200, 201, 301, 400, 405, 411, 500, 502, 504])
def test_error_page_mentions_reason(code):
    page = error_page(code)
    assert page.startswith("<html><body><h1>")
    assert f"{code} {status_text(code)}" in page


def test_error_page_missing_code():
    assert error_page(418) == ""
    assert error_page(503) == ""