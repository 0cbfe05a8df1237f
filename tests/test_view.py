import io
from types import SimpleNamespace

import pytest

from iris.forward.base import ExternalRequest
from iris.forward.headers import HeaderMap
from iris.forward.view import FORWARDED_HEADERS, ForwardedRequest


@pytest.fixture
def original(make_incoming):
    return make_incoming(
        headers=[
            ("Cookie", "X"),
            ("Referer", "Y"),
            ("Authorization", "Z"),
        ]
    )


def test_path_without_query(original):
    view = ForwardedRequest.bodyless(original, "/app/page", "GET")

    assert view.path_info == "/app/page"
    assert view.query_string is None
    assert view.parameter_map == {}


def test_path_with_query(original):
    view = ForwardedRequest.bodyless(original, "/app/page?a=1&b=2", "GET")

    assert view.path_info == "/app/page"
    assert view.query_string == "a=1&b=2"
    assert view.parameter_map == {"a": ["1"], "b": ["2"]}


def test_only_first_question_mark_splits(original):
    view = ForwardedRequest.bodyless(original, "/p?q=a?b", "GET")

    assert view.path_info == "/p"
    assert view.query_string == "q=a?b"
    assert view.parameter_map == {"q": ["a?b"]}


def test_trailing_question_mark_gives_empty_query(original):
    view = ForwardedRequest.bodyless(original, "/p?", "GET")

    assert view.query_string == ""
    assert view.parameter_map == {}


def test_repeated_and_encoded_parameters(original):
    view = ForwardedRequest.bodyless(original, "/p?a=1&a=2&c=x+y&d=%41", "GET")

    assert view.parameter_map == {"a": ["1", "2"], "c": ["x y"], "d": ["A"]}


def test_malformed_query_degrades_to_partial_map(original):
    view = ForwardedRequest.bodyless(original, "/p?a=1&&b&=v", "GET")

    assert view.parameter_map["a"] == ["1"]
    assert view.parameter_map["b"] == [""]


@pytest.mark.parametrize("method", ["post", "Post", "POST"])
def test_method_is_upper_case(original, method):
    view = ForwardedRequest.with_body(original, "/p", method, "text/plain", b"x")

    assert view.method == "POST"


def test_headers_are_allowlisted(original):
    view = ForwardedRequest.bodyless(original, "/p", "GET")

    assert dict(view.header_map) == {"cookie": "X", "authorization": "Z"}
    assert dict(view.header_values_map) == {"cookie": ["X"], "authorization": ["Z"]}
    assert "referer" not in view.header_map
    assert "referer" not in view.header_values_map


def test_header_lookup_is_case_insensitive(original):
    view = ForwardedRequest.bodyless(original, "/p", "GET")

    assert view.header_map["Cookie"] == "X"
    assert view.header_values_map["AUTHORIZATION"] == ["Z"]


def test_missing_allowlisted_headers_are_omitted(make_incoming):
    original = make_incoming(headers=[("Cookie", "only")])
    view = ForwardedRequest.bodyless(original, "/p", "GET")

    assert list(view.header_map) == ["cookie"]
    assert "authorization" not in view.header_values_map


def test_multi_value_headers_keep_order(make_incoming):
    original = make_incoming(
        headers=[("Cookie", "a=1"), ("Cookie", "b=2"), ("Accept", "*/*")]
    )
    view = ForwardedRequest.bodyless(original, "/p", "GET")

    assert view.header_map["cookie"] == "a=1"
    assert view.header_values_map["cookie"] == ["a=1", "b=2"]
    assert len(view.header_values_map) == 1


def test_headers_are_captured_at_construction():
    header_map = {"cookie": "before", "referer": "r"}
    header_values_map = {"cookie": ["before"], "referer": ["r"]}
    original = SimpleNamespace(header_map=header_map, header_values_map=header_values_map)

    view = ForwardedRequest.bodyless(original, "/p", "GET")
    header_map["cookie"] = "after"
    header_map["authorization"] = "late"
    header_values_map["cookie"].append("after")

    assert dict(view.header_map) == {"cookie": "before"}
    assert view.header_values_map["cookie"] == ["before"]
    assert isinstance(view.header_map, HeaderMap)
    assert set(view.header_values_map) <= set(FORWARDED_HEADERS)


def test_bodyless_construction(original):
    view = ForwardedRequest.bodyless(original, "/p", "get")

    assert view.content_length == 0
    assert view.input_stream is None
    assert view.content_type is None


def test_body_bearing_construction(original):
    body = b'{"name": "value"}'
    view = ForwardedRequest.with_body(original, "/p", "put", "application/json", body)

    assert view.content_length == len(body)
    assert view.content_type == "application/json"

    stream = view.input_stream
    assert stream.read() == body
    assert view.input_stream is stream
    assert view.input_stream.read() == b""


def test_body_bearing_with_absent_body(original):
    view = ForwardedRequest.with_body(original, "/p", "POST", "text/plain", None)

    assert view.content_length == 0
    assert view.input_stream is None
    assert view.content_type == "text/plain"


def test_body_bearing_with_empty_body(original):
    view = ForwardedRequest.with_body(original, "/p", "POST", "text/plain", b"")

    assert view.content_length == 0
    assert isinstance(view.input_stream, io.BytesIO)
    assert view.input_stream.read() == b""


def test_body_is_copied(original):
    body = bytearray(b"abc")
    view = ForwardedRequest.with_body(original, "/p", "POST", "text/plain", body)
    body[0:1] = b"z"

    assert view.input_stream.read() == b"abc"


def test_request_path(original):
    view = ForwardedRequest.bodyless(original, "/x", "GET")

    assert view.servlet_path == ""
    assert view.request_path == "/x"


def test_request_path_gains_leading_slash(original):
    view = ForwardedRequest.bodyless(original, "x/y?z=1", "GET")

    assert view.path_info == "x/y"
    assert view.request_path == "/x/y"


def test_request_path_for_empty_path(original):
    view = ForwardedRequest.bodyless(original, "?a=1", "GET")

    assert view.path_info == ""
    assert view.request_path == "/"


def test_derived_fields_are_stable(original):
    view = ForwardedRequest.bodyless(original, "/app/page?a=1", "GET")

    first = (view.path_info, view.query_string, view.parameter_map, view.request_path)
    second = (view.path_info, view.query_string, view.parameter_map, view.request_path)

    assert first == second
    assert view.parameter_map is view.parameter_map


def test_text_decoding_is_not_supported(browser_request):
    assert browser_request.character_encoding == "ISO-8859-1"

    view = ForwardedRequest.with_body(
        browser_request,
        "/p",
        "POST",
        browser_request.content_type,
        browser_request.body,
    )

    assert view.character_encoding is None
    assert view.reader is None
    assert view.path_translated is None


def test_other_accessors_delegate_to_original(browser_request):
    view = ForwardedRequest.bodyless(browser_request, "/elsewhere", "GET")

    assert view.original is browser_request
    assert view.scheme == browser_request.scheme == "http"
    assert view.server_name == "example.org"
    assert view.server_port == browser_request.server_port
    assert view.context_path == browser_request.context_path
    assert view.remote_addr == "10.0.0.1"
    assert view.remote_host == browser_request.remote_host
    assert view.protocol == "HTTP/1.1"
    assert view.is_secure is False
    assert view.request_uri == "/app/form"
    assert view.request_url == browser_request.request_url
    assert view.attributes == browser_request.attributes
    assert view.request_id == browser_request.request_id


def test_view_is_a_request(original):
    view = ForwardedRequest.bodyless(original, "/p", "GET")

    assert isinstance(view, ExternalRequest)
    assert "GET" in repr(view)
