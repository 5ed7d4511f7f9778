"""Tests for RequestBuilder."""

import base64

import pytest
from httpchain import ConfigurationError, RequestBuilder, RequestConfig, ResponseFormat
from httpchain.http.builder import form_encode


class TestBuilderBasics:
    """Tests for method, url and immutability."""

    def test_method_uppercased(self):
        """Test the method is normalized to uppercase."""
        assert RequestBuilder("post", "https://example.com").descriptor.method == "POST"

    def test_unknown_method_rejected(self):
        """Test an unknown verb raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            RequestBuilder("FETCH", "https://example.com")

    def test_defaults(self):
        """Test descriptor defaults."""
        d = RequestBuilder("GET", "https://example.com").descriptor
        assert d.headers == ()
        assert d.body is None
        assert d.timeout_ms is None
        assert d.follow_redirects is True
        assert d.max_redirects == 5
        assert d.verify_ssl is True
        assert d.retry_count == 0
        assert d.retry_delay_ms == 1000
        assert d.response_format is ResponseFormat.AUTO
        assert d.user_agent.startswith("httpchain/")

    def test_setters_do_not_mutate(self):
        """Test each setter returns a new builder and leaves the original alone."""
        base = RequestBuilder("GET", "https://example.com")
        with_header = base.add_header("X-A", "1")
        assert base.descriptor.headers == ()
        assert with_header.descriptor.headers == (("X-A", "1"),)
        assert with_header is not base


class TestHeadersAndBody:
    """Tests for header and body setters."""

    def test_headers_are_additive_with_duplicates(self):
        """Test duplicate header names are all kept in order."""
        d = (
            RequestBuilder("GET", "https://example.com")
            .set_header({"Accept": "text/html", "X-Trace": "a"})
            .add_header("X-Trace", "b")
            .descriptor
        )
        assert d.headers == (("Accept", "text/html"), ("X-Trace", "a"), ("X-Trace", "b"))

    def test_raw_body(self):
        """Test strings are kept verbatim."""
        d = RequestBuilder("POST", "https://example.com").set_body("raw text").descriptor
        assert d.body == "raw text"
        assert d.headers == ()

    def test_mapping_body_is_form_encoded(self):
        """Test mappings passed to set_body are url-encoded."""
        d = RequestBuilder("POST", "https://example.com").set_body({"q": "a b", "n": 1}).descriptor
        assert d.body == "q=a+b&n=1"

    def test_json_body(self):
        """Test JSON body and its Content-Type."""
        d = RequestBuilder("POST", "https://example.com").set_json_body({"a": 1}).descriptor
        assert d.body == '{"a":1}'
        assert ("Content-Type", "application/json") in d.headers

    def test_form_data(self):
        """Test form data body and its Content-Type."""
        d = RequestBuilder("POST", "https://example.com").set_form_data({"user": "ann"}).descriptor
        assert d.body == "user=ann"
        assert d.headers == (("Content-Type", "application/x-www-form-urlencoded"),)

    def test_last_body_helper_wins_with_single_content_type(self):
        """Test JSON then form data leaves one Content-Type and the form body."""
        d = (
            RequestBuilder("POST", "https://example.com")
            .set_json_body({"a": 1})
            .set_form_data({"b": "2"})
            .descriptor
        )
        assert d.body == "b=2"
        content_types = [v for n, v in d.headers if n.lower() == "content-type"]
        assert content_types == ["application/x-www-form-urlencoded"]

    def test_nested_form_encoding(self):
        """Test nested mappings and lists use bracket keys."""
        assert form_encode({"a": {"b": 1}, "tags": ["x", "y"], "skip": None, "on": True}) == (
            "a%5Bb%5D=1&tags%5B0%5D=x&tags%5B1%5D=y&on=1"
        )


class TestCookiesAndAuth:
    """Tests for cookie and auth setters."""

    def test_cookies_accumulate(self):
        """Test cookies from both setters are kept in order."""
        d = (
            RequestBuilder("GET", "https://example.com")
            .set_cookie({"a": "1"})
            .add_cookie("b", 2)
            .descriptor
        )
        assert d.cookies == (("a", "1"), ("b", "2"))

    def test_authorization(self):
        """Test the Authorization header format."""
        d = RequestBuilder("GET", "https://example.com").set_authorization("Bearer", "tok").descriptor
        assert d.headers == (("Authorization", "Bearer tok"),)

    def test_basic_auth(self):
        """Test basic credentials are base64 encoded."""
        d = RequestBuilder("GET", "https://example.com").set_basic_auth("user", "pa:ss").descriptor
        expected = base64.b64encode(b"user:pa:ss").decode()
        assert d.headers == (("Authorization", f"Basic {expected}"),)


class TestPolicies:
    """Tests for timeout, redirect, TLS, retry and format setters."""

    def test_retry_is_clamped(self):
        """Test negative retry values are clamped to zero."""
        d = RequestBuilder("GET", "https://example.com").retry(-3, -10).descriptor
        assert d.retry_count == 0
        assert d.retry_delay_ms == 0

    def test_retry_default_delay(self):
        """Test the retry delay defaults to 1000ms."""
        d = RequestBuilder("GET", "https://example.com").retry(2).descriptor
        assert (d.retry_count, d.retry_delay_ms) == (2, 1000)

    def test_redirect_policy(self):
        """Test follow_redirects sets both fields."""
        d = RequestBuilder("GET", "https://example.com").follow_redirects(False, 2).descriptor
        assert d.follow_redirects is False
        assert d.max_redirects == 2

    def test_other_policies(self):
        """Test timeout, TLS, proxy, user agent and fail mode."""
        d = (
            RequestBuilder("GET", "https://example.com")
            .timeout(2500)
            .verify_ssl(False)
            .set_proxy("http://proxy:3128")
            .set_user_agent("agent/1")
            .fail_on_http_error()
            .descriptor
        )
        assert d.timeout_ms == 2500
        assert d.verify_ssl is False
        assert d.proxy == "http://proxy:3128"
        assert d.user_agent == "agent/1"
        assert d.fail_on_http_error is True

    def test_timeout_coerced_and_clamped(self):
        """Test numeric strings are coerced and negatives clamp to zero."""
        builder = RequestBuilder("GET", "https://example.com")
        assert builder.timeout("250").descriptor.timeout_ms == 250.0
        assert builder.timeout(-5).descriptor.timeout_ms == 0.0
        assert builder.timeout(1500).timeout(None).descriptor.timeout_ms is None

    def test_timeout_rejects_non_numbers(self):
        """Test a non-numeric timeout fails at set time, not at dispatch."""
        with pytest.raises(ValueError):
            RequestBuilder("GET", "https://example.com").timeout("5s")

    def test_expect_format_case_insensitive(self):
        """Test format names are case-insensitive."""
        d = RequestBuilder("GET", "https://example.com").expect_format("JSON").descriptor
        assert d.response_format is ResponseFormat.JSON

    def test_expect_format_unknown(self):
        """Test an unknown format is rejected."""
        with pytest.raises(ConfigurationError):
            RequestBuilder("GET", "https://example.com").expect_format("yaml")

    def test_set_logger_requires_callable(self):
        """Test a non-callable sink is rejected."""
        with pytest.raises(TypeError):
            RequestBuilder("GET", "https://example.com").set_logger("not callable")


class TestFromConfig:
    """Tests for RequestBuilder.from_config."""

    def test_full_config(self):
        """Test every key is applied."""
        config = RequestConfig.from_mapping(
            {
                "Method": "put",
                "URL": "https://example.com/x",
                "Header": {"Accept": "application/json"},
                "JsonBody": {"a": 1},
                "Cookie": {"sid": "1"},
                "Auth": {"Type": "Token", "Credentials": "abc"},
                "Timeout": 1500,
                "FollowRedirects": True,
                "VerifySSL": False,
                "UserAgent": "cfg/1",
                "Proxy": "http://p:1",
                "Retry": 2,
                "ResponseFormat": "text",
            }
        )
        d = RequestBuilder.from_config(config).descriptor
        assert d.method == "PUT"
        assert d.url == "https://example.com/x"
        assert d.headers == (
            ("Accept", "application/json"),
            ("Content-Type", "application/json"),
            ("Authorization", "Token abc"),
        )
        assert d.body == '{"a":1}'
        assert d.cookies == (("sid", "1"),)
        assert d.timeout_ms == 1500
        assert d.max_redirects == 5
        assert d.verify_ssl is False
        assert d.user_agent == "cfg/1"
        assert d.proxy == "http://p:1"
        assert (d.retry_count, d.retry_delay_ms) == (2, 1000)
        assert d.response_format is ResponseFormat.TEXT

    def test_empty_config_defaults(self):
        """Test an empty config yields a default GET."""
        d = RequestBuilder.from_config(RequestConfig()).descriptor
        assert d.method == "GET"
        assert d.url == ""
        assert d.headers == ()
