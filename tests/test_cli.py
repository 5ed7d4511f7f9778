"""Tests for the httpchain command-line interface."""

from unittest.mock import patch

import pytest
from conftest import FakeTransport, ok_result
from httpchain import ConfigurationError, HttpClient
from httpchain.cli import build_config, create_parser, main


def parse(*argv):
    return create_parser().parse_args(list(argv))


@pytest.fixture
def fake_transport():
    return FakeTransport([ok_result(b'{"ok": true}', "Content-Type: application/json")])


@pytest.fixture
def patched_client(fake_transport):
    """Route the CLI's HttpClient through a fake transport."""

    def factory(log_sink=None):
        return HttpClient(transport=fake_transport, log_sink=log_sink, sleep=lambda _: None)

    with patch("httpchain.cli.HttpClient", factory):
        yield fake_transport


class TestBuildConfig:
    """Tests for argument to RequestConfig mapping."""

    def test_minimal(self):
        """Test a bare URL."""
        config = build_config(parse("https://example.com"))
        assert config.url == "https://example.com"
        assert config.method == "GET"

    def test_flags(self):
        """Test network and body flags."""
        config = build_config(
            parse(
                "https://example.com",
                "-X",
                "post",
                "--json",
                '{"a": 1}',
                "--bearer",
                "tok",
                "--timeout",
                "1500",
                "--max-redirects",
                "2",
                "--insecure",
                "--retry",
                "3",
                "--retry-delay",
                "10",
                "--format",
                "text",
                "--fail",
            )
        )
        assert config.method == "POST"
        assert config.json_body == {"a": 1}
        assert config.auth.credentials == "tok"
        assert config.timeout == 1500
        assert (config.follow_redirects, config.max_redirects) == (True, 2)
        assert config.verify_ssl is False
        assert (config.retry, config.retry_delay) == (3, 10)
        assert config.fail_on_http_error is True

    def test_form_and_basic_auth(self):
        """Test --form fields and --user credentials."""
        config = build_config(parse("https://example.com", "-F", "a=1", "-F", "b=x=y", "-u", "me:p:w"))
        assert config.form_data == {"a": "1", "b": "x=y"}
        assert (config.basic_auth.username, config.basic_auth.password) == ("me", "p:w")

    def test_invalid_json(self):
        """Test a malformed --json value is a configuration error."""
        with pytest.raises(ConfigurationError):
            build_config(parse("https://example.com", "--json", "{nope"))

    def test_yaml_config_overridden_by_flags(self, tmp_path):
        """Test flags win over the YAML file."""
        pytest.importorskip("yaml")
        path = tmp_path / "request.yaml"
        path.write_text("URL: https://from-yaml.example.com\nRetry: 5\nUserAgent: yaml/1\n")
        config = build_config(parse("https://cli.example.com", "--config", str(path), "--retry", "1"))
        assert config.url == "https://cli.example.com"
        assert config.retry == 1
        assert config.user_agent == "yaml/1"


class TestMain:
    """Tests for main()."""

    def test_success(self, patched_client, capsys):
        """Test a successful request exits 0 and prints the status."""
        assert main(["https://example.com", "-H", "X-A: 1", "-H", "X-A: 2", "-b", "sid=1"]) == 0
        request = patched_client.requests[0]
        assert request.headers[:3] == (("X-A", "1"), ("X-A", "2"), ("Cookie", "sid=1"))
        assert "200" in capsys.readouterr().out

    def test_transport_failure_exit_code(self, patched_client):
        """Test a failed request exits 1."""
        patched_client.outcomes = [ConnectionError("down")]
        assert main(["https://example.com", "-q"]) == 1

    def test_retry_warnings_go_to_stderr(self, patched_client, capsys):
        """Test log output stays off stdout, which carries the response."""
        patched_client.outcomes = [ConnectionError("down")]
        assert main(["https://example.com", "--retry", "1", "--retry-delay", "0"]) == 1
        captured = capsys.readouterr()
        assert "retrying" in captured.err
        assert "retrying" not in captured.out
        assert "Request failed" in captured.out

    def test_missing_url(self, patched_client):
        """Test running without a URL exits 1."""
        assert main([]) == 1
        assert patched_client.requests == []

    def test_bad_header(self, patched_client):
        """Test a header without a colon is rejected."""
        assert main(["https://example.com", "-H", "broken"]) == 1
        assert patched_client.requests == []

    def test_output_file(self, patched_client, tmp_path):
        """Test -o saves the body."""
        target = tmp_path / "out.json"
        assert main(["https://example.com", "-o", str(target), "-q"]) == 0
        assert target.read_bytes() == b'{"ok": true}'
