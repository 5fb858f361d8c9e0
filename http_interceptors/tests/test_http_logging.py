"""
Integration tests for the HTTP logging middleware, driven through the testbed.
"""

import json

import pytest
from fastapi import Request
from fastapi.responses import Response
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from http_interceptors.app.filters import HttpLoggingMiddleware
from http_interceptors.app.filters.http_logging import IGNORED_DOWNLOAD_CONTENT, IGNORED_UPLOAD_CONTENT
from shared.test_helpers import (
    DOWNLOAD_CONTENT,
    MOBILE,
    PASSWORD,
    USER_ID,
    USERNAME,
    VERIFY_CODE,
    create_testbed_app,
)


def events(logs, name):
    return [entry for entry in logs if entry["event"] == name]


class TestHttpLoggingMiddleware:
    """Test cases for HttpLoggingMiddleware."""

    @pytest.fixture
    def app(self):
        app = create_testbed_app()
        app.add_middleware(HttpLoggingMiddleware)
        return app

    @pytest.fixture
    def client(self, app):
        return TestClient(app)

    def test_hello(self, client):
        """Test logging a simple GET request."""
        with capture_logs() as logs:
            response = client.get("/hello", params={"name": "Bill Gates"})

        assert response.status_code == 200
        assert response.json() == "Hello Bill Gates"

        request_log = events(logs, "HTTP request")[0]
        assert request_log["method"] == "GET"
        assert request_log["uri"] == "/hello"
        assert request_log["remote_ip"] == "testclient"
        assert "name = 'Bill Gates'" in request_log["params"]
        assert request_log["body"] == ""

        response_log = events(logs, "HTTP response")[0]
        assert response_log["status_code"] == 200
        assert response_log["body"] == '"Hello Bill Gates"'
        assert "content-type = 'application/json'" in response_log["headers"]

    def test_hello_without_name_returns_bad_request(self, client):
        """Test that handler errors pass through unchanged."""
        with capture_logs() as logs:
            response = client.get("/hello")

        assert response.status_code == 400
        assert events(logs, "HTTP response")[0]["status_code"] == 400

    def test_login(self, client):
        """Test that the handler still receives the logged JSON body."""
        params = {"mobile": MOBILE, "verify_code": VERIFY_CODE}
        body = json.dumps(params)

        with capture_logs() as logs:
            response = client.post("/login", content=body, headers={"Content-Type": "application/json"})

        assert response.status_code == 200
        assert response.json() == {"id": USER_ID, "username": USERNAME}
        assert events(logs, "HTTP request")[0]["body"] == body
        assert json.loads(events(logs, "HTTP response")[0]["body"]) == {"id": USER_ID, "username": USERNAME}

    def test_login_with_invalid_content_type_returns_unsupported_media_type(self, client):
        """Test posting JSON with a text content type."""
        body = json.dumps({"mobile": MOBILE, "verify_code": VERIFY_CODE})

        response = client.post("/login", content=body, headers={"Content-Type": "text/plain"})

        assert response.status_code == 415

    def test_login_with_www_form_url_encoded_content_type(self, client):
        """Test that form fields are logged as parameters."""
        with capture_logs() as logs:
            response = client.post("/login-with-form", data={"username": USERNAME, "password": PASSWORD})

        assert response.status_code == 200
        assert response.json()["username"] == USERNAME

        request_log = events(logs, "HTTP request")[0]
        assert f"username = '{USERNAME}'" in request_log["params"]
        assert f"password = '{PASSWORD}'" in request_log["params"]

    def test_upload_file_returns_original_filename(self, client):
        """Test that multipart parts are logged without the file content."""
        with capture_logs() as logs:
            response = client.post(
                "/upload",
                files={"file": ("testfile.txt", b"Test content", "text/plain")},
                headers={"Accept": "text/plain"},
            )

        assert response.status_code == 200
        assert response.text == "Uploaded file: testfile.txt"

        assert events(logs, "Multipart request")[0]["part_count"] == 1
        part_log = events(logs, "Multipart part")[0]
        assert part_log["name"] == "file"
        assert part_log["filename"] == "testfile.txt"
        assert 'filename="testfile.txt"' in part_log["header"]
        assert events(logs, "HTTP request")[0]["body"] == IGNORED_UPLOAD_CONTENT

    def test_upload_file_with_multipart_content(self):
        """Test printing the multipart body when enabled."""
        app = create_testbed_app()
        app.add_middleware(HttpLoggingMiddleware, print_multipart_content=True)
        client = TestClient(app)

        with capture_logs() as logs:
            response = client.post("/upload", files={"file": ("testfile.txt", b"Test content", "text/plain")})

        assert response.status_code == 200
        assert "Test content" in events(logs, "HTTP request")[0]["body"]

    def test_download_file_returns_binary_data(self, client):
        """Test that binary downloads reach the client but are not logged."""
        with capture_logs() as logs:
            response = client.get("/download")

        assert response.status_code == 200
        assert response.headers["content-disposition"] == 'attachment; filename="mockfile.bin"'
        assert response.headers["content-type"] == "application/octet-stream"
        assert response.content == DOWNLOAD_CONTENT
        assert events(logs, "HTTP response")[0]["body"] == IGNORED_DOWNLOAD_CONTENT

    @pytest.mark.parametrize("print_content, expected", [
        (False, IGNORED_DOWNLOAD_CONTENT),
        (True, "a,b\n1,2\n"),
    ])
    def test_text_file_download(self, print_content, expected):
        """Test that text downloads are logged only when enabled."""
        app = create_testbed_app()

        @app.get("/report")
        async def report():
            return Response(
                content="a,b\n1,2\n",
                media_type="text/csv",
                headers={"Content-Disposition": 'attachment; filename="report.csv"'}
            )

        app.add_middleware(HttpLoggingMiddleware, print_text_file_download_content=print_content)

        with capture_logs() as logs:
            response = TestClient(app).get("/report")

        assert response.status_code == 200
        assert events(logs, "HTTP response")[0]["body"] == expected

    def test_request_charset(self, client):
        """Test decoding the body with the charset of the request."""
        body = "name=caf\xe9".encode("iso-8859-1")

        with capture_logs() as logs:
            client.post("/login", content=body, headers={"Content-Type": "text/plain; charset=iso-8859-1"})

        assert events(logs, "HTTP request")[0]["body"] == "name=caf\xe9"

    def test_illegal_charset_falls_back_to_default(self, client):
        """Test that an unknown charset is reported and replaced."""
        with capture_logs() as logs:
            response = client.post("/login", content=b"{}", headers={"Content-Type": "application/json; charset=bogus"})

        assert response.status_code == 400
        warning = events(logs, "Illegal character encoding for the HTTP message, using the default charset")[0]
        assert warning["charset"] == "bogus"
        assert events(logs, "HTTP request")[0]["body"] == "{}"

    def test_disabled(self):
        """Test that nothing is logged when disabled."""
        app = create_testbed_app()
        app.add_middleware(HttpLoggingMiddleware, enabled=False)

        with capture_logs() as logs:
            response = TestClient(app).get("/hello", params={"name": "bill"})

        assert response.status_code == 200
        assert events(logs, "HTTP request") == []

    def test_multipart_text_fields_are_logged_as_parameters(self, client):
        """Test that the text fields of a multipart request are logged."""
        with capture_logs() as logs:
            response = client.post(
                "/upload",
                data={"description": "monthly report"},
                files={"file": ("testfile.txt", b"Test content", "text/plain")},
            )

        assert response.status_code == 200
        assert "description = 'monthly report'" in events(logs, "HTTP request")[0]["params"]

    def test_malformed_multipart_body(self):
        """Test that a multipart parse failure is logged and the request still handled."""
        app = create_testbed_app()

        @app.post("/raw")
        async def raw(request: Request):
            return {"size": len(await request.body())}

        app.add_middleware(HttpLoggingMiddleware)

        with capture_logs() as logs:
            response = TestClient(app).post(
                "/raw",
                content=b"garbage",
                headers={"Content-Type": "multipart/form-data"}
            )

        assert response.status_code == 200
        assert response.json() == {"size": 7}
        failure = events(logs, "Failed to parse the multipart request")[0]
        assert failure["log_level"] == "error"
        assert events(logs, "HTTP request")[0]["body"] == IGNORED_UPLOAD_CONTENT
        assert events(logs, "HTTP response")[0]["status_code"] == 200

    def test_downstream_exception_propagates(self):
        """Test that no response is logged when the application raises."""
        app = create_testbed_app()

        @app.get("/boom")
        async def boom():
            raise RuntimeError("boom")

        app.add_middleware(HttpLoggingMiddleware)

        with capture_logs() as logs:
            with pytest.raises(RuntimeError):
                TestClient(app).get("/boom")

        assert len(events(logs, "HTTP request")) == 1
        assert events(logs, "HTTP response") == []
