"""
Tests for JSON-RPC Server

Tests the JSON-RPC wrapper around FieldValidationService API.
"""
import io
import json
import os

import pytest

from required_fields.jsonrpc_server import FieldsJsonRpcServer


@pytest.fixture
def server():
    """Create a FieldsJsonRpcServer instance for testing."""
    return FieldsJsonRpcServer(debug=False)


@pytest.fixture
def sample_record():
    """Sample record for testing."""
    return {
        "id": "TEST-001",
        "name": "Jo",
        "isActive": 0,
        "contact": {
            "email": "jo@example.com"
        }
    }


def rpc(method, params=None, request_id=1):
    request = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        request["params"] = params
    return json.dumps(request)


class TestRequestParsing:
    """Test JSON-RPC request parsing."""

    def test_valid_request(self, server):
        """Test parsing valid JSON-RPC request."""
        response = server.handle_request(rpc("get_messages_age", {}))

        assert response["jsonrpc"] == "2.0"
        assert response["id"] == 1
        assert "result" in response

    def test_invalid_json(self, server):
        """Test handling invalid JSON."""
        response = server.handle_request("not valid json {")

        assert "error" in response
        assert response["error"]["code"] == server.ERROR_PARSE

    def test_request_not_object(self, server):
        response = server.handle_request("[1, 2]")

        assert response["error"]["code"] == server.ERROR_INVALID_REQUEST

    def test_missing_jsonrpc_version(self, server):
        """Test handling missing jsonrpc version."""
        request = json.dumps({
            "id": 1,
            "method": "get_messages_age"
        })

        response = server.handle_request(request)

        assert "error" in response
        assert response["error"]["code"] == server.ERROR_INVALID_REQUEST

    def test_wrong_jsonrpc_version(self, server):
        """Test handling wrong JSON-RPC version."""
        request = json.dumps({
            "jsonrpc": "1.0",
            "id": 1,
            "method": "get_messages_age"
        })

        response = server.handle_request(request)

        assert response["error"]["code"] == server.ERROR_INVALID_REQUEST

    def test_missing_method(self, server):
        """Test handling missing method field."""
        request = json.dumps({
            "jsonrpc": "2.0",
            "id": 1,
            "params": {}
        })

        response = server.handle_request(request)

        assert response["error"]["code"] == server.ERROR_INVALID_REQUEST

    def test_params_not_dict(self, server):
        """Test handling params that are not a dict."""
        response = server.handle_request(rpc("get_messages_age", [1, 2, 3]))

        assert response["error"]["code"] == server.ERROR_INVALID_PARAMS

    def test_params_default_to_empty(self, server):
        response = server.handle_request(rpc("get_messages_age"))

        assert "result" in response


class TestMethodDispatch:
    """Test method dispatch."""

    def test_unknown_method(self, server):
        """Test calling unknown method."""
        response = server.handle_request(rpc("unknown_method", {}))

        assert response["error"]["code"] == server.ERROR_METHOD_NOT_FOUND
        assert "not found" in response["error"]["message"].lower()

    def test_get_messages_age_method(self, server):
        response = server.handle_request(rpc("get_messages_age", {}))

        assert "messages_age" in response["result"]

    def test_reload_messages_method(self, server):
        response = server.handle_request(rpc("reload_messages", {}))

        assert response["result"]["status"] == "ok"


class TestCheckRequiredFieldsMethod:
    """Test check_required_fields via JSON-RPC."""

    def test_check_passes(self, server, sample_record):
        response = server.handle_request(rpc("check_required_fields", {
            "descriptors": ["name", "*isActive", ["(str)contact/email", "*contact/phone"]],
            "data": sample_record,
        }))

        assert response["result"] == {"ok": True, "missing_or_invalid": []}

    def test_check_fails(self, server, sample_record):
        response = server.handle_request(rpc("check_required_fields", {
            "descriptors": ["surname", ["contact/fax", "*contact/phone"]],
            "data": sample_record,
        }))

        assert response["result"] == {
            "ok": False,
            "missing_or_invalid": ["surname", "contact/fax or *contact/phone"],
        }

    def test_check_missing_descriptors(self, server, sample_record):
        response = server.handle_request(rpc("check_required_fields", {"data": sample_record}))

        assert response["error"]["code"] == server.ERROR_INVALID_PARAMS
        assert "descriptors" in response["error"]["message"]

    def test_check_missing_data(self, server):
        response = server.handle_request(rpc("check_required_fields", {"descriptors": ["a"]}))

        assert response["error"]["code"] == server.ERROR_INVALID_PARAMS
        assert "data" in response["error"]["message"]

    def test_check_non_string_descriptor(self, server):
        response = server.handle_request(rpc("check_required_fields", {
            "descriptors": ["a", 5],
            "data": {},
        }))

        assert response["error"]["code"] == server.ERROR_INVALID_PARAMS

    def test_check_nested_group_rejected(self, server):
        response = server.handle_request(rpc("check_required_fields", {
            "descriptors": [["a", ["b"]]],
            "data": {},
        }))

        assert response["error"]["code"] == server.ERROR_INVALID_PARAMS


class TestRequireFieldsMethod:
    """Test require_fields via JSON-RPC."""

    def test_require_ok(self, server, sample_record):
        response = server.handle_request(rpc("require_fields", {
            "descriptors": ["name"],
            "data": sample_record,
        }))

        assert response["result"] == {"status": "ok"}

    def test_require_error_report(self, server, sample_record):
        response = server.handle_request(rpc("require_fields", {
            "descriptors": ["surname", "(int)name"],
            "data": sample_record,
        }))

        assert response["result"] == {
            "status": "error",
            "text": "The following fields are required or invalid: surname, (int)name",
        }


class TestDiscoverFieldsMethod:
    """Test discover_fields via JSON-RPC."""

    def test_discover_fields(self, server):
        response = server.handle_request(rpc("discover_fields", {
            "descriptors": ["*(str@5)a/b", ["c", "d"]],
        }))

        result = response["result"]
        assert result[0]["spec"]["path"] == ["a", "b"]
        assert result[1]["group"] == "c or d"

    def test_discover_fields_missing_params(self, server):
        response = server.handle_request(rpc("discover_fields", {}))

        assert "error" in response


class TestBatchMethods:
    """Test batch_check and batch_file_check via JSON-RPC."""

    def test_batch_check(self, server, sample_record):
        record2 = dict(sample_record, id="TEST-002")
        del record2["name"]

        response = server.handle_request(rpc("batch_check", {
            "records": [sample_record, record2],
            "descriptors": ["name"],
            "id_fields": ["id"],
        }))

        result = response["result"]
        assert [r["record_id"] for r in result] == ["TEST-001", "TEST-002"]
        assert [r["status"] for r in result] == ["ok", "error"]

    def test_batch_check_missing_id_fields(self, server, sample_record):
        response = server.handle_request(rpc("batch_check", {
            "records": [sample_record],
            "descriptors": ["name"],
        }))

        assert response["error"]["code"] == server.ERROR_INVALID_PARAMS

    def test_batch_file_check(self, server):
        test_dir = os.path.dirname(os.path.abspath(__file__))
        file_uri = f"file://{os.path.join(test_dir, 'sample_records.json')}"

        response = server.handle_request(rpc("batch_file_check", {
            "file_uri": file_uri,
            "descriptors": ["*name"],
            "id_fields": ["id"],
        }))

        assert [r["status"] for r in response["result"]] == ["ok", "error"]

    def test_batch_file_check_load_error(self, server, tmp_path):
        response = server.handle_request(rpc("batch_file_check", {
            "file_uri": f"file://{tmp_path / 'missing.json'}",
            "descriptors": ["name"],
            "id_fields": ["id"],
        }))

        assert response["error"]["code"] == server.ERROR_INTERNAL


class TestResponseFormat:
    """Test JSON-RPC response formatting."""

    def test_success_response_structure(self, server):
        """Test structure of successful response."""
        response = server._success_response(1, {"key": "value"})

        assert response["jsonrpc"] == "2.0"
        assert response["id"] == 1
        assert response["result"] == {"key": "value"}

    def test_error_response_structure(self, server):
        """Test structure of error response."""
        response = server._error_response(1, -32000, "Test error")

        assert response["jsonrpc"] == "2.0"
        assert response["id"] == 1
        assert response["error"]["code"] == -32000
        assert response["error"]["message"] == "Test error"

    def test_error_response_with_data(self, server):
        """Test error response with additional data."""
        response = server._error_response(1, -32000, "Test error",
                                         data={"detail": "Extra info"})

        assert response["error"]["data"]["detail"] == "Extra info"


class TestServerLifecycle:
    """Test server start/stop."""

    def test_server_initialization(self):
        """Test server can be initialized."""
        server = FieldsJsonRpcServer(debug=True)
        assert server.debug is True
        assert server.running is False

    def test_server_has_methods(self):
        """Test server has all expected methods."""
        server = FieldsJsonRpcServer()
        expected_methods = [
            'check_required_fields',
            'require_fields',
            'discover_fields',
            'batch_check',
            'batch_file_check',
            'reload_messages',
            'get_messages_age',
        ]

        for method in expected_methods:
            assert method in server.methods

    def test_stop_server(self):
        """Test stop_server sets running flag."""
        server = FieldsJsonRpcServer()
        server.running = True
        server.stop_server()
        assert server.running is False

    def test_server_loop_until_eof(self, server, monkeypatch):
        """Each stdin line gets one stdout response; blank lines are skipped."""
        stdin = io.StringIO(
            rpc("require_fields", {"descriptors": ["a"], "data": {"a": 1}}, request_id=7)
            + "\n\n"
            + rpc("unknown_method", {}, request_id=8)
            + "\n"
        )
        stdout = io.StringIO()
        monkeypatch.setattr("sys.stdin", stdin)
        monkeypatch.setattr("sys.stdout", stdout)

        server.start_server()

        responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert [r["id"] for r in responses] == [7, 8]
        assert responses[0]["result"] == {"status": "ok"}
        assert "error" in responses[1]
