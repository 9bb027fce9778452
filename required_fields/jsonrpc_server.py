#!/usr/bin/env python3
"""
JSON-RPC 2.0 Server for FieldValidationService

Provides a JSON-RPC interface to required-fields, enabling usage from any
programming language that can spawn a process and communicate via stdin/stdout.

Protocol: JSON-RPC 2.0 over stdin/stdout (newline-delimited JSON)
Specification: https://www.jsonrpc.org/specification

Usage:
    python -m required_fields.jsonrpc_server [--debug]

Example request (stdin):
    {"jsonrpc":"2.0","id":1,"method":"require_fields",
     "params":{"descriptors":["name",["email","*phone"]],"data":{"name":"Jo"}}}

Example response (stdout):
    {"jsonrpc":"2.0","id":1,"result":{"status":"error",
     "text":"The following fields are required or invalid: email or phone"}}
"""

import argparse
import json
import logging
import signal
import sys
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator

from required_fields import FieldValidationService

logger = logging.getLogger(__name__)

DESCRIPTORS_SCHEMA = {
    "type": "array",
    "items": {
        "anyOf": [
            {"type": "string"},
            {"type": "array", "items": {"type": "string"}},
        ]
    },
}

ID_FIELDS_SCHEMA = {"type": "array", "items": {"type": "string"}}

PARAMS_SCHEMAS = {
    'check_required_fields': {
        "type": "object",
        "properties": {"descriptors": DESCRIPTORS_SCHEMA},
        "required": ["descriptors", "data"],
    },
    'require_fields': {
        "type": "object",
        "properties": {"descriptors": DESCRIPTORS_SCHEMA},
        "required": ["descriptors", "data"],
    },
    'discover_fields': {
        "type": "object",
        "properties": {"descriptors": DESCRIPTORS_SCHEMA},
        "required": ["descriptors"],
    },
    'batch_check': {
        "type": "object",
        "properties": {
            "records": {"type": "array"},
            "descriptors": DESCRIPTORS_SCHEMA,
            "id_fields": ID_FIELDS_SCHEMA,
        },
        "required": ["records", "descriptors", "id_fields"],
    },
    'batch_file_check': {
        "type": "object",
        "properties": {
            "file_uri": {"type": "string", "minLength": 1},
            "descriptors": DESCRIPTORS_SCHEMA,
            "id_fields": ID_FIELDS_SCHEMA,
        },
        "required": ["file_uri", "descriptors", "id_fields"],
    },
}


class InvalidParamsError(ValueError):
    """Method parameters do not match the method's parameter schema."""


class FieldsJsonRpcServer:
    """JSON-RPC 2.0 server wrapping FieldValidationService API."""

    # JSON-RPC error codes
    ERROR_PARSE = -32700        # Invalid JSON
    ERROR_INVALID_REQUEST = -32600  # Invalid JSON-RPC structure
    ERROR_METHOD_NOT_FOUND = -32601  # Unknown method
    ERROR_INVALID_PARAMS = -32602   # Invalid parameters
    ERROR_INTERNAL = -32000      # Application error (catch-all)

    def __init__(self, debug: bool = False, config_path: Optional[str] = None):
        """
        Initialize JSON-RPC server.

        Args:
            debug: Enable debug logging to stderr
            config_path: Optional config file passed to FieldValidationService
        """
        self.service = FieldValidationService(config_path=config_path)
        self.running = False
        self.debug = debug
        if debug:
            logging.getLogger('required_fields').setLevel(logging.DEBUG)

        # Method dispatch table
        self.methods = {
            'check_required_fields': self._handle_check_required_fields,
            'require_fields': self._handle_require_fields,
            'discover_fields': self._handle_discover_fields,
            'batch_check': self._handle_batch_check,
            'batch_file_check': self._handle_batch_file_check,
            'reload_messages': self._handle_reload_messages,
            'get_messages_age': self._handle_get_messages_age,
        }

    def start_server(self):
        """
        Start the JSON-RPC server loop.

        Reads requests from stdin, processes them, writes responses to stdout.
        Runs until EOF or stop signal received.
        """
        self.running = True
        logger.debug("FieldValidationService JSON-RPC server started")

        while self.running:
            try:
                line = sys.stdin.readline()

                if not line:
                    logger.debug("EOF received, shutting down")
                    break

                if not line.strip():
                    continue

                logger.debug(f"Received: {line.strip()}")
                response = self.handle_request(line)
                self._send_response(response)

            except KeyboardInterrupt:
                logger.debug("KeyboardInterrupt received, shutting down")
                break

            except Exception:
                logger.exception("Fatal error in main loop")
                break

        logger.debug("Server stopped")

    def stop_server(self):
        """
        Stop the server gracefully.

        Sets running flag to False, causing the main loop to exit.
        """
        self.running = False
        logger.debug("Stop signal received")

    def handle_request(self, request_json: str) -> Dict[str, Any]:
        """
        Parse and process a JSON-RPC request.

        Args:
            request_json: JSON-RPC request string

        Returns:
            JSON-RPC response dict (success or error)
        """
        request_id = None

        try:
            try:
                request = json.loads(request_json)
            except json.JSONDecodeError as e:
                return self._error_response(None, self.ERROR_PARSE,
                                           f"Parse error: {e}")

            if not isinstance(request, dict):
                return self._error_response(None, self.ERROR_INVALID_REQUEST,
                                           "Request must be a JSON object")

            if request.get("jsonrpc") != "2.0":
                return self._error_response(None, self.ERROR_INVALID_REQUEST,
                                           f"Invalid JSON-RPC version: {request.get('jsonrpc')}")

            request_id = request.get("id")
            method = request.get("method")
            params = request.get("params", {})

            if not method:
                return self._error_response(request_id, self.ERROR_INVALID_REQUEST,
                                           "Missing 'method' field")

            if not isinstance(params, dict):
                return self._error_response(request_id, self.ERROR_INVALID_PARAMS,
                                           f"Params must be an object, got {type(params).__name__}")

            if method not in self.methods:
                return self._error_response(request_id, self.ERROR_METHOD_NOT_FOUND,
                                           f"Method not found: {method}")

            logger.debug(f"Dispatching method: {method}")
            result = self._dispatch(method, params)

            return self._success_response(request_id, result)

        except InvalidParamsError as e:
            return self._error_response(request_id, self.ERROR_INVALID_PARAMS, str(e))

        except Exception as e:
            logger.debug(f"Error processing request: {e}")
            return self._error_response(request_id, self.ERROR_INTERNAL,
                                       f"Internal error: {e}")

    def _dispatch(self, method: str, params: Dict[str, Any]) -> Any:
        """
        Validate params and dispatch to the method handler.

        Raises:
            InvalidParamsError: If params do not match the method's schema
        """
        schema = PARAMS_SCHEMAS.get(method)
        if schema is not None:
            self._check_params(schema, params)

        handler = self.methods[method]
        return handler(params)

    def _check_params(self, schema: Dict[str, Any], params: Dict[str, Any]):
        errors = sorted(Draft7Validator(schema).iter_errors(params), key=str)
        if errors:
            details = "; ".join(
                f"{'/'.join(str(p) for p in e.path) or 'params'}: {e.message}"
                for e in errors
            )
            raise InvalidParamsError(f"Invalid params: {details}")

    # Method handlers - wrap FieldValidationService API

    def _handle_check_required_fields(self, params: Dict[str, Any]) -> Any:
        """Handle 'check_required_fields' method."""
        outcome = self.service.check(params['descriptors'], params['data'])
        return {"ok": outcome.ok, "missing_or_invalid": outcome.missing_or_invalid}

    def _handle_require_fields(self, params: Dict[str, Any]) -> Any:
        """Handle 'require_fields' method - returns the report object."""
        outcome = self.service.check(params['descriptors'], params['data'])
        return self.service.report(outcome)

    def _handle_discover_fields(self, params: Dict[str, Any]) -> Any:
        """Handle 'discover_fields' method."""
        return self.service.discover_fields(params['descriptors'])

    def _handle_batch_check(self, params: Dict[str, Any]) -> Any:
        """Handle 'batch_check' method."""
        return self.service.batch_check(
            params['records'], params['descriptors'], params['id_fields'])

    def _handle_batch_file_check(self, params: Dict[str, Any]) -> Any:
        """Handle 'batch_file_check' method."""
        return self.service.batch_file_check(
            params['file_uri'], params['descriptors'], params['id_fields'])

    def _handle_reload_messages(self, params: Dict[str, Any]) -> Any:
        """Handle 'reload_messages' method."""
        # No parameters required
        self.service.reload_messages()
        return {"status": "ok", "message": "Messages reloaded successfully"}

    def _handle_get_messages_age(self, params: Dict[str, Any]) -> Any:
        """Handle 'get_messages_age' method."""
        # No parameters required
        return {"messages_age": self.service.get_messages_age()}

    # Response formatting

    def _success_response(self, request_id: Any, result: Any) -> Dict[str, Any]:
        """Format successful JSON-RPC response."""
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "result": result
        }

    def _error_response(self, request_id: Any, code: int, message: str,
                       data: Optional[Any] = None) -> Dict[str, Any]:
        """Format JSON-RPC error response."""
        error = {
            "code": code,
            "message": message
        }
        if data is not None:
            error["data"] = data

        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "error": error
        }

    def _send_response(self, response: Dict[str, Any]):
        """Send JSON-RPC response to stdout."""
        response_json = json.dumps(response)
        logger.debug(f"Sending: {response_json}")
        sys.stdout.write(response_json + "\n")
        sys.stdout.flush()


def main():
    """Main entry point for JSON-RPC server."""
    parser = argparse.ArgumentParser(
        description="required-fields JSON-RPC 2.0 Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example usage:
  python -m required_fields.jsonrpc_server
  python -m required_fields.jsonrpc_server --debug
  python -m required_fields.jsonrpc_server --config ./my-config.yaml

Supported methods:
  - check_required_fields
  - require_fields
  - discover_fields
  - batch_check
  - batch_file_check
  - reload_messages
  - get_messages_age

Protocol: JSON-RPC 2.0 over stdin/stdout
See: https://www.jsonrpc.org/specification
        """
    )
    parser.add_argument('--debug', action='store_true',
                       help='Enable debug logging to stderr')
    parser.add_argument('--config', default=None,
                       help='Path to a YAML config file (defaults to bundled config)')

    args = parser.parse_args()

    server = FieldsJsonRpcServer(debug=args.debug, config_path=args.config)

    # Logging goes to stderr so it never interferes with JSON-RPC on stdout
    level = logging.DEBUG if args.debug else server.service.config_loader.get_log_level()
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="[required-fields] %(levelname)s %(name)s: %(message)s",
    )

    # Handle signals for graceful shutdown
    def signal_handler(sig, frame):
        server.stop_server()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    # Start server (blocks until stopped)
    server.start_server()


if __name__ == "__main__":
    main()
