"""Argument validation for Siigo MCP tool calls."""

from typing import Any, Dict, List

from pydantic import ValidationError

from mcp_server_siigo.operations import Operation


class ArgumentValidationError(ValueError):
    """Tool arguments do not match what the operation needs."""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__("Invalid arguments: " + "; ".join(problems))


class SiigoFieldValidator:
    """Checks tool arguments before they are sent to Siigo.

    Arguments are never rewritten: what the caller passed is what gets sent.
    Accounting rules (taxes, balances, numbering) stay with Siigo.
    """

    def validate(self, operation: Operation, arguments: Dict[str, Any]) -> None:
        problems = self._check_schema(operation.input_schema, arguments)

        if not problems and operation.model is not None:
            body = operation.request_body(arguments)
            if body is not None:
                prefix = operation.body if operation.body not in (None, "*") else ""
                problems = self._check_model(operation, body, prefix)

        if problems:
            raise ArgumentValidationError(problems)

    def _check_schema(self, schema: Dict[str, Any], arguments: Dict[str, Any]) -> List[str]:
        problems = []
        properties = schema.get("properties", {})

        for field in schema.get("required", []):
            if arguments.get(field) is None:
                problems.append(f"{field}: Field required")

        for field, value in arguments.items():
            declared = properties.get(field)
            if declared is None or value is None:
                continue
            expected = declared.get("type")
            if expected and not self._matches_type(expected, value):
                problems.append(f"{field}: expected {expected}, got {type(value).__name__}")
            elif "enum" in declared and value not in declared["enum"]:
                allowed = ", ".join(str(option) for option in declared["enum"])
                problems.append(f"{field}: must be one of {allowed}")

        return problems

    @staticmethod
    def _matches_type(expected: str, value: Any) -> bool:
        if expected == "string":
            return isinstance(value, str)
        if expected == "number":
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if expected == "integer":
            return isinstance(value, int) and not isinstance(value, bool)
        if expected == "boolean":
            return isinstance(value, bool)
        if expected == "object":
            return isinstance(value, dict)
        if expected == "array":
            return isinstance(value, list)
        return True

    @staticmethod
    def _check_model(operation: Operation, body: Any, prefix: str) -> List[str]:
        try:
            operation.model.model_validate(body)
        except ValidationError as e:
            problems = []
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"])
                path = ".".join(part for part in (prefix, location) if part)
                problems.append(f"{path or 'body'}: {error['msg']}")
            return problems
        return []
