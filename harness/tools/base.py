"""Base types and definitions for tools."""

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from harness.exceptions import ToolArgumentError
from harness.models.llm import ToolDeclaration

ToolHandler = Callable[[Any], Awaitable[str]]


def _clean_schema(schema: Any) -> None:
    """Recursively remove 'title' fields that pydantic adds to JSON schemas."""
    if isinstance(schema, dict):
        if isinstance(schema.get("title"), str):
            schema.pop("title")
        for value in schema.values():
            _clean_schema(value)
    elif isinstance(schema, list):
        for item in schema:
            _clean_schema(item)


@dataclass
class ToolDefinition:
    """Definition of a tool available to the model."""

    name: str
    description: str
    input_schema_class: type[BaseModel]
    handler: ToolHandler

    def get_json_schema(self) -> dict[str, Any]:
        """Get JSON schema for this tool's input."""
        schema = self.input_schema_class.model_json_schema()
        _clean_schema(schema)
        return schema

    def declaration(self) -> ToolDeclaration:
        """Describe this tool for the completion client."""
        return ToolDeclaration(name=self.name, description=self.description, parameters=self.get_json_schema())

    def parse_input(self, raw_arguments: str) -> BaseModel:
        """Decode and validate the model's serialized arguments.

        Raises:
            ToolArgumentError: If the payload is not a JSON object matching the schema
        """
        try:
            payload = json.loads(raw_arguments or "{}")
        except json.JSONDecodeError as e:
            raise ToolArgumentError(self.name, f"arguments are not valid JSON ({e})") from e

        if not isinstance(payload, dict):
            raise ToolArgumentError(self.name, "arguments must be a JSON object")

        try:
            return self.input_schema_class.model_validate(payload)
        except ValidationError as e:
            raise ToolArgumentError(self.name, str(e)) from e
