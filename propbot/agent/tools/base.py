"""Base class for agent tools."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ToolDescriptor:
    """Name, description and JSON schema advertised to the model."""
    name: str
    description: str
    parameters: dict[str, Any]


class Tool(ABC):
    """
    Abstract base class for agent tools.

    Tools are thin adapters over provider clients. ``execute`` returns a JSON
    serializable dict; provider failures come back as ``{"error", "message"}``
    rather than exceptions. ``TransientProviderError`` may propagate so the
    agent loop can count it against the tool's failure ceiling.
    """

    name: str = ""
    description: str = ""
    parameters: dict[str, Any] = {"type": "object", "properties": {}}

    _TYPE_MAP = {
        "string": str,
        "integer": int,
        "number": (int, float),
        "boolean": bool,
        "array": list,
        "object": dict,
    }

    @abstractmethod
    async def execute(self, user_context: Any = None, **kwargs: Any) -> dict[str, Any]:
        """
        Execute the tool with given parameters.

        Args:
            user_context: Resolved ``UserContext`` for the sender, if any.
            **kwargs: Tool-specific parameters.

        Returns:
            Result payload.
        """
        pass

    def validate_params(self, params: dict[str, Any]) -> list[str]:
        """Validate parameters against the schema. Returns a list of errors (empty if valid)."""
        schema = self.parameters or {}
        errors: list[str] = []
        for key in schema.get("required", []):
            if key not in params or params[key] in (None, ""):
                errors.append(f"missing required parameter '{key}'")

        properties = schema.get("properties", {})
        for key, value in params.items():
            spec = properties.get(key)
            if spec is None or value is None:
                continue
            expected = self._TYPE_MAP.get(spec.get("type", ""))
            if expected is None:
                continue
            # bool is an int subclass; do not accept it for numeric fields.
            if isinstance(value, bool) and spec.get("type") in ("integer", "number"):
                errors.append(f"'{key}' should be {spec['type']}")
            elif not isinstance(value, expected):
                errors.append(f"'{key}' should be {spec['type']}")
            elif "enum" in spec and value not in spec["enum"]:
                errors.append(f"'{key}' must be one of {spec['enum']}")
        return errors

    @property
    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(self.name, self.description, self.parameters)

    def to_schema(self) -> dict[str, Any]:
        """Convert tool to OpenAI function schema format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }
