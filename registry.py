"""In-memory MCP tool registry shared by the server and plugins."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ToolInput(BaseModel):
    name: str
    type: str
    description: str
    required: bool = True
    schema_extra: Dict[str, Any] = Field(default_factory=dict)


class Tool(BaseModel):
    name: str
    description: str
    inputs: List[ToolInput]
    handler: Any = None

    def input_schema(self) -> Dict[str, Any]:
        """Render ``inputs`` as a JSON-schema object for ``tools/list``."""
        properties = {
            i.name: {"type": i.type, "description": i.description, **i.schema_extra}
            for i in self.inputs
        }
        schema: Dict[str, Any] = {"type": "object", "properties": properties}
        required = [i.name for i in self.inputs if i.required]
        if required:
            schema["required"] = required
        return schema

    def describe(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema()}


tools: Dict[str, Tool] = {}


def mcp_tool(name: str, description: str, inputs: Optional[List[ToolInput]] = None):
    """Decorator to register a function as an MCP tool."""

    def decorator(fn):
        tools[name] = Tool(
            name=name,
            description=description,
            inputs=inputs or [],
            handler=fn,
        )
        return fn

    return decorator
