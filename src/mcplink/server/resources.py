"""Static resource catalog served by ``resources/list`` and ``resources/read``."""

from __future__ import annotations

import json
from dataclasses import dataclass

from mcplink.protocols.mcp.models import ResourceContent, ResourceDescriptor


@dataclass(frozen=True)
class StaticResource:
    uri: str
    name: str
    description: str
    mime_type: str
    text: str

    @property
    def descriptor(self) -> ResourceDescriptor:
        return ResourceDescriptor(
            uri=self.uri, name=self.name, description=self.description, mime_type=self.mime_type
        )

    def content(self) -> ResourceContent:
        return ResourceContent(uri=self.uri, mime_type=self.mime_type, text=self.text)


def default_resources(server_name: str, server_version: str) -> list[StaticResource]:
    return [
        StaticResource(
            uri="file:///example.txt",
            name="Example Resource",
            description="An example text resource",
            mime_type="text/plain",
            text="This is an example resource content.\nIt demonstrates how MCP resources work.",
        ),
        StaticResource(
            uri="file:///server-info.json",
            name="Server Info",
            description="Information about this MCP server",
            mime_type="application/json",
            text=json.dumps({"name": server_name, "version": server_version, "status": "running"}),
        ),
    ]


class ResourceCatalog:
    def __init__(self, resources: list[StaticResource]) -> None:
        self._resources = {r.uri: r for r in resources}

    def descriptors(self) -> list[ResourceDescriptor]:
        return [r.descriptor for r in self._resources.values()]

    def read(self, uri: str) -> ResourceContent:
        """Content for *uri*; unknown URIs get a not-found text body, never an error."""
        resource = self._resources.get(uri)
        if resource is not None:
            return resource.content()
        mime_type = "application/json" if uri.endswith(".json") else "text/plain"
        return ResourceContent(uri=uri, mime_type=mime_type, text=f"Resource not found: {uri}")
