"""Server bootstrap for the protogather MCP service.

Creates the FastMCP instance, wires the GitHub client into the tools,
registers the template resources, and starts the MCP server (stdio transport).
"""

from mcp.server.fastmcp import FastMCP

from tools.assemble_protos import register as register_assemble_protos
from workspace.runner import build_github_client

from resources.generator_templates import register_resources

mcp = FastMCP("protogather")


def register_tools(server: FastMCP) -> None:
    register_assemble_protos(server, github_client=build_github_client())


def register_all(server: FastMCP) -> None:
    register_tools(server)
    register_resources(server)


register_all(mcp)


def main() -> None:
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
