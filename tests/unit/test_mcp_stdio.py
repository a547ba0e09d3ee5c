"""Tests for the MCP adapter's tool listing."""

from trialscope.transports.mcp_stdio import list_tool_definitions


def test_lists_all_tools_with_camel_case_schemas():
    tools = {tool.name: tool for tool in list_tool_definitions()}
    assert len(tools) == 17
    details = tools["get_study_details"]
    assert details.description == "Get detailed information about a specific clinical trial"
    assert details.inputSchema["required"] == ["nctId"]
    assert "pageSize" in tools["search_studies"].inputSchema["properties"]
