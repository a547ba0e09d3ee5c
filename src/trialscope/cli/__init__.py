"""CLI entry point for trialscope."""

import click

from trialscope.cli.commands import call_cmd, serve_http_cmd, serve_stdio_cmd, tools_cmd


@click.group()
def main():
    """ClinicalTrials.gov search tools: list, call, or serve them over MCP / HTTP."""
    pass


main.add_command(tools_cmd)
main.add_command(call_cmd)
main.add_command(serve_stdio_cmd)
main.add_command(serve_http_cmd)
