"""
Slack Teams Meeting Sign-up - CLI Entry Point

Command-line interface for running and checking the sign-up bot.
"""

import asyncio
import sys

import click

from .chat.link_parser import build_link_parser
from .core.config import get_config
from .core.exceptions import ConfigurationError
from .core.logging_config import setup_logging


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--log-file", type=str, help="Log file path")
@click.option("--env-file", type=str, default=None, help="Path to .env file")
@click.option("--config-file", type=str, default=None, help="Path to config.yaml")
@click.pass_context
def cli(ctx, verbose, log_file, env_file, config_file):
    """Slack → Teams meeting sign-up bot.

    Watches Slack for Teams meeting links and adds people who react with
    the opt-in emoji as meeting attendees.
    """
    ctx.ensure_object(dict)

    setup_logging(verbose=verbose, log_file=log_file)

    ctx.obj["config"] = get_config(env_file=env_file, config_file=config_file)


@cli.command()
@click.option("--host", type=str, default=None, help="HTTP listen host (default: HOST or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="HTTP listen port (default: PORT or 3000)")
@click.option(
    "--mode",
    type=click.Choice(["auto", "socket", "http"]),
    default="auto",
    help="Slack transport (auto = Socket Mode when SLACK_APP_TOKEN is set)",
)
@click.pass_context
def start(ctx, host, port, mode):
    """Start the bot.

    Example:
        python -m meeting_signup.main start
        python -m meeting_signup.main start --mode http --port 8080
    """
    from .bot import MeetingSignupBot

    config = ctx.obj["config"]
    errors = config.validate()
    if errors:
        click.echo("❌ Configuration errors:", err=True)
        for error in errors:
            click.echo(f"   • {error}", err=True)
        sys.exit(1)

    try:
        bot = MeetingSignupBot(config)
        asyncio.run(bot.run(mode=mode, host=host, port=port))
    except ConfigurationError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\n🛑 Shutting down...")


@cli.command("check-config")
@click.pass_context
def check_config(ctx):
    """Validate .env and config.yaml."""
    config = ctx.obj["config"]
    errors = config.validate()

    if errors:
        click.echo("❌ Configuration errors:")
        for error in errors:
            click.echo(f"   • {error}")
        sys.exit(1)

    click.echo("✅ Configuration valid")
    click.echo(f"   Opt-in reaction: :{config.app.opt_in_reaction}:")
    click.echo(f"   Link providers: {', '.join(p['name'] for p in config.app.link_providers)}")
    click.echo(f"   Slack transport: {'socket' if config.slack.socket_mode_available else 'http'}")


@cli.command("test-graph")
@click.pass_context
def test_graph(ctx):
    """Acquire a Graph token and fetch organization info."""
    from .graph.client import GraphAPIClient
    from .core.exceptions import GraphAPIError

    config = ctx.obj["config"]
    client = GraphAPIClient(config.graph_api, timeout=config.app.request_timeout_seconds)
    try:
        client.test_connection()
        click.echo("✅ Graph API connection OK")
    except GraphAPIError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


@cli.command("parse-link")
@click.argument("text")
@click.pass_context
def parse_link(ctx, text):
    """Show what the configured link parsers extract from TEXT."""
    config = ctx.obj["config"]
    parser = build_link_parser(config.app.link_providers)
    meeting_link = parser.parse(text)

    if meeting_link is None:
        click.echo("No meeting link found")
        sys.exit(1)

    click.echo(f"Provider:   {meeting_link.provider}")
    click.echo(f"Link:       {meeting_link.link}")
    click.echo(f"Meeting ID: {meeting_link.meeting_id or '(not found)'}")
    if not meeting_link.is_parsed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
