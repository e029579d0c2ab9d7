"""CLI commands for propbot."""

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.table import Table

from propbot import __logo__, __version__
from propbot.config.schema import Config

if TYPE_CHECKING:
    from propbot.agent.processor import MessageProcessor
    from propbot.channels.sms import SmsChannel
    from propbot.gateway.webhook_server import WebhookServer

app = typer.Typer(
    name="propbot",
    help=f"{__logo__} propbot - Real estate SMS assistant",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} propbot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """propbot - Real estate SMS assistant."""
    pass


@dataclass
class Runtime:
    """Everything the gateway wires together."""

    config: Config
    processor: "MessageProcessor"
    channel: "SmsChannel"
    server: "WebhookServer"


def build_runtime(config: Config) -> Runtime:
    """Composition root: build clients, tools, agents and the webhook server from ``config``."""
    from propbot.agent.loop import AgentLoop
    from propbot.agent.processor import MessageProcessor
    from propbot.agent.router import IntentRouter
    from propbot.agent.specialists import build_specialists
    from propbot.agent.tools import ToolRegistry, WebSearchTool, property_tools, rental_tools, workspace_tools
    from propbot.bus.queue import IdentityMailbox
    from propbot.channels.sms import SmsChannel
    from propbot.gateway.webhook_server import WebhookServer
    from propbot.integrations import AttomClient, RentCastClient, TavilyClient, WorkspaceClient
    from propbot.memory import ConversationStore, IdempotencyGuard, TTLCache
    from propbot.providers.litellm_provider import LiteLLMProvider
    from propbot.search.property import MultiProviderSearch

    integrations = config.integrations
    timeout = integrations.timeout_seconds
    attom = AttomClient(api_key=integrations.attom.api_key, base_url=integrations.attom.base_url, timeout=timeout)
    rentcast = RentCastClient(
        api_key=integrations.rentcast.api_key, base_url=integrations.rentcast.base_url, timeout=timeout
    )
    tavily = TavilyClient(
        api_key=integrations.tavily.api_key,
        base_url=integrations.tavily.base_url,
        max_results=integrations.tavily.max_results,
        timeout=timeout,
    )
    workspace = WorkspaceClient(
        api_key=integrations.workspace.api_key,
        base_url=integrations.workspace.base_url,
        default_user_id=integrations.workspace.default_user_id,
        timeout=timeout,
    )

    registry = ToolRegistry()
    search = MultiProviderSearch(attom, rentcast, tavily)
    for tool in [
        *workspace_tools(workspace),
        *property_tools(attom, search),
        *rental_tools(rentcast, tavily),
        WebSearchTool(tavily),
    ]:
        registry.register(tool)

    llm = config.providers.llm
    provider = LiteLLMProvider(
        api_key=llm.api_key or None,
        api_base=llm.api_base,
        default_model=llm.model,
        fallbacks=llm.fallbacks,
    )

    memory = config.memory
    cache = TTLCache(default_ttl_seconds=memory.conversation_ttl_seconds, max_entries=memory.max_entries)
    processor = MessageProcessor(
        guard=IdempotencyGuard(ttl_seconds=memory.idempotency_ttl_seconds),
        store=ConversationStore(
            ttl_seconds=memory.conversation_ttl_seconds,
            max_turns=memory.max_turns,
            cache=cache,
        ),
        router=IntentRouter(provider, model=llm.router_model),
        loop=AgentLoop(provider, registry),
        specialists=build_specialists(registry, config),
        identity_resolver=workspace if workspace.configured else None,
        mailbox=IdentityMailbox(),
        history_window=config.agent.history_window,
        context_turns=config.agent.context_turns,
        interim_enabled=config.agent.interim_messages,
    )

    sms = config.channels.sms
    channel = SmsChannel(sms)
    server = WebhookServer(
        processor,
        channel,
        auth_token=sms.auth_token,
        verify_signature=sms.verify_signature,
        public_url=sms.public_url,
        service_name=config.gateway.service_name,
        opt_out_ttl_seconds=memory.opt_out_ttl_seconds,
    )
    return Runtime(config=config, processor=processor, channel=channel, server=server)


# ============================================================================
# Onboard
# ============================================================================


@app.command()
def onboard():
    """Write a default configuration file."""
    from propbot.config.loader import get_config_path, save_config

    config_path = get_config_path()
    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        raise typer.Exit()

    save_config(Config(), config_path)
    console.print(f"[green]✓[/green] Created config at {config_path}")
    console.print("Add your API keys, then run [cyan]propbot gateway[/cyan].")


# ============================================================================
# Gateway / Server
# ============================================================================


@app.command()
def gateway(
    port: int = typer.Option(None, "--port", "-p", help="Gateway port"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose output"),
):
    """Start the SMS webhook gateway."""
    from loguru import logger

    from propbot.config.loader import load_config
    from propbot.core.logger import configure_logger

    config = load_config()
    if verbose:
        config.logging.level = "DEBUG"
    configure_logger(config)

    runtime = build_runtime(config)
    host = config.gateway.host
    port = port or config.gateway.port

    console.print(f"{__logo__} Starting propbot gateway on {host}:{port}...")
    if runtime.channel.configured:
        console.print("[green]*[/green] SMS delivery: Twilio")
    else:
        console.print("[yellow]Warning: SMS credentials missing, replies will be dropped[/yellow]")
    console.print("[green]*[/green] Webhooks: POST /sms, GET /health")

    async def run():
        runner = await runtime.server.start(host=host, port=port)
        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            logger.info("Shutting down gateway")
            await runtime.processor.mailbox.stop()
            await runner.cleanup()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        console.print("\nShutting down...")


# ============================================================================
# Status Commands
# ============================================================================


@app.command()
def status():
    """Show propbot status."""
    from propbot.config.loader import get_config_path, load_config

    config_path = get_config_path()
    config = load_config()

    console.print(f"{__logo__} propbot Status\n")
    console.print(f"Config: {config_path} {'[green]OK[/green]' if config_path.exists() else '[red]MISSING[/red]'}")
    console.print(f"Model: {config.providers.llm.model} (router: {config.providers.llm.router_model})")

    integrations = config.integrations
    sms = config.channels.sms
    rows = [
        ("LLM", bool(config.providers.llm.api_key)),
        ("ATTOM", bool(integrations.attom.api_key)),
        ("RentCast", bool(integrations.rentcast.api_key)),
        ("Tavily", bool(integrations.tavily.api_key)),
        ("Workspace", bool(integrations.workspace.api_key and integrations.workspace.base_url)),
        ("Twilio SMS", bool(sms.account_sid and sms.auth_token and sms.from_number)),
    ]

    table = Table(title="Integrations")
    table.add_column("Service", style="cyan")
    table.add_column("Status")
    for name, configured in rows:
        table.add_row(name, "[green]configured[/green]" if configured else "[dim]not set[/dim]")
    console.print(table)


@app.command()
def version():
    """Show the propbot version."""
    console.print(f"{__logo__} propbot v{__version__}")


if __name__ == "__main__":
    app()
