"""Error taxonomy shared by the agent, tools and provider clients."""


class PropbotError(Exception):
    """Base class for propbot errors."""


class TransientProviderError(PropbotError):
    """Network or transport failure talking to an external provider."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderTimeoutError(TransientProviderError):
    """An outbound call did not complete within its time budget."""

    def __init__(self, provider: str, timeout: float):
        super().__init__(provider, f"timed out after {timeout:.1f}s")
        self.timeout = timeout


class MalformedInvocation(PropbotError):
    """Tool arguments were unparseable or empty and could not be recovered."""


class RoutingAmbiguity(PropbotError):
    """Classifier output did not map to a known specialist."""


class TerminalToolError(PropbotError):
    """A tool failure that ends the loop for specialists with an abort policy."""


class ExhaustionError(PropbotError):
    """Iteration or failure ceilings were reached."""


class ToolRegistryError(PropbotError):
    """A specialist references a tool with no registered handler."""
