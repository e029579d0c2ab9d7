"""Configuration schema using Pydantic."""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class LLMConfig(BaseModel):
    """Reasoning model configuration."""
    model: str = "openai/gpt-5-mini"
    router_model: str = "openai/gpt-5-nano"  # Cheap model for single-shot routing
    api_key: str = ""
    api_base: str | None = None
    fallbacks: list[str] = Field(default_factory=list)
    max_tokens: int = 2048


class ProvidersConfig(BaseModel):
    """LLM provider configuration."""
    llm: LLMConfig = Field(default_factory=LLMConfig)


class AttomConfig(BaseModel):
    """ATTOM property data API."""
    api_key: str = ""
    base_url: str = "https://api.gateway.attomdata.com/propertyapi/v1.0.0"


class RentCastConfig(BaseModel):
    """RentCast residential data API."""
    api_key: str = ""
    base_url: str = "https://api.rentcast.io/v1"


class TavilyConfig(BaseModel):
    """Tavily web search API."""
    api_key: str = ""
    base_url: str = "https://api.tavily.com"
    max_results: int = 5


class WorkspaceConfig(BaseModel):
    """Business workspace (outcomes and data tables) API."""
    api_key: str = ""
    base_url: str = ""
    default_user_id: str = ""  # Used for lookups before a user is identified


class IntegrationsConfig(BaseModel):
    """External data provider configuration."""
    attom: AttomConfig = Field(default_factory=AttomConfig)
    rentcast: RentCastConfig = Field(default_factory=RentCastConfig)
    tavily: TavilyConfig = Field(default_factory=TavilyConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    timeout_seconds: float = 2.5  # Applied to every outbound provider call


class SmsConfig(BaseModel):
    """Twilio SMS channel configuration."""
    enabled: bool = True
    account_sid: str = ""
    auth_token: str = ""
    from_number: str = ""
    api_base: str = "https://api.twilio.com/2010-04-01"
    chunk_size: int = 300
    chunk_delay_seconds: float = 1.0
    verify_signature: bool = False  # Enable in production
    public_url: str = ""  # Externally visible webhook URL used for signature checks
    allow_from: list[str] = Field(default_factory=list)  # Allowed phone numbers


class ChannelsConfig(BaseModel):
    """Configuration for chat channels."""
    sms: SmsConfig = Field(default_factory=SmsConfig)


class GatewayConfig(BaseModel):
    """Gateway/server configuration."""
    host: str = "0.0.0.0"
    port: int = 5000
    service_name: str = "propbot"


class AgentConfig(BaseModel):
    """Agent loop and orchestration settings."""
    max_iterations: int = 10
    failure_ceiling: int = 2
    history_window: int = 10
    context_turns: int = 6
    interim_messages: bool = True
    reasoning_effort: str = "medium"
    verbosity: str = "low"


class MemoryConfig(BaseModel):
    """Ephemeral conversation memory settings."""
    conversation_ttl_seconds: int = 7200
    max_turns: int = 50
    max_entries: int = 10000
    idempotency_ttl_seconds: int = 600
    opt_out_ttl_seconds: int = 365 * 24 * 3600


class LoggingConfig(BaseModel):
    """Logging configuration."""
    enabled: bool = True
    level: str = "INFO"
    file_enabled: bool = False
    file_path: str = "~/.propbot/logs/propbot.log"
    rotation: str = "10 MB"
    retention: str = "7 days"
    mask_pii: bool = True


class Config(BaseSettings):
    """Root configuration for propbot."""
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    integrations: IntegrationsConfig = Field(default_factory=IntegrationsConfig)
    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    class Config:
        env_prefix = "PROPBOT_"
        env_nested_delimiter = "__"
