"""Configuration loading and environment setup."""
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .types import Provider, ProviderConfig, Task
from .utils.env import get_bool, get_int, get_str
from .utils.logging import get_logger

logger = get_logger(__name__)

# Load environment variables from .env file with explicit path
load_dotenv(dotenv_path=Path.cwd() / ".env")

# (api key variable, model variable, default model) per text backend
PROVIDER_ENV: Dict[Provider, tuple] = {
    Provider.OPENAI: ("OPENAI_API_KEY", "OPENAI_MODEL", "gpt-5.2"),
    Provider.CLAUDE: ("ANTHROPIC_API_KEY", "CLAUDE_MODEL", "claude-opus-4-6-adaptive"),
    Provider.GEMINI: ("GEMINI_API_KEY", "GEMINI_MODEL", "gemini-3-flash-preview"),
    Provider.GROK: ("XAI_API_KEY", "GROK_MODEL", "grok-4"),
    Provider.PERPLEXITY: ("PERPLEXITY_API_KEY", "PERPLEXITY_MODEL", "sonar-reasoning-pro"),
    Provider.MISTRAL: ("MISTRAL_API_KEY", "MISTRAL_MODEL", "mistral-large-2512"),
}

# Task-specific model overrides: (provider, task) -> config key
TASK_MODEL_OVERRIDES: Dict[tuple, str] = {
    (Provider.OPENAI, Task.CODE): "OPENAI_CODE_MODEL",
}

DEFAULT_ASSISTANT_NAME = "M-Yra"
DEFAULT_OPENAI_IMAGE_MODEL = "gpt-image-1.5"
DEFAULT_STABILITY_MODEL = "sd3.5-large"


def load_config() -> Dict[str, Any]:
    """Load configuration from environment variables."""
    config: Dict[str, Any] = {
        # DISCORD
        "DISCORD_TOKEN": get_str("DISCORD_TOKEN"),
        "ASSISTANT_NAME": get_str("ASSISTANT_NAME", DEFAULT_ASSISTANT_NAME),
        "RESPOND_TO_MENTIONS_ONLY": get_bool("RESPOND_TO_MENTIONS_ONLY", False),
        "MAX_REPLY_SENTENCES": get_int("MAX_REPLY_SENTENCES", 4),
        "PROMPT_FILE": get_str("PROMPT_FILE"),

        # ROUTER
        "ROUTER_PROVIDER": (get_str("ROUTER_PROVIDER", "openai") or "openai").lower(),
        "ROUTER_MODEL": get_str("ROUTER_MODEL"),

        # IMAGE GENERATION
        "OPENAI_CODE_MODEL": get_str("OPENAI_CODE_MODEL"),
        "OPENAI_IMAGE_MODEL": get_str("OPENAI_IMAGE_MODEL", DEFAULT_OPENAI_IMAGE_MODEL),
        "STABILITY_API_KEY": get_str("STABILITY_API_KEY"),
        "STABILITY_MODEL": get_str("STABILITY_MODEL", DEFAULT_STABILITY_MODEL),

        # CONVERSATION MEMORY
        "MEMORY_ENABLED": get_bool("MEMORY_ENABLED", True),
        "MEMORY_MAX_MESSAGES": get_int("MEMORY_MAX_MESSAGES", 6),
        "MEMORY_TTL_MINUTES": get_int("MEMORY_TTL_MINUTES", 120),
        "MEMORY_SCOPE": (get_str("MEMORY_SCOPE", "user_channel") or "user_channel").lower(),

        # PROFILES
        "NAME_MEMORY_ENABLED": get_bool("NAME_MEMORY_ENABLED", True),
        "REDIS_URL": get_str("REDIS_URL", ""),
        "CREATOR_USER_ID": get_str("CREATOR_USER_ID", ""),
        "CREATOR_TITLE": get_str("CREATOR_TITLE", "maman"),

        "LOG_LEVEL": get_str("LOG_LEVEL", "INFO"),
    }

    for key_var, model_var, default_model in PROVIDER_ENV.values():
        config[key_var] = get_str(key_var)
        config[model_var] = get_str(model_var, default_model)

    logger.debug(
        "Configuration loaded",
        extra={
            "subsys": "config",
            "event": "config.loaded",
            "detail": {
                "router_provider": config["ROUTER_PROVIDER"],
                "memory_scope": config["MEMORY_SCOPE"],
                "configured_providers": [
                    p.value for p, (key_var, _, _) in PROVIDER_ENV.items() if config.get(key_var)
                ],
            },
        },
    )
    return config


def validate_required_env(config: Dict[str, Any]) -> None:
    """Validate that all required settings are present."""
    if not config.get("DISCORD_TOKEN"):
        raise ConfigurationError("Missing required environment variable: DISCORD_TOKEN")

    configured = [p.value for p, (key_var, _, _) in PROVIDER_ENV.items() if config.get(key_var)]
    if not configured:
        logger.warning("⚠️  No text backend API key configured; replies will fail")


def get_api_key(provider: Provider, config: Dict[str, Any]) -> Optional[str]:
    key_var, _, _ = PROVIDER_ENV[provider]
    return config.get(key_var) or None


def get_model(provider: Provider, config: Dict[str, Any], task: Optional[Task] = None) -> Optional[str]:
    """Resolve the model for a provider, honoring task-specific overrides."""
    override_key = TASK_MODEL_OVERRIDES.get((provider, task))
    if override_key and config.get(override_key):
        return config[override_key]
    _, model_var, _ = PROVIDER_ENV[provider]
    return config.get(model_var) or None


def provider_config(provider: Provider, config: Dict[str, Any], task: Optional[Task] = None) -> ProviderConfig:
    return ProviderConfig(
        provider=provider,
        api_key=get_api_key(provider, config),
        model=get_model(provider, config, task),
    )


def load_system_prompt_override(config: Dict[str, Any]) -> Optional[str]:
    """Read the PROMPT_FILE system prompt, if one is configured."""
    prompt_file = config.get("PROMPT_FILE")
    if not prompt_file:
        return None
    path = Path(prompt_file)
    if not path.exists():
        raise ConfigurationError(f"PROMPT_FILE not found: {path}")
    prompt = path.read_text(encoding="utf-8").strip()
    logger.info(f"✅ Loaded system prompt from {path}")
    return prompt or None
