"""LLM client configuration.

Default parameters for LLM API calls and the default model for each
supported provider.
"""

# =============================================================================
# Generation Defaults
# =============================================================================
# MAX_TOKENS caps response length to control costs and ensure responses complete.
# DEFAULT_TEMPERATURE balances creativity and consistency (0.7 is a common default).

MAX_TOKENS = 8192
DEFAULT_TEMPERATURE = 0.7

# =============================================================================
# Providers
# =============================================================================
# The mock provider produces deterministic text offline and needs no key.
# Ollama runs locally and needs an endpoint instead of a key.

DEFAULT_PROVIDER = "mock"

PROVIDER_DEFAULT_MODELS = {
    "openai": "gpt-4-turbo-preview",
    "anthropic": "claude-3-5-sonnet-20241022",
    "gemini": "gemini-1.5-pro",
    "openrouter": "anthropic/claude-3.5-sonnet",
    "ollama": "llama2",
    "mock": "mock-model",
}

PROVIDERS_REQUIRING_KEY = frozenset(["openai", "anthropic", "gemini", "openrouter"])

DEFAULT_OLLAMA_ENDPOINT = "http://localhost:11434"
