"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- ProviderConfig: Similarity (LLM) provider settings
- RetryConfig: Backoff and attempt budget for channel operations
- ChannelConfig: Storage root and fault simulation settings
- KeysConfig: Channel keys read and written by a run
- LoggingConfig: Logging behavior
- LangfuseConfig: Langfuse tracing settings
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml


@dataclass
class ProviderConfig:
    """Configuration for the similarity provider.

    Attributes:
        name: Provider name ("openai", "openai_compatible" or "gemini")
        model: Model identifier; None uses the provider's default model
        api_key_env: Environment variable holding the API key; None uses
            the provider's default variable
        base_url: Base URL for the provider API; None uses the provider's
            public endpoint
        api_key: Optional inline API key (overrides env var)
        trust_env: Whether to respect system proxy settings for API requests
        temperature: Sampling temperature for the similarity prompt
        timeout_seconds: HTTP timeout for one provider request
        max_attempts: Attempts for the similarity call (1 disables retries)
    """

    name: str = "openai"
    model: str | None = None
    api_key_env: str | None = None
    base_url: str | None = None
    api_key: str | None = None
    trust_env: bool = True
    temperature: float = 0.3
    timeout_seconds: float = 60.0
    max_attempts: int = 1


@dataclass
class RetryConfig:
    """Configuration for retrying channel operations.

    Attributes:
        max_attempts: Total attempts per read or write
        base_delay_seconds: Backoff base; attempt n waits base * 2**n plus jitter
        max_jitter_seconds: Upper bound of the uniform random jitter
        attempt_timeout_seconds: Per-attempt timeout; None waits out stalls
    """

    max_attempts: int = 5
    base_delay_seconds: float = 1.0
    max_jitter_seconds: float = 1.0
    attempt_timeout_seconds: float | None = 90.0


@dataclass
class ChannelConfig:
    """Configuration for the storage channel.

    Attributes:
        root: Directory keys are resolved against
        simulate_faults: Wrap storage in the fault-injecting channel
        fail_rate: Probability a call fails outright
        stall_rate: Probability a call stalls before completing
        truncate_rate: Probability a call silently truncates its payload
        stall_seconds: Duration of a stall
        truncate_min: Smallest fraction of bytes kept on truncation
        truncate_max: Largest fraction of bytes kept on truncation
        seed: Optional seed for reproducible fault sequences
        verify_writes: Read each write back and retry unless the bytes match
    """

    root: str = "."
    simulate_faults: bool = True
    fail_rate: float = 0.1
    stall_rate: float = 0.1
    truncate_rate: float = 0.1
    stall_seconds: float = 60.0
    truncate_min: float = 0.5
    truncate_max: float = 0.9
    seed: int | None = None
    verify_writes: bool = True


@dataclass
class KeysConfig:
    """Channel keys used by one run.

    Attributes:
        source: The article to enrich
        corpus: JSON array of previously published articles
        previous_output: Output of the last run, diffed against (optional)
        output: Where the enriched article is written
        diff: Where the diff is written
    """

    source: str = "enriched-article.json"
    corpus: str = "previous-articles.json"
    previous_output: str = "output.json"
    output: str = "output.json"
    diff: str = "diff.json"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        directory: Directory for log files
        filename: Name of the main log file
        llm_log_enabled: Whether to enable separate LLM interaction logging
        llm_log_detail: LLM log detail level ("response_only", "prompt_response")
        llm_log_redaction: Redaction mode for LLM logs ("none", "redact_content")
        llm_log_file: Name of the LLM log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    directory: str = "logs"
    filename: str = "run.jsonl"
    llm_log_enabled: bool = False
    llm_log_detail: str = "response_only"
    llm_log_redaction: str = "none"
    llm_log_file: str = "llm.jsonl"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse tracing.

    Attributes:
        enabled: Whether to enable Langfuse tracing
        public_key: Langfuse public key (optional)
        secret_key: Langfuse secret key (optional)
        host: Langfuse host URL (optional)
        environment: Langfuse environment label (optional)
        release: Langfuse release identifier (optional)
        max_text_chars: Maximum characters for prompt/response payloads
    """

    enabled: bool = False
    public_key: str | None = None
    secret_key: str | None = None
    host: str | None = None
    environment: str | None = None
    release: str | None = None
    max_text_chars: int = 20000


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    channel: ChannelConfig = field(default_factory=ChannelConfig)
    keys: KeysConfig = field(default_factory=KeysConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig.

    Unknown sections are ignored; unknown keys inside a known section
    raise ``TypeError`` from the section dataclass.
    """
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        provider=ProviderConfig(**data["provider"]),
        retry=RetryConfig(**data["retry"]),
        channel=ChannelConfig(**data["channel"]),
        keys=KeysConfig(**data["keys"]),
        logging=LoggingConfig(**data["logging"]),
        langfuse=LangfuseConfig(**data.get("langfuse", {})),
    )


def get_api_key(cfg: ProviderConfig) -> str | None:
    """Get API key from inline config or environment variable."""
    if cfg.api_key:
        return cfg.api_key
    if not cfg.api_key_env:
        return None
    return os.getenv(cfg.api_key_env)
