"""
Main workflow orchestration for the Article Enricher.

This module sequences one run:
1. Read the source article and the prior corpus
2. Ask the similarity provider for the closest prior article
3. Best-effort read of the previous output (absent on a first run)
4. Diff previous output against the new one
5. Write the output and the diff concurrently

Every storage call goes through ``DocumentStore`` and therefore through
``retry_with_backoff``; the runner itself holds no retry logic.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path
import random

from rich.console import Console

from .channel import Channel, LocalFileChannel, RandomFailureSource, UnreliableChannel
from .codec import (
    article_from_dict,
    corpus_from_document,
    diff_to_dict,
    enriched_from_dict,
    enriched_to_dict,
)
from .config import AppConfig, ChannelConfig, KeysConfig, RetryConfig
from .diff import generate_diff
from .errors import EnricherError, PriorOutputAbsent, WritesFailed
from .llm.providers.base import SimilarityProvider
from .llm.providers.factory import create_provider
from .llm.tracing import flush, setup_langfuse
from .logging_utils import setup_llm_logger, setup_logging
from .reporting import LoggingReporter, NullReporter, RunReporter
from .retry import retry_with_backoff
from .storage import DocumentStore
from .types import EMPTY_DIFF, Article, Diff, EnrichedArticle, SimilarTo


class RunState(str, Enum):
    READ_INPUTS = "read_inputs"
    AWAIT_SIMILARITY = "await_similarity"
    TRY_READ_PRIOR = "try_read_prior"
    COMPUTE_DIFF = "compute_diff"
    WRITES_IN_FLIGHT = "writes_in_flight"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class EnrichmentResult:
    """Outcome of a successful run.

    Attributes:
        output: The enriched article that was written
        diff: Delta against the previous output (empty on a first run)
        first_run: True when no readable previous output existed
    """
    output: EnrichedArticle
    diff: Diff
    first_run: bool


async def enrich(
    store: DocumentStore,
    provider: SimilarityProvider,
    keys: KeysConfig,
    reporter: RunReporter | None = None,
    similarity_attempts: int = 1,
    retry_cfg: RetryConfig | None = None,
) -> EnrichmentResult:
    """Run one enrichment against ``store``.

    Args:
        store: Document store wrapping the channel
        provider: Similarity service client
        keys: Channel keys to read and write
        reporter: Receives state changes and completion
        similarity_attempts: Attempts for the similarity call
        retry_cfg: Backoff settings for similarity retries

    Returns:
        EnrichmentResult with the written output and diff

    Raises:
        RetryExhausted: If a required read failed on every attempt
        SimilarityServiceError: If the provider returned nothing usable
        WritesFailed: If either final write failed
    """
    reporter = reporter or NullReporter()
    retry_cfg = retry_cfg or RetryConfig()

    try:
        reporter.on_state(RunState.READ_INPUTS, source=keys.source, corpus=keys.corpus)
        article = await store.read(keys.source, article_from_dict)
        previous_articles = await store.read(keys.corpus, corpus_from_document)

        reporter.on_state(RunState.AWAIT_SIMILARITY, corpus_size=len(previous_articles))
        similar_to = await _lookup_similar(
            provider, article, previous_articles, similarity_attempts, retry_cfg, reporter
        )
        output = article.enrich(similar_to)

        reporter.on_state(RunState.TRY_READ_PRIOR, previous_output=keys.previous_output)
        try:
            previous = await _read_prior(store, keys.previous_output)
        except PriorOutputAbsent as exc:
            reporter.on_state(RunState.COMPUTE_DIFF, skipped=True, reason=str(exc))
            diff = EMPTY_DIFF
            first_run = True
        else:
            reporter.on_state(RunState.COMPUTE_DIFF, skipped=False)
            diff = generate_diff(previous, output)
            first_run = False

        reporter.on_state(RunState.WRITES_IN_FLIGHT, output=keys.output, diff=keys.diff)
        await _write_all(
            store,
            {
                keys.output: enriched_to_dict(output),
                keys.diff: diff_to_dict(diff),
            },
        )
    except EnricherError as exc:
        reporter.on_state(RunState.FAILED, error=str(exc), error_type=type(exc).__name__)
        raise

    result = EnrichmentResult(output=output, diff=diff, first_run=first_run)
    reporter.on_state(RunState.DONE)
    reporter.on_complete(result)
    return result


async def _lookup_similar(
    provider: SimilarityProvider,
    article: Article,
    previous_articles: tuple[Article, ...],
    attempts: int,
    retry_cfg: RetryConfig,
    reporter: RunReporter,
) -> SimilarTo:
    async def call() -> SimilarTo:
        return await asyncio.to_thread(provider.find_similar, article, previous_articles)

    if attempts <= 1:
        return await call()
    return await retry_with_backoff(
        call,
        max_attempts=attempts,
        base_delay=retry_cfg.base_delay_seconds,
        max_jitter=retry_cfg.max_jitter_seconds,
        label="similarity lookup",
        reporter=reporter,
    )


async def _read_prior(store: DocumentStore, key: str) -> EnrichedArticle:
    try:
        return await store.read(key, enriched_from_dict)
    except EnricherError as exc:
        raise PriorOutputAbsent(f"No usable previous output at {key}: {exc}") from exc


async def _write_all(store: DocumentStore, documents: dict[str, object]) -> None:
    """Start every write together and wait for all of them.

    A failing write never cancels the others; all failures are reported
    together in one ``WritesFailed``.
    """
    keys = list(documents)
    results = await asyncio.gather(
        *(store.write(key, documents[key]) for key in keys),
        return_exceptions=True,
    )
    failures: dict[str, BaseException] = {}
    for key, outcome in zip(keys, results):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            failures[key] = outcome
    if failures:
        raise WritesFailed(failures)


def build_channel(cfg: ChannelConfig) -> Channel:
    """Build the storage channel described by ``cfg``."""
    channel: Channel = LocalFileChannel(Path(cfg.root))
    if not cfg.simulate_faults:
        return channel
    source = RandomFailureSource(
        fail_rate=cfg.fail_rate,
        stall_rate=cfg.stall_rate,
        truncate_rate=cfg.truncate_rate,
        truncate_min=cfg.truncate_min,
        truncate_max=cfg.truncate_max,
        rng=random.Random(cfg.seed),
    )
    return UnreliableChannel(channel, source, stall_seconds=cfg.stall_seconds)


def run_pipeline(cfg: AppConfig, console: Console | None = None) -> EnrichmentResult:
    """Run the complete enrichment workflow from configuration.

    Sets up logging and tracing, builds the channel, store and provider,
    and prints the output and diff on ``console``.

    Args:
        cfg: Application configuration
        console: Rich console for output (creates default if None)

    Returns:
        EnrichmentResult of the run
    """
    console = console or Console()
    log_dir = Path(cfg.logging.directory)
    logger = setup_logging(cfg.logging, log_dir)
    llm_logger = setup_llm_logger(cfg.logging, log_dir)
    setup_langfuse(cfg.langfuse)

    reporter = LoggingReporter(logger)
    provider = create_provider(cfg.provider, cfg.logging, llm_logger)
    store = DocumentStore(
        build_channel(cfg.channel),
        retry_cfg=cfg.retry,
        reporter=reporter,
        verify_writes=cfg.channel.verify_writes,
    )

    try:
        result = asyncio.run(
            enrich(
                store,
                provider,
                cfg.keys,
                reporter=reporter,
                similarity_attempts=cfg.provider.max_attempts,
                retry_cfg=cfg.retry,
            )
        )
    finally:
        flush()

    console.print("Output:")
    console.print_json(data=enriched_to_dict(result.output))
    if result.first_run:
        console.print("No existing output, skipped diff generation.")
    console.print("Diff:")
    console.print_json(data=diff_to_dict(result.diff))
    _log_summary(logger, result)
    return result


def _log_summary(logger: logging.Logger, result: EnrichmentResult) -> None:
    if result.diff.is_empty:
        logger.info("No fields changed since the previous run")
    else:
        logger.info(f"Changed fields: {', '.join(sorted(result.diff.changed))}")
