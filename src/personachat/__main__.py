"""アプリケーションのエントリポイント"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

from personachat.application.services import ConversationRegistry
from personachat.config import Config, ConfigError, LoggingConfig, load_config
from personachat.infrastructure.catalog import CatalogLoadError, PersonaCatalogLoader
from personachat.infrastructure.llm import (
    JinjaSystemPromptBuilder,
    ModelLimitCache,
    ProviderFactory,
)
from personachat.infrastructure.persistence import (
    DatabaseManager,
    SQLiteConversationRepository,
    SQLiteCredentialStore,
    SQLiteRegistryStateRepository,
)
from personachat.presentation import ConsoleApp

# Default logging for early startup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def configure_logging(config: LoggingConfig | None) -> None:
    """Configure logging based on config.

    Args:
        config: Logging configuration. If None, uses defaults.
    """
    if config is None:
        return

    root_logger = logging.getLogger()
    level = getattr(logging, config.level.upper(), logging.INFO)
    root_logger.setLevel(level)

    if root_logger.handlers:
        formatter = logging.Formatter(config.format)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)

    if config.loggers:
        for logger_name, logger_level in config.loggers.items():
            individual_logger = logging.getLogger(logger_name)
            individual_level = getattr(logging, logger_level.upper(), logging.INFO)
            individual_logger.setLevel(individual_level)
            logger.debug(
                "Set logger '%s' to level %s", logger_name, logger_level.upper()
            )


def create_http_client(config: Config) -> httpx.AsyncClient:
    """Shared HTTP client. Without a configured timeout the httpx default applies."""
    if config.http.timeout_seconds is None:
        return httpx.AsyncClient()
    return httpx.AsyncClient(timeout=config.http.timeout_seconds)


async def main(config_path: Path) -> None:
    """アプリケーションを起動する"""
    if not config_path.exists():
        logger.error("%s not found", config_path)
        sys.exit(1)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error("Failed to load config: %s", e)
        sys.exit(1)

    configure_logging(config.logging)

    async with DatabaseManager(config.storage.database_path) as database:
        await run_console(config, database)
    logger.info("Shutdown complete")


async def run_console(config: Config, database: DatabaseManager) -> None:
    """Wire the registry to storage and drive the console until EOF or /quit."""
    credential_store = SQLiteCredentialStore(database.get_session)
    for provider_type, settings in config.providers.items():
        if settings.api_key:
            await credential_store.set(provider_type, settings.api_key)

    async with create_http_client(config) as http_client:
        try:
            catalog = await PersonaCatalogLoader(http_client).load(
                config.catalog.manifest
            )
        except CatalogLoadError as e:
            logger.error("Failed to load personas: %s", e)
            sys.exit(1)

        debug_llm_messages = bool(config.logging and config.logging.debug_llm_messages)
        provider_factory = ProviderFactory(
            http_client,
            limit_cache=ModelLimitCache(),
            settings=config.providers,
            debug_llm_messages=debug_llm_messages,
        )
        registry = ConversationRegistry(
            catalog=catalog,
            provider_factory=provider_factory,
            credential_store=credential_store,
            conversation_repository=SQLiteConversationRepository(
                database.get_session
            ),
            state_repository=SQLiteRegistryStateRepository(database.get_session),
            prompt_builder=JinjaSystemPromptBuilder(),
            config=config.conversation,
        )
        await registry.restore_all()

        app = ConsoleApp(registry, catalog, credential_store, config.providers)
        print("Type /help for commands.")
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            if not await app.handle_line(line):
                break


def run() -> None:
    """Run the async main function."""
    parser = argparse.ArgumentParser(description="Persona chat client")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="path to config.yaml",
    )
    args = parser.parse_args()
    try:
        asyncio.run(main(args.config))
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    run()
