"""Interactive console front end."""

import logging
from collections.abc import Callable

from personachat.application.services import ConversationRegistry, PersonaConversation
from personachat.config.models import ProviderSettings
from personachat.domain.entities import (
    ConversationId,
    ProviderConfig,
    ProviderType,
    Role,
)
from personachat.domain.exceptions import (
    ConversationNotFoundError,
    CredentialMissingError,
    PersonaNotFoundError,
)
from personachat.domain.repositories import CredentialStore
from personachat.infrastructure.catalog import PersonaCatalog
from personachat.infrastructure.llm import ProviderError

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Sorry, the model did not answer. Please try again."

HELP_TEXT = """\
Commands:
  /personas [query]          list or search personas
  /provider <name> [model]   choose provider (anthropic|openai) and model
  /start <handle>            start a conversation with the current provider
  /list                      list open conversations
  /select <n>                switch to conversation n
  /delete <n>                close conversation n (history stays saved)
  /clear                     clear the current conversation
  /stats                     token usage of the current conversation
  /history                   show the current conversation
  /key <provider> <api_key>  store an API key
  /unkey <provider>          remove an API key
  /quit                      exit
Anything else is sent to the current conversation."""


def describe_error(error: Exception) -> str:
    """Reduce an error to a short message for the user."""
    if isinstance(error, ProviderError):
        return GENERIC_FAILURE
    if isinstance(error, CredentialMissingError):
        provider = error.provider.value
        return f"No API key configured for {provider}. Use /key {provider} <api_key>."
    if isinstance(error, (PersonaNotFoundError, ConversationNotFoundError)):
        return str(error)
    return "Something went wrong."


class ConsoleApp:
    """Line-oriented chat front end over the conversation registry."""

    def __init__(
        self,
        registry: ConversationRegistry,
        catalog: PersonaCatalog,
        credential_store: CredentialStore,
        provider_settings: dict[ProviderType, ProviderSettings],
        write: Callable[[str], None] = print,
    ) -> None:
        self._registry = registry
        self._catalog = catalog
        self._credential_store = credential_store
        self._provider_settings = provider_settings
        self._write = write
        self._provider_config = ProviderConfig(
            type=ProviderType.ANTHROPIC,
            model=provider_settings[ProviderType.ANTHROPIC].default_model,
        )

    @property
    def provider_config(self) -> ProviderConfig:
        return self._provider_config

    async def handle_line(self, line: str) -> bool:
        """Process one input line.

        Returns:
            False when the user asked to quit.
        """
        line = line.strip()
        if not line:
            return True
        if not line.startswith("/"):
            await self._send(line)
            return True

        command, _, rest = line.partition(" ")
        args = rest.split()
        if command == "/quit":
            return False

        handlers = {
            "/help": self._help,
            "/personas": self._personas,
            "/provider": self._provider,
            "/start": self._start,
            "/list": self._list,
            "/select": self._select,
            "/delete": self._delete,
            "/clear": self._clear,
            "/stats": self._stats,
            "/history": self._history,
            "/key": self._key,
            "/unkey": self._unkey,
        }
        handler = handlers.get(command)
        if handler is None:
            self._write(f"Unknown command {command}. Type /help.")
            return True

        try:
            await handler(args)
        except (
            CredentialMissingError,
            PersonaNotFoundError,
            ConversationNotFoundError,
        ) as e:
            self._write(describe_error(e))
        return True

    async def _send(self, text: str) -> None:
        conversation = self._registry.selected
        if conversation is None:
            self._write("No conversation selected. Use /start <handle>.")
            return
        try:
            reply = await conversation.send_message(text)
        except ProviderError as e:
            logger.error("Send failed for %s: %s", conversation.conversation_id, e)
            self._write(describe_error(e))
            return
        if reply is not None:
            self._write(f"@{conversation.persona.handle}: {reply}")
            self._write(self._usage_line(conversation))

    async def _help(self, args: list[str]) -> None:
        self._write(HELP_TEXT)

    async def _personas(self, args: list[str]) -> None:
        personas = self._catalog.search(" ".join(args))
        if not personas:
            self._write("No personas found.")
        for persona in personas:
            self._write(f"@{persona.handle}  {persona.name}")

    async def _provider(self, args: list[str]) -> None:
        if not args:
            self._write(
                f"Provider: {self._provider_config.type.value} "
                f"({self._provider_config.model})"
            )
            return
        try:
            provider_type = ProviderType(args[0])
        except ValueError:
            self._write(f"Unknown provider {args[0]}.")
            return
        settings = self._provider_settings[provider_type]
        model = args[1] if len(args) > 1 else settings.default_model
        if model not in settings.models:
            choices = ", ".join(settings.models)
            self._write(f"Unknown model {model}. Choose from: {choices}")
            return
        self._provider_config = ProviderConfig(type=provider_type, model=model)
        self._write(f"Provider set to {provider_type.value} ({model}).")

    async def _start(self, args: list[str]) -> None:
        if not args:
            self._write("Usage: /start <handle>")
            return
        persona = self._catalog.require(args[0].lstrip("@"))
        conversation = await self._registry.start(persona, self._provider_config)
        self._write(f"Chatting with {persona.name} [{conversation.conversation_id}]")

    async def _list(self, args: list[str]) -> None:
        summaries = self._registry.list_conversations()
        if not summaries:
            self._write("No open conversations.")
        for index, summary in enumerate(summaries, start=1):
            selected = summary.conversation_id == self._registry.selected_id
            marker = "*" if selected else " "
            self._write(
                f"{marker}{index}. {summary.persona.name} "
                f"[{summary.conversation_id}] {len(summary.messages)} messages"
            )

    async def _select(self, args: list[str]) -> None:
        conversation_id = self._resolve_id(args, "/select")
        if conversation_id is not None:
            conversation = await self._registry.select(conversation_id)
            self._write(f"Switched to {conversation.persona.name} [{conversation_id}]")

    async def _delete(self, args: list[str]) -> None:
        conversation_id = self._resolve_id(args, "/delete")
        if conversation_id is not None:
            await self._registry.delete(conversation_id)
            self._write(f"Closed {conversation_id}")

    async def _clear(self, args: list[str]) -> None:
        conversation = self._require_selected()
        if conversation is not None:
            await conversation.clear_history()
            self._write("History cleared.")

    async def _stats(self, args: list[str]) -> None:
        conversation = self._require_selected()
        if conversation is None:
            return
        stats = conversation.context_stats()
        self._write(
            f"messages={stats.message_count} tokens={stats.total_tokens} "
            f"remaining={stats.remaining_token_capacity} "
            f"oldest={stats.oldest_message_age}min"
        )
        provider_stats = await conversation.provider_context_stats()
        self._write(f"model capacity remaining={provider_stats.remaining_capacity}")

    async def _history(self, args: list[str]) -> None:
        conversation = self._require_selected()
        if conversation is None:
            return
        for message in conversation.display_messages():
            if message.role == Role.USER:
                speaker = "you"
            else:
                speaker = f"@{conversation.persona.handle}"
            self._write(f"{speaker}: {message.content}")

    async def _key(self, args: list[str]) -> None:
        if len(args) != 2:
            self._write("Usage: /key <provider> <api_key>")
            return
        try:
            provider_type = ProviderType(args[0])
        except ValueError:
            self._write(f"Unknown provider {args[0]}.")
            return
        await self._credential_store.set(provider_type, args[1])
        self._write(f"API key for {provider_type.value} saved.")

    async def _unkey(self, args: list[str]) -> None:
        if len(args) != 1:
            self._write("Usage: /unkey <provider>")
            return
        try:
            provider_type = ProviderType(args[0])
        except ValueError:
            self._write(f"Unknown provider {args[0]}.")
            return
        await self._credential_store.remove(provider_type)
        self._write(f"API key for {provider_type.value} removed.")

    def _require_selected(self) -> PersonaConversation | None:
        conversation = self._registry.selected
        if conversation is None:
            self._write("No conversation selected.")
        return conversation

    def _resolve_id(self, args: list[str], command: str) -> ConversationId | None:
        """Conversation id from a /list index or a literal id."""
        if not args:
            self._write(f"Usage: {command} <n>")
            return None
        summaries = self._registry.list_conversations()
        if args[0].isdigit():
            index = int(args[0]) - 1
            if 0 <= index < len(summaries):
                return summaries[index].conversation_id
            self._write(f"No conversation #{args[0]}.")
            return None
        try:
            return ConversationId.parse(args[0])
        except ValueError:
            self._write(f"Invalid conversation id {args[0]}.")
            return None

    @staticmethod
    def _usage_line(conversation: PersonaConversation) -> str:
        stats = conversation.context_stats()
        return (
            f"[tokens used={stats.total_tokens} "
            f"remaining={stats.remaining_token_capacity}]"
        )
