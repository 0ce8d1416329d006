"""Jinja2 system prompt rendering."""

from jinja2 import Environment, PackageLoader, select_autoescape

from personachat.domain.entities import PersonaConfig

SYSTEM_PROMPT_TEMPLATE = "system_prompt.j2"


def create_jinja_env() -> Environment:
    """Create Jinja2 environment for prompt templates.

    Loads templates from the personachat.infrastructure.llm templates
    directory.

    Returns:
        Configured Jinja2 environment.
    """
    return Environment(
        loader=PackageLoader("personachat.infrastructure.llm", "templates"),
        autoescape=select_autoescape(),
        trim_blocks=True,
        lstrip_blocks=True,
    )


class JinjaSystemPromptBuilder:
    """SystemPromptBuilder rendering ``system_prompt.j2``."""

    def __init__(self, env: Environment | None = None) -> None:
        self._template = (env or create_jinja_env()).get_template(
            SYSTEM_PROMPT_TEMPLATE
        )

    def build(self, persona: PersonaConfig) -> str:
        """Render the system prompt for a persona."""
        return self._template.render(persona=persona).strip()
