"""
Interactive input boundary for configure flows.

WHAT: The prompts a host editor must provide, plus input helpers shared by adapters
WHY: Providers ask for URLs, keys and model choices without knowing the UI toolkit
HOW: Protocol with async text-box and quick-pick; None means the user dismissed it
"""

from typing import Callable, Protocol

from ..utils.exceptions import InvalidInputError, UserCancelledError
from ..utils.logger import get_logger

logger = get_logger(__name__)

Validator = Callable[[str], str | None]


class Prompter(Protocol):
    """UI prompts implemented by the host."""

    async def input_box(
        self,
        *,
        title: str,
        value: str = "",
        placeholder: str = "",
        prompt: str = "",
        password: bool = False,
        validate: Validator | None = None,
    ) -> str | None:
        """Ask for one line of text. `validate` returns an error message or None."""
        ...

    async def quick_pick(
        self,
        items: list[str],
        *,
        title: str,
        placeholder: str = "",
    ) -> str | None:
        """Ask the user to choose one of `items`."""
        ...


def not_empty(label: str) -> Validator:
    def validate(value: str) -> str | None:
        return f"{label} cannot be empty" if not (value or "").strip() else None
    return validate


async def ask_base_url(
    prompter: Prompter,
    *,
    provider_name: str,
    current: str | None,
    default: str,
    help_prompt: str = "",
) -> str:
    """
    Prompt for a provider base URL, prefilled with the stored or default value.

    Raises:
        UserCancelledError: Prompt dismissed
        InvalidInputError: Blank URL
    """
    base_url = await prompter.input_box(
        title=f"Enter the base URL for {provider_name} API",
        value=current or default,
        placeholder=f"e.g., {default}",
        prompt=help_prompt,
        validate=not_empty("Base URL"),
    )
    if base_url is None:
        raise UserCancelledError("base URL input")
    base_url = base_url.strip().rstrip("/")
    if not base_url:
        raise InvalidInputError("Base URL cannot be empty", field="baseUrl")
    return base_url


async def ask_api_key(
    prompter: Prompter,
    *,
    provider_name: str,
    current: str | None,
    placeholder: str = "",
    help_prompt: str = "",
) -> str:
    """
    Prompt for an API key.

    Raises:
        UserCancelledError: Prompt dismissed
        InvalidInputError: Blank key
    """
    logger.debug(f"Prompting user for {provider_name} API key")
    api_key = await prompter.input_box(
        title=f"Enter your {provider_name} API key",
        value=current or "",
        placeholder=placeholder,
        prompt=help_prompt,
        password=True,
        validate=not_empty("API key"),
    )
    if api_key is None:
        raise UserCancelledError(f"{provider_name} API key input")
    api_key = api_key.strip()
    if not api_key:
        raise InvalidInputError("API key cannot be empty", field="apiKey")
    logger.debug(f"{provider_name} API key input received")
    return api_key
