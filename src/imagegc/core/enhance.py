"""
Description enhancement for imagegc.

Expands the vision stage's basic description into a detailed description of a
requested length. The text deployments are tried in the order given by
Config.chat_candidates(): the primary, then the fallback once if the primary
is unavailable. Any final failure degrades to the basic description.
"""

import time

from imagegc.core.config import Config
from imagegc.core.models import Enhancement, StageOutcome
from imagegc.core.prompts_loader import (
    get_enhancement_system_prompt,
    get_enhancement_user_template,
)
from imagegc.core.providers.base import ChatCompletionProvider
from imagegc.logging_config import get_logger, log_descriptions
from imagegc.utils.exceptions import (
    EnhancementError,
    ImagegcError,
    ModelUnavailableError,
    ValidationError,
)

logger = get_logger(__name__)


def build_messages(
    basic_description: str, tags: list[str], target_word_count: int
) -> list[dict[str, str]]:
    """Build the system + user messages for an enhancement request."""
    user = get_enhancement_user_template().format(
        basic_description=basic_description,
        tags=", ".join(tags),
        target_length=target_word_count,
    )
    return [
        {"role": "system", "content": get_enhancement_system_prompt()},
        {"role": "user", "content": user},
    ]


def _validate_inputs(basic_description: str, target_word_count: int) -> None:
    if not basic_description or not basic_description.strip():
        raise ValidationError("Basic description cannot be empty", field="basic_description")
    if target_word_count <= 0:
        raise ValidationError(
            "Target length must be greater than 0", field="target_word_count"
        )


class DescriptionEnhancer:
    """Enhances a basic description with a chat deployment (primary, then optional fallback)."""

    def __init__(self, config: Config, provider: ChatCompletionProvider) -> None:
        self._config = config
        self._provider = provider
        self._candidates = config.chat_candidates()

    @property
    def candidates(self) -> list[str]:
        """Deployments in the order they are tried."""
        return list(self._candidates)

    def _complete(self, deployment: str, messages: list[dict[str, str]]) -> Enhancement:
        completion = self._provider.complete_chat(
            deployment,
            messages,
            max_tokens=self._config.max_output_tokens,
            temperature=self._config.temperature,
            top_p=self._config.top_p,
            timeout=self._config.enhancement_attempt_timeout(),
        )
        if not completion.text.strip():
            raise EnhancementError(f"{deployment} returned an empty description")
        return Enhancement(
            description=completion.text.strip(),
            tokens_used=completion.total_tokens,
            model_used=deployment,
        )

    def enhance(
        self, basic_description: str, tags: list[str], target_word_count: int
    ) -> StageOutcome[Enhancement]:
        """
        Enhance basic_description toward target_word_count words.

        Returns:
            SUCCESS with the enhanced text, or DEGRADED carrying the basic
            description verbatim and the failure reason. Never FATAL.
        """
        logger.info("Enhancing description. Target length: %d words", target_word_count)
        start_time = time.time()
        attempted: list[str] = []
        last_error: ImagegcError | None = None

        try:
            _validate_inputs(basic_description, target_word_count)
            messages = build_messages(basic_description, tags, target_word_count)
        except ImagegcError as e:
            last_error = e
        else:
            for index, deployment in enumerate(self._candidates):
                attempted.append(deployment)
                try:
                    enhancement = self._complete(deployment, messages)
                except ModelUnavailableError as e:
                    last_error = e
                    if index + 1 < len(self._candidates):
                        logger.warning(
                            "Primary model %s unavailable. Trying fallback model %s",
                            deployment,
                            self._candidates[index + 1],
                        )
                    continue
                except ImagegcError as e:
                    last_error = e
                    break

                elapsed_ms = int((time.time() - start_time) * 1000)
                if index > 0:
                    logger.info("Successfully used fallback model %s", deployment)
                logger.info(
                    "Description enhancement completed in %dms, tokens used: %d",
                    elapsed_ms,
                    enhancement.tokens_used,
                )
                if log_descriptions():
                    logger.info("Enhanced description: %s", enhancement.description)
                return StageOutcome.success(enhancement, elapsed_ms=elapsed_ms)

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.error(
            "Error enhancing description after %dms. Attempted models: %s. %s",
            elapsed_ms,
            ", ".join(attempted) or "none",
            last_error,
        )
        return StageOutcome.degraded(
            f"Description enhancement failed: {last_error}",
            value=Enhancement(description=basic_description),
            elapsed_ms=elapsed_ms,
        )
