from paperbot.logging_config import get_logger
from paperbot.services.errors import BackendError, InvalidInput
from paperbot.services.llm.base import LLMProvider

logger = get_logger("title_service")

TITLE_COUNT = 10

TITLE_PROMPT_TEMPLATE = (
    'I am planning to write a research paper. The keywords of the domain are "{topic}". '
    "Please generate {count} possible titles for my research paper. Only provide the titles "
    "in plain text, with no formatting (like bold, italics, or bullet points) but each topic "
    "with a numbering with each points have a gap in between."
)


def build_title_prompt(topic: str) -> str:
    return TITLE_PROMPT_TEMPLATE.format(topic=topic, count=TITLE_COUNT)


async def generate_titles(topic: str, provider: LLMProvider) -> str:
    """Ask the generative-text backend for candidate paper titles.

    The answer is forwarded as-is (trimmed); the numbered structure is not
    validated.
    """
    topic = (topic or "").strip()
    if not topic:
        raise InvalidInput("Topic is required")

    try:
        response = await provider.generate(build_title_prompt(topic))
    except BackendError:
        raise
    except Exception as e:
        logger.error(f"Title generation failed: {e}", exc_info=True)
        raise BackendError(f"Failed to generate titles: {e}") from e

    titles = (response.content or "").strip()
    if not titles:
        raise BackendError("Generative backend returned an empty answer")

    logger.info("Titles generated", extra={"context": {"topic": topic[:100], "model": response.model}})
    return titles
