"""Haiku generation and 5-7-5 validation."""

from .bedrock import BedrockTextClient
from .logging_config import create_execution_logger
from .syllables import count_line

HAIKU_PATTERN = (5, 7, 5)

PROMPT_TEMPLATE = """Create a deeply evocative and poetic, strict 5-7-5 syllable haiku from this news excerpt.
Focus on:
1. Emotional resonance
2. Vivid imagery or figurative language
3. Key essence (not just dry facts)
4. Natural, flowing rhythm
Return ONLY the haiku with no commentary:
{excerpt}"""


def truncate_excerpt(excerpt: str, max_length: int = 500) -> str:
    """Cut an excerpt to ``max_length`` characters, marking the cut with '...'."""
    if len(excerpt) > max_length:
        return excerpt[:max_length] + "..."
    return excerpt


def haiku_lines(text: str) -> list[str]:
    """Split text into its non-empty, trimmed lines."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def validate_haiku_structure(text: str) -> bool:
    """Check that text is exactly three lines of 5, 7 and 5 syllables."""
    lines = haiku_lines(text)
    if len(lines) != len(HAIKU_PATTERN):
        return False
    return tuple(count_line(line) for line in lines) == HAIKU_PATTERN


class HaikuGenerator:
    """Turns a news excerpt into a validated haiku."""

    def __init__(
        self,
        client: BedrockTextClient,
        max_excerpt_length: int = 500,
        execution_id: str | None = None,
    ):
        self.client = client
        self.max_excerpt_length = max_excerpt_length
        self.logger = create_execution_logger("generator", execution_id)

    def build_prompt(self, excerpt: str) -> str:
        return PROMPT_TEMPLATE.format(
            excerpt=truncate_excerpt(excerpt, self.max_excerpt_length)
        )

    async def generate(self, excerpt: str | None) -> str | None:
        """Generate a 5-7-5 haiku for an excerpt.

        ``None`` is a normal outcome: empty input, a failed call, or output
        that does not validate. Nothing is retried here.

        Args:
            excerpt: News text to base the haiku on

        Returns:
            The haiku as three newline-joined lines, or None
        """
        if not excerpt or not excerpt.strip():
            self.logger.warning("generate called with empty excerpt")
            return None

        try:
            raw = await self.client.acomplete(self.build_prompt(excerpt))
        except Exception as e:
            self.logger.error(f"Error calling generation service: {e}", error=str(e))
            return None

        if not raw:
            self.logger.error("Generation service returned no content")
            return None

        lines = haiku_lines(raw)
        counts = [count_line(line) for line in lines]
        if len(lines) != len(HAIKU_PATTERN):
            self.logger.warning(
                f"Validation failed: Expected 3 lines, got {len(lines)}",
                raw_response=raw,
            )
            return None
        if tuple(counts) != HAIKU_PATTERN:
            self.logger.warning(
                f"Validation failed: Expected 5-7-5, got {'-'.join(map(str, counts))}",
                raw_response=raw,
            )
            return None

        return "\n".join(lines)
