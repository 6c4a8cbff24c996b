"""Fill-in-the-blank article generation.

Generators are tried in order by :class:`ArticleResolver`; the LLM-backed
generator goes first and the template generator is the last resort, so a
caller always receives an article.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from loguru import logger

from app.config import settings
from app.services.llm_service import LLMService
from app.utils.exceptions import GenerationFailure, GenerationQualityWarning, InvalidInputError

BLANK_MARKER = "______"

SYSTEM_PROMPT = (
    "You are an expert English teacher who creates engaging educational content. "
    "Generate articles that help students learn vocabulary in context."
)


@dataclass(frozen=True, slots=True)
class ArticleWord:
    """The parts of a vocabulary word an article needs."""

    id: str
    word: str
    definition: str


@dataclass(slots=True)
class GeneratedArticle:
    text: str
    generator: str
    quality_warning: Optional[GenerationQualityWarning] = None


class ArticleGenerator(Protocol):
    name: str

    def generate(self, words: Sequence[ArticleWord]) -> str:  # pragma: no cover - interface definition
        """Return article text with one blank per word or raise GenerationFailure."""


def count_blanks(text: str) -> int:
    return text.count(BLANK_MARKER)


def build_article_prompt(words: Sequence[ArticleWord]) -> str:
    """Prompt asking for a short article with exactly one blank per word."""

    if not words:
        raise InvalidInputError("No words provided for article generation")
    word_list = "\n".join(f"- {word.word}: {word.definition}" for word in words)
    return (
        f"Generate a coherent, engaging article (3-5 sentences) that naturally incorporates "
        f"these {len(words)} English words. The article should be educational and contextually "
        f'appropriate. Use the placeholder "{BLANK_MARKER}" where each word should appear.\n\n'
        f"Words to include:\n{word_list}\n\n"
        "Requirements:\n"
        "1. Create a meaningful, flowing article\n"
        f'2. Use "{BLANK_MARKER}" as a placeholder for each word, exactly {len(words)} '
        "placeholders in total (one per word)\n"
        "3. Make the article educational and interesting\n"
        "4. Ensure the context makes it clear which word fits in each blank\n"
        "5. Keep it concise (3-5 sentences total)\n\n"
        "Article:"
    )


class LLMArticleGenerator:
    """Ask the configured LLM providers for an article under a hard deadline."""

    name = "llm"

    def __init__(
        self,
        llm_service: LLMService,
        *,
        max_tokens: int | None = None,
        max_chars: int | None = None,
        temperature: float | None = None,
        deadline_seconds: float | None = None,
        max_workers: int = 4,
    ) -> None:
        self.llm_service = llm_service
        self.max_tokens = max_tokens or settings.ARTICLE_MAX_TOKENS
        self.max_chars = max_chars or settings.ARTICLE_MAX_CHARS
        self.temperature = settings.ARTICLE_TEMPERATURE if temperature is None else temperature
        self.deadline_seconds = deadline_seconds or settings.LLM_TOTAL_TIMEOUT_SECONDS
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="article-llm")

    def generate(self, words: Sequence[ArticleWord]) -> str:
        prompt = build_article_prompt(words)
        future = self._executor.submit(
            self.llm_service.generate_text,
            prompt,
            max_tokens=self.max_tokens,
            system_prompt=SYSTEM_PROMPT,
            temperature=self.temperature,
        )
        try:
            result = future.result(timeout=self.deadline_seconds)
        except FutureTimeoutError as exc:
            future.cancel()
            raise GenerationFailure(
                "Article generation timed out",
                details={"deadline_seconds": self.deadline_seconds},
            ) from exc
        except Exception as exc:
            raise GenerationFailure(f"Article generation failed: {exc}") from exc

        text = (result.content or "").strip()
        if not text:
            raise GenerationFailure("Empty response from LLM")
        if len(text) > self.max_chars:
            raise GenerationFailure(
                "LLM response exceeds the article size limit",
                details={"length": len(text), "max_chars": self.max_chars},
            )
        logger.info(
            "Article generated",
            provider=result.provider,
            model=result.model,
            tokens=result.total_tokens,
            cost=result.cost,
        )
        return text

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


# Definition keywords mapped to a sentence that fits words of that meaning.
_FALLBACK_TEMPLATES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("time", "short"), "The ______ nature of the event made it all the more special."),
    (("everywhere", "present"), "Technology has become ______ in our daily lives."),
    (("chance", "discovery"), "Finding that solution was pure ______."),
    (("speaking", "writing"), "Her ______ presentation captivated the entire audience."),
    (("recover", "difficulties"), "The community proved to be remarkably ______ after the crisis."),
    (("detail", "careful"), "His ______ approach ensured nothing was overlooked."),
    (("meaning", "unclear"), "The instructions were intentionally ______, leaving room for interpretation."),
    (("practical", "real"), "We need a more ______ solution to this problem."),
    (("harm", "damage"), "The ______ influence spread slowly before anyone noticed."),
)
_GENERIC_TEMPLATE = "The concept of ______ is essential in this context."


class FallbackArticleGenerator:
    """Deterministic, cost-free article built from sentence templates."""

    name = "fallback"

    def generate(self, words: Sequence[ArticleWord]) -> str:
        if not words:
            raise InvalidInputError("No words provided for article generation")
        return " ".join(self._sentence_for(word) for word in words)

    @staticmethod
    def _sentence_for(word: ArticleWord) -> str:
        definition = (word.definition or "").lower()
        for keywords, template in _FALLBACK_TEMPLATES:
            if any(keyword in definition for keyword in keywords):
                return template
        return _GENERIC_TEMPLATE


class ArticleResolver:
    """Try article generators in order until one produces text."""

    def __init__(self, generators: Sequence[ArticleGenerator]) -> None:
        if not generators:
            raise ValueError("ArticleResolver requires at least one generator")
        self.generators = list(generators)

    @property
    def generator_names(self) -> list[str]:
        return [generator.name for generator in self.generators]

    def resolve(self, words: Sequence[ArticleWord]) -> GeneratedArticle:
        if not words:
            raise InvalidInputError("No words provided for article generation")

        last_error: Exception | None = None
        for generator in self.generators:
            try:
                text = generator.generate(words)
            except InvalidInputError:
                raise
            except Exception as exc:
                logger.warning(
                    "Article generator failed, trying next",
                    generator=generator.name,
                    error=str(exc),
                )
                last_error = exc
                continue

            article = GeneratedArticle(text=text, generator=generator.name)
            blanks = count_blanks(text)
            if blanks != len(words):
                article.quality_warning = GenerationQualityWarning(expected=len(words), actual=blanks)
                logger.warning(
                    "Generated article blank count mismatch",
                    generator=generator.name,
                    expected=len(words),
                    actual=blanks,
                )
            return article

        raise GenerationFailure(
            "Every article generator failed",
            details={"last_error": str(last_error) if last_error else None},
        )

    def close(self) -> None:
        for generator in self.generators:
            close = getattr(generator, "close", None)
            if callable(close):
                close()


def build_default_resolver(llm_service: LLMService | None = None) -> ArticleResolver:
    """LLM generator (when providers are configured) followed by the fallback."""

    generators: list[ArticleGenerator] = []
    if llm_service is None:
        try:
            llm_service = LLMService()
        except ValueError:
            logger.warning("No LLM providers configured; articles will use templates only")
    if llm_service is not None:
        generators.append(LLMArticleGenerator(llm_service))
    generators.append(FallbackArticleGenerator())
    return ArticleResolver(generators)


__all__ = [
    "ArticleGenerator",
    "ArticleResolver",
    "ArticleWord",
    "BLANK_MARKER",
    "FallbackArticleGenerator",
    "GeneratedArticle",
    "LLMArticleGenerator",
    "build_article_prompt",
    "build_default_resolver",
    "count_blanks",
]
