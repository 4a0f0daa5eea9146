"""The concrete :class:`~elevator.formatting.types.Enhancer` backed by an LLM.

:class:`LLMEnhancer` sends text through the LCEL elevation chain.  Unless
told otherwise it first routes the text through the format-preserving
pipeline, which calls back into :meth:`LLMEnhancer.enhance` with
``skip_format_preservation=True`` for each rewritable segment.

Usage::

    from elevator.generation.enhancer import LLMEnhancer, elevate_prompt

    print(elevate_prompt("make the login page faster"))

    enhancer = LLMEnhancer(provider="ollama", model="llama3.2:3b")
    elevated = await enhancer.enhance(text)
"""

import asyncio
import logging

from elevator.config import CFG
from elevator.errors import EnhancerError, TransportError
from elevator.formatting.orchestrator import ProgressReporter
from elevator.formatting.pipeline import elevate_with_format_preservation
from elevator.generation.llm import (
    DEFAULT_MODEL,
    DEFAULT_PROVIDER,
    DEFAULT_STRATEGY,
    DEFAULT_TEMPERATURE,
    PROVIDER_DEFAULTS,
    elevation_chain,
)
from elevator.validation import validate_prompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS: float = float(CFG.get("timeout_seconds", 30))
DEFAULT_MAX_RETRIES: int = int(CFG.get("max_retries", 2))
DEFAULT_MAX_CONCURRENCY: int = int(CFG.get("max_concurrency", 4))
DEFAULT_PRESERVE_FORMATTING: bool = bool(CFG.get("preserve_formatting", True))


class LLMEnhancer:
    """Elevate text with a LangChain chat model.

    Parameters
    ----------
    provider, model : str, optional
        LLM provider and model name (default: config.txt).
    temperature : float, optional
        Sampling temperature.
    strategy : str, optional
        Key of :data:`~elevator.generation.llm.ELEVATION_PROMPTS`.
    timeout_seconds : float, optional
        Per-call timeout.
    max_retries : int, optional
        Extra attempts after a failed call.
    preserve_formatting : bool, optional
        Route un-guarded calls through the format-preserving pipeline.
    max_concurrency : int, optional
        Parallel segment calls allowed on the segmented path.
    reporter : ProgressReporter, optional
        Receives segment progress events.
    chain : Runnable, optional
        Pre-built chain; skips :func:`elevation_chain`.
    """

    def __init__(
        self,
        *,
        provider: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        strategy: str | None = None,
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
        preserve_formatting: bool | None = None,
        max_concurrency: int | None = None,
        reporter: ProgressReporter | None = None,
        chain=None,
    ):
        self.provider = (provider or DEFAULT_PROVIDER).lower().strip()
        # config.txt model belongs to the config.txt provider
        self.model = model or (
            DEFAULT_MODEL
            if self.provider == DEFAULT_PROVIDER
            else PROVIDER_DEFAULTS.get(self.provider, DEFAULT_MODEL)
        )
        self.temperature = DEFAULT_TEMPERATURE if temperature is None else temperature
        self.strategy = strategy or DEFAULT_STRATEGY
        self.timeout_seconds = timeout_seconds or DEFAULT_TIMEOUT_SECONDS
        self.max_retries = DEFAULT_MAX_RETRIES if max_retries is None else max_retries
        self.preserve_formatting = (
            DEFAULT_PRESERVE_FORMATTING if preserve_formatting is None else preserve_formatting
        )
        self.max_concurrency = max_concurrency or DEFAULT_MAX_CONCURRENCY
        self.reporter = reporter
        self._chain = chain

    @property
    def chain(self):
        """The LCEL chain, built on first use."""
        if self._chain is None:
            self._chain = elevation_chain(
                model=self.model,
                temperature=self.temperature,
                provider=self.provider,
                strategy=self.strategy,
                max_retries=self.max_retries,
            )
        return self._chain

    async def enhance(self, text: str, *, skip_format_preservation: bool = False) -> str:
        """Return the elevated form of *text*.

        With ``skip_format_preservation=False`` (and formatting
        preservation enabled) the text goes through
        :func:`elevate_with_format_preservation`; otherwise it is sent
        to the model in a single call.
        """
        if self.preserve_formatting and not skip_format_preservation:
            return await elevate_with_format_preservation(
                text,
                self,
                reporter=self.reporter,
                max_concurrency=self.max_concurrency,
            )
        return await self._invoke(text)

    async def _invoke(self, text: str) -> str:
        logger.info(
            f"Elevating {len(text):,} chars  (provider={self.provider}, "
            f"model={self.model}, strategy={self.strategy})"
        )
        try:
            result = await asyncio.wait_for(
                self.chain.ainvoke({"prompt": text}),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise TransportError(
                f"Request timeout - model call exceeded {self.timeout_seconds:g} seconds"
            ) from exc
        except Exception as exc:
            exc_str = str(exc).lower()
            if isinstance(exc, ConnectionError) or "connection" in exc_str or "refused" in exc_str:
                raise TransportError(
                    f"Could not reach the LLM server (provider={self.provider}).\n"
                    + (
                        "Make sure Ollama is installed and running:\n"
                        "  1. curl -fsSL https://ollama.com/install.sh | sh\n"
                        f"  2. ollama pull {self.model}\n"
                        "  3. ollama serve"
                        if self.provider == "ollama"
                        else f"Check your API key and network for provider '{self.provider}'."
                    )
                ) from exc
            raise

        if not isinstance(result, str) or not result.strip():
            raise EnhancerError("Invalid model response: no text returned")

        logger.info(f"Elevated prompt generated ({len(result):,} chars)")
        return result.strip()


def elevate_prompt(
    prompt: str,
    *,
    enhancer: LLMEnhancer | None = None,
    **options,
) -> str:
    """Validate *prompt* and elevate it synchronously.

    Extra keyword *options* are forwarded to :class:`LLMEnhancer` when
    no *enhancer* is supplied.

    Raises
    ------
    PromptValidationError
        If the prompt is empty, too short or too long.
    TransportError
        If the model cannot be reached.
    """
    prompt = validate_prompt(prompt)
    enhancer = enhancer or LLMEnhancer(**options)
    return asyncio.run(enhancer.enhance(prompt))
