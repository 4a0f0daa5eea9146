"""LLM-powered prompt elevation.

Built around a **LangChain LCEL chain** that composes:

    prompt → llm → output parser

The chain can be used standalone or through
:class:`~elevator.generation.enhancer.LLMEnhancer`.

Supported providers (set ``llm_provider`` in config.txt):

* **google** — Google Gemini API (default, requires ``GOOGLE_API_KEY``
  or ``GEMINI_API_KEY`` in .env)
* **ollama** — local Ollama server (no API key needed)
* **openai** — OpenAI API (requires ``OPENAI_API_KEY``)
* **anthropic** — Anthropic API (requires ``ANTHROPIC_API_KEY``)

API keys are loaded from a ``.env`` file at the project root via
python-dotenv.

Usage (programmatic)::

    from elevator.generation.llm import elevation_chain
    chain    = elevation_chain(strategy="concise")
    elevated = chain.invoke({"prompt": "fix this bug"})
"""

import logging
import os
import textwrap

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_ollama import ChatOllama

from elevator.config import CFG

logger = logging.getLogger(__name__)

# ── Defaults (read from config.txt, fall back to built-in) ──────────
DEFAULT_PROVIDER: str = str(CFG.get("llm_provider", "google")).lower().strip()
DEFAULT_MODEL: str = str(CFG.get("llm_model", "gemini-2.5-flash"))
DEFAULT_TEMPERATURE: float = float(CFG.get("temperature", 0.3))
DEFAULT_STRATEGY: str = str(CFG.get("strategy", "balanced"))

# ── Provider → default model mapping ───────────────────────────────
PROVIDER_DEFAULTS: dict[str, str] = {
    "google": "gemini-2.5-flash",
    "ollama": "llama3.2:3b",
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-20250514",
}

# ── Elevation system prompts ───────────────────────────────────────
BALANCED_PROMPT = textwrap.dedent("""\
    Transform the user's request into a more sophisticated, technically
    precise articulation. Output only the elevated request - no headers,
    explanations, or commentary.

    RULES:
    1. Transform the request itself: rearticulate it using specific
       technical language, professional terminology, and structured
       phrasing.
    2. Preserve the original intent: the elevated version must request
       the same outcome as the original.
    3. Add technical specificity: replace vague terms with precise
       technical concepts, methodologies, and industry-standard
       terminology.
    4. Leave anything inside backticks exactly as written.
    5. Output only the elevated request. No "Original Request:" or
       "Elevated Version:" headers.
""")

CONCISE_PROMPT = textwrap.dedent("""\
    Transform this user request into a more technically precise version
    using professional terminology and specific technical concepts.
    Output only the elevated request - no headers, no explanations, no
    commentary. Leave anything inside backticks exactly as written.
""")

COMPREHENSIVE_PROMPT = textwrap.dedent("""\
    Elevate this request into a detailed, enterprise-grade technical
    specification that covers architectural considerations,
    implementation approach, quality assurance, security requirements,
    performance criteria, and operational concerns. Output only the
    elevated request. Leave anything inside backticks exactly as
    written.
""")

EDUCATIONAL_PROMPT = textwrap.dedent("""\
    Rearticulate this request with educational context: name the
    relevant technical concepts, the learning objectives, and the skills
    it exercises, so the request emphasises understanding as well as
    the outcome. Output only the elevated request. Leave anything inside
    backticks exactly as written.
""")

ELEVATION_PROMPTS: dict[str, str] = {
    "balanced": BALANCED_PROMPT,
    "concise": CONCISE_PROMPT,
    "comprehensive": COMPREHENSIVE_PROMPT,
    "educational": EDUCATIONAL_PROMPT,
}


def build_prompt(strategy: str = DEFAULT_STRATEGY) -> ChatPromptTemplate:
    """Return the chat prompt template for an elevation *strategy*.

    Raises
    ------
    ValueError
        If *strategy* is not one of :data:`ELEVATION_PROMPTS`.
    """
    try:
        system_prompt = ELEVATION_PROMPTS[strategy]
    except KeyError:
        raise ValueError(
            f"Unknown strategy '{strategy}'. Supported: {', '.join(ELEVATION_PROMPTS)}"
        ) from None
    return ChatPromptTemplate.from_messages(
        [
            ("system", system_prompt),
            ("human", "{prompt}"),
        ]
    )


# ── LLM interaction ─────────────────────────────────────────────────


def get_llm(
    model: str = DEFAULT_MODEL,
    temperature: float = DEFAULT_TEMPERATURE,
    provider: str = DEFAULT_PROVIDER,
):
    """Create a LangChain chat model for the given provider.

    Parameters
    ----------
    model : str
        Model name/tag for the chosen provider.
    temperature : float
        Sampling temperature (lower = more deterministic).
    provider : str
        One of ``"google"``, ``"ollama"``, ``"openai"``,
        ``"anthropic"``.

    Returns
    -------
    BaseChatModel
        A LangChain chat model instance.

    Raises
    ------
    ValueError
        If *provider* is not recognised.
    ImportError
        If the required provider package is not installed.
    """
    provider = provider.lower().strip()
    logger.info(
        f"Initialising LLM: provider={provider}, model={model}, temp={temperature}"
    )

    if provider == "ollama":
        return ChatOllama(model=model, temperature=temperature)

    if provider == "google":
        try:
            from langchain_google_genai import ChatGoogleGenerativeAI
        except ImportError:
            raise ImportError(
                "langchain-google-genai is required for the google provider.\n"
                "  Run: pip install langchain-google-genai"
            )
        kwargs = {}
        # Accept the Gemini-specific variable name as well
        api_key = os.environ.get("GOOGLE_API_KEY") or os.environ.get("GEMINI_API_KEY")
        if api_key:
            kwargs["google_api_key"] = api_key
        return ChatGoogleGenerativeAI(model=model, temperature=temperature, **kwargs)

    if provider == "openai":
        try:
            from langchain_openai import ChatOpenAI
        except ImportError:
            raise ImportError(
                "langchain-openai is required for the openai provider.\n"
                "  Run: pip install 'elevator[openai]'"
            )
        return ChatOpenAI(model=model, temperature=temperature)

    if provider == "anthropic":
        try:
            from langchain_anthropic import ChatAnthropic
        except ImportError:
            raise ImportError(
                "langchain-anthropic is required for the anthropic provider.\n"
                "  Run: pip install 'elevator[anthropic]'"
            )
        return ChatAnthropic(model=model, temperature=temperature)

    raise ValueError(
        f"Unknown llm_provider '{provider}'. Supported: {', '.join(PROVIDER_DEFAULTS)}"
    )


# ── LCEL chain ──────────────────────────────────────────────────────


def elevation_chain(
    model: str = DEFAULT_MODEL,
    temperature: float = DEFAULT_TEMPERATURE,
    provider: str = DEFAULT_PROVIDER,
    strategy: str = DEFAULT_STRATEGY,
    max_retries: int = 0,
):
    """Build a reusable LCEL chain: prompt → llm → string output.

    The chain expects a dict with a single ``prompt`` key.  With
    ``max_retries > 0`` the chain is wrapped in ``.with_retry()``.

    Returns
    -------
    Runnable
        ``build_prompt(strategy) | llm | StrOutputParser()``
    """
    llm = get_llm(model=model, temperature=temperature, provider=provider)
    chain = build_prompt(strategy) | llm | StrOutputParser()
    if max_retries > 0:
        chain = chain.with_retry(stop_after_attempt=max_retries + 1)
    return chain
