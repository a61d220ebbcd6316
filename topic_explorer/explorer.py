"""
Topic explorer flow: ask for a topic, stream a long-form explanation, then hand the
text and a seeded chat session to the pager.
"""

from __future__ import annotations

import logging

from .config import ExplorerConfig
from .console import Console, run_blocking
from .fallback import attempt
from .notes import FileNoteStore, NoteStore
from .pager import Pager
from .prompts import build_single_turn_prompt, build_system_prompt, build_user_prompt
from .session import ChatSession
from .transport import OllamaTransport

logger = logging.getLogger("topic_explorer")


def _print_banner(console: Console, config: ExplorerConfig) -> None:
    sampling = config.sampling
    console.echo("\nProvider: Ollama")
    console.echo(f"Model: {config.model}")
    console.echo(
        f"num_predict: {sampling.max_output_tokens}, top_p: {sampling.top_p}, "
        f"temperature: {sampling.temperature}"
    )
    console.echo("Connecting to Ollama and streaming output...")


async def explore(
    console: Console,
    config: ExplorerConfig,
    *,
    topic: str | None = None,
    transport: OllamaTransport | None = None,
    notes: NoteStore | None = None,
    width: int | None = None,
    height: int | None = None,
) -> ChatSession | None:
    """Run one explorer session.

    Args:
        console: Console to prompt, stream and page on.
        config: Backend address, model and sampling options.
        topic: Topic to explore; prompted for when ``None``.
        transport: Backend transport, built from *config* when omitted.
        notes: Note store for saved results, a ``FileNoteStore`` at
            ``config.notes_path`` when omitted.
        width: Optional fixed pager width.
        height: Optional fixed pager height.

    Returns:
        ChatSession | None: The conversation once the pager exits, or ``None`` when no
        topic was given or nothing could be generated.
    """
    console.echo("\nAI Topic Explorer (Ollama)", fg="cyan")
    if topic is None:
        topic = await run_blocking(console.read_line, "\nEnter a topic: ")
    topic = (topic or "").strip()
    if not topic:
        console.echo("\nNo topic entered.")
        return None

    transport = transport or OllamaTransport.from_config(config)
    notes = notes or FileNoteStore(config.notes_path)
    _print_banner(console, config)

    prompt = build_single_turn_prompt(topic)

    async def incremental() -> str:
        console.write("\n")
        try:
            return await transport.complete_stream(prompt, on_token=console.write)
        finally:
            console.write("\n")

    async def buffered() -> str:
        return await transport.complete(prompt)

    outcome = await attempt(incremental, buffered)
    if not outcome.ok:
        console.echo(f"\nAI request failed: {outcome.error}", fg="red")
        console.echo(
            "Tip: Ensure Ollama is running (e.g., 'ollama serve') and the base URL is reachable."
        )
        return None

    content = outcome.text or ""
    if not content.strip():
        console.echo("\nNo content returned from Ollama.", fg="red")
        return None

    logger.info(
        "[TopicExplorer] Generated %d chars for %r via %s mode.", len(content), topic, outcome.mode
    )

    session = ChatSession(config.base_url, config.model)
    session.add_system(build_system_prompt())
    session.add_user(build_user_prompt(topic))
    session.add_assistant(content)

    pager = Pager(console, transport, session, notes, content, width=width, height=height)
    await pager.run()
    return session
