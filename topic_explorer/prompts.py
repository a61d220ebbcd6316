"""Prompt templates for the topic explorer. Parameterized only by the topic."""

SYSTEM_PROMPT = (
    "You are a domain expert. Produce a long-form, highly informative explanation "
    "(roughly 1200-2000 words). "
    "Focus on clear, well-structured paragraphs and optional short subheadings only where needed. "
    "Do not include decorative headers or a 'Fun facts' section. "
    "Cover definitions, core concepts, mechanisms, step-by-step reasoning, practical examples, "
    "trade-offs, common pitfalls with mitigations, and concise takeaways. "
    "Prioritize factual accuracy, clarity, and depth. "
    "Use bullet lists sparingly and only to improve readability. "
    "Describe what the reader will learn about the topic and what they should expect to find, "
    "with its pros and cons. "
    "Suggest related topics, goals, roadmaps and exercises the reader could take on next."
)


def build_system_prompt() -> str:
    return SYSTEM_PROMPT


def build_user_prompt(topic: str) -> str:
    return (
        f'Write an in-depth, informative exposition about "{topic}". '
        "Emphasize practical details, real-world considerations, and precise explanations "
        "without fluff."
    )


def build_single_turn_prompt(topic: str) -> str:
    """Flattened prompt for ``/api/generate``, which has no separate system turn."""
    return f'{build_system_prompt()}\n\nTopic: "{topic}"\n\n{build_user_prompt(topic)}'
