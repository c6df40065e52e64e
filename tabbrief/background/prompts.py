"""Prompt text for tab categorization and session summaries."""

from typing import List, Tuple

from tabbrief.tabs import TabRecord, format_tab_list

CATEGORIZE = "categorize"
SUMMARIZE = "summarize"
MODES = (CATEGORIZE, SUMMARIZE)

CATEGORIZE_SYSTEM = "You are an expert organizer. Produce clean markdown groups."
SUMMARIZE_SYSTEM = "You are a concise summarizer that outputs Markdown (bullets/short paragraphs)."


def categorize_prompt(tabs: List[TabRecord]) -> str:
    tab_list = format_tab_list(tabs, separator=" — ")
    return (
        "Categorize the following browser tabs into 3-6 meaningful categories.\n"
        'Return the response in Markdown format with headings "## Category Name" and bullet lines:\n'
        "## Category\n"
        "- Tab Title — (URL)\n"
        "\n"
        "Tabs:\n"
        f"{tab_list}"
    )


def summarize_prompt(tabs: List[TabRecord]) -> str:
    tab_list = format_tab_list(tabs, separator=" — ", prefix="- ")
    return (
        "Read this list of open browser tabs and produce a short Markdown summary "
        "(3-5 concise bullet points or a short paragraph) describing:\n"
        "- The main topics being researched\n"
        "- Any clear user intent or tasks visible\n"
        "- Suggestions (1-2) for organizing or next actions\n"
        "\n"
        "Tabs:\n"
        f"{tab_list}"
    )


def build_prompt(tabs: List[TabRecord], mode: str) -> Tuple[str, str]:
    """Return `(user_prompt, system_instruction)` for the given mode."""
    if mode not in MODES:
        raise ValueError(f"Unknown prompt mode: {mode}")
    if mode == CATEGORIZE:
        return categorize_prompt(tabs), CATEGORIZE_SYSTEM
    return summarize_prompt(tabs), SUMMARIZE_SYSTEM
