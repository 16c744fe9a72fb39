"""Interactive UI components for picking trip members."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import Member

logger = logging.getLogger(__name__)


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="al" matches "Alice"
        query="bb" matches "Bob Brown"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


def member_label(member: Member) -> str:
    return f"{member.name} ({member.id})"


class MemberCompleter(Completer):
    """Fuzzy search completer for trip members."""

    def __init__(self, members: list[Member]):
        """Initialize the completer with the trip roster."""
        self.members = members
        self.label_to_id = {member_label(member): member.id for member in members}

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for label in self.label_to_id:
            if not query or fuzzy_match(query, label.lower()):
                yield Completion(
                    text=label,
                    start_position=-len(document.text),
                    display=label,
                )


def select_member_interactive(members: list[Member], prompt: str = "Paid by") -> str | None:
    """
    Interactive member selection with fuzzy search.

    Args:
        members: The trip roster
        prompt: Label shown before the input

    Returns:
        Selected member id, or None if skipped
    """
    if not members:
        return None

    print(f"\n👥 {prompt}: type to search, press Enter to confirm, Ctrl+C to skip\n")

    completer = MemberCompleter(members)
    session: PromptSession[str] = PromptSession(completer=completer)

    try:
        while True:
            result = session.prompt(f"{prompt}: ", complete_while_typing=True)

            if not result:
                return None

            # Accept either the completion label or a raw member id
            member_id = completer.label_to_id.get(result)
            if member_id is None and result in {m.id for m in members}:
                member_id = result
            if member_id:
                logger.info(f"User selected member: {member_id}")
                return member_id

            print("❌ Unknown member. Please select from the list or press Tab to complete.")

    except KeyboardInterrupt:
        print("\n⏭️  Skipped")
        return None
    except EOFError:
        return None
