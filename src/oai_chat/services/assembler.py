"""Builds the outbound message sequence."""

from typing import Iterable, List

from ..domain.models import Message, QAPair


def build_messages(
    system_role: str,
    selected_pairs: Iterable[QAPair],
    current_user_input: str
) -> List[Message]:
    """Return ``[system, q1, a1, ..., qN, aN, user]``.

    Pairs are used in the order given; ordering them is the selector's job.
    """
    messages = [Message.system(system_role)]
    for pair in selected_pairs:
        messages.append(pair.question)
        messages.append(pair.answer)
    messages.append(Message.user(current_user_input))
    return messages
