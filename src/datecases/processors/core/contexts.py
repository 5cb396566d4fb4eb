"""Context Segmentation

Splits a token sequence into clause contexts and maps consumed token indexes
back to the clause that owns them.
"""

from re import Pattern
from typing import List, Sequence, Tuple

from .field_types import CONTEXT_BREAK_CODES, Context, ContextSet, Token


def split_context(tokens: Sequence[Token],
                  separators: Sequence[Pattern]) -> Tuple[ContextSet, List[int]]:
    """Partition tokens into clause contexts.

    A break token (``!`` or ``I``) closes the current context at its own index.
    A token whose text ends with a separator match closes it too; that trailing
    character is trimmed from the token text and the index is reported so the
    caller can restore punctuation when rebuilding the sentence.

    Args:
        tokens: Tokens of one sentence
        separators: Compiled separator patterns, tried in order

    Returns:
        Context set and the indexes of trimmed separator tokens
    """
    contexts: List[Context] = []
    separator_token_indexes: List[int] = []
    start = 0

    for i, token in enumerate(tokens):
        if token.class_code in CONTEXT_BREAK_CODES:
            contexts.append(Context(start, i))
            start = i + 1
            continue

        for separator in separators:
            matches = list(separator.finditer(token.text))
            if len(matches) == 1 and matches[0].start() == len(token.text) - 1:
                token.text = token.text[:-1]
                contexts.append(Context(start, i))
                start = i + 1
                separator_token_indexes.append(i)
                break

    if start < len(tokens):
        contexts.append(Context(start, len(tokens) - 1))

    return ContextSet(contexts=contexts), separator_token_indexes


def find_context(context_set: ContextSet, indexes: Sequence[int]) -> int:
    """Id of the last context holding the last possible index, -1 if none."""
    for index in reversed(indexes):
        for context_id in range(len(context_set.contexts) - 1, -1, -1):
            if context_set.contexts[context_id].contains(index):
                return context_id
    return -1


def resolve_context(context_set: ContextSet, indexes: Sequence[int]) -> int:
    """Find the owning context of consumed indexes and record it as used.

    Args:
        context_set: Contexts of the sentence
        indexes: Consumed token indexes of a match

    Returns:
        Context id, or -1 when no context contains any of the indexes
    """
    context_id = find_context(context_set, indexes)
    if context_id != -1:
        context_set.mark_used(context_id)
    return context_id
