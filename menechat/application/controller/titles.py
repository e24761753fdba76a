"""Session title derivation from the opening user message."""


def derive_title(text: str, max_words: int = 5, max_chars: int = 30) -> str:
    """
    Build a short session title from user text.

    Keeps the first max_words words, cuts to max_chars characters, and
    appends "..." whenever anything was dropped.

    Args:
        text: User message
        max_words: Words kept
        max_chars: Characters kept before the ellipsis

    Returns:
        str: Derived title
    """
    words = text.split()
    title = " ".join(words[:max_words])
    truncated = len(words) > max_words
    if len(title) > max_chars:
        title = title[:max_chars].rstrip()
        truncated = True
    return f"{title}..." if truncated else title
