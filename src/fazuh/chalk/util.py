def get_string(text: str, left: str, right: str) -> str | None:
    """Returns the text between the first `left` and the first `right` after it.

    Returns None if either delimiter is missing.
    """
    if not isinstance(text, str) or not left or not right:
        return None

    start = text.find(left)
    if start == -1:
        return None
    start += len(left)

    end = text.find(right, start)
    if end == -1:
        return None
    return text[start:end]
