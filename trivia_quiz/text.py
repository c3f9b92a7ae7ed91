"""
Text normalization for strings received from the trivia API.
"""
import html


def decode_entities(raw: str) -> str:
    """
    Decode HTML character references into plain text.

    Named references (``&quot;``, ``&amp;``) and numeric references
    (``&#039;``, ``&#x27;``) are resolved. Unknown references are left as-is.

    Args:
        raw: Entity-escaped text

    Returns:
        Decoded plain text

    Raises:
        TypeError: If raw is not a string
    """
    if not isinstance(raw, str):
        raise TypeError(f"Expected text to decode, got {type(raw).__name__}")
    return html.unescape(raw)
