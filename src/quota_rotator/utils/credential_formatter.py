"""
Utility for formatting API keys for display in logs.

Keys are never logged in full: only a short prefix and the last
four characters are shown.
"""


def mask_secret(secret: str, prefix: int = 6, suffix: int = 4) -> str:
    """
    Format a secret for display in logs.

    Args:
        secret: The API key to mask
        prefix: Number of leading characters to keep
        suffix: Number of trailing characters to keep

    Returns:
        A display-safe string representation of the secret

    Examples:
        >>> mask_secret("AIzaSyA1234567890abcdefghijklmnopqrstu")
        "AIzaSy...rstu"
        >>> mask_secret("short")
        "..."
    """
    if len(secret) <= prefix + suffix:
        return "..."
    return f"{secret[:prefix]}...{secret[-suffix:]}"
