def strip_text(value: str | None) -> str | None:
    # str.strip() also removes non-breaking spaces
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def normalize_email(value: str) -> str:
    """Emails are unique case-insensitively, so they are stored and looked up lowercased."""
    return value.strip().lower()
