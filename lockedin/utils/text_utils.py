import re

# Extensions stripped for display only; matching keeps the raw name.
_EXECUTABLE_SUFFIX = re.compile(r"\.(exe|app|bin)$", re.IGNORECASE)


def normalize_name(name: str) -> str:
    """Trimmed, lower-cased application or process name"""
    if name is None:
        return ""
    return str(name).strip().lower()


def display_name(name: str) -> str:
    return _EXECUTABLE_SUFFIX.sub("", name.strip())


def truncate(text: str, max_len: int = 64) -> str:
    return text if len(text) <= max_len else text[:max_len - 1] + "…"


def unique_normalized(names) -> list:
    """Normalize names, dropping blanks and duplicates while keeping order"""
    seen = set()
    result = []
    for name in names or []:
        normalized = normalize_name(name)
        if normalized and normalized not in seen:
            seen.add(normalized)
            result.append(normalized)
    return result
