import re

_TABLE_BLOCK = re.compile(r"Table\s+\w+\s*{")


def is_dbml(text: str) -> bool:
    """Heuristic used to route generated text to the DBML compiler."""
    trimmed = (text or "").strip()
    if "Table " not in trimmed:
        return False
    return "Ref:" in trimmed or _TABLE_BLOCK.search(trimmed) is not None
