"""
DB-API paramstyle placeholders.

Queries are written with ``?`` positional placeholders and rewritten into the
paramstyle of the concrete driver right before execution.
"""

import re
from typing import Callable, Dict

QUESTION_MARK = re.compile(r"\?")

SUPPORTED_PARAMSTYLES = ("qmark", "format", "pyformat", "numeric", "numeric_dollar", "named")

_PLACEHOLDERS: Dict[str, Callable[[int], str]] = {
    "qmark": lambda position: "?",
    "format": lambda position: "%s",
    "pyformat": lambda position: "%s",
    "numeric": lambda position: f":{position}",
    "numeric_dollar": lambda position: f"${position}",
    "named": lambda position: f":{position}",
}


def rebind(query: str, paramstyle: str) -> str:
    """
    Rewrite ``?`` placeholders into the given DB-API paramstyle.

    Args:
        query: Query using ``?`` placeholders
        paramstyle: Target paramstyle (see SUPPORTED_PARAMSTYLES)

    Returns:
        Query using the driver's native placeholders

    Raises:
        ValueError: If the paramstyle is not supported

    Examples:
        >>> rebind("select * from t where a = ? and b = ?", "numeric_dollar")
        'select * from t where a = $1 and b = $2'
        >>> rebind("select * from t where a = ?", "format")
        'select * from t where a = %s'
    """
    try:
        placeholder = _PLACEHOLDERS[paramstyle]
    except KeyError:
        raise ValueError(f"Unsupported paramstyle: {paramstyle}") from None

    if paramstyle == "qmark":
        return query

    counter = iter(range(1, query.count("?") + 1))
    return QUESTION_MARK.sub(lambda _match: placeholder(next(counter)), query)
