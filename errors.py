class InvariantError(AssertionError):
    """Internal-consistency violation while growing a tree.

    Raised instead of returning a silently wrong tree. Callers are not
    expected to recover from it.
    """


def check(condition: bool, message: str) -> None:
    # Unlike ``assert`` this survives ``python -O``.
    if not condition:
        raise InvariantError(message)
