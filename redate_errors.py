from __future__ import annotations


class RedateError(Exception):
    pass


class InvalidDateFormatError(RedateError, ValueError):
    pass


class DirectoryNotFoundError(RedateError, FileNotFoundError):
    pass


class NoDateFoldersError(RedateError):
    pass


class EmptyInputError(RedateError, ValueError):
    pass


class KeyCollisionError(RedateError):
    def __init__(self, path: object, collisions: dict[str, list[str]]) -> None:
        self.path = path
        self.collisions = collisions
        details = "; ".join(
            f"{target} <- {', '.join(sources)}" for target, sources in sorted(collisions.items())
        )
        super().__init__(f"Field keys collide after normalization in {path}: {details}")


class JournalMismatchError(RedateError):
    pass
