"""
Argbind parse/completion contexts and file-system access.

Overview
- FileSystem: the only place the engine touches the disk. Answer files are
  read through it, path values are completed through it and path validators
  ask it whether a path exists, so hosts (and tests) can substitute their own
  reader.
- Context: per-argument knobs handed to descriptors when parsing or
  completing a value (empty-value policy, hexadecimal integers, element
  separators, case sensitivity, the in-progress destination, and the token
  snapshot when completing).

Contexts are immutable; the binder derives per-argument contexts from the
caller's context with copy.replace().
"""
import copy
import os
import pathlib

from .utils import *


class FileSystem(metaclass=IntrospectableType):
    """
    Default file-system reader backed by pathlib and os.scandir.

    Methods raise OSError (or UnicodeDecodeError for undecodable files) and
    leave the reporting to the caller.
    """

    __introspectable__ = ("encoding",)

    def __init__(self, encoding="utf-8"):
        if not isinstance(encoding, str):
            raise TypeError(f"{type(self).__typename__} 'encoding' must be a string")
        self._encoding = encoding

    def resolve(self, path, /):
        """
        Return a canonical identity for path (used to detect answer-file cycles).
        """
        return str(pathlib.Path(path).expanduser().resolve())

    def read(self, path, /):
        """
        Return the lines of a text file without their line terminators.
        """
        return pathlib.Path(path).expanduser().read_text(encoding=self._encoding).splitlines()

    def kind(self, path, /):
        """
        Return "file" or "directory" for an existing path, None otherwise.
        """
        path = pathlib.Path(path).expanduser()
        if path.is_dir():
            return "directory"
        if path.exists():
            return "file"
        return None

    def entries(self, directory, /):
        """
        Yield (name, is_directory) pairs for a directory; an unreadable directory yields nothing.
        """
        try:
            with os.scandir(directory or os.curdir) as iterator:
                for entry in iterator:
                    try:
                        yield entry.name, entry.is_dir()
                    except OSError:
                        yield entry.name, False
        except OSError:
            return


class Context(metaclass=IntrospectableType):
    """
    Immutable bag of options consulted by descriptors.

    Fields
    - filesystem: FileSystem used for path completion, path validators and answer files.
    - empty: bool, whether an empty string is an acceptable value.
    - hexadecimal: bool, whether integers may be written as 0x-prefixed literals.
    - case_sensitive: bool, whether names are compared case-sensitively.
    - destination: the object being populated (Unset when unknown).
    - tokens / index: the token snapshot and cursor when completing.
    """

    __introspectable__ = (
        "filesystem",
        "empty",
        "hexadecimal",
        "case_sensitive",
        "destination",
        "tokens",
        "index",
    )
    __displayable__ = (
        "empty",
        "hexadecimal",
        "case_sensitive",
        "index",
    )

    def __init__(
            self,
            filesystem=Unset,
            *,
            empty=False,
            hexadecimal=False,
            case_sensitive=False,
            destination=Unset,
            tokens=(),
            index=Unset
    ):
        if filesystem is not Unset and not all(hasattr(filesystem, name) for name in ("resolve", "read", "entries")):
            raise TypeError(f"{type(self).__typename__} 'filesystem' must provide resolve(), read() and entries()")
        self._filesystem = FileSystem() if filesystem is Unset else filesystem
        self._empty = bool(empty)
        self._hexadecimal = bool(hexadecimal)
        self._case_sensitive = bool(case_sensitive)
        self._destination = destination
        self._tokens = tuple(tokens)
        self._index = index

    @property
    def filesystem(self):
        # the reader is shared, not copied
        return self._filesystem

    @property
    def destination(self):
        return self._destination

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(**{
            "filesystem": self._filesystem,
            "empty": self._empty,
            "hexadecimal": self._hexadecimal,
            "case_sensitive": self._case_sensitive,
            "destination": self._destination,
            "tokens": self._tokens,
            "index": self._index,
        } | overrides)


def derive(context, /, **overrides):
    """
    Return context with overrides applied, creating a default context for Unset.
    """
    if context is Unset:
        return Context(**overrides)
    if not isinstance(context, Context):
        raise TypeError("context must be a Context")
    return copy.replace(context, **overrides)


__all__ = (
    "FileSystem",
    "Context",
    "derive",
)
