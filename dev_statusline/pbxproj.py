"""Reader for Xcode ``project.pbxproj`` files.

The format is an OpenStep-style property list::

    { key = value; other = ( a, "b c", ); nested = { isa = Thing; }; }

Only what is needed to list remote Swift package references is exposed,
but the whole file is parsed properly rather than scraped line by line.
"""

from __future__ import annotations

import logging
from typing import Iterator, Union

from .models.versions import DependencyEntry

logger = logging.getLogger(__name__)

PACKAGE_REFERENCE_ISA = "XCRemoteSwiftPackageReference"

Value = Union[str, list["Value"], dict[str, "Value"]]

_PUNCTUATION = set("{}()=;,")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}


class PbxprojError(ValueError):
    pass


def tokenize(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(kind, value)`` tokens; kind is "punct", "string" or "word"."""
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c.isspace():
            i += 1
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end < 0:
                raise PbxprojError("unterminated comment")
            i = end + 2
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end < 0 else end + 1
        elif c in _PUNCTUATION:
            yield "punct", c
            i += 1
        elif c == '"':
            i += 1
            chars: list[str] = []
            while True:
                if i >= n:
                    raise PbxprojError("unterminated string")
                c = text[i]
                if c == '"':
                    i += 1
                    break
                if c == "\\" and i + 1 < n:
                    chars.append(_ESCAPES.get(text[i + 1], text[i + 1]))
                    i += 2
                    continue
                chars.append(c)
                i += 1
            yield "string", "".join(chars)
        else:
            start = i
            while (
                i < n
                and not text[i].isspace()
                and text[i] not in _PUNCTUATION
                and text[i] != '"'
                and not text.startswith("/*", i)
            ):
                i += 1
            yield "word", text[start:i]


class _Parser:
    def __init__(self, text: str) -> None:
        self._tokens = list(tokenize(text))
        self._pos = 0

    def _peek(self) -> tuple[str, str] | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> tuple[str, str]:
        tok = self._peek()
        if tok is None:
            raise PbxprojError("unexpected end of file")
        self._pos += 1
        return tok

    def _expect(self, punct: str) -> None:
        kind, value = self._next()
        if kind != "punct" or value != punct:
            raise PbxprojError(f"expected {punct!r}, got {value!r}")

    def _at(self, punct: str) -> bool:
        tok = self._peek()
        return tok is not None and tok == ("punct", punct)

    def parse(self) -> Value:
        value = self._value()
        if self._peek() is not None:
            raise PbxprojError("trailing content after root object")
        return value

    def _value(self) -> Value:
        kind, value = self._next()
        if kind in ("string", "word"):
            return value
        if value == "{":
            return self._dict()
        if value == "(":
            return self._array()
        raise PbxprojError(f"unexpected {value!r}")

    def _dict(self) -> dict[str, Value]:
        out: dict[str, Value] = {}
        while not self._at("}"):
            kind, key = self._next()
            if kind == "punct":
                raise PbxprojError(f"unexpected {key!r} in dictionary")
            self._expect("=")
            out[key] = self._value()
            self._expect(";")
        self._expect("}")
        return out

    def _array(self) -> list[Value]:
        items: list[Value] = []
        while not self._at(")"):
            items.append(self._value())
            if not self._at(")"):
                self._expect(",")
        self._expect(")")
        return items


def parse(text: str) -> Value:
    """Parse pbxproj text into nested dicts, lists and strings."""
    return _Parser(text).parse()


def remote_packages(text: str) -> list[DependencyEntry]:
    """List pinned remote Swift package references declared in ``text``.

    A package needs a repository URL and either an exact ``version`` or a
    ``minimumVersion`` requirement; branch and revision pins are skipped.
    Unparsable input yields an empty list.
    """
    try:
        root = parse(text)
    except PbxprojError as e:
        logger.debug("Unparsable project file: %s", e)
        return []
    if not isinstance(root, dict) or not isinstance(root.get("objects"), dict):
        return []

    entries: list[DependencyEntry] = []
    for obj in root["objects"].values():
        if not isinstance(obj, dict) or obj.get("isa") != PACKAGE_REFERENCE_ISA:
            continue
        url = obj.get("repositoryURL")
        requirement = obj.get("requirement")
        if not isinstance(url, str) or not url or not isinstance(requirement, dict):
            continue
        version = requirement.get("version") or requirement.get("minimumVersion")
        if isinstance(version, str) and version:
            entries.append(DependencyEntry(source_url=url, pinned_version=version))
    return entries
