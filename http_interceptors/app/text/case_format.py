"""
Identifier case formats and conversions between them.
"""

from enum import Enum
from typing import List

from shared.errors import ConfigurationError


def _first_char_only_to_upper(word: str) -> str:
    if not word:
        return word
    return word[0].upper() + word[1:].lower()


class CaseFormat(Enum):
    """Naming conventions for identifiers such as request parameter names."""

    LOWER_HYPHEN = "lower-hyphen"
    LOWER_UNDERSCORE = "lower_underscore"
    LOWER_CAMEL = "lowerCamel"
    UPPER_CAMEL = "UpperCamel"
    UPPER_UNDERSCORE = "UPPER_UNDERSCORE"

    @classmethod
    def parse(cls, name: str) -> "CaseFormat":
        """Resolve a case format by its member name, ignoring case."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ConfigurationError(
                f"Unknown case format: {name}",
                details={"supported": [member.name for member in cls]}
            )

    @property
    def word_separator(self) -> str:
        if self is CaseFormat.LOWER_HYPHEN:
            return "-"
        if self in (CaseFormat.LOWER_UNDERSCORE, CaseFormat.UPPER_UNDERSCORE):
            return "_"
        return ""

    @property
    def is_camel(self) -> bool:
        return self in (CaseFormat.LOWER_CAMEL, CaseFormat.UPPER_CAMEL)

    def to(self, target: "CaseFormat", text: str) -> str:
        """Convert ``text`` from this format to the ``target`` format."""
        if target is self:
            return text
        if not self.is_camel and not target.is_camel:
            return target._normalize_delimited(text.replace(self.word_separator, target.word_separator))

        words = self._split(text)
        converted = [target._normalize_first_word(words[0])]
        converted.extend(target._normalize_word(word) for word in words[1:])
        return target.word_separator.join(converted)

    def _split(self, text: str) -> List[str]:
        if not self.is_camel:
            return text.split(self.word_separator)
        words = []
        start = 0
        for index, char in enumerate(text):
            # ASCII uppercase letters open a new word
            if index > 0 and "A" <= char <= "Z":
                words.append(text[start:index])
                start = index
        words.append(text[start:])
        return words

    def _normalize_delimited(self, text: str) -> str:
        if self is CaseFormat.UPPER_UNDERSCORE:
            return text.upper()
        return text.lower()

    def _normalize_word(self, word: str) -> str:
        if self.is_camel:
            return _first_char_only_to_upper(word)
        return self._normalize_delimited(word)

    def _normalize_first_word(self, word: str) -> str:
        if self is CaseFormat.LOWER_CAMEL:
            return word.lower()
        return self._normalize_word(word)
