from enum import Enum
from typing import Union


class SocketType(Enum):
    # Control flow: a PRODUCE output triggers the CONSUME input it is wired to
    PRODUCE = "Produce"
    CONSUME = "Consume"
    # Plain text data
    TEXT = "Text"

    @staticmethod
    def parse(tag: str) -> 'SocketTag':
        """
        Turn a serialized tag back into a socket type.

        Built-in tags are matched case-insensitively ("text", "Text", "TEXT").
        Anything else is a caller-defined tag and is returned unchanged.
        """
        if isinstance(tag, SocketType):
            return tag
        for member in SocketType:
            if member.value.lower() == str(tag).lower():
                return member
        return tag

    @staticmethod
    def tag(socket_type: 'SocketTag') -> str:
        if isinstance(socket_type, SocketType):
            return socket_type.value
        return str(socket_type)


# Built-in SocketType or a caller-extensible string tag (e.g. "Number")
SocketTag = Union[SocketType, str]
