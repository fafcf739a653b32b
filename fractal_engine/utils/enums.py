from enum import Enum, auto


class ColouringMethod(Enum):
    REGULAR = "regular"
    RED = "red"
    GREEN = "green"
    BLUE = "blue"

    @classmethod
    def from_tag(cls, tag: str) -> "ColouringMethod":
        return cls(tag.strip().lower())


class MandelbrotVariant(Enum):
    REGULAR = "regular"
    BUDDHABROT = "buddhabrot"

    @classmethod
    def from_tag(cls, tag: str) -> "MandelbrotVariant":
        return cls(tag.strip().lower())


class SessionState(Enum):
    IDLE = auto()
    RENDERING = auto()
    FINALIZING = auto()
