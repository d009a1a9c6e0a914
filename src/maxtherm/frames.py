from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Tuple, Union

from .errors import FrameError

_HEX_SEPARATORS = re.compile(r"[\s:,_-]+")


@dataclass(frozen=True)
class RegisterFrame:
    """Raw bytes returned by one read transaction."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def from_hex(cls, text: str) -> "RegisterFrame":
        cleaned = _HEX_SEPARATORS.sub("", text.strip())
        if cleaned.lower().startswith("0x"):
            cleaned = cleaned[2:]
        try:
            return cls(bytes.fromhex(cleaned))
        except ValueError as exc:
            raise FrameError(f"Invalid hex frame '{text}'") from exc

    def __len__(self) -> int:
        return len(self.data)

    def __getitem__(self, index: int) -> int:
        return self.data[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self.data)

    def hex(self) -> str:
        return self.data.hex().upper()


@dataclass(frozen=True)
class CodeLayout:
    """
    Position of an ADC code inside a frame.

    `offsets` lists the bytes most-significant first, `shift` is the number of
    low-order don't-care bits and `width` the resulting code width in bits.
    """

    offsets: Tuple[int, ...]
    shift: int
    width: int
    signed: bool = False

    @property
    def sign_bit(self) -> int:
        return 1 << (self.width - 1)


def extract_code(frame: Union[RegisterFrame, bytes], layout: CodeLayout) -> int:
    if max(layout.offsets) >= len(frame):
        raise FrameError(
            f"Frame of {len(frame)} bytes too short for offsets {list(layout.offsets)}"
        )
    raw = 0
    for offset in layout.offsets:
        raw = (raw << 8) | frame[offset]
    code = (raw >> layout.shift) & ((1 << layout.width) - 1)
    if layout.signed and code & layout.sign_bit:
        code -= 1 << layout.width
    return code
