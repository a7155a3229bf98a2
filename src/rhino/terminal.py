"""Clearing the terminal between dashboard cycles."""

import ctypes
import logging
import sys
from abc import ABC, abstractmethod
from typing import TextIO

from rhino.errors import TerminalError

logger = logging.getLogger(__name__)

CSI = "\033["
CLEAR_AND_HOME = f"{CSI}2J{CSI}H"

STD_OUTPUT_HANDLE = -11
INVALID_HANDLE_VALUE = ctypes.c_void_p(-1).value


class _Coord(ctypes.Structure):
    _fields_ = [("X", ctypes.c_short), ("Y", ctypes.c_short)]


class _SmallRect(ctypes.Structure):
    _fields_ = [
        ("Left", ctypes.c_short),
        ("Top", ctypes.c_short),
        ("Right", ctypes.c_short),
        ("Bottom", ctypes.c_short),
    ]


class _ScreenBufferInfo(ctypes.Structure):
    _fields_ = [
        ("dwSize", _Coord),
        ("dwCursorPosition", _Coord),
        ("wAttributes", ctypes.c_ushort),
        ("srWindow", _SmallRect),
        ("dwMaximumWindowSize", _Coord),
    ]


class Win32Console:
    """
    The process's console output handle, resolved once.

    Construct with Win32Console.open() at startup and pass the instance to
    ConsoleBufferStrategy; the handle is reused for the life of the process.
    """

    def __init__(self, kernel32, handle) -> None:
        self._kernel32 = kernel32
        self._handle = handle

    @classmethod
    def open(cls) -> "Win32Console":
        """
        Resolve the standard output console handle.

        Raises:
            TerminalError: If there is no Win32 console or the handle is invalid.
        """
        try:
            kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
        except (AttributeError, OSError) as exc:
            raise TerminalError("Win32 console API is not available") from exc

        kernel32.GetStdHandle.restype = ctypes.c_void_p
        kernel32.GetStdHandle.argtypes = [ctypes.c_ulong]
        kernel32.GetConsoleScreenBufferInfo.argtypes = [
            ctypes.c_void_p,
            ctypes.POINTER(_ScreenBufferInfo),
        ]
        kernel32.FillConsoleOutputCharacterW.argtypes = [
            ctypes.c_void_p,
            ctypes.c_wchar,
            ctypes.c_ulong,
            _Coord,
            ctypes.POINTER(ctypes.c_ulong),
        ]
        kernel32.SetConsoleCursorPosition.argtypes = [ctypes.c_void_p, _Coord]

        handle = kernel32.GetStdHandle(ctypes.c_ulong(STD_OUTPUT_HANDLE).value)
        if handle is None or handle == INVALID_HANDLE_VALUE:
            raise TerminalError("no console output handle")
        return cls(kernel32, handle)

    def _check(self, ok: int, action: str) -> None:
        if not ok:
            raise TerminalError(f"cannot {action}; is output redirected?")

    def buffer_size(self) -> tuple[int, int]:
        """Return the screen buffer (columns, rows)."""
        info = _ScreenBufferInfo()
        self._check(
            self._kernel32.GetConsoleScreenBufferInfo(self._handle, ctypes.byref(info)),
            "read screen buffer",
        )
        return info.dwSize.X, info.dwSize.Y

    def fill_blank(self, cells: int) -> None:
        """Write spaces over the first `cells` cells from the origin."""
        written = ctypes.c_ulong(0)
        self._check(
            self._kernel32.FillConsoleOutputCharacterW(
                self._handle, " ", cells, _Coord(0, 0), ctypes.byref(written)
            ),
            "fill screen buffer",
        )

    def set_cursor(self, x: int, y: int) -> None:
        self._check(
            self._kernel32.SetConsoleCursorPosition(self._handle, _Coord(x, y)),
            "move cursor",
        )


class ClearStrategy(ABC):
    """A way of blanking the screen and homing the cursor."""

    @abstractmethod
    def clear(self) -> None: ...


class ConsoleBufferStrategy(ClearStrategy):
    """Blank every cell of a console screen buffer, then home the cursor."""

    def __init__(self, console) -> None:
        self._console = console

    def clear(self) -> None:
        width, height = self._console.buffer_size()
        self._console.fill_blank(width * height)
        self._console.set_cursor(0, 0)


class AnsiStrategy(ClearStrategy):
    """Clear with the ANSI erase-display and cursor-home sequences."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def clear(self) -> None:
        self._stream.write(CLEAR_AND_HOME)
        self._stream.flush()


class TerminalController:
    """Clears the terminal between cycles using one strategy fixed at startup."""

    def __init__(self, strategy: ClearStrategy) -> None:
        self._strategy = strategy

    @property
    def strategy(self) -> ClearStrategy:
        return self._strategy

    @classmethod
    def for_platform(cls, stream: TextIO | None = None, platform: str | None = None) -> "TerminalController":
        """
        Pick the clearing strategy for the current platform.

        Args:
            stream: Output stream for escape sequences. Default sys.stdout.
            platform: Platform name to select for. Default sys.platform.

        Raises:
            TerminalError: If the Windows console handle cannot be resolved.
        """
        stream = sys.stdout if stream is None else stream
        platform = sys.platform if platform is None else platform

        if platform == "win32":
            strategy: ClearStrategy = ConsoleBufferStrategy(Win32Console.open())
        else:
            strategy = AnsiStrategy(stream)
        logger.info("Using %s to clear the terminal", type(strategy).__name__)
        return cls(strategy)

    def clear(self) -> None:
        """
        Blank the screen and move the cursor to the top-left corner.

        Raises:
            TerminalError: If the output handle is unusable.
        """
        self._strategy.clear()
