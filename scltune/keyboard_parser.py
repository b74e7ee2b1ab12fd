"""Keyboard mapping parsing: KBM text to KeyboardMapping, plus mapping generators."""

from __future__ import annotations

import io
import logging
import re
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Final, Iterable

from scltune.errors import ParseError
from scltune.tuning_models import MIDI0_FREQ, UNMAPPED, KeyboardMapping

logger = logging.getLogger(__name__)

PATCH_MAPPING_NAME: Final[str] = "Mapping from patch"

# Outside the trailing section a KBM line may only hold digits, spaces and dots
_INVALID_CHARACTER: Final = re.compile(r"[^0-9 .]")
_UNMAPPED_TOKENS: Final[frozenset[str]] = frozenset({"x", "-1"})


class KbmState(Enum):
    """Position of the KBM parser within the file; fields appear in this order."""

    MAP_SIZE = auto()
    FIRST_MIDI = auto()
    LAST_MIDI = auto()
    MIDDLE_NOTE = auto()
    TUNING_CONSTANT_NOTE = auto()
    TUNING_FREQUENCY = auto()
    OCTAVE_DEGREES = auto()
    KEYS = auto()
    TRAILING = auto()


class KbmParser:
    """
    Line-at-a-time KBM state machine.

    Seven scalar fields are read in order, followed by ``count`` key entries
    (skipped entirely when ``count`` is 0). Key entries are scale degrees,
    or ``x`` for a silent key.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.state = KbmState.MAP_SIZE
        self.count = 0
        self.first_midi = 0
        self.last_midi = 0
        self.middle_note = 0
        self.tuning_constant_note = 0
        self.tuning_frequency = 0.0
        self.octave_degrees = 0
        self.keys: list[int] = []
        self._raw_lines: list[str] = []
        self._lineno = 0
        self._last_line: str | None = None
        self._handlers: dict[KbmState, Callable[[str, int], None]] = {
            KbmState.MAP_SIZE: self._read_map_size,
            KbmState.FIRST_MIDI: self._read_first_midi,
            KbmState.LAST_MIDI: self._read_last_midi,
            KbmState.MIDDLE_NOTE: self._read_middle_note,
            KbmState.TUNING_CONSTANT_NOTE: self._read_tuning_constant_note,
            KbmState.TUNING_FREQUENCY: self._read_tuning_frequency,
            KbmState.OCTAVE_DEGREES: self._read_octave_degrees,
            KbmState.KEYS: self._read_key,
            KbmState.TRAILING: self._read_trailing,
        }

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _as_int(self, line: str, lineno: int) -> int:
        try:
            return int(line)
        except ValueError:
            raise ParseError(
                f'Invalid line {lineno}. line="{line}". Could not parse as an integer number.',
                lineno,
                line,
            ) from None

    def _as_float(self, line: str, lineno: int) -> float:
        try:
            return float(line)
        except ValueError:
            raise ParseError(
                f'Invalid line {lineno}. line="{line}". Could not parse as a floating point number.',
                lineno,
                line,
            ) from None

    def _end_of_input_error(self, message: str) -> ParseError:
        if self._lineno:
            message += f' Input ended after line {self._lineno}. line="{self._last_line}".'
        return ParseError(message, self._lineno or None, self._last_line)

    def _check_characters(self, line: str, lineno: int) -> None:
        bad = _INVALID_CHARACTER.search(line)
        if bad is not None:
            char = bad.group(0)
            raise ParseError(
                f'Invalid line {lineno}. line="{line}". Bad character is \'{char}\'/{ord(char)}.',
                lineno,
                line,
            )

    # ------------------------------------------------------------------
    # State handlers
    # ------------------------------------------------------------------

    def _read_map_size(self, line: str, lineno: int) -> None:
        self.count = self._as_int(line, lineno)
        self.state = KbmState.FIRST_MIDI

    def _read_first_midi(self, line: str, lineno: int) -> None:
        self.first_midi = self._as_int(line, lineno)
        self.state = KbmState.LAST_MIDI

    def _read_last_midi(self, line: str, lineno: int) -> None:
        self.last_midi = self._as_int(line, lineno)
        self.state = KbmState.MIDDLE_NOTE

    def _read_middle_note(self, line: str, lineno: int) -> None:
        self.middle_note = self._as_int(line, lineno)
        self.state = KbmState.TUNING_CONSTANT_NOTE

    def _read_tuning_constant_note(self, line: str, lineno: int) -> None:
        self.tuning_constant_note = self._as_int(line, lineno)
        self.state = KbmState.TUNING_FREQUENCY

    def _read_tuning_frequency(self, line: str, lineno: int) -> None:
        self.tuning_frequency = self._as_float(line, lineno)
        self.state = KbmState.OCTAVE_DEGREES

    def _read_octave_degrees(self, line: str, lineno: int) -> None:
        self.octave_degrees = self._as_int(line, lineno)
        self.state = KbmState.KEYS if self.count > 0 else KbmState.TRAILING

    def _read_key(self, line: str, lineno: int) -> None:
        if line in _UNMAPPED_TOKENS:
            self.keys.append(UNMAPPED)
        else:
            self.keys.append(self._as_int(line, lineno))
        if len(self.keys) == self.count:
            self.state = KbmState.TRAILING

    def _read_trailing(self, line: str, lineno: int) -> None:
        pass

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def feed(self, raw_line: str, lineno: int) -> None:
        """Consume one line, including its line ending if it has one."""
        self._raw_lines.append(raw_line)
        line = raw_line.rstrip()
        self._lineno = lineno
        self._last_line = line
        if line.startswith("!"):
            return
        unmapped_key = self.state is KbmState.KEYS and line in _UNMAPPED_TOKENS
        if not unmapped_key and self.state is not KbmState.TRAILING:
            self._check_characters(line, lineno)
        self._handlers[self.state](line, lineno)

    def finish(self) -> KeyboardMapping:
        """
        Return the parsed KeyboardMapping.

        Raises:
            ParseError: If the input ended before the keys section, or held
                        fewer key entries than the map size declares.
        """
        if self.state not in (KbmState.KEYS, KbmState.TRAILING):
            raise self._end_of_input_error("Incomplete KBM content. Unable to get keys section of file.")
        if len(self.keys) != self.count:
            raise self._end_of_input_error(
                "Different number of keys than mapping file indicates. "
                f"Count is {self.count} and we parsed {len(self.keys)} keys."
            )
        return KeyboardMapping(
            count=self.count,
            first_midi=self.first_midi,
            last_midi=self.last_midi,
            middle_note=self.middle_note,
            tuning_constant_note=self.tuning_constant_note,
            tuning_frequency=self.tuning_frequency,
            octave_degrees=self.octave_degrees,
            keys=tuple(self.keys),
            raw_text="".join(self._raw_lines),
            name=self.name,
        )


def read_kbm_stream(stream: Iterable[str], name: str = "") -> KeyboardMapping:
    """
    Parse a KeyboardMapping from an iterable of lines.

    Raises:
        ParseError: If the content is not a valid KBM description.
    """
    parser = KbmParser(name=name)
    for lineno, raw_line in enumerate(stream, start=1):
        parser.feed(raw_line, lineno)
    mapping = parser.finish()
    logger.debug(
        "Parsed keyboard mapping of size %d: note %d tuned to %.6f Hz, scale starts on %d (%s)",
        mapping.count,
        mapping.tuning_constant_note,
        mapping.tuning_frequency,
        mapping.middle_note,
        name,
    )
    return mapping


def read_kbm_file(path: str | Path) -> KeyboardMapping:
    """
    Parse a KeyboardMapping from a KBM file.

    Raises:
        OSError:    If the file cannot be opened.
        ParseError: If the content is not a valid KBM description.
    """
    with open(path, encoding="utf-8", newline="") as fh:
        return read_kbm_stream(fh, name=str(path))


def parse_kbm_data(kbm_contents: str) -> KeyboardMapping:
    """Parse a KeyboardMapping from KBM content held in memory."""
    return read_kbm_stream(io.StringIO(kbm_contents), name=PATCH_MAPPING_NAME)


# ── Generators ──────────────────────────────────────────────────────────────

def start_scale_on_and_tune_note_to(scale_start: int, midi_note: int, freq: float) -> KeyboardMapping:
    """
    Return an identity mapping with scale position 0 on ``scale_start``
    and MIDI note ``midi_note`` fixed at ``freq`` Hz.
    """
    lines = [
        f"! Automatically generated mapping, tuning note {midi_note} to {freq:f} Hz",
        "!",
        "! Size of map",
        "0",
        "! First and last MIDI notes to map - map the entire keyboard",
        "0",
        "127",
        "! Middle note where the first entry in the scale is mapped.",
        str(scale_start),
        "! Reference note where frequency is fixed",
        str(midi_note),
        f"! Frequency for MIDI note {midi_note}",
        f"{freq:f}",
        "! Scale degree for formal octave. This is an empty mapping, so:",
        "0",
        "! Mapping. This is an empty mapping so list no keys",
    ]
    return parse_kbm_data("\n".join(lines) + "\n")


def tune_note_to(midi_note: int, freq: float) -> KeyboardMapping:
    """Return a mapping that fixes ``midi_note`` at ``freq`` Hz, scale starting on A (69)."""
    return start_scale_on_and_tune_note_to(69, midi_note, freq)


def tune_a69_to(freq: float) -> KeyboardMapping:
    """Return a mapping that fixes A4 (MIDI 69) at ``freq`` Hz."""
    return tune_note_to(69, freq)


def standard_keyboard_mapping() -> KeyboardMapping:
    """Return the default mapping: scale on middle C (60), middle C at its 12-TET frequency."""
    lines = [
        "! Default KBM file",
        "0",
        "0",
        "127",
        "60",
        "60",
        repr(MIDI0_FREQ * 32.0),
        "0",
    ]
    return parse_kbm_data("\n".join(lines) + "\n")
