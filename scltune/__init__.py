"""scltune: SCL scales and KBM keyboard mappings compiled into MIDI tuning tables."""

from scltune.errors import BuildError, ParseError, TuningError
from scltune.keyboard_parser import (
    parse_kbm_data,
    read_kbm_file,
    read_kbm_stream,
    standard_keyboard_mapping,
    start_scale_on_and_tune_note_to,
    tune_a69_to,
    tune_note_to,
)
from scltune.scale_parser import (
    even_division_of_span_by_m,
    even_temperament_12_note_scale,
    parse_scl_data,
    parse_tone,
    read_scl_file,
    read_scl_stream,
)
from scltune.tuning import Tuning
from scltune.tuning_models import (
    MIDI0_FREQ,
    TABLE_SIZE,
    UNMAPPED,
    KeyboardMapping,
    Scale,
    Tone,
    ToneKind,
)

__version__ = "0.1.0"

__all__ = [
    "BuildError",
    "KeyboardMapping",
    "MIDI0_FREQ",
    "ParseError",
    "Scale",
    "TABLE_SIZE",
    "Tone",
    "ToneKind",
    "Tuning",
    "TuningError",
    "UNMAPPED",
    "even_division_of_span_by_m",
    "even_temperament_12_note_scale",
    "parse_kbm_data",
    "parse_scl_data",
    "parse_tone",
    "read_kbm_file",
    "read_kbm_stream",
    "read_scl_file",
    "read_scl_stream",
    "standard_keyboard_mapping",
    "start_scale_on_and_tune_note_to",
    "tune_a69_to",
    "tune_note_to",
]
