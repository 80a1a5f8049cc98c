"""Protocol layer: command framing, device drivers, and frame decoding."""

from .framing import FrameFormat, pad_frame, read_validated
from .blood_pressure import BloodPressureProtocol
from .body_scale import BodyScaleProtocol
from .parser import parse_bm55_measurement, parse_bf480_measurement
