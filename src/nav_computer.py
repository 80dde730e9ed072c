"""
Flight computer: wind triangle solver and ISA speed conversions.
Crosswind, drift, ETAS, head/tailwind, ground speed and wind component for one
TAS / track / wind combination. Angles are degrees at the API, radians inside.
"""
import math
import re
from dataclasses import dataclass
from typing import Tuple

# "27035", "270/35", "270/105"
WIND_PATTERN = re.compile(r"^(\d{3})/?(\d{2,3})$")


class InvalidInputError(ValueError):
    """Non-finite or out-of-range input to the flight computer."""


@dataclass(frozen=True)
class WindTriangleInput:
    """
    One flight computer problem.

    wind_direction_deg is the true direction the wind blows from.
    Track and wind direction are normalized into [0, 360).
    """
    true_airspeed_kt: float
    flight_planned_track_deg: float
    wind_direction_deg: float
    wind_speed_kt: float

    def __post_init__(self):
        for name in ("true_airspeed_kt", "flight_planned_track_deg", "wind_direction_deg", "wind_speed_kt"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidInputError(f"{name} must be finite, got {getattr(self, name)!r}")
        if self.true_airspeed_kt <= 0:
            raise InvalidInputError(f"true_airspeed_kt must be > 0, got {self.true_airspeed_kt}")
        if self.wind_speed_kt < 0:
            raise InvalidInputError(f"wind_speed_kt must be >= 0, got {self.wind_speed_kt}")
        object.__setattr__(self, "flight_planned_track_deg", normalize_bearing(self.flight_planned_track_deg))
        object.__setattr__(self, "wind_direction_deg", normalize_bearing(self.wind_direction_deg))


@dataclass(frozen=True)
class WindTriangleResult:
    """Full-precision solver output. Rounding belongs to the presentation layer."""
    crosswind_kt: float       # + = from the right
    drift_angle_deg: float    # sign follows crosswind
    effective_tas_kt: float
    head_tailwind_kt: float   # + = tailwind
    ground_speed_kt: float
    wind_component_kt: float  # ground speed - TAS

    def as_dict(self) -> dict:
        return {
            "crosswind_kt": self.crosswind_kt,
            "drift_angle_deg": self.drift_angle_deg,
            "effective_tas_kt": self.effective_tas_kt,
            "head_tailwind_kt": self.head_tailwind_kt,
            "ground_speed_kt": self.ground_speed_kt,
            "wind_component_kt": self.wind_component_kt,
        }


def normalize_bearing(deg: float) -> float:
    """Bearing into [0, 360)."""
    result = deg % 360.0
    # -1e-17 % 360 rounds up to 360.0
    return 0.0 if result == 360.0 else result


def normalize_relative_angle(deg: float) -> float:
    """Relative angle into (-180, 180]."""
    result = (deg + 180.0) % 360.0 - 180.0
    return 180.0 if result == -180.0 else result


def solve(problem: WindTriangleInput) -> WindTriangleResult:
    """
    Solve the wind triangle.

    windAngle = wind direction - track, in (-180, 180]
    crosswind = W sin(windAngle)
    head/tailwind = -W cos(windAngle)   (wind from the track direction is a headwind)
    drift = asin(crosswind / TAS)
    ETAS = TAS cos(drift), never above TAS
    GS = ETAS + head/tailwind
    WC = GS - TAS
    """
    tas = problem.true_airspeed_kt
    wind_angle = math.radians(
        normalize_relative_angle(problem.wind_direction_deg - problem.flight_planned_track_deg)
    )

    crosswind = problem.wind_speed_kt * math.sin(wind_angle)
    head_tailwind = -problem.wind_speed_kt * math.cos(wind_angle)

    drift = math.asin(max(-1.0, min(1.0, crosswind / tas)))
    effective_tas = min(tas * math.cos(drift), tas)

    ground_speed = effective_tas + head_tailwind

    return WindTriangleResult(
        crosswind_kt=crosswind,
        drift_angle_deg=math.degrees(drift),
        effective_tas_kt=effective_tas,
        head_tailwind_kt=head_tailwind,
        ground_speed_kt=ground_speed,
        wind_component_kt=ground_speed - tas,
    )


def parse_wind(text: str) -> Tuple[float, float]:
    """
    Parse a W/V group into (direction_deg, speed_kt).

    Accepts "27035", "270/35" and "270/105". Direction 360 is returned as 0.
    """
    match = WIND_PATTERN.match((text or "").strip())
    if not match:
        raise ValueError(f"Unrecognised wind string: {text!r}")
    direction = int(match.group(1))
    if direction > 360:
        raise ValueError(f"Wind direction out of range in {text!r}")
    return normalize_bearing(float(direction)), float(match.group(2))


def solve_wind_string(true_airspeed_kt: float, flight_planned_track_deg: float, wind: str) -> WindTriangleResult:
    """solve() with the wind given as a W/V string such as "190/90"."""
    direction, speed = parse_wind(wind)
    return solve(WindTriangleInput(true_airspeed_kt, flight_planned_track_deg, direction, speed))


# ============= ISA / speed conversions =============

ISA_SEA_LEVEL_TEMP_C = 15.0
ISA_LAPSE_RATE_C_PER_1000FT = 1.98
ISA_TROPOPAUSE_FT = 36089.0
ISA_TROPOPAUSE_TEMP_C = -56.5
KELVIN_OFFSET = 273.15
SPEED_OF_SOUND_SL_KT = 661.47


def _require_finite(**values):
    for name, value in values.items():
        if not math.isfinite(value):
            raise InvalidInputError(f"{name} must be finite, got {value!r}")


def isa_temperature_c(pressure_altitude_ft: float, lapse_rate_c_per_1000ft: float = ISA_LAPSE_RATE_C_PER_1000FT) -> float:
    """ISA temperature: 15 C at sea level, falling linearly to -56.5 C at the tropopause, constant above."""
    _require_finite(pressure_altitude_ft=pressure_altitude_ft)
    temp = ISA_SEA_LEVEL_TEMP_C - lapse_rate_c_per_1000ft * pressure_altitude_ft / 1000.0
    return max(temp, ISA_TROPOPAUSE_TEMP_C)


def _temperature_ratio(pressure_altitude_ft: float, isa_deviation_c: float) -> float:
    _require_finite(isa_deviation_c=isa_deviation_c)
    kelvin = isa_temperature_c(pressure_altitude_ft) + isa_deviation_c + KELVIN_OFFSET
    if kelvin <= 0:
        raise InvalidInputError(f"Temperature below absolute zero at ISA{isa_deviation_c:+g}")
    return kelvin / (ISA_SEA_LEVEL_TEMP_C + KELVIN_OFFSET)


def _pressure_ratio(pressure_altitude_ft: float) -> float:
    if pressure_altitude_ft <= ISA_TROPOPAUSE_FT:
        return (1 - 6.8756e-6 * pressure_altitude_ft) ** 5.2559
    return 0.22336 * math.exp(-(pressure_altitude_ft - ISA_TROPOPAUSE_FT) / 20806.0)


def speed_of_sound_kt(pressure_altitude_ft: float, isa_deviation_c: float = 0.0) -> float:
    """a = a0 sqrt(T / T0)."""
    return SPEED_OF_SOUND_SL_KT * math.sqrt(_temperature_ratio(pressure_altitude_ft, isa_deviation_c))


def mach_to_tas(mach: float, pressure_altitude_ft: float, isa_deviation_c: float = 0.0) -> float:
    """TAS = M a."""
    _require_finite(mach=mach)
    if mach < 0:
        raise InvalidInputError(f"mach must be >= 0, got {mach}")
    return mach * speed_of_sound_kt(pressure_altitude_ft, isa_deviation_c)


def tas_to_mach(true_airspeed_kt: float, pressure_altitude_ft: float, isa_deviation_c: float = 0.0) -> float:
    """M = TAS / a."""
    _require_finite(true_airspeed_kt=true_airspeed_kt)
    if true_airspeed_kt < 0:
        raise InvalidInputError(f"true_airspeed_kt must be >= 0, got {true_airspeed_kt}")
    return true_airspeed_kt / speed_of_sound_kt(pressure_altitude_ft, isa_deviation_c)


def ias_to_tas(indicated_airspeed_kt: float, pressure_altitude_ft: float, isa_deviation_c: float = 0.0) -> float:
    """
    TAS = IAS / sqrt(sigma), sigma = (p / p0) / (T / T0).

    IAS is taken as CAS and compressibility is ignored, as in flight computer practice.
    """
    _require_finite(indicated_airspeed_kt=indicated_airspeed_kt, pressure_altitude_ft=pressure_altitude_ft)
    if indicated_airspeed_kt < 0:
        raise InvalidInputError(f"indicated_airspeed_kt must be >= 0, got {indicated_airspeed_kt}")
    sigma = _pressure_ratio(pressure_altitude_ft) / _temperature_ratio(pressure_altitude_ft, isa_deviation_c)
    return indicated_airspeed_kt / math.sqrt(sigma)
