"""TLE (Two-Line Element) parsing, validation and serialization.

Element lines are decoded column by column so that every failure can be
reported against the line and field it occurred in. The validated lines
are then handed to the sgp4 library, whose ``Satrec`` object drives
propagation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, TypeVar

from sgp4.api import Satrec, WGS72

from orbtrack.core.errors import MalformedElementSet
from orbtrack.utils.constants import (
    EARTH_MU_KM3_S2,
    EARTH_RADIUS_KM,
    MINUTES_PER_DAY,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

TLE_LINE_LENGTH = 69

# Alpha-5 catalog numbers: I and O are skipped to avoid confusion with 1 and 0.
_ALPHA5 = "ABCDEFGHJKLMNPQRSTUVWXYZ"


@dataclass(frozen=True)
class OrbitalElementSet:
    """A parsed and validated Two-Line Element set.

    Attributes:
        name: Object name (line 0, if provided).
        line1: Raw TLE line 1.
        line2: Raw TLE line 2.
        norad_id: NORAD catalog number.
        classification: Classification character (U/C/S).
        intl_designator: International designator (launch year, number, piece).
        epoch: Epoch as a UTC datetime.
        mean_motion_dot: First derivative of mean motion divided by 2 (rev/day²).
        mean_motion_ddot: Second derivative of mean motion divided by 6 (rev/day³).
        bstar: BSTAR drag term (1/earth radii).
        ephemeris_type: Ephemeris type digit.
        element_set_number: Element set revision counter.
        inclination_deg: Orbital inclination in degrees, [0, 180].
        raan_deg: Right ascension of ascending node in degrees, [0, 360).
        eccentricity: Orbital eccentricity, [0, 1).
        arg_perigee_deg: Argument of perigee in degrees, [0, 360).
        mean_anomaly_deg: Mean anomaly in degrees, [0, 360).
        mean_motion_rev_per_day: Mean motion in revolutions per day.
        rev_number: Revolution number at epoch.
        satrec: Underlying sgp4 Satrec object for propagation.
    """

    name: str
    line1: str
    line2: str
    norad_id: int
    classification: str
    intl_designator: str
    epoch: datetime
    mean_motion_dot: float
    mean_motion_ddot: float
    bstar: float
    ephemeris_type: int
    element_set_number: int
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    rev_number: int
    satrec: Satrec = field(repr=False, compare=False)

    @classmethod
    def from_lines(cls, line1: str, line2: str, name: str = "") -> OrbitalElementSet:
        """Parse an element set from two (or three) lines.

        Args:
            line1: TLE line 1 (69 characters).
            line2: TLE line 2 (69 characters).
            name: Optional object name (line 0). A leading ``"0 "`` is dropped.

        Returns:
            A validated element set.

        Raises:
            MalformedElementSet: If a line has the wrong shape, a bad checksum,
                an undecodable field or a field outside its valid range.
        """
        line1 = line1.strip()
        line2 = line2.strip()
        name = name.strip()
        if name.startswith("0 "):
            name = name[2:].strip()

        _check_line(line1, 1)
        _check_line(line2, 2)

        norad_id = _decode(line1, 1, "catalog_number", 2, 7, _decode_catalog_number)
        norad_id_2 = _decode(line2, 2, "catalog_number", 2, 7, _decode_catalog_number)
        if norad_id != norad_id_2:
            raise MalformedElementSet(
                2, "catalog_number", f"{norad_id_2} does not match line 1 ({norad_id})"
            )

        year = _decode(line1, 1, "epoch_year", 18, 20, int)
        day_of_year = _decode(line1, 1, "epoch_day", 20, 32, float)
        if not 1.0 <= day_of_year < 367.0:
            raise MalformedElementSet(1, "epoch_day", f"{day_of_year} outside [1, 367)")
        year = year + 2000 if year < 57 else year + 1900
        epoch = datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=day_of_year - 1)

        inclination = _decode(line2, 2, "inclination", 8, 16, float)
        if not 0.0 <= inclination <= 180.0:
            raise MalformedElementSet(2, "inclination", f"{inclination} outside [0, 180]")
        mean_motion = _decode(line2, 2, "mean_motion", 52, 63, float)
        if not mean_motion > 0.0:
            raise MalformedElementSet(2, "mean_motion", f"{mean_motion} is not positive")

        element_set = cls(
            name=name,
            line1=line1,
            line2=line2,
            norad_id=norad_id,
            classification=line1[7].strip() or "U",
            intl_designator=line1[9:17].strip(),
            epoch=epoch,
            mean_motion_dot=_decode(line1, 1, "mean_motion_dot", 33, 43, float),
            mean_motion_ddot=_decode(line1, 1, "mean_motion_ddot", 44, 52, _decode_exponent),
            bstar=_decode(line1, 1, "bstar", 53, 61, _decode_exponent),
            ephemeris_type=_decode(line1, 1, "ephemeris_type", 62, 63, _decode_optional_int),
            element_set_number=_decode(line1, 1, "element_set_number", 64, 68, _decode_optional_int),
            inclination_deg=inclination,
            raan_deg=_angle(line2, "raan", 17, 25),
            eccentricity=_decode(line2, 2, "eccentricity", 26, 33, _decode_eccentricity),
            arg_perigee_deg=_angle(line2, "arg_perigee", 34, 42),
            mean_anomaly_deg=_angle(line2, "mean_anomaly", 43, 51),
            mean_motion_rev_per_day=mean_motion,
            rev_number=_decode(line2, 2, "rev_number", 63, 68, _decode_optional_int),
            satrec=Satrec.twoline2rv(line1, line2, WGS72),
        )

        logger.debug("Parsed TLE for NORAD %d (epoch %s)", norad_id, epoch.isoformat())
        return element_set

    @classmethod
    def from_elements(
        cls,
        norad_id: int,
        epoch: datetime,
        inclination_deg: float,
        raan_deg: float,
        eccentricity: float,
        arg_perigee_deg: float,
        mean_anomaly_deg: float,
        mean_motion_rev_per_day: float,
        *,
        name: str = "",
        bstar: float = 0.0,
        mean_motion_dot: float = 0.0,
        mean_motion_ddot: float = 0.0,
        classification: str = "U",
        intl_designator: str = "",
        element_set_number: int = 999,
        rev_number: int = 0,
    ) -> OrbitalElementSet:
        """Build an element set from mean elements.

        The elements are encoded into checksummed lines and parsed back, so the
        result carries exactly the precision the line format can hold.

        Raises:
            ValueError: If a value cannot be represented in the line format,
                including epochs outside 1957-2056.
        """
        line1 = _format_line1(
            norad_id, classification, intl_designator, epoch,
            mean_motion_dot, mean_motion_ddot, bstar, 0, element_set_number,
        )
        line2 = _format_line2(
            norad_id, inclination_deg, raan_deg, eccentricity,
            arg_perigee_deg, mean_anomaly_deg, mean_motion_rev_per_day, rev_number,
        )
        return cls.from_lines(line1, line2, name=name)

    @property
    def period_minutes(self) -> float:
        """Orbital period in minutes."""
        return MINUTES_PER_DAY / self.mean_motion_rev_per_day

    @property
    def is_deep_space(self) -> bool:
        """Whether the propagation model selected its deep-space branch.

        The model switches at a period of 225 minutes, computed from the
        recovered (un-Kozai'd) mean motion.
        """
        return self.satrec.method == "d"

    @property
    def semi_major_axis_km(self) -> float:
        """Semi-major axis from the mean motion, in km."""
        n_rad_per_sec = self.mean_motion_rev_per_day * 2 * math.pi / 86400.0
        return (EARTH_MU_KM3_S2 / n_rad_per_sec ** 2) ** (1.0 / 3.0)

    @property
    def perigee_km(self) -> float:
        """Perigee altitude above the equatorial radius, in km."""
        return self.semi_major_axis_km * (1 - self.eccentricity) - EARTH_RADIUS_KM

    @property
    def apogee_km(self) -> float:
        """Apogee altitude above the equatorial radius, in km."""
        return self.semi_major_axis_km * (1 + self.eccentricity) - EARTH_RADIUS_KM

    def to_lines(self) -> tuple[str, str]:
        """Re-encode the parsed fields into checksummed TLE lines."""
        return format_tle(self)

    def __str__(self) -> str:
        header = f"0 {self.name}\n" if self.name else ""
        return f"{header}{self.line1}\n{self.line2}"


@dataclass
class ParseDiagnostic:
    """A record skipped while parsing a catalog feed.

    Attributes:
        line_number: 1-based line number in the feed of the offending line.
        error: The parse failure.
    """

    line_number: int
    error: MalformedElementSet

    def __str__(self) -> str:
        return f"feed line {self.line_number}: {self.error}"


@dataclass
class CatalogParse:
    """Result of parsing a multi-record feed."""

    element_sets: list[OrbitalElementSet]
    diagnostics: list[ParseDiagnostic]

    @property
    def skipped(self) -> int:
        return len(self.diagnostics)


def compute_checksum(line: str) -> int:
    """Mod-10 checksum of the first 68 columns; '-' counts as 1."""
    total = 0
    for char in line[:68]:
        if char.isdigit():
            total += int(char)
        elif char == "-":
            total += 1
    return total % 10


def parse_tle(text: str) -> OrbitalElementSet:
    """Parse a single element set in 2-line or 3-line (with name) form.

    Raises:
        MalformedElementSet: If the text is not exactly one valid record.
    """
    lines = [l.strip() for l in text.strip().splitlines() if l.strip()]
    if len(lines) == 2:
        return OrbitalElementSet.from_lines(lines[0], lines[1])
    if len(lines) == 3:
        return OrbitalElementSet.from_lines(lines[1], lines[2], name=lines[0])
    raise MalformedElementSet(0, "record", f"expected 2 or 3 lines, got {len(lines)}")


def parse_catalog(text: str) -> CatalogParse:
    """Parse a feed of element sets.

    Handles both 2-line and 3-line (with name) records. Each record is parsed
    independently: a malformed record is reported in the diagnostics and
    skipped without aborting the rest of the feed.

    Args:
        text: Raw feed text, one or more records separated by newlines.

    Returns:
        The parsed element sets in feed order, plus per-record diagnostics.
    """
    numbered = [
        (number, line.rstrip())
        for number, line in enumerate(text.splitlines(), start=1)
        if line.strip()
    ]
    lines = [line for _, line in numbered]
    element_sets: list[OrbitalElementSet] = []
    diagnostics: list[ParseDiagnostic] = []

    def _attempt(first: int, name: str = "") -> None:
        try:
            element_sets.append(
                OrbitalElementSet.from_lines(lines[first], lines[first + 1], name=name)
            )
        except MalformedElementSet as exc:
            offset = 1 if exc.line == 2 else 0
            diagnostic = ParseDiagnostic(numbered[first + offset][0], exc)
            logger.warning("Skipping malformed element set at %s", diagnostic)
            diagnostics.append(diagnostic)

    i = 0
    while i < len(lines):
        if _is_element_line(lines[i], 1) and i + 1 < len(lines) and _is_element_line(lines[i + 1], 2):
            _attempt(i)
            i += 2
        elif (
            not _is_element_line(lines[i], 1)
            and not _is_element_line(lines[i], 2)
            and i + 2 < len(lines)
            and _is_element_line(lines[i + 1], 1)
            and _is_element_line(lines[i + 2], 2)
        ):
            _attempt(i + 1, name=lines[i])
            i += 3
        elif _is_element_line(lines[i], 1) or _is_element_line(lines[i], 2):
            line_no = 1 if _is_element_line(lines[i], 1) else 2
            error = MalformedElementSet(line_no, "record", "element line without its pair")
            diagnostic = ParseDiagnostic(numbered[i][0], error)
            logger.warning("Skipping unpaired element line at %s", diagnostic)
            diagnostics.append(diagnostic)
            i += 1
        else:
            logger.debug("Ignoring unrecognized feed line %d", numbered[i][0])
            i += 1

    logger.info(
        "Parsed %d element sets from feed (%d skipped)", len(element_sets), len(diagnostics)
    )
    return CatalogParse(element_sets=element_sets, diagnostics=diagnostics)


def format_tle(element_set: OrbitalElementSet) -> tuple[str, str]:
    """Encode an element set's fields as two checksummed TLE lines."""
    line1 = _format_line1(
        element_set.norad_id,
        element_set.classification,
        element_set.intl_designator,
        element_set.epoch,
        element_set.mean_motion_dot,
        element_set.mean_motion_ddot,
        element_set.bstar,
        element_set.ephemeris_type,
        element_set.element_set_number,
    )
    line2 = _format_line2(
        element_set.norad_id,
        element_set.inclination_deg,
        element_set.raan_deg,
        element_set.eccentricity,
        element_set.arg_perigee_deg,
        element_set.mean_anomaly_deg,
        element_set.mean_motion_rev_per_day,
        element_set.rev_number,
    )
    return line1, line2


# --- decoding helpers ---


def _is_element_line(line: str, number: int) -> bool:
    return line.startswith(f"{number} ")


def _check_line(line: str, line_no: int) -> None:
    if len(line) != TLE_LINE_LENGTH:
        raise MalformedElementSet(
            line_no, "length", f"expected {TLE_LINE_LENGTH} characters, got {len(line)}"
        )
    if not _is_element_line(line, line_no):
        raise MalformedElementSet(line_no, "line_number", f"must start with '{line_no} '")
    if not line[68].isdigit():
        raise MalformedElementSet(line_no, "checksum", f"{line[68]!r} is not a digit")
    expected = compute_checksum(line)
    if int(line[68]) != expected:
        raise MalformedElementSet(
            line_no, "checksum", f"got {line[68]}, computed {expected}"
        )


def _decode(
    line: str, line_no: int, name: str, start: int, end: int, convert: Callable[[str], T]
) -> T:
    text = line[start:end]
    try:
        value = convert(text)
    except ValueError:
        raise MalformedElementSet(line_no, name, f"cannot decode {text!r}") from None
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedElementSet(line_no, name, f"{text.strip()!r} is not a finite number")
    return value


def _angle(line: str, name: str, start: int, end: int) -> float:
    value = _decode(line, 2, name, start, end, float)
    if not 0.0 <= value <= 360.0:
        raise MalformedElementSet(2, name, f"{value} outside [0, 360]")
    return value % 360.0


def _decode_catalog_number(text: str) -> int:
    text = text.strip()
    if text and text[0].isalpha():
        index = _ALPHA5.find(text[0])
        if index < 0 or not text[1:].isdigit():
            raise ValueError(text)
        return (index + 10) * 10000 + int(text[1:])
    if not text.isdigit():
        raise ValueError(text)
    return int(text)


def _decode_exponent(text: str) -> float:
    # " 30093-3" means 0.30093e-3
    text = text.strip()
    mantissa, exponent = text[:-2], text[-2:]
    if len(exponent) != 2 or exponent[0] not in "+-" or not exponent[1].isdigit():
        raise ValueError(text)
    sign = -1.0 if mantissa.startswith("-") else 1.0
    digits = mantissa.lstrip("+-")
    if not digits.isdigit():
        raise ValueError(text)
    return sign * float("0." + digits) * 10.0 ** int(exponent)


def _decode_eccentricity(text: str) -> float:
    text = text.strip()
    if not text.isdigit():
        raise ValueError(text)
    return float("0." + text)


def _decode_optional_int(text: str) -> int:
    text = text.strip()
    return int(text) if text else 0


# --- encoding helpers ---


def _format_catalog_number(norad_id: int) -> str:
    if 0 <= norad_id <= 99999:
        return f"{norad_id:05d}"
    prefix, rest = divmod(norad_id, 10000)
    if not 10 <= prefix < 10 + len(_ALPHA5):
        raise ValueError(f"Catalog number {norad_id} cannot be encoded")
    return f"{_ALPHA5[prefix - 10]}{rest:04d}"


def _format_decimal(value: float) -> str:
    # 0.00016717 -> " .00016717"
    text = f"{abs(value):.8f}"
    if not text.startswith("0."):
        raise ValueError(f"{value} cannot be encoded as a TLE decimal field")
    return ("-" if value < 0 else " ") + text[1:]


def _format_exponent(value: float) -> str:
    # 0.30093e-3 -> " 30093-3"
    if value == 0.0:
        return " 00000-0"
    exponent = math.floor(math.log10(abs(value))) + 1
    mantissa = round(abs(value) * 10.0 ** (5 - exponent))
    if mantissa >= 100000:
        mantissa //= 10
        exponent += 1
    if not -9 <= exponent <= 9:
        raise ValueError(f"{value} cannot be encoded as a TLE exponent field")
    sign = "-" if value < 0 else " "
    return f"{sign}{mantissa:05d}{'-' if exponent < 0 else '+'}{abs(exponent)}"


def _with_checksum(body: str) -> str:
    return body + str(compute_checksum(body))


def _format_line1(
    norad_id: int,
    classification: str,
    intl_designator: str,
    epoch: datetime,
    mean_motion_dot: float,
    mean_motion_ddot: float,
    bstar: float,
    ephemeris_type: int,
    element_set_number: int,
) -> str:
    if epoch.tzinfo is None:
        epoch = epoch.replace(tzinfo=timezone.utc)
    epoch = epoch.astimezone(timezone.utc)
    # Two-digit years cover 1957-2056 only
    if not 1957 <= epoch.year <= 2056:
        raise ValueError(f"Epoch year {epoch.year} cannot be encoded as a two-digit TLE year")
    start_of_year = datetime(epoch.year, 1, 1, tzinfo=timezone.utc)
    day = 1.0 + (epoch - start_of_year).total_seconds() / 86400.0
    if round(day, 8) >= 367.0:
        raise ValueError(f"Epoch {epoch.isoformat()} rounds past the end of {epoch.year}")
    body = (
        f"1 {_format_catalog_number(norad_id)}{classification[:1] or 'U'} "
        f"{intl_designator[:8]:<8} "
        f"{epoch.year % 100:02d}{day:012.8f} "
        f"{_format_decimal(mean_motion_dot)} "
        f"{_format_exponent(mean_motion_ddot)} "
        f"{_format_exponent(bstar)} "
        f"{ephemeris_type % 10:d} "
        f"{element_set_number % 10000:>4d}"
    )
    return _with_checksum(body)


def _format_line2(
    norad_id: int,
    inclination_deg: float,
    raan_deg: float,
    eccentricity: float,
    arg_perigee_deg: float,
    mean_anomaly_deg: float,
    mean_motion_rev_per_day: float,
    rev_number: int,
) -> str:
    ecc_digits = round(eccentricity * 1e7)
    if not 0 <= ecc_digits < 10_000_000:
        raise ValueError(f"Eccentricity {eccentricity} cannot be encoded")
    body = (
        f"2 {_format_catalog_number(norad_id)} "
        f"{inclination_deg:8.4f} "
        f"{raan_deg % 360.0:8.4f} "
        f"{ecc_digits:07d} "
        f"{arg_perigee_deg % 360.0:8.4f} "
        f"{mean_anomaly_deg % 360.0:8.4f} "
        f"{mean_motion_rev_per_day:11.8f}"
        f"{rev_number % 100000:>5d}"
    )
    return _with_checksum(body)
