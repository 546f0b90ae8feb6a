"""
Two-line element set parsing and validation.

Only raw numeric values are extracted here; conversion to the units used by
the propagator happens once in :class:`pass_predictor.elements.OrbitalElements`.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69


class TLEFormatError(ValueError):
    """Raised for malformed TLE text or a checksum mismatch."""


def compute_checksum(line: str) -> int:
    """
    Mod-10 checksum over the first 68 columns of a TLE line.

    Digits count at face value, minus signs count as 1, everything else 0.
    """
    if len(line) < TLE_LINE_LENGTH - 1:
        raise TLEFormatError(f"Line too short for checksum ({len(line)} chars)")

    total = 0
    for char in line[: TLE_LINE_LENGTH - 1]:
        if char.isdigit():
            total += int(char)
        elif char == "-":
            total += 1
    return total % 10


def verify_checksum(line: str) -> bool:
    if len(line) < TLE_LINE_LENGTH or not line[TLE_LINE_LENGTH - 1].isdigit():
        return False
    return compute_checksum(line) == int(line[TLE_LINE_LENGTH - 1])


def _implied_decimal(field: str) -> float:
    """Parse the ``SNNNNNSE`` implied-decimal exponent format, e.g. ``-11606-4``."""
    field = field.strip()
    if not field:
        return 0.0
    sign = -1.0 if field[0] == "-" else 1.0
    if field[0] in "+-":
        field = field[1:]
    mantissa, exponent = field[:-2], field[-2:]
    return sign * float(f"0.{mantissa.strip()}e{exponent}")


def _check_layout(line1: str, line2: str) -> None:
    for number, line in ((1, line1), (2, line2)):
        if len(line) < TLE_LINE_LENGTH:
            raise TLEFormatError(f"Line {number} must be {TLE_LINE_LENGTH} characters, got {len(line)}")
        if not verify_checksum(line):
            raise TLEFormatError(f"Checksum mismatch on line {number}: {line!r}")

    if line1[0] != "1" or line2[0] != "2":
        raise TLEFormatError("TLE lines must start with '1' and '2'")

    if line1[2:7] != line2[2:7]:
        raise TLEFormatError(
            f"Catalog numbers differ between lines: {line1[2:7]!r} vs {line2[2:7]!r}"
        )

    decimal_points = ((line1, 23), (line1, 34), (line2, 11), (line2, 20), (line2, 37), (line2, 46), (line2, 54))
    for line, column in decimal_points:
        if line[column] != ".":
            raise TLEFormatError(f"Expected '.' at column {column + 1}: {line!r}")

    if line1[61:64] != " 0 ":
        raise TLEFormatError("Ephemeris type field must be ' 0 '")


@dataclass(frozen=True)
class TLE:
    """
    Raw two-line element set.

    Angles are in degrees, mean motion in rev/day, the first derivative in
    rev/day^2 (already halved in the TLE format), the second in rev/day^3
    (already divided by six), B* in inverse earth radii.
    """

    name: str
    line1: str
    line2: str
    catalog_number: int
    international_designator: str
    epoch: float  # YYDDD.FFFFFFFF
    epoch_year: int
    epoch_day: float
    ndot_over_2: float
    nddot_over_6: float
    bstar: float
    element_number: int
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    revolution_number: int

    @classmethod
    def from_lines(cls, name: Optional[str], line1: str, line2: str) -> "TLE":
        """
        Parse a TLE from its text lines.

        Raises:
            TLEFormatError: If the layout or checksums are invalid
        """
        line1 = line1.rstrip()
        line2 = line2.rstrip()
        _check_layout(line1, line2)

        try:
            two_digit_year = int(line1[18:20])
            epoch_year = two_digit_year + (1900 if two_digit_year > 56 else 2000)
            revnum_field = line2[63:68].strip()
            element_field = line1[64:68].strip()

            tle = cls(
                name=(name or "").strip() or f"SAT {int(line1[2:7])}",
                line1=line1,
                line2=line2,
                catalog_number=int(line1[2:7]),
                international_designator=line1[9:17].strip(),
                epoch=float(line1[18:32].replace(" ", "0")),
                epoch_year=epoch_year,
                epoch_day=float(line1[20:32].replace(" ", "0")),
                ndot_over_2=float(line1[33:43]),
                nddot_over_6=_implied_decimal(line1[44:52]),
                bstar=_implied_decimal(line1[53:61]),
                element_number=int(element_field) if element_field else 0,
                inclination_deg=float(line2[8:16]),
                raan_deg=float(line2[17:25]),
                eccentricity=float("." + line2[26:33].strip()),
                arg_perigee_deg=float(line2[34:42]),
                mean_anomaly_deg=float(line2[43:51]),
                mean_motion_rev_per_day=float(line2[52:63]),
                revolution_number=int(revnum_field) if revnum_field else 0,
            )
        except ValueError as e:
            raise TLEFormatError(f"Could not parse TLE fields: {e}") from e

        logger.debug(f"Parsed TLE for {tle.name} (catalog {tle.catalog_number})")
        return tle


def parse_tle_text(text: str) -> List[TLE]:
    """
    Parse every element set in a block of text.

    Accepts both 3-line (name + two lines) and bare 2-line entries. Entries
    that fail validation are logged and skipped.
    """
    lines = [line.rstrip() for line in text.splitlines() if line.strip()]
    tles: List[TLE] = []
    i = 0
    while i < len(lines):
        if lines[i].startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            name, line1, line2 = None, lines[i], lines[i + 1]
            i += 2
        elif i + 2 < len(lines):
            name, line1, line2 = lines[i], lines[i + 1], lines[i + 2]
            i += 3
        else:
            logger.warning(f"Ignoring trailing incomplete TLE entry at line {i + 1}")
            break

        try:
            tles.append(TLE.from_lines(name, line1, line2))
        except TLEFormatError as e:
            logger.warning(f"Skipping invalid TLE {name or line1[2:7]}: {e}")

    return tles


def load_tle(path: Union[str, Path], satellite_name: str) -> TLE:
    """
    Load a named satellite from a TLE file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the satellite is not in the file
    """
    tle_path = Path(path)
    if not tle_path.exists():
        raise FileNotFoundError(f"TLE file not found: {path}")

    for tle in parse_tle_text(tle_path.read_text()):
        if satellite_name.upper() in tle.name.upper():
            return tle

    raise ValueError(f"Satellite '{satellite_name}' not found in TLE file")
