"""Open-water thrust and torque coefficient curves.

KT(J) and KQ(J) come from model tests or high-fidelity CFD and are supplied
as ordered (J, value) samples. The table interpolates between samples and
holds the end values outside the sampled range, so extreme operating points
never extrapolate into unphysical coefficients.

Typical usage example:
    kt = CoefficientCurve.from_pairs("kt", [(0.0, 0.45), (0.5, 0.30), (1.0, 0.08)])
    kq = CoefficientCurve.from_pairs("kq", [(0.0, 0.060), (0.5, 0.045), (1.0, 0.020)])
    table = CoefficientTable.load(kt, kq)
    kt_value, kq_value = table.evaluate(0.4)
"""

import csv
import math
from bisect import bisect_right
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from scipy.interpolate import CubicSpline, PchipInterpolator

from hydroprop.core.errors import InvalidConfiguration, UpstreamUnavailable
from hydroprop.core.logging_system import get_logger

logger = get_logger(__name__)


class InterpolationMode(Enum):
    """Interpolation between curve samples, chosen at load time.

    Attributes:
        LINEAR: Piecewise-linear (default).
        SPLINE: Natural cubic spline.
        PCHIP: Shape-preserving piecewise cubic Hermite.
    """

    LINEAR = "linear"
    SPLINE = "spline"
    PCHIP = "pchip"

    @classmethod
    def parse(cls, value: "str | InterpolationMode") -> "InterpolationMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as e:
            choices = ", ".join(m.value for m in cls)
            raise InvalidConfiguration(
                f"unknown mode {value!r} (expected one of: {choices})", field="coefficients.interpolation"
            ) from e


@dataclass(frozen=True)
class CoefficientCurve:
    """Immutable ordered samples of one coefficient against advance ratio.

    Attributes:
        name: Curve name used in diagnostics (e.g. "kt").
        j: Advance ratio samples, strictly increasing.
        values: Coefficient value at each J sample.
    """

    name: str
    j: tuple[float, ...]
    values: tuple[float, ...]

    @classmethod
    def from_pairs(cls, name: str, pairs: Iterable[Sequence[float]]) -> "CoefficientCurve":
        """Build a curve from (J, value) pairs.

        Raises:
            InvalidConfiguration: If the curve is empty, a sample is not a
                pair of finite numbers, or J is not strictly increasing.
        """
        j_values: list[float] = []
        values: list[float] = []

        for index, pair in enumerate(pairs):
            try:
                j, value = (float(x) for x in pair)
            except (TypeError, ValueError) as e:
                raise InvalidConfiguration(
                    f"sample {index} must be a (J, value) pair of numbers, got {pair!r}", field=name
                ) from e
            if not (math.isfinite(j) and math.isfinite(value)):
                raise InvalidConfiguration(f"sample {index} is not finite: ({j}, {value})", field=name)
            if j_values and j <= j_values[-1]:
                raise InvalidConfiguration(
                    f"J must be strictly increasing, sample {index} has J={j} after J={j_values[-1]}",
                    field=name,
                )
            j_values.append(j)
            values.append(value)

        if not j_values:
            raise InvalidConfiguration("curve has no samples", field=name)

        return cls(name, tuple(j_values), tuple(values))

    @classmethod
    def from_csv(cls, name: str, path: str | Path) -> "CoefficientCurve":
        """Load a curve from a two-column ``J,value`` file.

        Blank lines, ``#`` comments and a non-numeric header row are skipped.

        Raises:
            UpstreamUnavailable: If the file does not exist.
            InvalidConfiguration: If the samples are malformed.
        """
        path = Path(path)
        if not path.exists():
            raise UpstreamUnavailable(f"Coefficient curve file not found: {path}")

        pairs: list[tuple[str, ...]] = []
        with path.open("r", encoding="utf-8", newline="") as f:
            for line_number, row in enumerate(csv.reader(f), start=1):
                cells = tuple(cell.strip() for cell in row)
                if not cells or not cells[0] or cells[0].startswith("#"):
                    continue
                if not pairs and _is_header(cells):
                    continue
                if len(cells) != 2:
                    raise InvalidConfiguration(f"line {line_number} must have 2 columns", field=name)
                pairs.append(cells)

        curve = cls.from_pairs(name, pairs)
        logger.info("Loaded %s curve from %s (%d samples)", name, path, len(curve))
        return curve

    def __len__(self) -> int:
        return len(self.j)

    @property
    def j_range(self) -> tuple[float, float]:
        return self.j[0], self.j[-1]


def _is_header(cells: tuple[str, ...]) -> bool:
    try:
        float(cells[0])
    except ValueError:
        return True
    return False


class _LinearCurve:
    """Piecewise-linear evaluation with flat ends, O(log n) per lookup."""

    def __init__(self, curve: CoefficientCurve) -> None:
        self._j = curve.j
        self._v = curve.values

    def __call__(self, j: float) -> float:
        xs, ys = self._j, self._v
        if math.isnan(j):
            return math.nan
        if j <= xs[0]:
            return ys[0]
        if j >= xs[-1]:
            return ys[-1]

        i = bisect_right(xs, j) - 1
        if j == xs[i]:
            return ys[i]
        t = (j - xs[i]) / (xs[i + 1] - xs[i])
        return ys[i] + t * (ys[i + 1] - ys[i])


class _CubicCurve:
    """Cubic evaluation clamped to the sampled J range."""

    def __init__(self, curve: CoefficientCurve, mode: InterpolationMode) -> None:
        if len(curve) < 3:
            raise InvalidConfiguration(
                f"{mode.value} interpolation needs at least 3 samples, got {len(curve)}", field=curve.name
            )
        self._low, self._high = curve.j_range
        if mode is InterpolationMode.SPLINE:
            self._fn = CubicSpline(curve.j, curve.values, bc_type="natural", extrapolate=False)
        else:
            self._fn = PchipInterpolator(curve.j, curve.values, extrapolate=False)

    def __call__(self, j: float) -> float:
        if math.isnan(j):
            return math.nan
        return float(self._fn(min(max(j, self._low), self._high)))


class CoefficientTable:
    """Read-only KT/KQ lookup table.

    Immutable after loading and safe for concurrent readers. Evaluation is
    deterministic: the same J always yields the same (KT, KQ).

    Examples:
        >>> table = CoefficientTable.load(kt_curve, kq_curve, InterpolationMode.LINEAR)
        >>> table.evaluate(0.5)
        (0.3, 0.045)
    """

    def __init__(self) -> None:
        self.kt_curve: CoefficientCurve | None = None
        self.kq_curve: CoefficientCurve | None = None
        self.mode = InterpolationMode.LINEAR
        self._kt = None
        self._kq = None

    @classmethod
    def load(
        cls,
        kt_curve: CoefficientCurve,
        kq_curve: CoefficientCurve,
        mode: str | InterpolationMode = InterpolationMode.LINEAR,
    ) -> "CoefficientTable":
        """Validate both curves and build the interpolants.

        Raises:
            InvalidConfiguration: If either curve is malformed or too short
                for the requested mode.
        """
        mode = InterpolationMode.parse(mode)
        for curve in (kt_curve, kq_curve):
            if not isinstance(curve, CoefficientCurve):
                raise InvalidConfiguration(
                    f"expected a CoefficientCurve, got {type(curve).__name__}", field="coefficients"
                )

        table = cls()
        table.kt_curve = kt_curve
        table.kq_curve = kq_curve
        table.mode = mode
        table._kt = _build(kt_curve, mode)
        table._kq = _build(kq_curve, mode)

        logger.info(
            "Coefficient table loaded: KT %d samples J=[%.3f, %.3f], KQ %d samples J=[%.3f, %.3f], mode=%s",
            len(kt_curve),
            *kt_curve.j_range,
            len(kq_curve),
            *kq_curve.j_range,
            mode.value,
        )
        return table

    @property
    def is_loaded(self) -> bool:
        return self._kt is not None and self._kq is not None

    def evaluate(self, j: float) -> tuple[float, float]:
        """Look up (KT, KQ) at advance ratio ``j``.

        Raises:
            UpstreamUnavailable: If no curves have been loaded.
        """
        if self._kt is None or self._kq is None:
            raise UpstreamUnavailable("Coefficient table has not been loaded")
        return self._kt(j), self._kq(j)


def _build(curve: CoefficientCurve, mode: InterpolationMode):
    if mode is InterpolationMode.LINEAR:
        return _LinearCurve(curve)
    return _CubicCurve(curve, mode)
