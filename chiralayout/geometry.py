"""
Planar geometry primitives.

Immutable 2D vectors and segments together with the regular-polygon
formulas used to inscribe rings. All angles are in radians unless a name
says otherwise.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterable


@dataclass(frozen=True, slots=True)
class Vector2:
    """An immutable 2D vector.
    
    Example:
        >>> Vector2(3.0, 4.0).length()
        5.0
        >>> Vector2(1.0, 0.0).rotate(math.pi / 2).y
        1.0
    """
    
    x: float = 0.0
    y: float = 0.0
    
    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)
    
    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)
    
    def __mul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)
    
    __rmul__ = __mul__
    
    def __truediv__(self, scalar: float) -> Vector2:
        return Vector2(self.x / scalar, self.y / scalar)
    
    def __neg__(self) -> Vector2:
        return Vector2(-self.x, -self.y)
    
    def dot(self, other: Vector2) -> float:
        return self.x * other.x + self.y * other.y
    
    def cross(self, other: Vector2) -> float:
        """Z component of the 3D cross product."""
        return self.x * other.y - self.y * other.x
    
    def length(self) -> float:
        return math.hypot(self.x, self.y)
    
    def length_sq(self) -> float:
        return self.x * self.x + self.y * self.y
    
    def distance(self, other: Vector2) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)
    
    def distance_sq(self, other: Vector2) -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy
    
    def normalized(self) -> Vector2:
        """Unit vector in the same direction (the zero vector stays zero)."""
        length = self.length()
        if length == 0.0:
            return Vector2()
        return Vector2(self.x / length, self.y / length)
    
    def angle(self) -> float:
        """Angle of the vector relative to the positive x axis."""
        return math.atan2(self.y, self.x)
    
    def rotate(self, angle: float) -> Vector2:
        """Rotate about the origin."""
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        return Vector2(
            self.x * cos_a - self.y * sin_a,
            self.x * sin_a + self.y * cos_a,
        )
    
    def rotate_around(self, angle: float, center: Vector2) -> Vector2:
        """Rotate about an arbitrary center."""
        return (self - center).rotate(angle) + center
    
    def clockwise(self, other: Vector2) -> int:
        """Orientation of ``other`` relative to this vector.
        
        Returns:
            -1 if ``other`` lies clockwise of this vector, 1 if
            counter-clockwise and 0 if the two are collinear.
        """
        a = self.y * other.x
        b = self.x * other.y
        if a > b:
            return -1
        if a == b:
            return 0
        return 1
    
    def which_side(self, a: Vector2, b: Vector2) -> float:
        """Signed area telling on which side of the line a-b this point lies."""
        return (self.x - a.x) * (b.y - a.y) - (self.y - a.y) * (b.x - a.x)
    
    def same_side_as(self, a: Vector2, b: Vector2, reference: Vector2) -> bool:
        """Check whether this point and ``reference`` lie on the same side of a-b."""
        side = self.which_side(a, b)
        ref_side = reference.which_side(a, b)
        return (side < 0 and ref_side < 0) or (side == 0 and ref_side == 0) or (side > 0 and ref_side > 0)
    
    def rotate_away_from_angle(self, point: Vector2, center: Vector2, angle: float) -> float:
        """Pick the sign of ``angle`` that moves this point further from ``point``.
        
        Args:
            point: Position to move away from.
            center: Rotation center.
            angle: Magnitude of the rotation.
        
        Returns:
            ``angle`` or ``-angle``, whichever rotation ends further away.
        """
        dist_a = self.rotate_around(angle, center).distance_sq(point)
        dist_b = self.rotate_around(-angle, center).distance_sq(point)
        return angle if dist_b < dist_a else -angle
    
    def rotate_to_angle(self, target: Vector2, center: Vector2) -> float:
        """Signed angle that rotates this point about ``center`` toward ``target``."""
        return signed_angle(self - center, target - center)
    
    @staticmethod
    def midpoint(a: Vector2, b: Vector2) -> Vector2:
        return Vector2((a.x + b.x) / 2.0, (a.y + b.y) / 2.0)
    
    @staticmethod
    def normals(a: Vector2, b: Vector2) -> tuple[Vector2, Vector2]:
        """The two (unnormalised) normals of the segment a-b."""
        delta = b - a
        return Vector2(-delta.y, delta.x), Vector2(delta.y, -delta.x)
    
    @staticmethod
    def centroid(points: Iterable[Vector2]) -> Vector2:
        xs = 0.0
        ys = 0.0
        count = 0
        for point in points:
            xs += point.x
            ys += point.y
            count += 1
        if count == 0:
            return Vector2()
        return Vector2(xs / count, ys / count)


@dataclass(frozen=True, slots=True)
class Line:
    """A drawable segment remembering the elements and stereo role of its ends."""
    
    start: Vector2
    end: Vector2
    element_start: str | None = None
    element_end: str | None = None
    chiral_start: bool = False
    chiral_end: bool = False
    
    def length(self) -> float:
        return self.start.distance(self.end)
    
    def offset(self, delta: Vector2) -> Line:
        """Translate both ends."""
        return replace(self, start=self.start + delta, end=self.end + delta)
    
    def shortened(self, by: float) -> Line:
        """Shorten symmetrically so the segment loses ``by`` in total."""
        step = (self.start - self.end).normalized() * (by / 2.0)
        return replace(self, start=self.start - step, end=self.end + step)
    
    def shortened_start(self, by: float) -> Line:
        step = (self.end - self.start).normalized() * by
        return replace(self, start=self.start + step)
    
    def shortened_end(self, by: float) -> Line:
        step = (self.start - self.end).normalized() * by
        return replace(self, end=self.end + step)


def signed_angle(a: Vector2, b: Vector2) -> float:
    """Signed angle from ``a`` to ``b`` in (-pi, pi]."""
    return math.atan2(a.cross(b), a.dot(b))


def to_rad(degrees: float) -> float:
    return degrees * math.pi / 180.0


def to_deg(radians: float) -> float:
    return radians * 180.0 / math.pi


def mean_angle(angles: Iterable[float]) -> float:
    """Circular mean of a collection of angles."""
    sin_sum = 0.0
    cos_sum = 0.0
    for angle in angles:
        sin_sum += math.sin(angle)
        cos_sum += math.cos(angle)
    return math.atan2(sin_sum, cos_sum)


def poly_circumradius(side_length: float, sides: int) -> float:
    """Circumradius of a regular polygon.
    
    Args:
        side_length: Length of one side.
        sides: Number of sides.
    
    Returns:
        Distance from the center to each corner.
    """
    return side_length / (2.0 * math.sin(math.pi / sides))


def apothem(circumradius: float, sides: int) -> float:
    """Distance from the center of a regular polygon to the middle of a side."""
    return circumradius * math.cos(math.pi / sides)


def apothem_from_side_length(side_length: float, sides: int) -> float:
    return apothem(poly_circumradius(side_length, sides), sides)


def central_angle(sides: int) -> float:
    """Angle subtended at the center by one side of a regular polygon."""
    return to_rad(360.0 / sides)


def inner_angle(sides: int) -> float:
    """Interior angle at each corner of a regular polygon."""
    return to_rad((sides - 2) * 180.0 / sides)
