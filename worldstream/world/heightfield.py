import math

from worldstream.constants import NOISE_SCALE
from worldstream.world.seeding import unit_float


class HeightField:
    def __init__(
        self,
        seed: int,
        scale: float = NOISE_SCALE,
        octaves: int = 4,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
    ) -> None:
        if scale <= 0:
            raise ValueError("scale must be positive")
        if octaves < 1:
            raise ValueError("octaves must be at least 1")
        self.seed = seed
        self.scale = scale
        self.octaves = octaves
        self.persistence = persistence
        self.lacunarity = lacunarity

    @staticmethod
    def _fade(t: float) -> float:
        return t * t * t * (t * (t * 6 - 15) + 10)

    @staticmethod
    def _lerp(a: float, b: float, t: float) -> float:
        return a + t * (b - a)

    def _gradient(self, octave: int, lattice: int) -> float:
        return unit_float(self.seed, octave, lattice) * 2.0 - 1.0

    def _perlin(self, octave: int, x: float) -> float:
        xi = math.floor(x)
        xf = x - xi

        n0 = self._gradient(octave, xi) * xf
        n1 = self._gradient(octave, xi + 1) * (xf - 1.0)
        # 1-D gradient noise peaks at +-0.5; rescale to [-1, 1].
        return self._lerp(n0, n1, self._fade(xf)) * 2.0

    def noise(self, x: float) -> float:
        frequency = 1.0 / self.scale
        amplitude = 1.0
        noise_sum = 0.0
        max_amplitude = 0.0

        for octave in range(self.octaves):
            noise_sum += self._perlin(octave, x * frequency) * amplitude
            max_amplitude += amplitude
            amplitude *= self.persistence
            frequency *= self.lacunarity

        return noise_sum / max_amplitude if max_amplitude else 0.0

    def sample(self, x: float) -> float:
        return self.noise(x) * self.scale
