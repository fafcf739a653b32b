import numpy as np
from numba import njit

ORBIT_BAILOUT = 4.0
ORBIT_SKIP = 5


@njit(cache=True, nogil=True)
def orbit_density(samples_re, samples_im, max_iterations,
                  min_x, max_y, unit_x, unit_y, width, height):
    """
    Buddhabrot pass over one batch of sample points.

    Each sample is iterated against the radius-2 bailout. Samples escaping
    after more than max_iterations // 10 (and before max_iterations)
    iterations have their orbit replayed; every orbit point after the first
    ORBIT_SKIP that falls inside the window bumps the density of its pixel.

    Returns (density[height, width], escape_counts[n_samples]).
    """
    n = samples_re.shape[0]
    density = np.zeros((height, width), dtype=np.int64)
    counts = np.empty(n, dtype=np.int32)
    lower = max_iterations // 10

    for s in range(n):
        cr = samples_re[s]
        ci = samples_im[s]
        zr = 0.0
        zi = 0.0
        k = 0
        while k < max_iterations:
            if not (zr * zr + zi * zi <= ORBIT_BAILOUT):
                break
            zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
            k += 1
        counts[s] = k

        if k >= max_iterations or k <= lower:
            continue

        zr = 0.0
        zi = 0.0
        for step in range(k):
            zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
            if step < ORBIT_SKIP:
                continue
            col = (zr - min_x) / unit_x
            row = (max_y - zi) / unit_y
            if 0.0 <= col < width and 0.0 <= row < height:
                density[int(row), int(col)] += 1

    return density, counts
