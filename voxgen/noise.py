#
# N-dimensional simplex noise over numpy arrays, with a fractal (fBm) layer
# on top for terrain work.
#
# Based on example code by Stefan Gustavson (stegu@itn.liu.se).
# Optimisations by Peter Eastman (peastman@drizzle.stanford.edu).
# Better rank ordering method by Stefan Gustavson in 2012.
#
# The simplex code was placed in the public domain by its original author,
# Stefan Gustavson. You may use it as you see fit, but
# attribution is appreciated.
#
import itertools
import numpy

from voxgen import config


p = numpy.array( [151,160,137,91,90,15,
    131,13,201,95,96,53,194,233,7,225,140,36,103,30,69,142,8,99,37,240,21,10,23,
    190, 6,148,247,120,234,75,0,26,197,62,94,252,219,203,117,35,11,32,57,177,33,
    88,237,149,56,87,174,20,125,136,171,168, 68,175,74,165,71,134,139,48,27,166,
    77,146,158,231,83,111,229,122,60,211,133,230,220,105,92,41,55,46,245,40,244,
    102,143,54, 65,25,63,161, 1,216,80,73,209,76,132,187,208, 89,18,169,200,196,
    135,130,116,188,159,86,164,100,109,198,173,186, 3,64,52,217,226,250,124,123,
    5,202,38,147,118,126,255,82,85,212,207,206,59,227,47,16,58,17,182,189,28,42,
    223,183,170,213,119,248,152, 2,44,154,163, 70,221,153,101,155,167, 43,172,9,
    129,22,39,253, 19,98,108,110,79,113,224,232,178,185, 112,104,218,246,97,228,
    251,34,242,193,238,210,144,12,191,179,162,241, 81,51,145,235,249,14,239,107,
    49,192,214, 31,181,199,106,157,184, 84,204,176,115,121,50,45,127, 4,150,254,
    138,236,205,93,222,114,67,29,24,72,243,141,128,195,78,66,215,61,156,180] )
# To remove the need for index wrapping, double the permutation table length
perm = p[numpy.arange(512) & 255]


# returns floor of floating point array by coercing to integer
def fastfloor(x):
    return numpy.array(numpy.floor(x), dtype = numpy.int64)


def _gradients(N):
    # Edge midpoints of the N-cube: every vector of {-1,0,1}^N with at most one zero.
    grad = ((0,-1,1),)*N
    grad = numpy.array(list(itertools.product(*grad))[1:])
    return grad[numpy.abs(grad).sum(-1)>=N-1]


def _as_points(point):
    Z = numpy.asarray(point, dtype=numpy.float64)
    if Z.ndim == 1:
        Z = Z[numpy.newaxis, :]
    return Z


#  # N-D simplex noise, better simplex rank ordering method 2012-03-09
class SimplexNoise:
    def __init__(self, seed=None):
        if seed is not None:
            rng = numpy.random.RandomState(seed & 0xFFFFFFFF)
            p0 = rng.permutation(256)
            self.perm0 = p0[numpy.arange(512) & 255]
        else:
            self.perm0 = perm
        self.perm0.setflags(write=False)
        self._grads = {N: _gradients(N) for N in (2, 3)}

    def _grad(self, N):
        grad = self._grads.get(N)
        if grad is None:
            grad = _gradients(N)
        return grad

    def noise(self, Z):
        # Skew the (x,y,z,w) space to determine which cell of simplices we're in
        N = Z.shape[-1] #number of dimensions
        N1 = N+1 # number of simplices
        Fn = 1.0*(N1**0.5 - 1)/N
        Gn = 1.0*(N1 - N1**0.5)/N/N1

        #skew the Z data and store in z0
        s = Z.sum(-1) * Fn # Factor for skewing
        cell = fastfloor(Z+s[:,numpy.newaxis])
        t = (cell.sum(-1) * Gn) # Factor for unskewing
        Z0 = cell - t[:,numpy.newaxis]
        z0 = Z - Z0
        # Only the hash lookup wraps, the geometry above uses the true lattice cell
        i = cell & 255

        # Use magnitude ordering to determine the simplices that the point z0 is located in
        rank = numpy.zeros(Z.shape)
        for l,k in itertools.combinations(range(N),2):
            rank[:,k] += z0[:,k]>=z0[:,l]
            rank[:,l] += z0[:,k]<z0[:,l]

        # ind will contain the skewed indices of the N+1 simplices
        b = numpy.arange(N+1)[:,numpy.newaxis,numpy.newaxis]
        ind = rank>= N - b
        # zk contains the skewed locations of the N+1 simplices
        zk = z0 - ind + 1.0 * b * Gn

        indi = ind.astype(numpy.int64) + i
        # the gradients are randomly assigned to each simplex
        grad = self._grad(N)

        gik = 0
        for x in range(N-1,-1,-1):
            gik = self.perm0[indi[:,:,x] + gik]
        gik = gik%(grad.shape[0])
        # Calculate the contribution from the simplices
        tk = 0.5 - (zk*zk).sum(-1)
        tp = tk>=0
        tk = tp * tk * tk
        nk = tp * tk * tk * (grad[gik]*zk).sum(-1)

        # Sum up and scale the result to cover the range [-1,1]
        return nk.sum(0) * (2**6 )

    def sample_many(self, points):
        return self.noise(_as_points(points))

    def sample(self, point):
        return float(self.sample_many(point)[0])


class FractalNoise:
    '''
    Fractional Brownian motion over simplex noise. Octave i is an
    independently seeded SimplexNoise sampled at lacunarity**i times the
    input frequency and weighted by persistence**i; the sum is normalized
    by the total weight so the output stays in the base noise range.
    '''
    def __init__(self, seed, octaves=None, frequency=1.0, lacunarity=2.0, persistence=0.5):
        if octaves is None:
            octaves = getattr(config, 'TERRAIN_OCTAVES', 5)
        if octaves < 1:
            raise ValueError('octaves must be >= 1, got %r' % (octaves,))
        self.seed = seed
        self.octaves = octaves
        self.frequency = frequency
        self.lacunarity = lacunarity
        self.persistence = persistence
        self.sources = tuple(SimplexNoise(seed = seed + i) for i in range(octaves))
        self.weights = tuple(persistence**i for i in range(octaves))
        self.scale = 1.0 / sum(self.weights)

    def noise(self, Z):
        result = numpy.zeros(Z.shape[0])
        freq = self.frequency
        for src, weight in zip(self.sources, self.weights):
            result += src.noise(Z * freq) * weight
            freq *= self.lacunarity
        return result * self.scale

    def sample_many(self, points):
        return self.noise(_as_points(points))

    def sample(self, point):
        return float(self.sample_many(point)[0])


if __name__ == '__main__':
    import sys
    import time
    from PIL import Image

    seed = int(sys.argv[1]) if len(sys.argv) > 1 else config.WORLD_SEED
    fbm = FractalNoise(seed)
    t = time.time()
    arr2 = numpy.mgrid[0:256,0:256].T
    shape2 = arr2.shape
    arr2 = arr2.reshape((shape2[0]*shape2[1],2)) / config.TERRAIN_SCALE
    n = fbm.sample_many(arr2).reshape(shape2[0],shape2[1])
    print('fbm noise', time.time()-t)
    print(n.min(), n.max(), numpy.average(n))
    n = numpy.array((n - n.min()) / (n.max()-n.min())*255,dtype='u1')
    im = Image.fromarray(n,'L')
    im.save('noise2.png')
