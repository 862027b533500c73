'''
world_loader.py -- allocates chunks and runs terrain generation on a pool of worker threads

Each submitted chunk is owned by exactly one worker until its future
completes; generation never writes outside the chunk it was handed, so the
workers share nothing but the (immutable) WorldGen noise tables.
'''

# standard library imports
import itertools
import threading
import concurrent.futures

# local imports
from voxgen import config, logutil
from voxgen import mapgen
from voxgen.chunk import Chunk


def loader_log(msg, level="INFO"):
    logutil.log("LOADER", msg, level=level)


class WorldLoader(object):
    def __init__(self, seed=None, workers=None):
        if seed is None:
            seed = getattr(config, 'WORLD_SEED', 100)
        if workers is None:
            workers = getattr(config, 'GEN_WORKERS', 2)
        self.world_seed = seed
        self.worldgen = mapgen.get_world_gen(seed)
        self.chunks = {}
        self._pending = {}
        self._lock = threading.Lock()
        self.executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="ChunkGen"
        )
        loader_log('loader started seed=%s workers=%i' % (seed, workers))

    def _generate(self, chunkpos):
        chunk = Chunk(chunkpos)
        mapgen.generate_chunk(chunk, self.worldgen)
        with self._lock:
            self.chunks[chunk.chunkpos] = chunk
        return chunk

    def request(self, chunkpos):
        '''
        Queue generation of a chunk unless it is already loaded or in flight.
        Returns the future for the chunk.
        '''
        chunkpos = tuple(chunkpos)
        with self._lock:
            fut = self._pending.get(chunkpos)
            if fut is not None:
                return fut
            if chunkpos in self.chunks:
                fut = concurrent.futures.Future()
                fut.set_result(self.chunks[chunkpos])
                return fut
            fut = self.executor.submit(self._generate, chunkpos)
            self._pending[chunkpos] = fut
        fut.add_done_callback(lambda f, pos=chunkpos: self._finish(pos, f))
        return fut

    def _finish(self, chunkpos, fut):
        with self._lock:
            self._pending.pop(chunkpos, None)

    def load(self, chunkposes):
        '''
        Generate every chunk in chunkposes and block until all are done.
        Worker exceptions are logged and re-raised.
        '''
        futures = {tuple(pos): self.request(pos) for pos in chunkposes}
        result = {}
        for pos, fut in futures.items():
            try:
                result[pos] = fut.result()
            except Exception:
                loader_log('generation failed for chunk %s' % (pos,), level="ERROR")
                raise
        loader_log('loaded %i chunks (%i resident)' % (len(result), len(self.chunks)))
        return result

    def load_area(self, center, radius, height=0):
        '''
        Load the (2*radius+1)^2 columns of chunks around center, each
        2*height+1 chunks tall.
        '''
        cx, cy, cz = center
        positions = [
            (cx + dx, cy + dy, cz + dz)
            for dx, dy, dz in itertools.product(
                range(-radius, radius + 1), range(-height, height + 1), range(-radius, radius + 1))
        ]
        return self.load(positions)

    def get_chunk(self, chunkpos):
        return self.chunks.get(tuple(chunkpos))

    def unload(self, chunkpos):
        with self._lock:
            return self.chunks.pop(tuple(chunkpos), None)

    def shutdown(self, wait=True):
        self.executor.shutdown(wait=wait)
        loader_log('loader stopped')

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown()
        return False
