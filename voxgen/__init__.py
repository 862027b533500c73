'''
voxgen -- procedural voxel chunk generation and a socket-based WFC solver
'''
__version__ = '0.1.0'
